from __future__ import annotations

from portfolio.projects.db import (
    create_project,
    delete_project,
    get_project,
    get_project_by_slug,
    latest_projects,
    list_all_projects,
    list_projects,
    list_stacks,
    list_tags,
    update_project,
)
from portfolio.projects.types import Project, ProjectFilters, ProjectPage

__all__ = [
    "Project",
    "ProjectFilters",
    "ProjectPage",
    "create_project",
    "delete_project",
    "get_project",
    "get_project_by_slug",
    "latest_projects",
    "list_all_projects",
    "list_projects",
    "list_stacks",
    "list_tags",
    "update_project",
]
