from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass
class Project:
    id: UUID
    title: str
    slug: str
    description: str | None
    tag: str
    stack: list[str]
    github_url: str | None
    live_url: str | None
    cover_image: str | None
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class ProjectFilters:
    tag: str | None = None
    stack: str | None = None


@dataclass
class ProjectPage:
    items: list[Project]
    total: int
    page: int
    page_size: int
    total_pages: int
