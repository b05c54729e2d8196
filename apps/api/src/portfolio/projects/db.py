from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import text

from portfolio.db import get_engine
from portfolio.errors import ProjectNotFoundError
from portfolio.mutations import delete_returning, insert_unique, update_locked
from portfolio.projects.query import build_where, page_offset, total_pages
from portfolio.projects.types import Project, ProjectFilters, ProjectPage


logger = logging.getLogger(__name__)

PROJECT_COLUMNS = (
    "id",
    "title",
    "slug",
    "description",
    "tag",
    "stack",
    "github_url",
    "live_url",
    "cover_image",
    "created_at",
    "updated_at",
)
UPDATABLE_COLUMNS = frozenset(
    {"title", "slug", "description", "tag", "stack", "github_url", "live_url", "cover_image"}
)
CONFLICT_MESSAGE = "A project with this slug already exists"

_SELECT = f"SELECT {', '.join(PROJECT_COLUMNS)} FROM project"


def _to_project(row) -> Project:
    return Project(**(dict(row) | {"stack": list(row["stack"] or [])}))


def list_projects(filters: ProjectFilters, page: int, page_size: int) -> ProjectPage:
    where, params = build_where(filters)
    q = text(
        f"""
        {_SELECT}
        {where}
        ORDER BY created_at DESC
        LIMIT :limit
        OFFSET :offset
        """
    )
    q_count = text(f"SELECT COUNT(*) FROM project {where}")

    engine = get_engine()
    with engine.begin() as conn:
        rows = (
            conn.execute(
                q,
                {**params, "limit": page_size, "offset": page_offset(page, page_size)},
            )
            .mappings()
            .all()
        )
        total = int(conn.execute(q_count, params).scalar() or 0)

    return ProjectPage(
        items=[_to_project(row) for row in rows],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages(total, page_size),
    )


def list_tags() -> list[str]:
    engine = get_engine()
    q = text("SELECT DISTINCT tag FROM project ORDER BY tag")
    with engine.begin() as conn:
        return [str(tag) for tag in conn.execute(q).scalars().all()]


def list_stacks() -> list[str]:
    engine = get_engine()
    q = text("SELECT DISTINCT unnest(stack) AS stack FROM project ORDER BY stack")
    with engine.begin() as conn:
        return [str(stack) for stack in conn.execute(q).scalars().all()]


def latest_projects(limit: int) -> list[Project]:
    engine = get_engine()
    q = text(f"{_SELECT} ORDER BY created_at DESC LIMIT :limit")
    with engine.begin() as conn:
        rows = conn.execute(q, {"limit": limit}).mappings().all()
    return [_to_project(row) for row in rows]


def list_all_projects() -> list[Project]:
    engine = get_engine()
    q = text(f"{_SELECT} ORDER BY created_at DESC")
    with engine.begin() as conn:
        rows = conn.execute(q).mappings().all()
    return [_to_project(row) for row in rows]


def get_project_by_slug(slug: str) -> Project:
    engine = get_engine()
    q = text(f"{_SELECT} WHERE slug = :slug")
    with engine.begin() as conn:
        row = conn.execute(q, {"slug": slug}).mappings().first()
    if not row:
        raise ProjectNotFoundError("Project not found")
    return _to_project(row)


def get_project(project_id: UUID) -> Project:
    engine = get_engine()
    q = text(f"{_SELECT} WHERE id = :project_id")
    with engine.begin() as conn:
        row = conn.execute(q, {"project_id": project_id}).mappings().first()
    if not row:
        raise ProjectNotFoundError("Project not found")
    return _to_project(row)


def create_project(
    *,
    title: str,
    slug: str,
    tag: str,
    stack: list[str] | None = None,
    description: str | None = None,
    github_url: str | None = None,
    live_url: str | None = None,
    cover_image: str | None = None,
) -> Project:
    row = insert_unique(
        table="project",
        values={
            "title": title,
            "slug": slug,
            "description": description,
            "tag": tag,
            "stack": list(stack or []),
            "github_url": github_url,
            "live_url": live_url,
            "cover_image": cover_image,
        },
        returning=PROJECT_COLUMNS,
        conflict_message=CONFLICT_MESSAGE,
    )
    project = _to_project(row)
    logger.info("project_created", extra={"entity_id": str(project.id), "slug": project.slug})
    return project


def update_project(project_id: UUID, patch: dict[str, object]) -> Project:
    unknown = set(patch) - UPDATABLE_COLUMNS
    if unknown:
        raise ValueError(f"Unknown project fields: {sorted(unknown)}")

    _before, after = update_locked(
        table="project",
        entity_id=project_id,
        values=patch,
        returning=PROJECT_COLUMNS,
        not_found=ProjectNotFoundError("Project not found"),
        conflict_message=CONFLICT_MESSAGE,
    )
    logger.info("project_updated", extra={"entity_id": str(project_id), "slug": after["slug"]})
    return _to_project(after)


def delete_project(project_id: UUID) -> None:
    row = delete_returning(
        table="project",
        entity_id=project_id,
        returning=("id", "slug"),
        not_found=ProjectNotFoundError("Project not found"),
    )
    logger.info("project_deleted", extra={"entity_id": str(project_id), "slug": row["slug"]})
