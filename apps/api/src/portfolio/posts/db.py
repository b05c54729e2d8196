from __future__ import annotations

import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import text

from portfolio.db import get_engine
from portfolio.errors import PostNotFoundError
from portfolio.mutations import delete_returning, insert_unique, update_locked
from portfolio.posts.types import Post, PostUpdate


logger = logging.getLogger(__name__)

POST_COLUMNS = (
    "id",
    "title",
    "slug",
    "description",
    "github_path",
    "cover_image",
    "published_at",
    "author_id",
    "created_at",
    "updated_at",
)
UPDATABLE_COLUMNS = frozenset({"title", "slug", "description", "github_path", "cover_image"})
CONFLICT_MESSAGE = "A post with this slug already exists"

_SELECT = f"SELECT {', '.join(POST_COLUMNS)} FROM post"


def list_published_posts(limit: int, offset: int = 0) -> tuple[list[Post], int]:
    engine = get_engine()
    q = text(
        f"""
        {_SELECT}
        WHERE published_at IS NOT NULL
        ORDER BY published_at DESC, created_at DESC
        LIMIT :limit
        OFFSET :offset
        """
    )
    q_count = text("SELECT COUNT(*) FROM post WHERE published_at IS NOT NULL")
    with engine.begin() as conn:
        rows = conn.execute(q, {"limit": limit, "offset": offset}).mappings().all()
        total = int(conn.execute(q_count).scalar() or 0)
    return [Post(**row) for row in rows], total


def list_all_posts() -> list[Post]:
    engine = get_engine()
    q = text(f"{_SELECT} ORDER BY created_at DESC")
    with engine.begin() as conn:
        rows = conn.execute(q).mappings().all()
    return [Post(**row) for row in rows]


def get_published_post_by_slug(slug: str) -> Post:
    engine = get_engine()
    q = text(f"{_SELECT} WHERE slug = :slug AND published_at IS NOT NULL")
    with engine.begin() as conn:
        row = conn.execute(q, {"slug": slug}).mappings().first()
    if not row:
        raise PostNotFoundError("Post not found")
    return Post(**row)


def get_post(post_id: UUID) -> Post:
    engine = get_engine()
    q = text(f"{_SELECT} WHERE id = :post_id")
    with engine.begin() as conn:
        row = conn.execute(q, {"post_id": post_id}).mappings().first()
    if not row:
        raise PostNotFoundError("Post not found")
    return Post(**row)


def create_post(
    *,
    title: str,
    slug: str,
    github_path: str,
    author_id: UUID,
    description: str | None = None,
    cover_image: str | None = None,
    published: bool = True,
) -> Post:
    values: dict[str, object] = {
        "title": title,
        "slug": slug,
        "description": description,
        "github_path": github_path,
        "cover_image": cover_image,
        "author_id": author_id,
        "published_at": datetime.now(timezone.utc) if published else None,
    }
    row = insert_unique(
        table="post",
        values=values,
        returning=POST_COLUMNS,
        conflict_message=CONFLICT_MESSAGE,
    )
    post = Post(**row)
    logger.info("post_created", extra={"entity_id": str(post.id), "slug": post.slug})
    return post


def update_post(post_id: UUID, patch: dict[str, object], published: bool | None = None) -> PostUpdate:
    unknown = set(patch) - UPDATABLE_COLUMNS
    if unknown:
        raise ValueError(f"Unknown post fields: {sorted(unknown)}")

    raw_assignments: list[str] = []
    if published is True:
        raw_assignments.append("published_at = COALESCE(published_at, now())")
    elif published is False:
        raw_assignments.append("published_at = NULL")

    before, after = update_locked(
        table="post",
        entity_id=post_id,
        values=patch,
        returning=POST_COLUMNS,
        not_found=PostNotFoundError("Post not found"),
        conflict_message=CONFLICT_MESSAGE,
        raw_assignments=raw_assignments,
    )
    logger.info("post_updated", extra={"entity_id": str(post_id), "slug": after["slug"]})
    return PostUpdate(before=Post(**before), after=Post(**after))


def delete_post(post_id: UUID) -> Post:
    row = delete_returning(
        table="post",
        entity_id=post_id,
        returning=POST_COLUMNS,
        not_found=PostNotFoundError("Post not found"),
    )
    logger.info("post_deleted", extra={"entity_id": str(post_id), "slug": row["slug"]})
    return Post(**row)
