from __future__ import annotations

from portfolio.posts.db import (
    create_post,
    delete_post,
    get_post,
    get_published_post_by_slug,
    list_all_posts,
    list_published_posts,
    update_post,
)
from portfolio.posts.types import Post, PostUpdate

__all__ = [
    "Post",
    "PostUpdate",
    "create_post",
    "delete_post",
    "get_post",
    "get_published_post_by_slug",
    "list_all_posts",
    "list_published_posts",
    "update_post",
]
