from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass
class Post:
    id: UUID
    title: str
    slug: str
    description: str | None
    github_path: str
    cover_image: str | None
    published_at: datetime | None
    author_id: UUID
    created_at: datetime
    updated_at: datetime


@dataclass
class PostUpdate:
    before: Post
    after: Post

    @property
    def github_path_changed(self) -> bool:
        return self.before.github_path != self.after.github_path
