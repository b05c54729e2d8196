from __future__ import annotations

from portfolio.content.cache import CacheEntry, ContentCache
from portfolio.content.github import (
    ContentFetchError,
    ContentSourceNotConfiguredError,
    GitHubContentClient,
    build_contents_url,
)
from portfolio.content.service import ContentNotFoundError, ContentService, build_content_service

__all__ = [
    "CacheEntry",
    "ContentCache",
    "ContentFetchError",
    "ContentNotFoundError",
    "ContentService",
    "ContentSourceNotConfiguredError",
    "GitHubContentClient",
    "build_content_service",
    "build_contents_url",
]
