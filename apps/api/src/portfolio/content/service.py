from __future__ import annotations

import httpx

from portfolio.config import (
    CONTENT_CACHE_MAX_ENTRIES,
    CONTENT_CACHE_TTL_S,
    GITHUB_API_BASE_URL,
    GITHUB_BRANCH,
    GITHUB_REPO,
    GITHUB_TOKEN,
)
from portfolio.content.cache import ContentCache
from portfolio.content.github import (
    ContentFetchError,
    ContentSourceNotConfiguredError,
    GitHubContentClient,
)
from portfolio.errors import BadRequestError


class ContentNotFoundError(BadRequestError):
    pass


class ContentService:
    def __init__(self, cache: ContentCache, client: GitHubContentClient | None) -> None:
        self.cache = cache
        self._client = client

    async def get_markdown(self, path: str) -> str:
        if self._client is None:
            raise ContentSourceNotConfiguredError(
                "GITHUB_REPO is not configured. Set it in your environment variables."
            )
        return await self.cache.fetch_or_join(path, self._client.fetch_markdown)

    async def ensure_exists(self, path: str) -> None:
        try:
            await self.get_markdown(path)
        except ContentFetchError as exc:
            raise ContentNotFoundError(
                f'Content not found at GitHub path "{path}". '
                "Make sure the file exists in the repository."
            ) from exc

    def invalidate(self, path: str | None = None) -> None:
        self.cache.invalidate(path)


def build_content_service(http: httpx.AsyncClient) -> ContentService:
    cache = ContentCache(ttl_s=CONTENT_CACHE_TTL_S, max_entries=CONTENT_CACHE_MAX_ENTRIES)
    client = None
    if GITHUB_REPO:
        client = GitHubContentClient(
            http,
            repo=GITHUB_REPO,
            branch=GITHUB_BRANCH,
            token=GITHUB_TOKEN,
            api_base_url=GITHUB_API_BASE_URL,
        )
    return ContentService(cache, client)
