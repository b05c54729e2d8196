from __future__ import annotations

import logging
from urllib.parse import quote

import httpx

from portfolio.errors import ConfigurationError, UpstreamError


logger = logging.getLogger(__name__)

RAW_ACCEPT_HEADER = "application/vnd.github.raw+json"


class ContentFetchError(UpstreamError):
    def __init__(self, message: str, *, upstream_status: int | None = None) -> None:
        super().__init__(message)
        self.upstream_status = upstream_status


class ContentSourceNotConfiguredError(ConfigurationError):
    pass


def encode_content_path(path: str) -> str:
    return "/".join(quote(segment, safe="") for segment in path.split("/"))


def build_contents_url(api_base_url: str, repo: str, path: str) -> str:
    return f"{api_base_url.rstrip('/')}/repos/{repo}/contents/{encode_content_path(path)}"


class GitHubContentClient:
    """Reads raw files from a repository through the GitHub contents API."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        *,
        repo: str,
        branch: str = "main",
        token: str | None = None,
        api_base_url: str = "https://api.github.com",
    ) -> None:
        if not repo:
            raise ContentSourceNotConfiguredError(
                "GITHUB_REPO is not configured. Set it in your environment variables."
            )
        self._http = http
        self.repo = repo
        self.branch = branch
        self._token = token
        self._api_base_url = api_base_url

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": RAW_ACCEPT_HEADER}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def fetch_markdown(self, path: str) -> str:
        url = build_contents_url(self._api_base_url, self.repo, path)
        logger.info("content_fetch", extra={"github_path": path})

        try:
            resp = await self._http.get(url, params={"ref": self.branch}, headers=self._headers())
        except httpx.HTTPError as exc:
            raise ContentFetchError(f"Failed to fetch markdown from GitHub: {exc!r} ({url})") from exc

        if not resp.is_success:
            logger.warning(
                "content_fetch_failed",
                extra={"github_path": path, "upstream_status": resp.status_code},
            )
            raise ContentFetchError(
                f"Failed to fetch markdown from GitHub: {resp.status_code} {resp.reason_phrase} ({url})",
                upstream_status=resp.status_code,
            )

        return resp.text
