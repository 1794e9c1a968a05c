"""
Thin HTTP client for the GitHub REST endpoints used by the repository tools.

All methods are read-only and scoped to the configured organisation. GitHub
errors are mapped to internal exceptions that the tool layer can turn into
safe, user-facing messages.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from metaplex_mcp.config import MetaplexConfig, default_config

logger = logging.getLogger(__name__)

GITHUB_ACCEPT = "application/vnd.github+json"
GITHUB_API_VERSION = "2022-11-28"


class GitHubApiError(Exception):
    """Base exception for GitHub API errors."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RepositoryNotFoundError(GitHubApiError):
    """Raised when a repository does not exist or is private."""


class UnauthorizedError(GitHubApiError):
    """Raised when GitHub rejects the configured token."""


class RateLimitedError(GitHubApiError):
    """Raised when the GitHub rate limit is exhausted."""


class GitHubUnreachableError(GitHubApiError):
    """Raised when api.github.com cannot be reached."""


class GitHubApiClient:
    """Async client for repository lookups within one GitHub organisation."""

    def __init__(
        self,
        config: MetaplexConfig | None = None,
        *,
        async_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.config = config or default_config
        self._client: Optional[httpx.AsyncClient] = async_client
        self._owns_client = async_client is None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.config.github_api_url, timeout=self.config.timeout
            )
            self._owns_client = True
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _build_headers(self) -> Dict[str, str]:
        headers = {"Accept": GITHUB_ACCEPT, "X-GitHub-Api-Version": GITHUB_API_VERSION}
        if self.config.github_token:
            headers["Authorization"] = f"Bearer {self.config.github_token}"
        return headers

    def _map_error(self, response: httpx.Response, message: Optional[str]) -> GitHubApiError:
        status_code = response.status_code
        text = message or f"GitHub API error ({status_code})"
        if status_code == 404:
            return RepositoryNotFoundError(text, status_code=status_code)
        if status_code == 401:
            return UnauthorizedError(text, status_code=status_code)
        remaining = response.headers.get("x-ratelimit-remaining")
        if status_code == 429 or (status_code == 403 and remaining == "0"):
            return RateLimitedError(text, status_code=status_code)
        return GitHubApiError(text, status_code=status_code)

    async def _request(self, path: str, *, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        client = await self._get_client()
        try:
            response = await client.get(path, params=params, headers=self._build_headers())
        except httpx.RequestError as exc:
            logger.warning("GitHub API unreachable for path %s", path)
            raise GitHubUnreachableError("GitHub API unreachable") from exc

        try:
            data = response.json()
        except ValueError:
            data = None

        if response.status_code >= 400:
            message = data.get("message") if isinstance(data, dict) else None
            raise self._map_error(response, message if isinstance(message, str) else None)

        if not isinstance(data, dict):
            raise GitHubApiError("Unexpected response from GitHub.", status_code=response.status_code)
        return data

    async def fetch_repo(self, repo: str) -> Dict[str, Any]:
        """Retrieve repository metadata for ``<org>/<repo>``."""
        org = quote(self.config.github_org, safe="")
        name = quote(repo, safe="")
        return await self._request(f"/repos/{org}/{name}")

    async def search_code(self, query: str, *, repo: Optional[str] = None, limit: int = 20) -> Dict[str, Any]:
        """Search code in one repository, or across the organisation when ``repo`` is unset."""
        scope = f"repo:{self.config.github_org}/{repo}" if repo else f"org:{self.config.github_org}"
        params = {"q": f"{query} {scope}", "per_page": limit}
        return await self._request("/search/code", params=params)


default_client = GitHubApiClient()
