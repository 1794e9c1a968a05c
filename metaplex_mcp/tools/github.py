"""Repository tools for the Metaplex GitHub organisation."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from metaplex_mcp.config import MetaplexConfig, default_config
from metaplex_mcp.github_api import (
    GitHubApiError,
    GitHubUnreachableError,
    RateLimitedError,
    RepositoryNotFoundError,
    UnauthorizedError,
    default_client,
)
from metaplex_mcp.tools.validators import clamp_limit, is_valid_query, is_valid_repo_name

logger = logging.getLogger(__name__)


def _error_for(exc: GitHubApiError, prefix: str) -> Dict[str, Any]:
    if isinstance(exc, GitHubUnreachableError):
        return {"error": "GitHub API unreachable"}
    if isinstance(exc, RateLimitedError):
        return {"error": "GitHub rate limit exceeded"}
    if isinstance(exc, UnauthorizedError):
        return {"error": "Unauthorized; check GITHUB_TOKEN."}
    if isinstance(exc, RepositoryNotFoundError):
        return {"error": f"{prefix}: Not Found"}
    return {"error": f"{prefix}: {exc}"}


async def get_repo(
    repo: Optional[str] = None,
    *,
    client=default_client,
    config: MetaplexConfig = default_config,
) -> Dict[str, Any]:
    """
    Return a short summary of a repository in the configured organisation.

    Defaults to ``config.default_repo`` when ``repo`` is omitted.
    """
    repo_name = repo or config.default_repo
    if not is_valid_repo_name(repo_name):
        return {"error": "Invalid repository name."}

    logger.info("Fetching repository %s", repo_name)
    try:
        data = await client.fetch_repo(repo_name)
    except GitHubApiError as exc:
        return _error_for(exc, "Failed to fetch repository")
    except Exception:
        logger.exception("Unexpected error fetching repository %s", repo_name)
        return {"error": "Unexpected error while retrieving repository."}

    return {
        "name": data.get("name"),
        "description": data.get("description"),
        "stars": data.get("stargazers_count", 0),
        "forks": data.get("forks_count", 0),
        "url": data.get("html_url"),
    }


async def search_code(
    query: str,
    repo: Optional[str] = None,
    *,
    limit: Optional[int] = None,
    client=default_client,
    config: MetaplexConfig = default_config,
) -> Dict[str, Any]:
    """Search code across the organisation, or within one repository."""
    if not is_valid_query(query):
        return {"error": "Invalid query parameter"}
    if repo is not None and not is_valid_repo_name(repo):
        return {"error": "Invalid repository name."}

    effective_limit = clamp_limit(limit, default=config.default_code_results, max_value=config.max_code_results)
    try:
        data = await client.search_code(query.strip(), repo=repo, limit=effective_limit)
    except GitHubApiError as exc:
        return _error_for(exc, "Failed to search code")
    except Exception:
        logger.exception("Unexpected error searching code for %r", query)
        return {"error": "Unexpected error while searching code."}

    items: List[Dict[str, Any]] = []
    raw_items = data.get("items")
    if isinstance(raw_items, list):
        for item in raw_items[:effective_limit]:
            if not isinstance(item, dict):
                continue
            repository = item.get("repository") if isinstance(item.get("repository"), dict) else {}
            items.append(
                {
                    "path": item.get("path"),
                    "repository": repository.get("full_name"),
                    "url": item.get("html_url"),
                }
            )
    return {"totalCount": data.get("total_count", len(items)), "items": items}
