"""HTTP client wrappers for the GitHub REST API."""

from .client import (
    GitHubApiClient,
    GitHubApiError,
    GitHubUnreachableError,
    RateLimitedError,
    RepositoryNotFoundError,
    UnauthorizedError,
    default_client,
)

__all__ = [
    "GitHubApiClient",
    "GitHubApiError",
    "RepositoryNotFoundError",
    "UnauthorizedError",
    "RateLimitedError",
    "GitHubUnreachableError",
    "default_client",
]
