"""
saasclients - async REST API clients for SaaS providers.

Every provider client shares one core:

- **Request pipeline**: URL building, parameter cleaning, error mapping
- **Credentials**: static tokens, API keys, basic auth and OAuth 2.0 with refresh
- **Retry**: backoff strategies with Retry-After support
- **Pagination**: link-header, next-url, token, cursor, offset and page-number styles
- **OpenAPI**: a runtime client generated from an OpenAPI document

Quick Start:
    >>> from saasclients.providers.github import GitHubClient, GitHubConfig
    >>>
    >>> async with GitHubClient(GitHubConfig(token="ghp_...")) as github:
    ...     repo = await github.repos.get("octocat", "hello-world")
"""

__version__ = "0.1.0"

from saasclients.core import (
    ApiClient,
    ApiError,
    ApiResponse,
    AuthenticationError,
    ClientConfig,
    NotFoundError,
    OAuth2Credentials,
    Page,
    RateLimitError,
    Resource,
    RetryPolicy,
)
from saasclients.openapi import SpecClient

__all__ = [
    "__version__",
    # Core client
    "ApiClient",
    "ApiResponse",
    "ClientConfig",
    "Page",
    "Resource",
    "RetryPolicy",
    "OAuth2Credentials",
    # Errors
    "ApiError",
    "AuthenticationError",
    "NotFoundError",
    "RateLimitError",
    # OpenAPI
    "SpecClient",
]
