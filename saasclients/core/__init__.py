"""
Shared client plumbing.

Directory Structure:
    core/
    ├── base.py           # ApiClient, ClientConfig, Resource, request helpers
    ├── auth.py           # Bearer/API-key/basic credentials, OAuth2 refresh
    ├── pagination.py     # Link header, next URL, token, offset, ... styles
    ├── retry.py          # Backoff strategies and RetryPolicy
    ├── ratelimit.py      # Rate limit headers, client-side token bucket
    ├── http_cache.py     # ETag cache for conditional GETs
    └── errors.py         # ApiError hierarchy
"""

from saasclients.core.auth import (
    ApiKeyHeader,
    BasicAuth,
    BearerToken,
    ClientCredentialsQuery,
    Credentials,
    NoAuth,
    OAuth2Credentials,
    OAuth2Token,
)
from saasclients.core.base import (
    AnonymousClient,
    ApiClient,
    ApiResponse,
    ClientConfig,
    Page,
    Resource,
    clean_params,
    encode_path,
)
from saasclients.core.errors import (
    ApiError,
    AuthenticationError,
    NotFoundError,
    RateLimitError,
    ResponseDecodeError,
    TokenRefreshError,
    ValidationError,
)
from saasclients.core.http_cache import CachedResponse, HttpCache, InMemoryHttpCache, NoopHttpCache
from saasclients.core.pagination import (
    LinkHeaderPaginator,
    NextUrlPaginator,
    OffsetPaginator,
    PageNumberPaginator,
    PageRequest,
    Paginator,
    StartingAfterPaginator,
    TokenPaginator,
)
from saasclients.core.ratelimit import RateLimiter, RateLimitInfo
from saasclients.core.retry import (
    DEFAULT_RETRY,
    NO_RETRY,
    ConstantBackoff,
    DecorrelatedJitter,
    ExponentialBackoff,
    NoBackoff,
    RetryPolicy,
)

__all__ = [
    "DEFAULT_RETRY",
    "NO_RETRY",
    "AnonymousClient",
    "ApiClient",
    "ApiError",
    "ApiKeyHeader",
    "ApiResponse",
    "AuthenticationError",
    "BasicAuth",
    "BearerToken",
    "CachedResponse",
    "ClientConfig",
    "ClientCredentialsQuery",
    "ConstantBackoff",
    "Credentials",
    "DecorrelatedJitter",
    "ExponentialBackoff",
    "HttpCache",
    "InMemoryHttpCache",
    "LinkHeaderPaginator",
    "NextUrlPaginator",
    "NoAuth",
    "NoBackoff",
    "NoopHttpCache",
    "NotFoundError",
    "OAuth2Credentials",
    "OAuth2Token",
    "OffsetPaginator",
    "Page",
    "PageNumberPaginator",
    "PageRequest",
    "Paginator",
    "RateLimitError",
    "RateLimitInfo",
    "RateLimiter",
    "Resource",
    "ResponseDecodeError",
    "RetryPolicy",
    "StartingAfterPaginator",
    "TokenPaginator",
    "TokenRefreshError",
    "ValidationError",
    "clean_params",
    "encode_path",
]
