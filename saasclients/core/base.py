"""
Shared client plumbing for every provider.

Each provider client is a thin ApiClient subclass plus a handful of
Resource classes (Repos, Customers, Envelopes, ...) whose methods only
build a path and call the helpers defined here.

Request pipeline (request_raw):
    1. Throttle (optional client-side token bucket)
    2. Refresh OAuth credentials that are about to expire
    3. Merge default headers, auth headers and auth query params
    4. Send, with If-None-Match when an ETag is cached
    5. On 401 with refreshable credentials: refresh once and resend
    6. Map failures (and error envelopes in 2xx bodies) onto ApiError subclasses
    7. Retry retryable failures per RetryPolicy

Pagination (get_pages / iter_pages / iter_items / unfold) is driven by a
Paginator from core.pagination.

Usage:
    async with GitHubClient(GitHubConfig(token="...")) as github:
        repo = await github.repos.get("octocat", "hello-world")
        pulls = await github.pulls.list_all("octocat", "hello-world", state="open")
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from enum import Enum
from typing import Any, Generic, TypeVar
from urllib.parse import quote

import httpx
import pydantic

from .auth import Credentials, NoAuth
from .errors import (
    ApiError,
    AuthenticationError,
    NotFoundError,
    RateLimitError,
    ResponseDecodeError,
    ValidationError,
)
from .http_cache import HttpCache, NoopHttpCache
from .pagination import PageRequest, Paginator
from .ratelimit import RateLimiter, RateLimitInfo
from .retry import ExponentialBackoff, RetryPolicy

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "saasclients/0.1"

T = TypeVar("T")
M = TypeVar("M", bound=pydantic.BaseModel)


# =============================================================================
# Configuration
# =============================================================================


@dataclass(frozen=True, slots=True)
class ClientConfig:
    """Configuration shared by every provider client."""

    # Connection
    base_url: str = ""
    host_override: str | None = None
    timeout: float = 30.0
    user_agent: str = DEFAULT_USER_AGENT
    default_headers: dict[str, str] = field(default_factory=dict)

    # Retries
    max_retries: int = 3
    retry_delay: float = 1.0
    retry_policy: RetryPolicy | None = None

    # Client-side throttle
    requests_per_second: float | None = None

    # Observability
    log_requests: bool = False
    log_responses: bool = False


# =============================================================================
# Response Types
# =============================================================================


@dataclass(frozen=True, slots=True)
class ApiResponse(Generic[T]):
    """Status, headers and parsed body of a successful call."""

    status_code: int
    headers: dict[str, str]
    body: T
    next_link: str | None = None

    @property
    def rate_limit(self) -> RateLimitInfo:
        return RateLimitInfo.from_headers(self.headers)


@dataclass(frozen=True, slots=True)
class Page(Generic[T]):
    """One page of a paginated collection."""

    items: list[T]
    body: Any
    next_request: PageRequest | None = None

    @property
    def has_next(self) -> bool:
        return self.next_request is not None


# =============================================================================
# Helpers
# =============================================================================

# Everything printable except what must be escaped inside a path segment.
_PATH_SAFE = "".join(chr(c) for c in range(0x21, 0x7F) if chr(c) not in '"#<>?`{}')


def encode_path(segment: Any) -> str:
    """
    Percent-encode a value for use inside a URL path.

    Spaces, quotes, '#', '<', '>', '?', backticks, braces, control and
    non-ASCII characters are escaped. '/' is kept.
    """
    return quote(str(segment), safe=_PATH_SAFE)


def clean_params(params: Mapping[str, Any] | None) -> dict[str, Any]:
    """
    Normalize query parameters.

    None and empty-string values are dropped, booleans become "true"/"false"
    and enums are replaced by their value.
    """
    if not params:
        return {}

    cleaned: dict[str, Any] = {}
    for key, value in params.items():
        if value is None or value == "":
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        elif isinstance(value, Enum):
            value = value.value
        elif isinstance(value, (list, tuple)):
            value = [v.value if isinstance(v, Enum) else v for v in value]
        cleaned[key] = value
    return cleaned


def _next_link(response: httpx.Response) -> str | None:
    return response.links.get("next", {}).get("url")


def parse_retry_after(value: str | None) -> float | None:
    """Seconds to wait from a Retry-After header (delta-seconds or HTTP date)."""
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        pass
    try:
        retry_at = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if retry_at.tzinfo is None:
        retry_at = retry_at.replace(tzinfo=UTC)
    return max((retry_at - datetime.now(UTC)).total_seconds(), 0.0)


def _failure_message(status: int, body: str) -> str:
    if not body:
        return f"code: {status}, empty response"
    return f"code: {status}, error: {body}"


# =============================================================================
# Base Client
# =============================================================================


class ApiClient(ABC):
    """
    Abstract base class for provider clients.

    Provides common functionality:
    - HTTP client management
    - Authentication (static or refreshing OAuth credentials)
    - Retry with backoff, honoring Retry-After
    - Error mapping
    - Pagination
    - Optional ETag cache and client-side throttle

    Subclasses must implement:
    - name: Provider identifier, used in logs and errors
    - _build_credentials(): Credentials derived from the config
    """

    health_check_path: str | None = None

    def __init__(
        self,
        config: ClientConfig,
        *,
        credentials: Credentials | None = None,
        http_client: httpx.AsyncClient | None = None,
        http_cache: HttpCache | None = None,
    ):
        """
        Initialize the client.

        Args:
            config: Provider configuration
            credentials: Overrides the credentials derived from config
            http_client: Shared httpx client; never closed by this client
            http_cache: ETag cache for GET requests
        """
        self.config = config
        self.credentials = credentials if credentials is not None else self._build_credentials()
        self.http_cache: HttpCache = http_cache if http_cache is not None else NoopHttpCache()
        self.retry_policy = config.retry_policy or RetryPolicy(
            max_retries=config.max_retries,
            backoff=ExponentialBackoff(base=config.retry_delay),
        )
        self._host_override = config.host_override
        self._client = http_client
        self._owns_client = http_client is None

        self._rate_limiter: RateLimiter | None = None
        if config.requests_per_second:
            self._rate_limiter = RateLimiter(
                rate=config.requests_per_second,
                capacity=max(1, int(config.requests_per_second)),
            )

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique name for this provider."""
        ...

    @abstractmethod
    def _build_credentials(self) -> Credentials:
        """Return the credentials described by the config."""
        ...

    def _get_default_headers(self) -> dict[str, str]:
        """Headers sent with every request."""
        return {
            "Accept": "application/json",
            "User-Agent": self.config.user_agent,
            **self.config.default_headers,
        }

    # -------------------------------------------------------------------------
    # Host
    # -------------------------------------------------------------------------

    @property
    def host(self) -> str:
        """Base URL requests are sent to, ignoring any override."""
        return self.config.base_url

    @property
    def host_override(self) -> str | None:
        return self._host_override

    def set_host_override(self, host: str) -> None:
        """Send every request to host instead of the provider default."""
        self._host_override = host

    def remove_host_override(self) -> None:
        self._host_override = None

    def url(self, path: str, host: str | None = None) -> str:
        """
        Build the full URL for path.

        Absolute URLs (next-page links) are returned unchanged. Otherwise the
        base is the host override, then the per-call host, then the default.
        """
        if path.startswith(("https://", "http://")):
            return path

        base = self._host_override or host or self.host
        if path and not path.startswith("/"):
            path = f"/{path}"
        return f"{base.rstrip('/')}{path}"

    # -------------------------------------------------------------------------
    # HTTP client lifecycle
    # -------------------------------------------------------------------------

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or (self._owns_client and self._client.is_closed):
            self._client = httpx.AsyncClient(timeout=self.config.timeout)
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if we created it."""
        if self._owns_client and self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    # -------------------------------------------------------------------------
    # Requests
    # -------------------------------------------------------------------------

    async def request_raw(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
        data: Mapping[str, Any] | None = None,
        content: bytes | str | None = None,
        headers: Mapping[str, str] | None = None,
        host: str | None = None,
    ) -> httpx.Response:
        """
        Make an HTTP request with retry and backoff.

        Args:
            method: HTTP method (GET, POST, PUT, PATCH, DELETE)
            path: URL path, or an absolute URL
            params: Query parameters
            json: JSON body
            data: Form body
            content: Raw body
            headers: Additional headers
            host: Base URL for this call only

        Returns:
            The successful httpx.Response

        Raises:
            ApiError: On any non-retryable error or after max retries
        """
        url = self.url(path, host)
        query = clean_params(params)
        last_error: ApiError | None = None
        backoff = self.retry_policy.new_backoff()

        for attempt in range(self.retry_policy.max_retries + 1):
            try:
                return await self._do_request(
                    method,
                    url,
                    params=query,
                    json=json,
                    data=data,
                    content=content,
                    headers=headers,
                )
            except ApiError as e:
                last_error = e

                if not self.retry_policy.should_retry(e, attempt):
                    if e.retryable and attempt >= self.retry_policy.max_retries:
                        logger.warning(
                            f"[{self.name}] Max retries ({self.retry_policy.max_retries}) "
                            f"reached for {method} {url}"
                        )
                    raise

                delay = self.retry_policy.get_delay(attempt + 1, e, backoff)
                logger.info(
                    f"[{self.name}] Retry {attempt + 1}/{self.retry_policy.max_retries} "
                    f"for {method} {url} after {delay:.2f}s"
                )
                await asyncio.sleep(delay)

        # Should never reach here, but satisfy type checker
        if last_error:
            raise last_error
        raise ApiError("Unknown error", self.name)

    async def _do_request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any],
        json: Any = None,
        data: Mapping[str, Any] | None = None,
        content: bytes | str | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        """
        Execute a single HTTP request.

        This is the internal method that request_raw wraps with retry logic.
        """
        client = await self._get_client()

        if self._rate_limiter is not None:
            await self._rate_limiter.wait(self.name)

        # Caller-supplied Authorization (GitHub App JWT) bypasses the credentials
        explicit_auth = "Authorization" in (headers or {})
        if not explicit_auth:
            await self.credentials.ensure_fresh(client)

        auth_headers = await self.credentials.auth_headers()
        request_headers = {**self._get_default_headers(), **auth_headers, **(headers or {})}
        request_params = {**self.credentials.auth_params(), **params}

        cache_key = None
        cached = None
        if method == "GET":
            cache_key = str(httpx.URL(url, params=params)) if params else url
            cached = self.http_cache.lookup(cache_key)
            if cached is not None:
                request_headers["If-None-Match"] = cached.etag

        if self.config.log_requests:
            logger.debug(f"[{self.name}] {method} {url} params={params} body={json or data}")

        async def send() -> httpx.Response:
            return await client.request(
                method,
                url,
                params=request_params or None,
                json=json,
                data=data,
                content=content,
                headers=request_headers,
            )

        try:
            response = await send()

            if response.status_code == 401 and self.credentials.can_refresh and not explicit_auth:
                logger.info(f"[{self.name}] 401 received, refreshing credentials")
                stale = auth_headers.get("Authorization")
                if await self.credentials.refresh(client, stale):
                    request_headers.update(await self.credentials.auth_headers())
                    response = await send()

        except httpx.TimeoutException as e:
            raise ApiError(f"Request timeout: {e}", self.name, retryable=True) from e
        except httpx.NetworkError as e:
            raise ApiError(f"Network error: {e}", self.name, retryable=True) from e

        if self.config.log_responses:
            logger.debug(
                f"[{self.name}] Response: status={response.status_code} "
                f"body={response.text[:500] if response.text else 'empty'}"
            )

        if response.status_code == 304 and cached is not None:
            logger.debug(f"[{self.name}] Not modified, serving cached body for {cache_key}")
            replay_headers = {"Content-Type": "application/json", "ETag": cached.etag}
            if cached.next_link:
                replay_headers["Link"] = f'<{cached.next_link}>; rel="next"'
            return httpx.Response(
                200,
                headers=replay_headers,
                content=cached.body,
                request=response.request,
            )

        self._check_response(response)
        self._check_envelope(response)

        if cache_key is not None:
            self._store_in_cache(cache_key, response)

        return response

    def _store_in_cache(self, key: str, response: httpx.Response) -> None:
        etag = response.headers.get("etag")
        if not etag:
            return
        try:
            self.http_cache.store(key, etag, response.content, _next_link(response))
        except Exception as e:
            logger.warning(f"[{self.name}] Failed to cache response for {key}: {e}")

    def _check_response(self, response: httpx.Response) -> None:
        """
        Check response for errors and raise appropriate exceptions.

        Raises:
            RateLimitError: For 429, or 403 with an exhausted quota
            AuthenticationError: For 401/403
            NotFoundError: For 404
            ValidationError: For 400/422
            ApiError: For other errors (retryable when 5xx)
        """
        if response.is_success:
            return

        status = response.status_code
        body = response.text
        headers = dict(response.headers)
        message = _failure_message(status, body)
        rate_limit = RateLimitInfo.from_headers(response.headers)

        if status == 429 or (status == 403 and rate_limit.exhausted):
            retry_after = parse_retry_after(response.headers.get("retry-after"))
            if retry_after is None:
                retry_after = rate_limit.seconds_until_reset()
            if retry_after is not None:
                message = f"rate limit exceeded, will reset in {int(retry_after)} seconds"
            else:
                message = "rate limit exceeded"
            raise RateLimitError(
                message,
                self.name,
                status_code=status,
                response_body=body,
                headers=headers,
                retry_after=retry_after,
                reset_at=rate_limit.reset,
            )

        if status == 401 or status == 403:
            raise AuthenticationError(
                message, self.name, status_code=status, response_body=body, headers=headers
            )

        if status == 404:
            raise NotFoundError(
                message, self.name, status_code=status, response_body=body, headers=headers
            )

        if status == 400 or status == 422:
            raise ValidationError(
                message,
                self.name,
                status_code=status,
                response_body=body,
                headers=headers,
                validation_errors=self._validation_errors(response),
            )

        # Generic error
        raise ApiError(
            message,
            self.name,
            status_code=status,
            response_body=body,
            headers=headers,
            retryable=status >= 500,
        )

    @staticmethod
    def _validation_errors(response: httpx.Response) -> list[dict[str, Any]]:
        try:
            payload = response.json()
        except ValueError:
            return []
        errors = payload.get("errors") if isinstance(payload, dict) else None
        if isinstance(errors, list):
            return [e if isinstance(e, dict) else {"message": str(e)} for e in errors]
        return []

    # -------------------------------------------------------------------------
    # Parsing
    # -------------------------------------------------------------------------

    def _parse_body(self, response: httpx.Response) -> Any:
        """Decode a successful response. 204 and empty bodies give None."""
        if response.status_code == 204 or not response.content:
            return None

        content_type = response.headers.get("content-type", "")
        if "json" not in content_type:
            return response.text

        try:
            body = response.json()
        except ValueError as e:
            raise ResponseDecodeError(
                f"Invalid JSON: {e}",
                self.name,
                status_code=response.status_code,
                response_body=response.text,
            ) from e

        return body

    def _check_envelope(self, response: httpx.Response) -> None:
        """
        Hook for providers that report errors inside a 2xx response.

        Runs inside the retry loop, so a retryable error raised here is retried.
        """
        return None

    def parse_model(self, model: type[M], data: Any) -> M:
        """Validate data into a pydantic model."""
        try:
            return model.model_validate(data)
        except pydantic.ValidationError as e:
            raise ResponseDecodeError(
                f"Unexpected {model.__name__} payload: {e}",
                self.name,
            ) from e

    def parse_models(self, model: type[M], items: list[Any] | None) -> list[M]:
        return [self.parse_model(model, item) for item in items or []]

    async def request(self, method: str, path: str, **kwargs: Any) -> Any:
        """Make a request and return the parsed JSON body."""
        response = await self.request_raw(method, path, **kwargs)
        return self._parse_body(response)

    async def request_with_response(self, method: str, path: str, **kwargs: Any) -> ApiResponse[Any]:
        """Make a request and return status, headers and body."""
        response = await self.request_raw(method, path, **kwargs)
        return ApiResponse(
            status_code=response.status_code,
            headers=dict(response.headers),
            body=self._parse_body(response),
            next_link=_next_link(response),
        )

    async def request_with_links(
        self, method: str, path: str, **kwargs: Any
    ) -> tuple[str | None, Any]:
        """Make a request and return (next page URL from the Link header, body)."""
        response = await self.request_raw(method, path, **kwargs)
        return _next_link(response), self._parse_body(response)

    async def get(self, path: str, *, params: Mapping[str, Any] | None = None, **kwargs: Any) -> Any:
        return await self.request("GET", path, params=params, **kwargs)

    async def post(self, path: str, json: Any = None, **kwargs: Any) -> Any:
        return await self.request("POST", path, json=json, **kwargs)

    async def put(self, path: str, json: Any = None, **kwargs: Any) -> Any:
        return await self.request("PUT", path, json=json, **kwargs)

    async def patch(self, path: str, json: Any = None, **kwargs: Any) -> Any:
        return await self.request("PATCH", path, json=json, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> Any:
        return await self.request("DELETE", path, **kwargs)

    async def post_form(self, path: str, data: Mapping[str, Any], **kwargs: Any) -> Any:
        """POST an application/x-www-form-urlencoded body. None values are dropped."""
        form = {key: value for key, value in data.items() if value is not None}
        return await self.request("POST", path, data=form, **kwargs)

    # -------------------------------------------------------------------------
    # Pagination
    # -------------------------------------------------------------------------

    async def get_pages(
        self,
        path: str,
        paginator: Paginator,
        *,
        params: Mapping[str, Any] | None = None,
        host: str | None = None,
    ) -> Page[Any]:
        """Fetch the first page of a collection."""
        return await self._fetch_page(self._first_request(path, paginator, params, host), paginator)

    def _first_request(
        self,
        path: str,
        paginator: Paginator,
        params: Mapping[str, Any] | None,
        host: str | None,
    ) -> PageRequest:
        return PageRequest(
            path=self.url(path, host),
            params={**paginator.initial_params(), **clean_params(params)},
        )

    async def _fetch_page(self, request: PageRequest, paginator: Paginator) -> Page[Any]:
        response = await self.request_with_response("GET", request.path, params=request.params)
        items = paginator.extract_items(response.body)
        return Page(
            items=items,
            body=response.body,
            next_request=paginator.next_request(request, response, items),
        )

    async def iter_pages(
        self,
        path: str,
        paginator: Paginator,
        *,
        params: Mapping[str, Any] | None = None,
        host: str | None = None,
        max_pages: int | None = None,
    ) -> AsyncIterator[Page[Any]]:
        """
        Yield pages until the collection is exhausted.

        Stops when there is no next request, a page comes back empty, the
        same request would be sent twice, or max_pages is reached.
        """
        request = self._first_request(path, paginator, params, host)
        seen = {request.fingerprint()}
        page = await self._fetch_page(request, paginator)
        pages = 1
        yield page

        while page.next_request is not None and page.items:
            if max_pages is not None and pages >= max_pages:
                logger.debug(f"[{self.name}] Stopping after {pages} pages of {path}")
                return

            fingerprint = page.next_request.fingerprint()
            if fingerprint in seen:
                logger.warning(f"[{self.name}] Repeated page request for {path}, stopping")
                return
            seen.add(fingerprint)

            page = await self._fetch_page(page.next_request, paginator)
            pages += 1
            yield page

    async def iter_items(
        self,
        path: str,
        paginator: Paginator,
        *,
        params: Mapping[str, Any] | None = None,
        host: str | None = None,
        max_pages: int | None = None,
        max_items: int | None = None,
    ) -> AsyncIterator[Any]:
        """Yield every item across pages."""
        count = 0
        async for page in self.iter_pages(
            path, paginator, params=params, host=host, max_pages=max_pages
        ):
            for item in page.items:
                if max_items is not None and count >= max_items:
                    return
                count += 1
                yield item

    async def unfold(
        self,
        path: str,
        paginator: Paginator,
        *,
        params: Mapping[str, Any] | None = None,
        host: str | None = None,
        max_pages: int | None = None,
        max_items: int | None = None,
    ) -> list[Any]:
        """Collect every item of a paginated collection into one list."""
        return [
            item
            async for item in self.iter_items(
                path,
                paginator,
                params=params,
                host=host,
                max_pages=max_pages,
                max_items=max_items,
            )
        ]

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def health_check(self) -> bool:
        """
        Check if the provider is reachable with the configured credentials.

        Returns:
            True if healthy, False otherwise
        """
        if self.health_check_path is None:
            return True
        try:
            await self.get(self.health_check_path)
            return True
        except ApiError as e:
            logger.warning(f"[{self.name}] Health check failed: {e}")
            return False

    async def __aenter__(self) -> ApiClient:
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(host={self.url('')!r}, credentials={self.credentials!r})"


class Resource:
    """A group of related endpoints (Repos, Customers, Envelopes, ...)."""

    def __init__(self, client: ApiClient):
        self.client = client

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.client.name})"


class AnonymousClient(ApiClient):
    """Client with no provider-specific behavior. Handy for ad-hoc APIs and tests."""

    def __init__(self, config: ClientConfig, *, name: str = "api", **kwargs: Any):
        self._name = name
        super().__init__(config, **kwargs)

    @property
    def name(self) -> str:
        return self._name

    def _build_credentials(self) -> Credentials:
        return NoAuth()
