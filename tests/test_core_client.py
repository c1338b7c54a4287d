"""
Tests for the shared ApiClient request pipeline.

Tests cover:
- URL building and host overrides
- Path encoding and query parameter cleaning
- Body parsing
- Error mapping
- Retry with backoff and Retry-After
- OAuth refresh on expiry and on 401
- ETag cache
- HTTP client lifecycle
"""

import asyncio
import json
import time
from datetime import UTC, datetime, timedelta
from enum import Enum

import httpx
import pytest

from saasclients.core import (
    NO_RETRY,
    AnonymousClient,
    ApiError,
    AuthenticationError,
    ClientConfig,
    DecorrelatedJitter,
    InMemoryHttpCache,
    NoBackoff,
    NotFoundError,
    OAuth2Credentials,
    RateLimitError,
    ResponseDecodeError,
    RetryPolicy,
    TokenRefreshError,
    ValidationError,
    clean_params,
    encode_path,
)

BASE_URL = "https://api.example.com"


def make_client(http, *, retries=2, **kwargs):
    config = ClientConfig(
        base_url=BASE_URL,
        retry_policy=RetryPolicy(max_retries=retries, backoff=NoBackoff()),
    )
    return AnonymousClient(config, http_client=http, **kwargs)


# =============================================================================
# Helpers
# =============================================================================


class Color(str, Enum):
    RED = "red"
    BLUE = "blue"


class TestEncodePath:
    """Tests for encode_path."""

    def test_plain_segment_unchanged(self):
        assert encode_path("octocat") == "octocat"

    def test_escapes_reserved_characters(self):
        assert encode_path("a b") == "a%20b"
        assert encode_path("x#y") == "x%23y"
        assert encode_path("what?") == "what%3F"
        assert encode_path("{id}") == "%7Bid%7D"
        assert encode_path('"q"') == "%22q%22"

    def test_keeps_slash(self):
        assert encode_path("docs/readme.md") == "docs/readme.md"

    def test_accepts_non_strings(self):
        assert encode_path(42) == "42"

    def test_escapes_non_ascii(self):
        assert encode_path("café") == "caf%C3%A9"


class TestCleanParams:
    """Tests for clean_params."""

    def test_drops_none_and_empty(self):
        assert clean_params({"a": None, "b": "", "c": "x"}) == {"c": "x"}

    def test_booleans_lowercase(self):
        assert clean_params({"on": True, "off": False}) == {"on": "true", "off": "false"}

    def test_enum_values(self):
        assert clean_params({"color": Color.RED}) == {"color": "red"}

    def test_enum_values_in_lists(self):
        assert clean_params({"colors": [Color.RED, Color.BLUE]}) == {"colors": ["red", "blue"]}

    def test_zero_is_kept(self):
        assert clean_params({"offset": 0}) == {"offset": 0}

    def test_none_mapping(self):
        assert clean_params(None) == {}


# =============================================================================
# URL Building
# =============================================================================


class TestUrl:
    """Tests for ApiClient.url and host overrides."""

    def test_default_host(self):
        client = make_client(None)
        assert client.url("/users") == f"{BASE_URL}/users"

    def test_adds_missing_slash(self):
        client = make_client(None)
        assert client.url("users") == f"{BASE_URL}/users"

    def test_per_call_host(self):
        client = make_client(None)
        assert client.url("/upload", host="https://uploads.example.com") == (
            "https://uploads.example.com/upload"
        )

    def test_override_beats_per_call_host(self):
        client = make_client(None)
        client.set_host_override("https://eu.example.com/")
        assert client.host_override == "https://eu.example.com/"
        assert client.url("/users", host="https://uploads.example.com") == (
            "https://eu.example.com/users"
        )

        client.remove_host_override()
        assert client.url("/users") == f"{BASE_URL}/users"

    def test_override_from_config(self):
        config = ClientConfig(base_url=BASE_URL, host_override="http://localhost:8080")
        client = AnonymousClient(config)
        assert client.url("/users") == "http://localhost:8080/users"

    def test_absolute_url_unchanged(self):
        client = make_client(None)
        client.set_host_override("https://eu.example.com")
        next_link = "https://api.example.com/users?page=2"
        assert client.url(next_link) == next_link


# =============================================================================
# Requests & Parsing
# =============================================================================


class TestRequests:
    """Tests for request helpers."""

    @pytest.mark.asyncio
    async def test_get_returns_json(self, mock_http):
        http, calls = mock_http(lambda request: httpx.Response(200, json={"id": 1}))
        client = make_client(http)

        assert await client.get("/things/1") == {"id": 1}
        assert calls.last.method == "GET"
        assert str(calls.last.url) == f"{BASE_URL}/things/1"

    @pytest.mark.asyncio
    async def test_query_params_are_cleaned(self, mock_http):
        http, calls = mock_http(lambda request: httpx.Response(200, json=[]))
        client = make_client(http)

        await client.get("/things", params={"state": "open", "q": None, "draft": False})

        params = calls.last.url.params
        assert params["state"] == "open"
        assert params["draft"] == "false"
        assert "q" not in params

    @pytest.mark.asyncio
    async def test_default_headers(self, mock_http):
        http, calls = mock_http(lambda request: httpx.Response(200, json={}))
        config = ClientConfig(
            base_url=BASE_URL,
            user_agent="tests/1.0",
            default_headers={"X-Team": "core"},
        )
        client = AnonymousClient(config, http_client=http)

        await client.get("/")

        assert calls.last.headers["User-Agent"] == "tests/1.0"
        assert calls.last.headers["Accept"] == "application/json"
        assert calls.last.headers["X-Team"] == "core"

    @pytest.mark.asyncio
    async def test_post_sends_json(self, mock_http):
        http, calls = mock_http(lambda request: httpx.Response(201, json={"ok": True}))
        client = make_client(http)

        await client.post("/things", json={"name": "widget"})

        assert calls.last.method == "POST"
        assert json.loads(calls.last.content) == {"name": "widget"}

    @pytest.mark.asyncio
    async def test_post_form_drops_none(self, mock_http):
        http, calls = mock_http(lambda request: httpx.Response(200, json={}))
        client = make_client(http)

        await client.post_form("/things", {"name": "widget", "note": None})

        assert calls.last.headers["Content-Type"] == "application/x-www-form-urlencoded"
        assert calls.last.content == b"name=widget"

    @pytest.mark.asyncio
    async def test_no_content_returns_none(self, mock_http):
        http, _ = mock_http(lambda request: httpx.Response(204))
        client = make_client(http)

        assert await client.delete("/things/1") is None

    @pytest.mark.asyncio
    async def test_empty_body_returns_none(self, mock_http):
        http, _ = mock_http(lambda request: httpx.Response(200, content=b""))
        client = make_client(http)

        assert await client.get("/things") is None

    @pytest.mark.asyncio
    async def test_non_json_returns_text(self, mock_http):
        http, _ = mock_http(
            lambda request: httpx.Response(200, text="pong", headers={"Content-Type": "text/plain"})
        )
        client = make_client(http)

        assert await client.get("/ping") == "pong"

    @pytest.mark.asyncio
    async def test_invalid_json_raises_decode_error(self, mock_http):
        http, _ = mock_http(
            lambda request: httpx.Response(
                200, content=b"{not json", headers={"Content-Type": "application/json"}
            )
        )
        client = make_client(http)

        with pytest.raises(ResponseDecodeError):
            await client.get("/things")

    @pytest.mark.asyncio
    async def test_request_with_links(self, mock_http):
        next_url = f"{BASE_URL}/things?page=2"
        http, _ = mock_http(
            lambda request: httpx.Response(
                200,
                json=[{"id": 1}],
                headers={"Link": f'<{next_url}>; rel="next", <{BASE_URL}/things?page=9>; rel="last"'},
            )
        )
        client = make_client(http)

        link, body = await client.request_with_links("GET", "/things")

        assert link == next_url
        assert body == [{"id": 1}]

    @pytest.mark.asyncio
    async def test_request_with_links_without_header(self, mock_http):
        http, _ = mock_http(lambda request: httpx.Response(200, json=[]))
        client = make_client(http)

        link, body = await client.request_with_links("GET", "/things")

        assert link is None
        assert body == []

    @pytest.mark.asyncio
    async def test_request_with_response(self, mock_http):
        http, _ = mock_http(
            lambda request: httpx.Response(
                202,
                content=b"",
                headers={"X-Message-Id": "abc", "X-RateLimit-Remaining": "41"},
            )
        )
        client = make_client(http)

        response = await client.request_with_response("POST", "/mail/send", json={})

        assert response.status_code == 202
        assert response.headers["x-message-id"] == "abc"
        assert response.body is None
        assert response.rate_limit.remaining == 41


# =============================================================================
# Error Mapping
# =============================================================================


class TestErrorMapping:
    """Tests for status code to exception mapping."""

    @pytest.mark.asyncio
    async def test_not_found(self, mock_http):
        http, _ = mock_http(lambda request: httpx.Response(404, text="Not Found"))
        client = make_client(http)

        with pytest.raises(NotFoundError) as exc_info:
            await client.get("/missing")

        assert exc_info.value.status_code == 404
        assert exc_info.value.args[0] == "code: 404, error: Not Found"
        assert str(exc_info.value) == "[api] code: 404, error: Not Found (status=404)"

    @pytest.mark.asyncio
    async def test_empty_error_body(self, mock_http):
        http, _ = mock_http(lambda request: httpx.Response(404))
        client = make_client(http)

        with pytest.raises(NotFoundError, match="code: 404, empty response"):
            await client.get("/missing")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [401, 403])
    async def test_authentication(self, mock_http, status):
        http, _ = mock_http(lambda request: httpx.Response(status, json={"message": "Bad credentials"}))
        client = make_client(http)

        with pytest.raises(AuthenticationError) as exc_info:
            await client.get("/user")

        assert exc_info.value.status_code == status
        assert not exc_info.value.retryable

    @pytest.mark.asyncio
    async def test_validation_errors(self, mock_http):
        body = {
            "message": "Validation Failed",
            "errors": [{"resource": "Issue", "field": "title", "code": "missing_field"}],
        }
        http, _ = mock_http(lambda request: httpx.Response(422, json=body))
        client = make_client(http)

        with pytest.raises(ValidationError) as exc_info:
            await client.post("/issues", json={})

        assert exc_info.value.validation_errors == body["errors"]

    @pytest.mark.asyncio
    async def test_forbidden_with_exhausted_quota_is_rate_limit(self, mock_http):
        reset = int(time.time()) + 30
        http, _ = mock_http(
            lambda request: httpx.Response(
                403,
                json={"message": "API rate limit exceeded"},
                headers={"X-RateLimit-Remaining": "0", "X-RateLimit-Reset": str(reset)},
            )
        )
        client = AnonymousClient(
            ClientConfig(base_url=BASE_URL, retry_policy=NO_RETRY), http_client=http
        )

        with pytest.raises(RateLimitError, match=r"rate limit exceeded, will reset in \d+ seconds") as exc_info:
            await client.get("/user")

        assert exc_info.value.reset_at == reset
        assert 0 < exc_info.value.retry_after <= 30

    @pytest.mark.asyncio
    async def test_rate_limit_uses_retry_after(self, mock_http):
        http, _ = mock_http(lambda request: httpx.Response(429, headers={"Retry-After": "12"}))
        client = AnonymousClient(
            ClientConfig(base_url=BASE_URL, retry_policy=NO_RETRY), http_client=http
        )

        with pytest.raises(RateLimitError) as exc_info:
            await client.get("/user")

        assert exc_info.value.retry_after == 12.0
        assert exc_info.value.args[0] == "rate limit exceeded, will reset in 12 seconds"

    @pytest.mark.asyncio
    async def test_server_error_is_retryable(self, mock_http):
        http, _ = mock_http(lambda request: httpx.Response(503, text="unavailable"))
        client = make_client(http, retries=0)

        with pytest.raises(ApiError) as exc_info:
            await client.get("/things")

        assert exc_info.value.retryable
        assert exc_info.value.status_code == 503


# =============================================================================
# Retry
# =============================================================================


class TestRetry:
    """Tests for retry behavior of request_raw."""

    @pytest.mark.asyncio
    async def test_retries_server_errors_then_succeeds(self, mock_http):
        responses = iter([
            httpx.Response(502),
            httpx.Response(503),
            httpx.Response(200, json={"ok": True}),
        ])
        http, calls = mock_http(lambda request: next(responses))
        client = make_client(http, retries=2)

        assert await client.get("/things") == {"ok": True}
        assert len(calls.requests) == 3

    @pytest.mark.asyncio
    async def test_raises_last_error_after_max_retries(self, mock_http):
        http, calls = mock_http(lambda request: httpx.Response(500, text="boom"))
        client = make_client(http, retries=2)

        with pytest.raises(ApiError, match="code: 500, error: boom"):
            await client.get("/things")

        assert len(calls.requests) == 3

    @pytest.mark.asyncio
    async def test_client_errors_are_not_retried(self, mock_http):
        http, calls = mock_http(lambda request: httpx.Response(404))
        client = make_client(http, retries=3)

        with pytest.raises(NotFoundError):
            await client.get("/missing")

        assert len(calls.requests) == 1

    @pytest.mark.asyncio
    async def test_rate_limit_is_retried(self, mock_http):
        responses = iter([
            httpx.Response(429, headers={"Retry-After": "0"}),
            httpx.Response(200, json={"ok": True}),
        ])
        http, calls = mock_http(lambda request: next(responses))
        client = make_client(http, retries=1)

        assert await client.get("/things") == {"ok": True}
        assert len(calls.requests) == 2

    @pytest.mark.asyncio
    async def test_network_errors_are_retried(self, mock_http):
        attempts = []

        def handler(request):
            attempts.append(request)
            if len(attempts) == 1:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200, json={"ok": True})

        http, _ = mock_http(handler)
        client = make_client(http, retries=1)

        assert await client.get("/things") == {"ok": True}
        assert len(attempts) == 2

    @pytest.mark.asyncio
    async def test_timeout_becomes_retryable_api_error(self, mock_http):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        http, calls = mock_http(handler)
        client = make_client(http, retries=1)

        with pytest.raises(ApiError, match="Request timeout") as exc_info:
            await client.get("/things")

        assert exc_info.value.retryable
        assert exc_info.value.status_code is None
        assert len(calls.requests) == 2

    @pytest.mark.asyncio
    async def test_shared_policy_backoff_state_is_not_mutated(self, mock_http):
        responses = iter([httpx.Response(503), httpx.Response(503), httpx.Response(200, json={})])
        http, calls = mock_http(lambda request: next(responses))
        backoff = DecorrelatedJitter(base=0.001, max_delay=0.002)
        client = AnonymousClient(
            ClientConfig(base_url=BASE_URL, retry_policy=RetryPolicy(max_retries=2, backoff=backoff)),
            http_client=http,
        )

        await client.get("/things")

        assert len(calls.requests) == 3
        assert backoff._previous_delay == 0.0


# =============================================================================
# OAuth Refresh
# =============================================================================

TOKEN_URL = "https://auth.example.com/oauth/token"


def oauth_credentials(**kwargs):
    defaults = dict(
        client_id="client",
        client_secret="secret",
        token_endpoint=TOKEN_URL,
        access_token="old-token",
        refresh_token="refresh-1",
        auto_refresh=True,
    )
    defaults.update(kwargs)
    return OAuth2Credentials(**defaults)


class TestOAuthRefresh:
    """Tests for credential refresh inside the request pipeline."""

    @pytest.mark.asyncio
    async def test_refreshes_once_on_401(self, mock_http):
        def handler(request):
            if str(request.url) == TOKEN_URL:
                return httpx.Response(200, json={"access_token": "new-token", "expires_in": 3600})
            if request.headers.get("Authorization") == "Bearer new-token":
                return httpx.Response(200, json={"id": "me"})
            return httpx.Response(401, json={"message": "expired"})

        http, calls = mock_http(handler)
        credentials = oauth_credentials()
        client = make_client(http, credentials=credentials)

        assert await client.get("/users/me") == {"id": "me"}

        assert credentials.access_token == "new-token"
        assert credentials.refresh_token == "refresh-1"
        assert [str(r.url) for r in calls.requests] == [
            f"{BASE_URL}/users/me",
            TOKEN_URL,
            f"{BASE_URL}/users/me",
        ]

    @pytest.mark.asyncio
    async def test_401_without_refresh_token_raises(self, mock_http):
        http, calls = mock_http(lambda request: httpx.Response(401))
        client = make_client(http, credentials=oauth_credentials(refresh_token=""))

        with pytest.raises(AuthenticationError):
            await client.get("/users/me")

        assert len(calls.requests) == 1

    @pytest.mark.asyncio
    async def test_401_after_refresh_raises(self, mock_http):
        def handler(request):
            if str(request.url) == TOKEN_URL:
                return httpx.Response(200, json={"access_token": "still-bad"})
            return httpx.Response(401)

        http, calls = mock_http(handler)
        client = make_client(http, credentials=oauth_credentials())

        with pytest.raises(AuthenticationError):
            await client.get("/users/me")

        assert len(calls.requests) == 3

    @pytest.mark.asyncio
    async def test_refreshes_before_expiry(self, mock_http):
        def handler(request):
            if str(request.url) == TOKEN_URL:
                return httpx.Response(
                    200,
                    json={"access_token": "fresh", "refresh_token": "refresh-2", "expires_in": 3600},
                )
            return httpx.Response(200, json={"auth": request.headers["Authorization"]})

        http, calls = mock_http(handler)
        credentials = oauth_credentials(expires_at=datetime.now(UTC) - timedelta(seconds=1))
        client = make_client(http, credentials=credentials)

        assert await client.get("/users/me") == {"auth": "Bearer fresh"}
        assert str(calls.requests[0].url) == TOKEN_URL
        assert credentials.refresh_token == "refresh-2"
        assert credentials.is_expired() is False

    @pytest.mark.asyncio
    async def test_token_endpoint_failure(self, mock_http):
        def handler(request):
            if str(request.url) == TOKEN_URL:
                return httpx.Response(400, json={"error": "invalid_grant"})
            return httpx.Response(200, json={})

        http, _ = mock_http(handler)
        credentials = oauth_credentials(expires_at=datetime.now(UTC) - timedelta(seconds=1))
        client = make_client(http, credentials=credentials)

        with pytest.raises(TokenRefreshError, match="invalid_grant"):
            await client.get("/users/me")

    @pytest.mark.asyncio
    async def test_concurrent_401s_refresh_once(self, mock_http):
        async def handler(request):
            await asyncio.sleep(0)
            if str(request.url) == TOKEN_URL:
                return httpx.Response(200, json={"access_token": "new-token", "expires_in": 3600})
            if request.headers.get("Authorization") == "Bearer new-token":
                return httpx.Response(200, json={"id": "me"})
            return httpx.Response(401)

        http, calls = mock_http(handler)
        credentials = oauth_credentials(access_token="")
        client = make_client(http, credentials=credentials)

        results = await asyncio.gather(*(client.get("/users/me") for _ in range(5)))

        assert results == [{"id": "me"}] * 5
        assert [str(r.url) for r in calls.requests].count(TOKEN_URL) == 1
        assert credentials.access_token == "new-token"


# =============================================================================
# ETag Cache
# =============================================================================


class TestHttpCacheIntegration:
    """Tests for conditional GETs."""

    @pytest.mark.asyncio
    async def test_304_serves_cached_body(self, mock_http):
        next_url = f"{BASE_URL}/repos?page=2"

        def handler(request):
            if request.headers.get("If-None-Match") == '"v1"':
                return httpx.Response(304)
            return httpx.Response(
                200,
                json=[{"id": 1}],
                headers={"ETag": '"v1"', "Link": f'<{next_url}>; rel="next"'},
            )

        http, calls = mock_http(handler)
        cache = InMemoryHttpCache()
        client = make_client(http, http_cache=cache)

        first = await client.request_with_links("GET", "/repos", params={"per_page": 100})
        second = await client.request_with_links("GET", "/repos", params={"per_page": 100})

        assert first == second == (next_url, [{"id": 1}])
        assert "If-None-Match" not in calls.requests[0].headers
        assert calls.requests[1].headers["If-None-Match"] == '"v1"'
        assert len(cache) == 1

    @pytest.mark.asyncio
    async def test_responses_without_etag_are_not_cached(self, mock_http):
        http, _ = mock_http(lambda request: httpx.Response(200, json={}))
        cache = InMemoryHttpCache()
        client = make_client(http, http_cache=cache)

        await client.get("/things")

        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_cache_failure_is_not_fatal(self, mock_http):
        class BrokenCache:
            def lookup(self, url):
                return None

            def store(self, url, etag, body, next_link=None):
                raise RuntimeError("disk full")

        http, _ = mock_http(lambda request: httpx.Response(200, json={"id": 1}, headers={"ETag": "x"}))
        client = make_client(http, http_cache=BrokenCache())

        assert await client.get("/things") == {"id": 1}

    @pytest.mark.asyncio
    async def test_post_is_not_cached(self, mock_http):
        http, _ = mock_http(lambda request: httpx.Response(200, json={}, headers={"ETag": "x"}))
        cache = InMemoryHttpCache()
        client = make_client(http, http_cache=cache)

        await client.post("/things", json={})

        assert len(cache) == 0


# =============================================================================
# Lifecycle
# =============================================================================


class TestLifecycle:
    """Tests for client lifecycle."""

    @pytest.mark.asyncio
    async def test_injected_client_is_not_closed(self, mock_http):
        http, _ = mock_http(lambda request: httpx.Response(200, json={}))

        async with make_client(http) as client:
            await client.get("/things")

        assert not http.is_closed

    @pytest.mark.asyncio
    async def test_owned_client_is_created_lazily_and_closed(self):
        client = make_client(None)
        assert client._client is None

        http = await client._get_client()
        assert isinstance(http, httpx.AsyncClient)
        assert await client._get_client() is http

        await client.close()
        assert http.is_closed

    @pytest.mark.asyncio
    async def test_health_check_without_path(self):
        client = make_client(None)
        assert await client.health_check() is True

    def test_repr_masks_credentials(self):
        client = make_client(None, credentials=oauth_credentials(access_token="super-secret-token"))
        assert "super-secret-token" not in repr(client)
        assert "api.example.com" in repr(client)
