"""
Tests for credentials.

Tests cover:
- Static header and query param styles
- OAuth2Token parsing
- OAuth2Credentials expiry, consent URL, token exchange and refresh
- Concurrent refresh happens once
- Secrets are masked in repr
"""

import asyncio
import base64
from datetime import UTC, datetime, timedelta
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from saasclients.core import (
    ApiKeyHeader,
    BasicAuth,
    BearerToken,
    ClientCredentialsQuery,
    NoAuth,
    OAuth2Credentials,
    OAuth2Token,
    TokenRefreshError,
)

TOKEN_URL = "https://auth.example.com/oauth/token"
CONSENT_URL = "https://auth.example.com/oauth/authorize"


def make_oauth(**kwargs):
    defaults = dict(
        client_id="client-id",
        client_secret="client-secret",
        token_endpoint=TOKEN_URL,
        consent_endpoint=CONSENT_URL,
        redirect_uri="https://app.example.com/callback",
        refresh_token="refresh-1",
        auto_refresh=True,
    )
    defaults.update(kwargs)
    return OAuth2Credentials(**defaults)


def token_handler(body, status_code=200):
    def handler(request):
        return httpx.Response(status_code, json=body)

    return handler


# =============================================================================
# Static Credentials
# =============================================================================


class TestStaticCredentials:
    """Tests for non-refreshing credentials."""

    @pytest.mark.asyncio
    async def test_no_auth(self):
        creds = NoAuth()
        assert await creds.auth_headers() == {}
        assert creds.auth_params() == {}
        assert not creds.can_refresh

    @pytest.mark.asyncio
    async def test_bearer(self):
        assert await BearerToken("abc").auth_headers() == {"Authorization": "Bearer abc"}

    @pytest.mark.asyncio
    async def test_bearer_custom_prefix(self):
        assert await BearerToken("abc", prefix="token").auth_headers() == {
            "Authorization": "token abc"
        }
        assert await BearerToken("abc", prefix="SSWS").auth_headers() == {
            "Authorization": "SSWS abc"
        }

    @pytest.mark.asyncio
    async def test_bearer_empty_token_sends_nothing(self):
        assert await BearerToken("").auth_headers() == {}

    @pytest.mark.asyncio
    async def test_api_key_header(self):
        creds = ApiKeyHeader("X-Shopify-Access-Token", "shpat_123")
        assert await creds.auth_headers() == {"X-Shopify-Access-Token": "shpat_123"}

    @pytest.mark.asyncio
    async def test_basic_auth(self):
        headers = await BasicAuth("sk_test_123").auth_headers()
        scheme, encoded = headers["Authorization"].split(" ")
        assert scheme == "Basic"
        assert base64.b64decode(encoded) == b"sk_test_123:"

    @pytest.mark.asyncio
    async def test_client_credentials_query(self):
        creds = ClientCredentialsQuery("id", "secret")
        assert await creds.auth_headers() == {}
        assert creds.auth_params() == {"client_id": "id", "client_secret": "secret"}

    @pytest.mark.asyncio
    async def test_static_credentials_never_refresh(self):
        async with httpx.AsyncClient() as http:
            assert await BearerToken("abc").refresh(http) is False

    def test_repr_masks_secrets(self):
        assert "ghp_abcdefghijkl" not in repr(BearerToken("ghp_abcdefghijkl"))
        assert "shpat_secret_value" not in repr(ApiKeyHeader("X-Key", "shpat_secret_value"))
        assert "topsecret-value" not in repr(ClientCredentialsQuery("id", "topsecret-value"))


# =============================================================================
# OAuth2Token
# =============================================================================


class TestOAuth2Token:
    """Tests for token endpoint response parsing."""

    def test_parses_standard_fields(self):
        token = OAuth2Token.model_validate(
            {
                "token_type": "bearer",
                "access_token": "a",
                "expires_in": 3600,
                "refresh_token": "r",
                "scope": "user:read",
            }
        )
        assert token.access_token == "a"
        assert token.expires_in == 3600
        assert token.scope == "user:read"

    def test_nulls_become_defaults(self):
        token = OAuth2Token.model_validate(
            {"access_token": "a", "refresh_token": None, "scope": None, "expires_in": None}
        )
        assert token.refresh_token == ""
        assert token.scope == ""
        assert token.expires_in == 0

    def test_refresh_expiry_alias(self):
        token = OAuth2Token.model_validate(
            {"access_token": "a", "x_refresh_token_expires_in": 8726400}
        )
        assert token.refresh_token_expires_in == 8726400

    def test_ignores_unknown_fields(self):
        token = OAuth2Token.model_validate({"access_token": "a", "api_domain": "x"})
        assert token.access_token == "a"


# =============================================================================
# OAuth2Credentials
# =============================================================================


class TestOAuthExpiry:
    """Tests for expiry bookkeeping."""

    def test_unknown_expiry(self):
        creds = make_oauth()
        assert creds.is_expired() is None
        assert creds.expires_in() is None

    def test_expired(self):
        creds = make_oauth(expires_at=datetime.now(UTC) - timedelta(minutes=1))
        assert creds.is_expired() is True
        assert creds.expires_in() == timedelta(0)

    def test_not_expired(self):
        creds = make_oauth(expires_at=datetime.now(UTC) + timedelta(hours=1))
        assert creds.is_expired() is False
        assert creds.expires_in() > timedelta(minutes=59)

    def test_set_expires_in_subtracts_threshold(self):
        creds = make_oauth()
        creds.set_expires_in(3600)

        remaining = creds.expires_in()
        assert timedelta(minutes=58) < remaining <= timedelta(minutes=59)

    def test_short_lifetime_is_expired_immediately(self):
        creds = make_oauth()
        creds.set_expires_in(30)
        assert creds.is_expired() is True

    def test_non_positive_expires_in_is_unknown(self):
        creds = make_oauth(expires_at=datetime.now(UTC))
        creds.set_expires_in(0)
        assert creds.expires_at is None

    def test_set_expires_at(self):
        creds = make_oauth()
        when = datetime(2030, 1, 1, tzinfo=UTC)
        creds.set_expires_at(when)
        assert creds.expires_at == when

    def test_can_refresh_requires_token_and_flag(self):
        assert make_oauth().can_refresh
        assert not make_oauth(auto_refresh=False).can_refresh
        assert not make_oauth(refresh_token="").can_refresh


class TestConsentUrl:
    """Tests for user_consent_url."""

    def test_includes_required_params(self):
        url = make_oauth().user_consent_url(["meeting:read", "user:read"], state="xyz")

        parsed = urlparse(url)
        query = parse_qs(parsed.query)
        assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == CONSENT_URL
        assert query["client_id"] == ["client-id"]
        assert query["response_type"] == ["code"]
        assert query["redirect_uri"] == ["https://app.example.com/callback"]
        assert query["state"] == ["xyz"]
        assert query["scope"] == ["meeting:read user:read"]

    def test_scope_omitted_when_empty(self):
        query = parse_qs(urlparse(make_oauth().user_consent_url()).query)
        assert "scope" not in query

    def test_random_state(self):
        creds = make_oauth()
        first = parse_qs(urlparse(creds.user_consent_url()).query)["state"][0]
        second = parse_qs(urlparse(creds.user_consent_url()).query)["state"][0]
        assert first != second

    def test_endpoint_with_query(self):
        creds = make_oauth(consent_endpoint=f"{CONSENT_URL}?prompt=consent")
        url = creds.user_consent_url(state="s")
        assert url.startswith(f"{CONSENT_URL}?prompt=consent&client_id=client-id")


class TestTokenExchange:
    """Tests for get_access_token and refresh_access_token."""

    @pytest.mark.asyncio
    async def test_get_access_token(self, mock_http):
        http, calls = mock_http(
            token_handler({"access_token": "a1", "refresh_token": "r1", "expires_in": 3600})
        )
        creds = make_oauth(refresh_token="")

        token = await creds.get_access_token(http, "the-code", state="s")

        assert token.access_token == "a1"
        assert creds.access_token == "a1"
        assert creds.refresh_token == "r1"
        assert creds.is_expired() is False

        form = parse_qs(calls.last.content.decode())
        assert form["grant_type"] == ["authorization_code"]
        assert form["code"] == ["the-code"]
        assert form["state"] == ["s"]

    @pytest.mark.asyncio
    async def test_refresh_posts_form_with_basic_auth(self, mock_http):
        http, calls = mock_http(token_handler({"access_token": "a2", "expires_in": 3600}))
        creds = make_oauth()

        await creds.refresh_access_token(http)

        request = calls.last
        assert str(request.url) == TOKEN_URL
        assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"
        expected = base64.b64encode(b"client-id:client-secret").decode()
        assert request.headers["Authorization"] == f"Basic {expected}"

        form = parse_qs(request.content.decode())
        assert form["grant_type"] == ["refresh_token"]
        assert form["refresh_token"] == ["refresh-1"]
        assert form["client_id"] == ["client-id"]
        assert form["redirect_uri"] == ["https://app.example.com/callback"]

    @pytest.mark.asyncio
    async def test_refresh_keeps_refresh_token_when_omitted(self, mock_http):
        http, _ = mock_http(token_handler({"access_token": "a2", "refresh_token": None}))
        creds = make_oauth()

        await creds.refresh_access_token(http)

        assert creds.access_token == "a2"
        assert creds.refresh_token == "refresh-1"

    @pytest.mark.asyncio
    async def test_refresh_rotates_refresh_token(self, mock_http):
        http, _ = mock_http(token_handler({"access_token": "a2", "refresh_token": "refresh-2"}))
        creds = make_oauth()

        await creds.refresh_access_token(http)

        assert creds.refresh_token == "refresh-2"

    @pytest.mark.asyncio
    async def test_refresh_without_refresh_token(self, mock_http):
        http, calls = mock_http(token_handler({}))
        creds = make_oauth(refresh_token="")

        with pytest.raises(TokenRefreshError, match="no refresh token"):
            await creds.refresh_access_token(http)

        assert calls.requests == []

    @pytest.mark.asyncio
    async def test_refresh_error_response(self, mock_http):
        http, _ = mock_http(token_handler({"error": "invalid_grant"}, status_code=401))
        creds = make_oauth(provider="zoom")

        with pytest.raises(TokenRefreshError) as exc_info:
            await creds.refresh_access_token(http)

        assert exc_info.value.status_code == 401
        assert exc_info.value.provider == "zoom"
        assert "invalid_grant" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_refresh_network_error(self, mock_http):
        def handler(request):
            raise httpx.ConnectError("down", request=request)

        http, _ = mock_http(handler)

        with pytest.raises(TokenRefreshError, match="token request failed"):
            await make_oauth().refresh_access_token(http)

    @pytest.mark.asyncio
    async def test_on_refresh_callback(self, mock_http):
        http, _ = mock_http(token_handler({"access_token": "a2", "refresh_token": "r2"}))
        saved = []
        creds = make_oauth(on_refresh=saved.append)

        await creds.refresh_access_token(http)

        assert [t.access_token for t in saved] == ["a2"]

    @pytest.mark.asyncio
    async def test_async_on_refresh_callback(self, mock_http):
        http, _ = mock_http(token_handler({"access_token": "a2"}))
        saved = []

        async def save(token):
            saved.append(token.access_token)

        await make_oauth(on_refresh=save).refresh_access_token(http)

        assert saved == ["a2"]


class TestRefreshFlow:
    """Tests for ensure_fresh and refresh as used by the client."""

    @pytest.mark.asyncio
    async def test_auth_headers(self):
        assert await make_oauth(access_token="a").auth_headers() == {"Authorization": "Bearer a"}
        assert await make_oauth().auth_headers() == {}

    @pytest.mark.asyncio
    async def test_ensure_fresh_skips_unknown_expiry(self, mock_http):
        http, calls = mock_http(token_handler({"access_token": "a2"}))
        await make_oauth().ensure_fresh(http)
        assert calls.requests == []

    @pytest.mark.asyncio
    async def test_ensure_fresh_skips_when_auto_refresh_off(self, mock_http):
        http, calls = mock_http(token_handler({"access_token": "a2"}))
        creds = make_oauth(auto_refresh=False, expires_at=datetime.now(UTC) - timedelta(1))
        await creds.ensure_fresh(http)
        assert calls.requests == []

    @pytest.mark.asyncio
    async def test_concurrent_ensure_fresh_refreshes_once(self, mock_http):
        http, calls = mock_http(token_handler({"access_token": "a2", "expires_in": 3600}))
        creds = make_oauth(expires_at=datetime.now(UTC) - timedelta(seconds=5))

        await asyncio.gather(*(creds.ensure_fresh(http) for _ in range(5)))

        assert len(calls.requests) == 1
        assert creds.access_token == "a2"

    @pytest.mark.asyncio
    async def test_refresh_skipped_when_token_already_rotated(self, mock_http):
        http, calls = mock_http(token_handler({"access_token": "a3"}))
        creds = make_oauth(access_token="a2")

        assert await creds.refresh(http, "Bearer a1") is True
        assert calls.requests == []
        assert creds.access_token == "a2"

    @pytest.mark.asyncio
    async def test_refresh_with_stale_token(self, mock_http):
        http, calls = mock_http(token_handler({"access_token": "a2"}))
        creds = make_oauth(access_token="a1")

        assert await creds.refresh(http, "Bearer a1") is True
        assert len(calls.requests) == 1
        assert creds.access_token == "a2"

    @pytest.mark.asyncio
    async def test_refresh_without_access_token_runs_once(self, mock_http):
        http, calls = mock_http(token_handler({"access_token": "a1"}))
        creds = make_oauth()

        # Both requests went out without an Authorization header
        assert await creds.refresh(http, None) is True
        assert await creds.refresh(http, None) is True

        assert len(calls.requests) == 1
        assert creds.access_token == "a1"

    @pytest.mark.asyncio
    async def test_refresh_disabled(self, mock_http):
        http, calls = mock_http(token_handler({"access_token": "a2"}))
        assert await make_oauth(auto_refresh=False).refresh(http) is False
        assert calls.requests == []

    def test_repr_masks_tokens(self):
        creds = make_oauth(access_token="access-token-value", client_secret="client-secret-value")
        text = repr(creds)
        assert "access-token-value" not in text
        assert "client-secret-value" not in text
        assert "refresh-1" not in text
