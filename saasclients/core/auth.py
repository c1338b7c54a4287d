"""
Credentials for provider clients.

A Credentials object decides which headers (and sometimes query params) go
on every request, and whether it can recover from a 401 by refreshing.

Static styles:
    BearerToken             Authorization: Bearer <t>  (GitHub: "token <t>", Okta: "SSWS <t>")
    ApiKeyHeader            X-Shopify-Access-Token: <t>
    BasicAuth               Authorization: Basic base64(user:password)
    ClientCredentialsQuery  ?client_id=...&client_secret=...  (GitHub OAuth apps)

OAuth2Credentials keeps an access/refresh token pair behind an asyncio.Lock.
Tokens are refreshed 60 seconds before they expire, and once more on a 401.

Usage:
    creds = OAuth2Credentials(
        client_id="...",
        client_secret="...",
        redirect_uri="https://example.com/callback",
        token_endpoint="https://zoom.us/oauth/token",
        consent_endpoint="https://zoom.us/oauth/authorize",
        refresh_token="...",
        auto_refresh=True,
        on_refresh=save_tokens,
    )
    client = ZoomClient(ZoomConfig(), credentials=creds)
"""

from __future__ import annotations

import asyncio
import base64
import inspect
import logging
import uuid
from collections.abc import Awaitable, Callable, Sequence
from datetime import UTC, datetime, timedelta
from typing import Any
from urllib.parse import urlencode

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import TokenRefreshError

logger = logging.getLogger(__name__)

REFRESH_THRESHOLD = timedelta(seconds=60)


def _mask(secret: str) -> str:
    if not secret:
        return "''"
    return f"'{secret[:4]}...'" if len(secret) > 8 else "'***'"


# =============================================================================
# Base
# =============================================================================


class Credentials:
    """
    Base credentials: no authentication at all.

    Subclasses override auth_headers/auth_params, and OAuth-style
    credentials also override ensure_fresh/refresh.
    """

    @property
    def can_refresh(self) -> bool:
        """Whether a 401 can be recovered from by refreshing."""
        return False

    async def auth_headers(self) -> dict[str, str]:
        return {}

    def auth_params(self) -> dict[str, str]:
        return {}

    async def ensure_fresh(self, http: httpx.AsyncClient) -> None:
        """Refresh ahead of expiry when needed. No-op by default."""
        return None

    async def refresh(self, http: httpx.AsyncClient, stale_authorization: str | None = None) -> bool:
        """
        Refresh after a 401.

        Args:
            http: Client used to reach the token endpoint
            stale_authorization: Authorization header the rejected request
                carried, None when it carried none

        Returns:
            True if new credentials are available and the request can be resent
        """
        return False

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class NoAuth(Credentials):
    """Explicit anonymous access."""


# =============================================================================
# Static credentials
# =============================================================================


class BearerToken(Credentials):
    """Authorization: <prefix> <token>."""

    def __init__(self, token: str, prefix: str = "Bearer"):
        self.token = token
        self.prefix = prefix

    async def auth_headers(self) -> dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"{self.prefix} {self.token}"}

    def __repr__(self) -> str:
        return f"BearerToken(prefix={self.prefix!r}, token={_mask(self.token)})"


class ApiKeyHeader(Credentials):
    """API key sent in a custom header."""

    def __init__(self, header: str, key: str):
        self.header = header
        self.key = key

    async def auth_headers(self) -> dict[str, str]:
        if not self.key:
            return {}
        return {self.header: self.key}

    def __repr__(self) -> str:
        return f"ApiKeyHeader(header={self.header!r}, key={_mask(self.key)})"


class BasicAuth(Credentials):
    """HTTP basic auth. Stripe takes the secret key as the username."""

    def __init__(self, username: str, password: str = ""):
        self.username = username
        self.password = password

    async def auth_headers(self) -> dict[str, str]:
        raw = f"{self.username}:{self.password}".encode()
        return {"Authorization": f"Basic {base64.b64encode(raw).decode()}"}

    def __repr__(self) -> str:
        return f"BasicAuth(username={_mask(self.username)}, password={_mask(self.password)})"


class ClientCredentialsQuery(Credentials):
    """OAuth app id/secret sent as query parameters."""

    def __init__(self, client_id: str, client_secret: str):
        self.client_id = client_id
        self.client_secret = client_secret

    def auth_params(self) -> dict[str, str]:
        return {"client_id": self.client_id, "client_secret": self.client_secret}

    def __repr__(self) -> str:
        return (
            f"ClientCredentialsQuery(client_id={self.client_id!r}, "
            f"client_secret={_mask(self.client_secret)})"
        )


# =============================================================================
# OAuth 2.0
# =============================================================================


class OAuth2Token(BaseModel):
    """Token endpoint response."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    token_type: str = ""
    access_token: str = ""
    expires_in: int = 0
    refresh_token: str = ""
    refresh_token_expires_in: int = Field(0, alias="x_refresh_token_expires_in")
    scope: str = ""

    @field_validator("token_type", "access_token", "refresh_token", "scope", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("expires_in", "refresh_token_expires_in", mode="before")
    @classmethod
    def _none_to_zero(cls, value: Any) -> Any:
        return 0 if value is None else value


RefreshCallback = Callable[[OAuth2Token], Awaitable[None] | None]


class OAuth2Credentials(Credentials):
    """
    OAuth 2.0 access/refresh token pair.

    The token pair is guarded by an asyncio.Lock: concurrent requests that
    find the token expired wait for one refresh instead of each refreshing.
    """

    def __init__(
        self,
        *,
        client_id: str,
        client_secret: str,
        token_endpoint: str,
        redirect_uri: str = "",
        consent_endpoint: str = "",
        access_token: str = "",
        refresh_token: str = "",
        expires_at: datetime | None = None,
        auto_refresh: bool = False,
        on_refresh: RefreshCallback | None = None,
        provider: str = "oauth2",
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.token_endpoint = token_endpoint
        self.redirect_uri = redirect_uri
        self.consent_endpoint = consent_endpoint
        self.access_token = access_token
        self.refresh_token = refresh_token
        self.expires_at = expires_at
        self.auto_refresh = auto_refresh
        self.on_refresh = on_refresh
        self.provider = provider
        self._lock = asyncio.Lock()

    # -------------------------------------------------------------------------
    # Expiry
    # -------------------------------------------------------------------------

    def is_expired(self) -> bool | None:
        """True/False if the expiry is known, None otherwise."""
        if self.expires_at is None:
            return None
        return self.expires_at <= datetime.now(UTC)

    def expires_in(self) -> timedelta | None:
        """Time left before the token expires, or None if unknown."""
        if self.expires_at is None:
            return None
        return max(self.expires_at - datetime.now(UTC), timedelta(0))

    def set_expires_in(self, seconds: int) -> None:
        """Record expiry from an expires_in value, minus the refresh threshold."""
        if seconds <= 0:
            self.expires_at = None
            return
        lead = max(timedelta(seconds=seconds) - REFRESH_THRESHOLD, timedelta(0))
        self.expires_at = datetime.now(UTC) + lead

    def set_expires_at(self, expires_at: datetime | None) -> None:
        self.expires_at = expires_at

    @property
    def can_refresh(self) -> bool:
        return self.auto_refresh and bool(self.refresh_token)

    # -------------------------------------------------------------------------
    # Consent & token exchange
    # -------------------------------------------------------------------------

    def user_consent_url(self, scopes: Sequence[str] = (), state: str | None = None) -> str:
        """
        Build the URL the user visits to grant access.

        Args:
            scopes: OAuth scopes; omitted from the URL when empty
            state: CSRF state; a random UUID when not given
        """
        params = {
            "client_id": self.client_id,
            "response_type": "code",
            "redirect_uri": self.redirect_uri,
            "state": state or str(uuid.uuid4()),
        }
        if scopes:
            params["scope"] = " ".join(scopes)

        separator = "&" if "?" in self.consent_endpoint else "?"
        return f"{self.consent_endpoint}{separator}{urlencode(params)}"

    async def get_access_token(
        self,
        http: httpx.AsyncClient,
        code: str,
        state: str | None = None,
    ) -> OAuth2Token:
        """Exchange an authorization code for an access/refresh token pair."""
        form = {
            "grant_type": "authorization_code",
            "code": code,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "redirect_uri": self.redirect_uri,
        }
        if state:
            form["state"] = state

        async with self._lock:
            token = await self._post_token(http, form)
            self.access_token = token.access_token
            self.refresh_token = token.refresh_token
            self.set_expires_in(token.expires_in)

        logger.info(f"[{self.provider}] Obtained access token")
        await self._notify(token)
        return token

    async def refresh_access_token(self, http: httpx.AsyncClient) -> OAuth2Token:
        """Trade the refresh token for a new access token."""
        async with self._lock:
            token = await self._refresh_locked(http)
        await self._notify(token)
        return token

    async def _refresh_locked(self, http: httpx.AsyncClient) -> OAuth2Token:
        if not self.refresh_token:
            raise TokenRefreshError("no refresh token", self.provider)

        token = await self._post_token(
            http,
            {
                "grant_type": "refresh_token",
                "refresh_token": self.refresh_token,
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "redirect_uri": self.redirect_uri,
            },
        )

        self.access_token = token.access_token
        if token.refresh_token:
            self.refresh_token = token.refresh_token
        self.set_expires_in(token.expires_in)

        logger.info(f"[{self.provider}] Refreshed access token")
        return token

    async def _post_token(self, http: httpx.AsyncClient, form: dict[str, str]) -> OAuth2Token:
        try:
            response = await http.post(
                self.token_endpoint,
                data=form,
                auth=(self.client_id, self.client_secret),
                headers={"Accept": "application/json"},
            )
        except httpx.HTTPError as e:
            raise TokenRefreshError(f"token request failed: {e}", self.provider) from e

        if not response.is_success:
            raise TokenRefreshError(
                f"code: {response.status_code}, error: {response.text}",
                self.provider,
                status_code=response.status_code,
                response_body=response.text,
            )

        try:
            return OAuth2Token.model_validate(response.json())
        except ValueError as e:
            raise TokenRefreshError(
                f"invalid token response: {e}",
                self.provider,
                status_code=response.status_code,
                response_body=response.text,
            ) from e

    async def _notify(self, token: OAuth2Token) -> None:
        if self.on_refresh is None:
            return
        result = self.on_refresh(token)
        if inspect.isawaitable(result):
            await result

    # -------------------------------------------------------------------------
    # Credentials interface
    # -------------------------------------------------------------------------

    async def auth_headers(self) -> dict[str, str]:
        if not self.access_token:
            return {}
        return {"Authorization": f"Bearer {self.access_token}"}

    async def ensure_fresh(self, http: httpx.AsyncClient) -> None:
        if not self.auto_refresh or self.is_expired() is not True:
            return

        refreshed = None
        async with self._lock:
            # Another task may have refreshed while we waited
            if self.is_expired() is True:
                refreshed = await self._refresh_locked(http)

        if refreshed is not None:
            await self._notify(refreshed)

    async def refresh(self, http: httpx.AsyncClient, stale_authorization: str | None = None) -> bool:
        if not self.can_refresh:
            return False

        refreshed = None
        async with self._lock:
            # Skip if another task already swapped the token
            current = (await self.auth_headers()).get("Authorization")
            if stale_authorization == current:
                refreshed = await self._refresh_locked(http)

        if refreshed is not None:
            await self._notify(refreshed)
        return True

    def __repr__(self) -> str:
        return (
            f"OAuth2Credentials(client_id={self.client_id!r}, "
            f"client_secret={_mask(self.client_secret)}, "
            f"access_token={_mask(self.access_token)}, "
            f"refresh_token={_mask(self.refresh_token)}, "
            f"expires_at={self.expires_at!r})"
        )
