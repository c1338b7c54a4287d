"""
GitHub App authentication.

A GitHub App proves its identity with a short-lived JWT signed by its private
key (RS256, `iss` = app id). The JWT is only accepted by the /app endpoints.
Everything else takes an installation access token, which the App obtains by
posting its JWT to /app/installations/{id}/access_tokens. Installation tokens
are valid for one hour.

Usage:
    app = GitHubAppJWT(app_id=12345, private_key=pem)
    credentials = GitHubInstallationToken(app, installation_id=67890)

    async with GitHubClient(GitHubConfig(), credentials=credentials) as github:
        repo = await github.repos.get("octo-org", "private-repo")
        installations = await github.apps.list_installations()   # signed with the JWT

Or let the config build both:
    GitHubConfig(app_id="12345", private_key=pem, installation_id=67890)
"""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import UTC, datetime, timedelta

import httpx
import jwt

from saasclients.core.auth import REFRESH_THRESHOLD, Credentials
from saasclients.core.base import DEFAULT_USER_AGENT
from saasclients.core.errors import TokenRefreshError
from saasclients.providers.github.schemas import InstallationToken

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"

# GitHub rejects JWTs that live longer than 10 minutes; 9 leaves room for clock drift.
JWT_LIFETIME = timedelta(minutes=9)
JWT_REFRESH_AFTER = timedelta(minutes=8)


class GitHubAppJWT(Credentials):
    """
    `Authorization: Bearer <jwt>` for a GitHub App.

    The JWT is cached and signed again once it is eight minutes old.
    """

    def __init__(self, app_id: int | str, private_key: str | bytes):
        """
        Args:
            app_id: Numeric app id (or client id) from the App settings page
            private_key: PEM encoded RSA private key downloaded from GitHub
        """
        self.app_id = str(app_id)
        self.private_key = private_key
        self._token = ""
        self._signed_at: float | None = None

    def is_stale(self) -> bool:
        if self._signed_at is None:
            return True
        return time.monotonic() - self._signed_at >= JWT_REFRESH_AFTER.total_seconds()

    def token(self) -> str:
        """Current JWT, signing a new one when the cached one is stale."""
        if self.is_stale():
            now = int(time.time())
            claims = {
                "iat": now,
                "exp": now + int(JWT_LIFETIME.total_seconds()),
                "iss": self.app_id,
            }
            self._token = jwt.encode(claims, self.private_key, algorithm="RS256")
            self._signed_at = time.monotonic()
            logger.debug(f"[github] Signed new JWT for app {self.app_id}")
        return self._token

    async def auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token()}"}

    def __repr__(self) -> str:
        return f"GitHubAppJWT(app_id={self.app_id!r}, private_key='***')"


class GitHubInstallationToken(Credentials):
    """
    Installation access token minted on demand from a GitHub App JWT.

    The token is created before the first request, again 60 seconds before
    it expires, and once more when GitHub answers 401. Concurrent requests
    share one token creation.
    """

    def __init__(
        self,
        app: GitHubAppJWT,
        installation_id: int,
        *,
        api_url: str = DEFAULT_API_URL,
        user_agent: str = DEFAULT_USER_AGENT,
    ):
        self.app = app
        self.installation_id = installation_id
        self.api_url = api_url
        self.user_agent = user_agent
        self.token = ""
        self.expires_at: datetime | None = None
        self._created_at: float | None = None
        self._lock = asyncio.Lock()

    @property
    def can_refresh(self) -> bool:
        return True

    @property
    def token_endpoint(self) -> str:
        return f"{self.api_url.rstrip('/')}/app/installations/{self.installation_id}/access_tokens"

    def is_stale(self) -> bool:
        """True when there is no token or it is about to expire."""
        if not self.token:
            return True
        if self.expires_at is not None:
            return self.expires_at - REFRESH_THRESHOLD <= datetime.now(UTC)
        # No expiry reported: treat it like the JWT that minted it
        return time.monotonic() - (self._created_at or 0.0) >= JWT_REFRESH_AFTER.total_seconds()

    async def auth_headers(self) -> dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"token {self.token}"}

    async def ensure_fresh(self, http: httpx.AsyncClient) -> None:
        if not self.is_stale():
            return
        async with self._lock:
            # Another task may have created one while we waited
            if self.is_stale():
                await self._create_token(http)

    async def refresh(self, http: httpx.AsyncClient, stale_authorization: str | None = None) -> bool:
        async with self._lock:
            current = (await self.auth_headers()).get("Authorization")
            if stale_authorization == current:
                await self._create_token(http)
        return True

    async def _create_token(self, http: httpx.AsyncClient) -> None:
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": self.user_agent,
            **(await self.app.auth_headers()),
        }
        try:
            response = await http.post(self.token_endpoint, headers=headers)
        except httpx.HTTPError as e:
            raise TokenRefreshError(f"installation token request failed: {e}", "github") from e

        if not response.is_success:
            raise TokenRefreshError(
                f"code: {response.status_code}, error: {response.text}",
                "github",
                status_code=response.status_code,
                response_body=response.text,
            )

        try:
            created = InstallationToken.model_validate(response.json())
        except ValueError as e:
            raise TokenRefreshError(
                f"invalid installation token response: {e}",
                "github",
                status_code=response.status_code,
                response_body=response.text,
            ) from e

        self.token = created.token
        self.expires_at = created.expires_at
        self._created_at = time.monotonic()
        logger.info(f"[github] Created access token for installation {self.installation_id}")

    def __repr__(self) -> str:
        return (
            f"GitHubInstallationToken(installation_id={self.installation_id!r}, "
            f"app={self.app!r}, token={'***' if self.token else ''!r})"
        )
