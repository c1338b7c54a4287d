"""
Okta Management API Client.

Each Okta org has its own domain. API tokens are sent as `SSWS <token>`;
OAuth for Okta service apps is supported through OAuth2Credentials.
Lists paginate with `after` cursors carried in Link headers.

Usage:
    async with OktaClient(OktaConfig(domain="acme.okta.com", api_token="00a...")) as okta:
        users = await okta.users.list_all(search='profile.department eq "Engineering"')
        await okta.groups.add_user(group_id, users[0].id)

API Reference:
    https://developer.okta.com/docs/api/
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from saasclients.config import load_provider_settings
from saasclients.core.auth import BearerToken, Credentials, OAuth2Credentials, RefreshCallback
from saasclients.core.base import ApiClient, ClientConfig, Resource, encode_path
from saasclients.core.pagination import LinkHeaderPaginator
from saasclients.providers.okta.schemas import Application, Group, User, UserCreate

logger = logging.getLogger(__name__)


# =============================================================================
# Configuration
# =============================================================================


@dataclass(frozen=True, slots=True)
class OktaConfig(ClientConfig):
    """Configuration for Okta client."""

    # Required: "acme.okta.com" (scheme optional)
    domain: str = ""

    # SSWS API token
    api_token: str = ""

    # OAuth 2.0 (used when api_token is empty)
    client_id: str = ""
    client_secret: str = ""
    redirect_uri: str = ""
    access_token: str = ""
    refresh_token: str = ""
    auto_refresh: bool = True

    def __post_init__(self):
        """Validate configuration."""
        if not self.domain and not self.base_url:
            raise ValueError("Okta domain is required")


# =============================================================================
# Resources
# =============================================================================


class Users(Resource):
    """Users."""

    async def list_all(
        self,
        *,
        q: str | None = None,
        filter: str | None = None,
        search: str | None = None,
        max_items: int | None = None,
    ) -> list[User]:
        """
        List every user, following Link headers.

        Args:
            q: Matches first name, last name or email prefix
            filter: Filter expression, e.g. 'status eq "ACTIVE"'
            search: Search expression over profile attributes
            max_items: Stop after this many users
        """
        items = await self.client.unfold(
            "/api/v1/users",
            LinkHeaderPaginator(),
            params={"q": q, "filter": filter, "search": search, "limit": 200},
            max_items=max_items,
        )
        return self.client.parse_models(User, items)

    async def get(self, user_id: str) -> User:
        """Get a user by id, login, or login shortname."""
        data = await self.client.get(f"/api/v1/users/{encode_path(user_id)}")
        return self.client.parse_model(User, data)

    async def create(self, user: UserCreate, *, activate: bool = True) -> User:
        """
        Create a user.

        Args:
            user: Profile, optional password and groups
            activate: Activate immediately (sends the activation email)

        Returns:
            Created user
        """
        logger.info(f"[okta] Creating user: {user.profile.login}")

        data = await self.client.post(
            "/api/v1/users",
            json=user.to_api_dict(),
            params={"activate": activate},
        )

        created = self.client.parse_model(User, data)
        logger.info(f"[okta] Created user: {created.id}")
        return created

    async def deactivate(self, user_id: str, *, send_email: bool = False) -> None:
        logger.info(f"[okta] Deactivating user: {user_id}")
        await self.client.post(
            f"/api/v1/users/{encode_path(user_id)}/lifecycle/deactivate",
            params={"sendEmail": send_email},
        )


class Groups(Resource):
    """Groups."""

    async def list_all(
        self,
        *,
        q: str | None = None,
        search: str | None = None,
        max_items: int | None = None,
    ) -> list[Group]:
        items = await self.client.unfold(
            "/api/v1/groups",
            LinkHeaderPaginator(),
            params={"q": q, "search": search, "limit": 200},
            max_items=max_items,
        )
        return self.client.parse_models(Group, items)

    async def add_user(self, group_id: str, user_id: str) -> None:
        logger.info(f"[okta] Adding user {user_id} to group {group_id}")
        await self.client.put(
            f"/api/v1/groups/{encode_path(group_id)}/users/{encode_path(user_id)}"
        )


class Applications(Resource):
    """Applications."""

    async def list_all(
        self,
        *,
        q: str | None = None,
        filter: str | None = None,
        max_items: int | None = None,
    ) -> list[Application]:
        items = await self.client.unfold(
            "/api/v1/apps",
            LinkHeaderPaginator(),
            params={"q": q, "filter": filter, "limit": 200},
            max_items=max_items,
        )
        return self.client.parse_models(Application, items)

    async def get(self, app_id: str) -> Application:
        data = await self.client.get(f"/api/v1/apps/{encode_path(app_id)}")
        return self.client.parse_model(Application, data)


# =============================================================================
# Client
# =============================================================================


class OktaClient(ApiClient):
    """Async client for the Okta Management API."""

    health_check_path = "/api/v1/users/me"

    def __init__(
        self,
        config: OktaConfig,
        *,
        on_refresh: RefreshCallback | None = None,
        **kwargs: Any,
    ):
        self._config: OktaConfig = config
        self._on_refresh = on_refresh
        super().__init__(config, **kwargs)

        self.users = Users(self)
        self.groups = Groups(self)
        self.applications = Applications(self)

    @classmethod
    def from_env(cls, **kwargs: Any) -> OktaClient:
        """Build a client from OKTA_DOMAIN and OKTA_TOKEN (or OKTA_CLIENT_* for OAuth)."""
        settings = load_provider_settings("okta")
        config = OktaConfig(
            domain=settings.require("domain"),
            api_token=settings.secret("token"),
            client_id=settings.client_id,
            client_secret=settings.secret("client_secret"),
            redirect_uri=settings.redirect_uri,
            refresh_token=settings.extra.get("refresh_token", ""),
            base_url=settings.host or "",
        )
        return cls(config, **kwargs)

    @property
    def name(self) -> str:
        return "okta"

    @property
    def host(self) -> str:
        if self._config.base_url:
            return self._config.base_url
        domain = self._config.domain.rstrip("/")
        return domain if domain.startswith(("https://", "http://")) else f"https://{domain}"

    def _build_credentials(self) -> Credentials:
        config = self._config
        if config.api_token:
            return BearerToken(config.api_token, prefix="SSWS")
        if config.client_id:
            return OAuth2Credentials(
                client_id=config.client_id,
                client_secret=config.client_secret,
                redirect_uri=config.redirect_uri,
                token_endpoint=f"{self.host}/oauth2/v1/token",
                consent_endpoint=f"{self.host}/oauth2/v1/authorize",
                access_token=config.access_token,
                refresh_token=config.refresh_token,
                auto_refresh=config.auto_refresh,
                on_refresh=self._on_refresh,
                provider=self.name,
            )
        raise ValueError("OKTA_TOKEN (or OKTA_CLIENT_ID/OKTA_CLIENT_SECRET) is not set")
