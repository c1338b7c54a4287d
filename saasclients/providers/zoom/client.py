"""
Zoom API Client.

Zoom uses OAuth 2.0 with short-lived access tokens (one hour). With
`auto_refresh=True` the client refreshes ahead of expiry and on 401, and
`on_refresh` lets the caller persist the new token pair.

Usage:
    config = ZoomConfig(
        client_id="...",
        client_secret="...",
        redirect_uri="https://example.com/zoom/callback",
        refresh_token=stored_refresh_token,
    )
    async with ZoomClient(config, on_refresh=save_tokens) as zoom:
        users = await zoom.users.list_all(status="active")
        meeting = await zoom.meetings.create("me", MeetingCreate(topic="Standup"))

API Reference:
    https://developers.zoom.us/docs/api/
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from saasclients.config import load_provider_settings
from saasclients.core.auth import BearerToken, Credentials, OAuth2Credentials, RefreshCallback
from saasclients.core.base import ApiClient, ClientConfig, Resource, encode_path
from saasclients.core.pagination import TokenPaginator
from saasclients.providers.zoom.schemas import (
    Meeting,
    MeetingCreate,
    MeetingListType,
    User,
    UserCreate,
    UserList,
    UserStatus,
)

logger = logging.getLogger(__name__)

DEFAULT_HOST = "https://api.zoom.us/v2"
TOKEN_ENDPOINT = "https://zoom.us/oauth/token"
CONSENT_ENDPOINT = "https://zoom.us/oauth/authorize"


def _paginator(items_path: str) -> TokenPaginator:
    return TokenPaginator(
        items_path=items_path,
        token_path="next_page_token",
        param="next_page_token",
    )


# =============================================================================
# Configuration
# =============================================================================


@dataclass(frozen=True, slots=True)
class ZoomConfig(ClientConfig):
    """Configuration for Zoom client."""

    client_id: str = ""
    client_secret: str = ""
    redirect_uri: str = ""
    access_token: str = ""
    refresh_token: str = ""
    auto_refresh: bool = True

    base_url: str = DEFAULT_HOST


# =============================================================================
# Resources
# =============================================================================


class Users(Resource):
    """Users."""

    async def list(
        self,
        *,
        status: UserStatus | str | None = None,
        role_id: str | None = None,
        page_size: int | None = None,
        next_page_token: str | None = None,
    ) -> UserList:
        """
        List one page of users on the account.

        Args:
            status: active, inactive or pending
            role_id: Only users with this role
            page_size: Records per page (max 300)
            next_page_token: Token from the previous page
        """
        data = await self.client.get(
            "/users",
            params={
                "status": status,
                "role_id": role_id,
                "page_size": page_size,
                "next_page_token": next_page_token,
            },
        )
        return self.client.parse_model(UserList, data)

    async def list_all(
        self,
        *,
        status: UserStatus | str | None = None,
        role_id: str | None = None,
        max_items: int | None = None,
    ) -> list[User]:
        """List every user, following next_page_token."""
        items = await self.client.unfold(
            "/users",
            _paginator("users"),
            params={"status": status, "role_id": role_id, "page_size": 300},
            max_items=max_items,
        )
        return self.client.parse_models(User, items)

    async def get(self, user_id: str = "me") -> User:
        data = await self.client.get(f"/users/{encode_path(user_id)}")
        return self.client.parse_model(User, data)

    async def create(self, user: UserCreate) -> User:
        logger.info(f"[zoom] Creating user: {user.user_info.email}")

        data = await self.client.post("/users", json=user.to_api_dict())

        created = self.client.parse_model(User, data)
        logger.info(f"[zoom] Created user: {created.id}")
        return created


class Meetings(Resource):
    """Meetings."""

    async def list_all(
        self,
        user_id: str = "me",
        *,
        type: MeetingListType | str | None = None,
        max_items: int | None = None,
    ) -> list[Meeting]:
        """
        List every meeting hosted by a user.

        Args:
            user_id: User ID, email, or "me"
            type: scheduled, live or upcoming
            max_items: Stop after this many meetings
        """
        items = await self.client.unfold(
            f"/users/{encode_path(user_id)}/meetings",
            _paginator("meetings"),
            params={"type": type, "page_size": 300},
            max_items=max_items,
        )
        return self.client.parse_models(Meeting, items)

    async def get(self, meeting_id: int | str) -> Meeting:
        data = await self.client.get(f"/meetings/{encode_path(meeting_id)}")
        return self.client.parse_model(Meeting, data)

    async def create(self, user_id: str, meeting: MeetingCreate) -> Meeting:
        """
        Schedule a meeting for a user.

        Returns:
            Created meeting, including join_url
        """
        logger.info(f"[zoom] Creating meeting for {user_id}: {meeting.topic}")

        data = await self.client.post(
            f"/users/{encode_path(user_id)}/meetings",
            json=meeting.to_api_dict(),
        )

        created = self.client.parse_model(Meeting, data)
        logger.info(f"[zoom] Created meeting: {created.id}")
        return created

    async def delete(
        self,
        meeting_id: int | str,
        *,
        schedule_for_reminder: bool | None = None,
    ) -> None:
        logger.info(f"[zoom] Deleting meeting: {meeting_id}")
        await self.client.delete(
            f"/meetings/{encode_path(meeting_id)}",
            params={"schedule_for_reminder": schedule_for_reminder},
        )


# =============================================================================
# Client
# =============================================================================


class ZoomClient(ApiClient):
    """Async client for the Zoom API."""

    health_check_path = "/users/me"

    def __init__(
        self,
        config: ZoomConfig,
        *,
        on_refresh: RefreshCallback | None = None,
        **kwargs: Any,
    ):
        """
        Initialize Zoom client.

        Args:
            config: Zoom configuration
            on_refresh: Called with the new OAuth2Token after every refresh
            **kwargs: credentials, http_client, http_cache
        """
        self._config: ZoomConfig = config
        self._on_refresh = on_refresh
        super().__init__(config, **kwargs)

        self.users = Users(self)
        self.meetings = Meetings(self)

    @classmethod
    def from_env(cls, **kwargs: Any) -> ZoomClient:
        """
        Build a client from ZOOM_CLIENT_ID, ZOOM_CLIENT_SECRET, ZOOM_REDIRECT_URI,
        ZOOM_TOKEN (access token) and ZOOM_REFRESH_TOKEN.
        """
        settings = load_provider_settings("zoom")
        config = ZoomConfig(
            client_id=settings.require("client_id"),
            client_secret=settings.require("client_secret"),
            redirect_uri=settings.redirect_uri,
            access_token=settings.secret("token"),
            refresh_token=settings.extra.get("refresh_token", ""),
            base_url=settings.host or DEFAULT_HOST,
        )
        return cls(config, **kwargs)

    @property
    def name(self) -> str:
        return "zoom"

    def _build_credentials(self) -> Credentials:
        config = self._config
        if config.client_id:
            return OAuth2Credentials(
                client_id=config.client_id,
                client_secret=config.client_secret,
                redirect_uri=config.redirect_uri,
                token_endpoint=TOKEN_ENDPOINT,
                consent_endpoint=CONSENT_ENDPOINT,
                access_token=config.access_token,
                refresh_token=config.refresh_token,
                auto_refresh=config.auto_refresh,
                on_refresh=self._on_refresh,
                provider=self.name,
            )
        if config.access_token:
            return BearerToken(config.access_token)
        raise ValueError("ZOOM_CLIENT_ID or ZOOM_TOKEN is not set")
