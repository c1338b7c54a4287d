"""
Slack Web API Client.

Slack answers most failures with HTTP 200 and `{"ok": false, "error": "..."}`.
This client turns those into ApiError (AuthenticationError for token
problems), so callers handle them like any other HTTP failure.

Usage:
    async with SlackClient(SlackConfig(token="xoxb-...")) as slack:
        channels = await slack.conversations.list_all(types="public_channel")
        await slack.chat.post_message(ChatPostMessage(channel="C123", text="Deployed"))

API Reference:
    https://api.slack.com/methods
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from saasclients.config import load_provider_settings
from saasclients.core.auth import BearerToken, Credentials, NoAuth
from saasclients.core.base import ApiClient, ClientConfig, Resource, parse_retry_after
from saasclients.core.errors import ApiError, AuthenticationError, RateLimitError
from saasclients.core.pagination import TokenPaginator
from saasclients.providers.slack.schemas import (
    ChatPostMessage,
    Conversation,
    ConversationHistory,
    ConversationsList,
    OAuthAccess,
    PostMessageResponse,
    User,
)

logger = logging.getLogger(__name__)

DEFAULT_HOST = "https://slack.com/api"

AUTH_ERRORS = frozenset(
    {
        "not_authed",
        "invalid_auth",
        "account_inactive",
        "token_revoked",
        "token_expired",
        "no_permission",
        "missing_scope",
        "invalid_client_id",
        "bad_client_secret",
        "invalid_code",
    }
)


def _cursor_paginator(items_path: str) -> TokenPaginator:
    return TokenPaginator(
        items_path=items_path,
        token_path="response_metadata.next_cursor",
        param="cursor",
    )


# =============================================================================
# Configuration
# =============================================================================


@dataclass(frozen=True, slots=True)
class SlackConfig(ClientConfig):
    """Configuration for Slack client."""

    # Bot or user token (xoxb-/xoxp-)
    token: str = ""

    # App credentials for oauth.v2.access
    client_id: str = ""
    client_secret: str = ""

    base_url: str = DEFAULT_HOST


# =============================================================================
# Resources
# =============================================================================


class Conversations(Resource):
    """conversations.* methods."""

    async def list(
        self,
        *,
        types: str | None = None,
        exclude_archived: bool | None = None,
        limit: int | None = None,
        cursor: str | None = None,
        team_id: str | None = None,
    ) -> ConversationsList:
        """
        List one page of channels.

        Args:
            types: Comma separated mix of public_channel, private_channel, mpim, im
            exclude_archived: Skip archived channels
            limit: Page size (max 1000)
            cursor: next_cursor from the previous page
            team_id: Workspace, for org-wide apps
        """
        data = await self.client.get(
            "/conversations.list",
            params={
                "types": types,
                "exclude_archived": exclude_archived,
                "limit": limit,
                "cursor": cursor,
                "team_id": team_id,
            },
        )
        return self.client.parse_model(ConversationsList, data)

    async def list_all(
        self,
        *,
        types: str | None = None,
        exclude_archived: bool | None = None,
        max_items: int | None = None,
    ) -> list[Conversation]:
        """List every channel, following next_cursor."""
        items = await self.client.unfold(
            "/conversations.list",
            _cursor_paginator("channels"),
            params={"types": types, "exclude_archived": exclude_archived, "limit": 200},
            max_items=max_items,
        )
        return self.client.parse_models(Conversation, items)

    async def history(
        self,
        channel: str,
        *,
        oldest: str | None = None,
        latest: str | None = None,
        inclusive: bool | None = None,
        limit: int | None = None,
        cursor: str | None = None,
    ) -> ConversationHistory:
        """
        Fetch one page of a channel's messages, newest first.

        Args:
            channel: Conversation ID
            oldest: Only messages after this timestamp
            latest: Only messages before this timestamp
            inclusive: Include messages exactly at oldest/latest
            limit: Page size
            cursor: next_cursor from the previous page
        """
        data = await self.client.get(
            "/conversations.history",
            params={
                "channel": channel,
                "oldest": oldest,
                "latest": latest,
                "inclusive": inclusive,
                "limit": limit,
                "cursor": cursor,
            },
        )
        return self.client.parse_model(ConversationHistory, data)


class Chat(Resource):
    """chat.* methods."""

    async def post_message(self, message: ChatPostMessage) -> PostMessageResponse:
        logger.info(f"[slack] Posting message to {message.channel}")

        data = await self.client.post(
            "/chat.postMessage",
            json=message.to_api_dict(),
            headers={"Content-Type": "application/json; charset=utf-8"},
        )

        posted = self.client.parse_model(PostMessageResponse, data)
        logger.info(f"[slack] Posted message ts={posted.ts}")
        return posted


class Users(Resource):
    """users.* methods."""

    async def list_all(self, *, max_items: int | None = None) -> list[User]:
        items = await self.client.unfold(
            "/users.list",
            _cursor_paginator("members"),
            params={"limit": 200},
            max_items=max_items,
        )
        return self.client.parse_models(User, items)

    async def info(self, user: str) -> User:
        data = await self.client.get("/users.info", params={"user": user})
        return self.client.parse_model(User, data.get("user"))


class OAuth(Resource):
    """oauth.* methods."""

    async def access(self, code: str, *, redirect_uri: str | None = None) -> OAuthAccess:
        """
        Exchange a temporary OAuth code for an access token.

        Args:
            code: Code Slack sent to the redirect URI
            redirect_uri: Must match the URI used in the authorize step

        Returns:
            Access token, team and authed user
        """
        config: SlackConfig = self.client.config  # type: ignore[assignment]
        if not config.client_id or not config.client_secret:
            raise ValueError("Slack client_id and client_secret are required for oauth.access")

        data = await self.client.post_form(
            "/oauth.v2.access",
            {
                "code": code,
                "client_id": config.client_id,
                "client_secret": config.client_secret,
                "redirect_uri": redirect_uri,
            },
        )
        access = self.client.parse_model(OAuthAccess, data)
        logger.info(f"[slack] Obtained access token for team {access.team.id if access.team else '?'}")
        return access


# =============================================================================
# Client
# =============================================================================


class SlackClient(ApiClient):
    """Async client for the Slack Web API."""

    health_check_path = "/auth.test"

    def __init__(self, config: SlackConfig, **kwargs: Any):
        self._config: SlackConfig = config
        super().__init__(config, **kwargs)

        self.conversations = Conversations(self)
        self.chat = Chat(self)
        self.users = Users(self)
        self.oauth = OAuth(self)

    @classmethod
    def from_env(cls, **kwargs: Any) -> SlackClient:
        """Build a client from SLACK_TOKEN, SLACK_CLIENT_ID, SLACK_CLIENT_SECRET and SLACK_HOST."""
        settings = load_provider_settings("slack")
        config = SlackConfig(
            token=settings.secret("token"),
            client_id=settings.client_id,
            client_secret=settings.secret("client_secret"),
            base_url=settings.host or DEFAULT_HOST,
        )
        return cls(config, **kwargs)

    @property
    def name(self) -> str:
        return "slack"

    def _build_credentials(self) -> Credentials:
        if self._config.token:
            return BearerToken(self._config.token)
        if self._config.client_id:
            # Only oauth.access can be called until a token is obtained
            return NoAuth()
        raise ValueError("SLACK_TOKEN (or SLACK_CLIENT_ID/SLACK_CLIENT_SECRET) is not set")

    def _check_envelope(self, response: httpx.Response) -> None:
        """Raise for `{"ok": false}` envelopes."""
        if "json" not in response.headers.get("content-type", ""):
            return
        try:
            body = response.json()
        except ValueError:
            # Reported as ResponseDecodeError when the body is parsed
            return
        if not isinstance(body, dict) or body.get("ok", True):
            return

        error = body.get("error", "unknown_error")
        status = response.status_code
        if error in AUTH_ERRORS:
            raise AuthenticationError(error, self.name, status_code=status, response_body=response.text)
        if error == "ratelimited":
            raise RateLimitError(
                error,
                self.name,
                status_code=status,
                response_body=response.text,
                headers=dict(response.headers),
                retry_after=parse_retry_after(response.headers.get("retry-after")),
            )
        raise ApiError(error, self.name, status_code=status, response_body=response.text)
