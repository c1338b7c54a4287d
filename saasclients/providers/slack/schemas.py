"""
Pydantic schemas for the Slack Web API.

Every Slack response carries `ok`; list methods add
`response_metadata.next_cursor` for pagination.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# =============================================================================
# Request Schemas
# =============================================================================


class ChatPostMessage(BaseModel):
    """Body for chat.postMessage."""

    channel: str = Field(..., description="Channel, private group, or IM channel ID")
    text: str | None = None
    blocks: list[dict[str, Any]] | None = None
    attachments: list[dict[str, Any]] | None = None
    thread_ts: str | None = None
    reply_broadcast: bool | None = None
    mrkdwn: bool | None = None
    unfurl_links: bool | None = None
    username: str | None = None
    icon_emoji: str | None = None

    def to_api_dict(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


# =============================================================================
# Response Schemas
# =============================================================================


class ResponseMetadata(BaseModel):
    model_config = ConfigDict(extra="ignore")

    next_cursor: str = ""


class Conversation(BaseModel):
    """Channel, group or IM."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str | None = None
    is_channel: bool = False
    is_group: bool = False
    is_im: bool = False
    is_private: bool = False
    is_archived: bool = False
    is_member: bool = False
    created: int | None = None
    creator: str | None = None
    num_members: int | None = None
    topic: dict[str, Any] | None = None
    purpose: dict[str, Any] | None = None


class ConversationsList(BaseModel):
    model_config = ConfigDict(extra="ignore")

    ok: bool = True
    channels: list[Conversation] = Field(default_factory=list)
    response_metadata: ResponseMetadata = Field(default_factory=ResponseMetadata)

    @property
    def next_cursor(self) -> str | None:
        return self.response_metadata.next_cursor or None


class Message(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: str = "message"
    ts: str
    user: str | None = None
    bot_id: str | None = None
    text: str = ""
    thread_ts: str | None = None
    reply_count: int | None = None


class ConversationHistory(BaseModel):
    model_config = ConfigDict(extra="ignore")

    ok: bool = True
    messages: list[Message] = Field(default_factory=list)
    has_more: bool = False
    response_metadata: ResponseMetadata = Field(default_factory=ResponseMetadata)

    @property
    def next_cursor(self) -> str | None:
        return self.response_metadata.next_cursor or None


class PostMessageResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    ok: bool = True
    channel: str
    ts: str
    message: Message | None = None


class UserProfile(BaseModel):
    model_config = ConfigDict(extra="ignore")

    real_name: str | None = None
    display_name: str | None = None
    email: str | None = None
    title: str | None = None


class User(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    team_id: str | None = None
    name: str | None = None
    real_name: str | None = None
    deleted: bool = False
    is_admin: bool = False
    is_bot: bool = False
    tz: str | None = None
    profile: UserProfile | None = None

    @property
    def email(self) -> str | None:
        return self.profile.email if self.profile else None


class Team(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str | None = None


class AuthedUser(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    scope: str | None = None
    access_token: str | None = None
    token_type: str | None = None


class OAuthAccess(BaseModel):
    """Response of oauth.v2.access."""

    model_config = ConfigDict(extra="ignore")

    ok: bool = True
    access_token: str = ""
    token_type: str = ""
    scope: str = ""
    bot_user_id: str | None = None
    app_id: str | None = None
    team: Team | None = None
    authed_user: AuthedUser | None = None
    refresh_token: str | None = None
    expires_in: int | None = None
