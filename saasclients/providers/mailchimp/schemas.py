"""Pydantic schemas for the Mailchimp Marketing API (3.0)."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class MemberStatus(str, Enum):
    SUBSCRIBED = "subscribed"
    UNSUBSCRIBED = "unsubscribed"
    CLEANED = "cleaned"
    PENDING = "pending"
    TRANSACTIONAL = "transactional"


class CampaignStatus(str, Enum):
    SAVE = "save"
    PAUSED = "paused"
    SCHEDULE = "schedule"
    SENDING = "sending"
    SENT = "sent"


# =============================================================================
# Request Schemas
# =============================================================================


class MemberCreate(BaseModel):
    """Body for POST /lists/{list_id}/members."""

    model_config = ConfigDict(use_enum_values=True)

    email_address: str
    status: MemberStatus = MemberStatus.SUBSCRIBED
    merge_fields: dict[str, Any] | None = None
    tags: list[str] | None = None
    language: str | None = None
    vip: bool | None = None

    def to_api_dict(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


# =============================================================================
# Response Schemas
# =============================================================================


class ListStats(BaseModel):
    model_config = ConfigDict(extra="ignore")

    member_count: int = 0
    unsubscribe_count: int = 0
    cleaned_count: int = 0
    campaign_count: int = 0


class AudienceList(BaseModel):
    """A Mailchimp list (audience)."""

    model_config = ConfigDict(extra="ignore")

    id: str
    web_id: int | None = None
    name: str
    permission_reminder: str | None = None
    date_created: datetime | None = None
    stats: ListStats = Field(default_factory=ListStats)


class Member(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    email_address: str
    unique_email_id: str | None = None
    status: str
    merge_fields: dict[str, Any] = Field(default_factory=dict)
    list_id: str | None = None
    timestamp_signup: str | None = None
    last_changed: datetime | None = None


class CampaignSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    subject_line: str | None = None
    title: str | None = None
    from_name: str | None = None
    reply_to: str | None = None


class Campaign(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    web_id: int | None = None
    type: str | None = None
    status: str | None = None
    emails_sent: int = 0
    create_time: datetime | None = None
    send_time: datetime | None = None
    settings: CampaignSettings | None = None
