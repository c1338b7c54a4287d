"""Pydantic schemas for the Zoom API (v2)."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# =============================================================================
# Enums
# =============================================================================


class UserStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING = "pending"


class UserType(int, Enum):
    BASIC = 1
    LICENSED = 2
    ON_PREM = 3


class CreateUserAction(str, Enum):
    """How Zoom should provision a new user."""

    CREATE = "create"
    AUTO_CREATE = "autoCreate"
    CUST_CREATE = "custCreate"
    SSO_CREATE = "ssoCreate"


class MeetingType(int, Enum):
    INSTANT = 1
    SCHEDULED = 2
    RECURRING_NO_FIXED_TIME = 3
    RECURRING_FIXED_TIME = 8


class MeetingListType(str, Enum):
    SCHEDULED = "scheduled"
    LIVE = "live"
    UPCOMING = "upcoming"


# =============================================================================
# Request Schemas
# =============================================================================


class UserInfo(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    email: str
    type: UserType = UserType.BASIC
    first_name: str | None = None
    last_name: str | None = None
    password: str | None = None


class UserCreate(BaseModel):
    """Body for POST /users."""

    model_config = ConfigDict(use_enum_values=True)

    action: CreateUserAction = CreateUserAction.CREATE
    user_info: UserInfo

    def to_api_dict(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class MeetingCreate(BaseModel):
    """Body for POST /users/{userId}/meetings."""

    model_config = ConfigDict(use_enum_values=True)

    topic: str
    type: MeetingType = MeetingType.SCHEDULED
    start_time: datetime | None = None
    duration: int | None = Field(None, ge=1, description="Minutes")
    timezone: str | None = None
    password: str | None = None
    agenda: str | None = None
    settings: dict[str, Any] | None = None

    def to_api_dict(self) -> dict[str, Any]:
        """Convert to API request format, excluding None values."""
        return self.model_dump(mode="json", exclude_none=True)


# =============================================================================
# Response Schemas
# =============================================================================


class User(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    type: int | None = None
    status: str | None = None
    pmi: int | None = None
    timezone: str | None = None
    dept: str | None = None
    created_at: datetime | None = None
    last_login_time: datetime | None = None


class UserList(BaseModel):
    model_config = ConfigDict(extra="ignore")

    page_size: int = 0
    total_records: int = 0
    next_page_token: str = ""
    users: list[User] = Field(default_factory=list)

    @property
    def has_next(self) -> bool:
        return bool(self.next_page_token)


class Meeting(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    uuid: str | None = None
    host_id: str | None = None
    topic: str = ""
    type: int | None = None
    status: str | None = None
    start_time: datetime | None = None
    duration: int | None = None
    timezone: str | None = None
    agenda: str | None = None
    join_url: str | None = None
    start_url: str | None = None
    password: str | None = None
    created_at: datetime | None = None
