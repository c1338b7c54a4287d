"""Pydantic schemas for the Okta Management API."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# =============================================================================
# Request Schemas
# =============================================================================


class UserProfile(BaseModel):
    """Okta user profile. Custom attributes are kept as extra fields."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    login: str
    email: str
    first_name: str | None = Field(None, alias="firstName")
    last_name: str | None = Field(None, alias="lastName")
    mobile_phone: str | None = Field(None, alias="mobilePhone")
    department: str | None = None
    title: str | None = None


class UserCreate(BaseModel):
    """Body for POST /api/v1/users."""

    profile: UserProfile
    group_ids: list[str] | None = Field(None, serialization_alias="groupIds")
    password: str | None = None

    def to_api_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"profile": self.profile.model_dump(by_alias=True, exclude_none=True)}
        if self.group_ids:
            body["groupIds"] = self.group_ids
        if self.password:
            body["credentials"] = {"password": {"value": self.password}}
        return body


# =============================================================================
# Response Schemas
# =============================================================================


class User(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    status: str | None = None
    created: datetime | None = None
    activated: datetime | None = None
    last_login: datetime | None = Field(None, alias="lastLogin")
    profile: UserProfile | None = None


class GroupProfile(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str
    description: str | None = None


class Group(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    type: str | None = None
    created: datetime | None = None
    profile: GroupProfile | None = None


class Application(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    name: str
    label: str | None = None
    status: str | None = None
    sign_on_mode: str | None = Field(None, alias="signOnMode")
    created: datetime | None = None
    last_updated: datetime | None = Field(None, alias="lastUpdated")
