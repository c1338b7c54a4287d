"""
Zoom provider.

Usage:
    from saasclients.providers.zoom import ZoomClient, ZoomConfig

    client = ZoomClient(ZoomConfig(client_id="...", client_secret="...", refresh_token="..."))
    meetings = await client.meetings.list_all("me")
"""

from saasclients.providers.zoom.client import Meetings, Users, ZoomClient, ZoomConfig
from saasclients.providers.zoom.schemas import (
    Meeting,
    MeetingCreate,
    MeetingType,
    User,
    UserCreate,
    UserInfo,
    UserList,
)

__all__ = [
    "Meeting",
    "MeetingCreate",
    "MeetingType",
    "Meetings",
    "User",
    "UserCreate",
    "UserInfo",
    "UserList",
    "Users",
    "ZoomClient",
    "ZoomConfig",
]
