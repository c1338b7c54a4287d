"""
Google Workspace provider (Sheets, Admin SDK Directory).

Usage:
    from saasclients.providers.google import AdminClient, GoogleConfig, SheetsClient

    config = GoogleConfig(client_id="...", client_secret="...", refresh_token="...")
    sheets = SheetsClient(config)
    admin = AdminClient(config)
"""

from saasclients.providers.google.client import (
    AdminClient,
    DirectoryGroups,
    DirectoryUsers,
    GoogleConfig,
    SheetsClient,
    Spreadsheets,
)
from saasclients.providers.google.schemas import (
    AppendValuesResponse,
    DirectoryGroup,
    DirectoryUser,
    Spreadsheet,
    UpdateValuesResponse,
    ValueInputOption,
    ValueRange,
)

__all__ = [
    "AdminClient",
    "AppendValuesResponse",
    "DirectoryGroup",
    "DirectoryGroups",
    "DirectoryUser",
    "DirectoryUsers",
    "GoogleConfig",
    "SheetsClient",
    "Spreadsheet",
    "Spreadsheets",
    "UpdateValuesResponse",
    "ValueInputOption",
    "ValueRange",
]
