"""
Google Workspace API clients.

Google APIs share one OAuth 2.0 authorization server, so Sheets and the
Admin SDK Directory API use the same configuration and credentials.
List methods paginate with `nextPageToken` -> `pageToken`.

Usage:
    config = GoogleConfig(
        client_id="...apps.googleusercontent.com",
        client_secret="...",
        refresh_token=stored_refresh_token,
    )
    async with SheetsClient(config) as sheets:
        values = await sheets.spreadsheets.values_get(spreadsheet_id, "Sheet1!A1:C10")

    async with AdminClient(config) as admin:
        users = await admin.users.list_all(domain="example.com")

API Reference:
    https://developers.google.com/sheets/api/reference/rest
    https://developers.google.com/admin-sdk/directory/reference/rest
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from saasclients.config import load_provider_settings
from saasclients.core.auth import BearerToken, Credentials, OAuth2Credentials, RefreshCallback
from saasclients.core.base import ApiClient, ClientConfig, Resource, encode_path
from saasclients.core.pagination import TokenPaginator
from saasclients.providers.google.schemas import (
    AppendValuesResponse,
    DirectoryGroup,
    DirectoryUser,
    MajorDimension,
    Spreadsheet,
    UpdateValuesResponse,
    ValueInputOption,
    ValueRange,
)

logger = logging.getLogger(__name__)

TOKEN_ENDPOINT = "https://oauth2.googleapis.com/token"
CONSENT_ENDPOINT = "https://accounts.google.com/o/oauth2/v2/auth"

SHEETS_HOST = "https://sheets.googleapis.com/v4"
ADMIN_HOST = "https://admin.googleapis.com/admin/directory/v1"


def _paginator(items_path: str) -> TokenPaginator:
    return TokenPaginator(items_path=items_path, token_path="nextPageToken", param="pageToken")


# =============================================================================
# Configuration
# =============================================================================


@dataclass(frozen=True, slots=True)
class GoogleConfig(ClientConfig):
    """Configuration shared by the Google clients."""

    client_id: str = ""
    client_secret: str = ""
    redirect_uri: str = ""
    access_token: str = ""
    refresh_token: str = ""
    auto_refresh: bool = True


class _GoogleClient(ApiClient):
    """OAuth plumbing shared by SheetsClient and AdminClient."""

    default_host = ""

    def __init__(
        self,
        config: GoogleConfig,
        *,
        on_refresh: RefreshCallback | None = None,
        **kwargs: Any,
    ):
        self._config: GoogleConfig = config
        self._on_refresh = on_refresh
        super().__init__(config, **kwargs)

    @classmethod
    def from_env(cls, **kwargs: Any):
        """
        Build a client from GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET,
        GOOGLE_REDIRECT_URI, GOOGLE_REFRESH_TOKEN and GOOGLE_TOKEN.
        """
        settings = load_provider_settings("google")
        config = GoogleConfig(
            client_id=settings.client_id,
            client_secret=settings.secret("client_secret"),
            redirect_uri=settings.redirect_uri,
            access_token=settings.secret("token"),
            refresh_token=settings.extra.get("refresh_token", ""),
            base_url=settings.host or "",
        )
        return cls(config, **kwargs)

    @property
    def host(self) -> str:
        return self._config.base_url or self.default_host

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
        raise ValueError("GOOGLE_CLIENT_ID or GOOGLE_TOKEN is not set")


# =============================================================================
# Sheets
# =============================================================================


class Spreadsheets(Resource):
    """spreadsheets and spreadsheets.values."""

    async def get(
        self,
        spreadsheet_id: str,
        *,
        ranges: list[str] | None = None,
        include_grid_data: bool | None = None,
    ) -> Spreadsheet:
        data = await self.client.get(
            f"/spreadsheets/{encode_path(spreadsheet_id)}",
            params={"ranges": ranges, "includeGridData": include_grid_data},
        )
        return self.client.parse_model(Spreadsheet, data)

    async def values_get(
        self,
        spreadsheet_id: str,
        range: str,
        *,
        major_dimension: MajorDimension | str | None = None,
        value_render_option: str | None = None,
    ) -> ValueRange:
        """
        Read a range of values.

        Args:
            spreadsheet_id: Spreadsheet to read
            range: A1 notation, e.g. "Sheet1!A1:C10"
            major_dimension: ROWS or COLUMNS
            value_render_option: FORMATTED_VALUE, UNFORMATTED_VALUE or FORMULA
        """
        data = await self.client.get(
            f"/spreadsheets/{encode_path(spreadsheet_id)}/values/{encode_path(range)}",
            params={
                "majorDimension": major_dimension,
                "valueRenderOption": value_render_option,
            },
        )
        return self.client.parse_model(ValueRange, data)

    async def values_update(
        self,
        spreadsheet_id: str,
        range: str,
        values: ValueRange,
        *,
        value_input_option: ValueInputOption | str = ValueInputOption.USER_ENTERED,
    ) -> UpdateValuesResponse:
        """Overwrite a range of values."""
        logger.info(f"[google] Updating {range} in spreadsheet {spreadsheet_id}")

        data = await self.client.put(
            f"/spreadsheets/{encode_path(spreadsheet_id)}/values/{encode_path(range)}",
            json=values.to_api_dict(),
            params={"valueInputOption": value_input_option},
        )
        return self.client.parse_model(UpdateValuesResponse, data)

    async def values_append(
        self,
        spreadsheet_id: str,
        range: str,
        values: ValueRange,
        *,
        value_input_option: ValueInputOption | str = ValueInputOption.USER_ENTERED,
        insert_data_option: str | None = None,
    ) -> AppendValuesResponse:
        """
        Append rows after the table found in range.

        Args:
            insert_data_option: OVERWRITE or INSERT_ROWS
        """
        logger.info(f"[google] Appending {len(values.values)} row(s) to {range}")

        data = await self.client.post(
            f"/spreadsheets/{encode_path(spreadsheet_id)}/values/{encode_path(range)}:append",
            json=values.to_api_dict(),
            params={
                "valueInputOption": value_input_option,
                "insertDataOption": insert_data_option,
            },
        )
        return self.client.parse_model(AppendValuesResponse, data)


class SheetsClient(_GoogleClient):
    """Async client for the Google Sheets API."""

    default_host = SHEETS_HOST

    def __init__(self, config: GoogleConfig, **kwargs: Any):
        super().__init__(config, **kwargs)
        self.spreadsheets = Spreadsheets(self)

    @property
    def name(self) -> str:
        return "google_sheets"


# =============================================================================
# Admin Directory
# =============================================================================


class DirectoryUsers(Resource):
    """Directory users."""

    async def list_all(
        self,
        *,
        customer: str | None = "my_customer",
        domain: str | None = None,
        query: str | None = None,
        order_by: str | None = None,
        show_deleted: bool | None = None,
        max_items: int | None = None,
    ) -> list[DirectoryUser]:
        """
        List every user of the account (or of one domain).

        Args:
            customer: Account id; "my_customer" is the caller's account
            domain: Restrict to one domain (replaces customer)
            query: Search query, e.g. "orgUnitPath=/Sales"
            order_by: email, familyName or givenName
            show_deleted: List deleted users instead
            max_items: Stop after this many users
        """
        items = await self.client.unfold(
            "/users",
            _paginator("users"),
            params={
                "customer": None if domain else customer,
                "domain": domain,
                "query": query,
                "orderBy": order_by,
                "showDeleted": show_deleted,
                "maxResults": 500,
            },
            max_items=max_items,
        )
        return self.client.parse_models(DirectoryUser, items)

    async def get(self, user_key: str) -> DirectoryUser:
        """Get a user by primary email, alias, or id."""
        data = await self.client.get(f"/users/{encode_path(user_key)}")
        return self.client.parse_model(DirectoryUser, data)


class DirectoryGroups(Resource):
    """Directory groups."""

    async def list_all(
        self,
        *,
        customer: str | None = "my_customer",
        domain: str | None = None,
        user_key: str | None = None,
        max_items: int | None = None,
    ) -> list[DirectoryGroup]:
        """List every group, or the groups a user belongs to (user_key)."""
        items = await self.client.unfold(
            "/groups",
            _paginator("groups"),
            params={
                "customer": None if (domain or user_key) else customer,
                "domain": domain,
                "userKey": user_key,
                "maxResults": 200,
            },
            max_items=max_items,
        )
        return self.client.parse_models(DirectoryGroup, items)


class AdminClient(_GoogleClient):
    """Async client for the Admin SDK Directory API."""

    default_host = ADMIN_HOST

    def __init__(self, config: GoogleConfig, **kwargs: Any):
        super().__init__(config, **kwargs)
        self.users = DirectoryUsers(self)
        self.groups = DirectoryGroups(self)

    @property
    def name(self) -> str:
        return "google_admin"
