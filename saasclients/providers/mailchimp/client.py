"""
Mailchimp Marketing API Client.

The API host depends on the account's data center (`us6`, `us21`, ...):
`https://{dc}.api.mailchimp.com/3.0`. Accounts connect either with an API
key (its suffix names the data center) or through OAuth 2.0.

Usage:
    async with MailchimpClient(MailchimpConfig(api_key="abc123-us6")) as mailchimp:
        lists = await mailchimp.lists.list_all()
        await mailchimp.lists.add_member(lists[0].id, MemberCreate(email_address="a@example.com"))

API Reference:
    https://mailchimp.com/developer/marketing/api/
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from saasclients.config import load_provider_settings
from saasclients.core.auth import BasicAuth, Credentials, OAuth2Credentials, RefreshCallback
from saasclients.core.base import ApiClient, ClientConfig, Resource, encode_path
from saasclients.core.pagination import OffsetPaginator
from saasclients.providers.mailchimp.schemas import (
    AudienceList,
    Campaign,
    CampaignStatus,
    Member,
    MemberCreate,
)

logger = logging.getLogger(__name__)

TOKEN_ENDPOINT = "https://login.mailchimp.com/oauth2/token"
CONSENT_ENDPOINT = "https://login.mailchimp.com/oauth2/authorize"


def _paginator(items_path: str, page_size: int) -> OffsetPaginator:
    return OffsetPaginator(
        items_path=items_path,
        offset_param="offset",
        limit_param="count",
        page_size=page_size,
        total_path="total_items",
    )


# =============================================================================
# Configuration
# =============================================================================


@dataclass(frozen=True, slots=True)
class MailchimpConfig(ClientConfig):
    """Configuration for Mailchimp client."""

    # API key auth ("<key>-<dc>")
    api_key: str = ""

    # Data center; derived from api_key when empty
    dc: str = ""

    # OAuth 2.0
    client_id: str = ""
    client_secret: str = ""
    redirect_uri: str = ""
    access_token: str = ""
    refresh_token: str = ""
    auto_refresh: bool = True

    def __post_init__(self):
        """Validate configuration."""
        if not self.data_center and not self.base_url:
            raise ValueError("Mailchimp data center is required (dc, or an api_key ending in -<dc>)")

    @property
    def data_center(self) -> str:
        if self.dc:
            return self.dc
        if "-" in self.api_key:
            return self.api_key.rsplit("-", 1)[1]
        return ""


# =============================================================================
# Resources
# =============================================================================


class Lists(Resource):
    """Lists (audiences)."""

    async def list_all(self, *, page_size: int = 100, max_items: int | None = None) -> list[AudienceList]:
        """List every audience, paging with offset/count until total_items."""
        items = await self.client.unfold(
            "/lists",
            _paginator("lists", page_size),
            max_items=max_items,
        )
        return self.client.parse_models(AudienceList, items)

    async def get(self, list_id: str) -> AudienceList:
        data = await self.client.get(f"/lists/{encode_path(list_id)}")
        return self.client.parse_model(AudienceList, data)

    async def add_member(self, list_id: str, member: MemberCreate) -> Member:
        """
        Add a contact to an audience.

        Args:
            list_id: Audience id
            member: Email, status and merge fields

        Returns:
            Created member
        """
        logger.info(f"[mailchimp] Adding member to list {list_id}")

        data = await self.client.post(
            f"/lists/{encode_path(list_id)}/members",
            json=member.to_api_dict(),
        )

        created = self.client.parse_model(Member, data)
        logger.info(f"[mailchimp] Added member: {created.id}")
        return created


class Campaigns(Resource):
    """Campaigns."""

    async def list_all(
        self,
        *,
        status: CampaignStatus | str | None = None,
        type: str | None = None,
        list_id: str | None = None,
        page_size: int = 100,
        max_items: int | None = None,
    ) -> list[Campaign]:
        items = await self.client.unfold(
            "/campaigns",
            _paginator("campaigns", page_size),
            params={"status": status, "type": type, "list_id": list_id},
            max_items=max_items,
        )
        return self.client.parse_models(Campaign, items)

    async def send(self, campaign_id: str) -> None:
        """Send a campaign immediately."""
        logger.info(f"[mailchimp] Sending campaign: {campaign_id}")
        await self.client.post(f"/campaigns/{encode_path(campaign_id)}/actions/send")


# =============================================================================
# Client
# =============================================================================


class MailchimpClient(ApiClient):
    """Async client for the Mailchimp Marketing API."""

    health_check_path = "/ping"

    def __init__(
        self,
        config: MailchimpConfig,
        *,
        on_refresh: RefreshCallback | None = None,
        **kwargs: Any,
    ):
        self._config: MailchimpConfig = config
        self._on_refresh = on_refresh
        super().__init__(config, **kwargs)

        self.lists = Lists(self)
        self.campaigns = Campaigns(self)

    @classmethod
    def from_env(cls, **kwargs: Any) -> MailchimpClient:
        """Build a client from MAILCHIMP_API_KEY (or MAILCHIMP_CLIENT_* and MAILCHIMP_DC)."""
        settings = load_provider_settings("mailchimp")
        config = MailchimpConfig(
            api_key=settings.secret("token"),
            dc=settings.extra.get("dc", ""),
            client_id=settings.client_id,
            client_secret=settings.secret("client_secret"),
            redirect_uri=settings.redirect_uri,
            refresh_token=settings.extra.get("refresh_token", ""),
            base_url=settings.host or "",
        )
        return cls(config, **kwargs)

    @property
    def name(self) -> str:
        return "mailchimp"

    @property
    def host(self) -> str:
        if self._config.base_url:
            return self._config.base_url
        return f"https://{self._config.data_center}.api.mailchimp.com/3.0"

    def _build_credentials(self) -> Credentials:
        config = self._config
        if config.api_key:
            return BasicAuth("anystring", config.api_key)
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
        raise ValueError("MAILCHIMP_API_KEY (or MAILCHIMP_CLIENT_ID/MAILCHIMP_CLIENT_SECRET) is not set")
