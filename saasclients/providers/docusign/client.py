"""
DocuSign eSignature API Client.

Every resource lives under `/accounts/{account_id}`. List endpoints page
with start_position/count and return the next page as a relative
`nextUri` in the body, which the client follows until it disappears.

Usage:
    config = DocuSignConfig(account_id="...", access_token="...", environment="demo")
    async with DocuSignClient(config) as docusign:
        summary = await docusign.envelopes.create(EnvelopeDefinition(...))
        changed = await docusign.envelopes.list_status_changes(from_date="2024-01-01")

API Reference:
    https://developers.docusign.com/docs/esign-rest-api/reference/
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from saasclients.config import load_provider_settings
from saasclients.core.auth import BearerToken, Credentials, OAuth2Credentials, RefreshCallback
from saasclients.core.base import ApiClient, ClientConfig, Resource, encode_path
from saasclients.core.pagination import NextUrlPaginator
from saasclients.providers.docusign.schemas import (
    AccountUser,
    Envelope,
    EnvelopeDefinition,
    EnvelopeStatus,
    EnvelopeSummary,
    EnvelopeTemplate,
)

logger = logging.getLogger(__name__)

# environment -> (API host, OAuth host)
ENVIRONMENTS = {
    "www": ("https://www.docusign.net", "https://account.docusign.com"),
    "demo": ("https://demo.docusign.net", "https://account-d.docusign.com"),
}

API_PATH = "/restapi/v2.1"


def _paginator(items_path: str) -> NextUrlPaginator:
    return NextUrlPaginator(items_path=items_path, body_path="nextUri")


# =============================================================================
# Configuration
# =============================================================================


@dataclass(frozen=True, slots=True)
class DocuSignConfig(ClientConfig):
    """
    Configuration for DocuSign client.

    base_url, when set, is the account's base URI from /oauth/userinfo
    (e.g. https://na3.docusign.net) and takes precedence over environment.
    """

    account_id: str = ""
    environment: str = "www"

    access_token: str = ""

    # OAuth 2.0 (authorization code grant); client_id is the integration key
    client_id: str = ""
    client_secret: str = ""
    redirect_uri: str = ""
    refresh_token: str = ""
    auto_refresh: bool = True

    def __post_init__(self):
        """Validate configuration."""
        if not self.account_id:
            raise ValueError("DocuSign account_id is required")
        if self.environment not in ENVIRONMENTS:
            raise ValueError(f"Unknown DocuSign environment: {self.environment!r}")

    @property
    def oauth_host(self) -> str:
        return ENVIRONMENTS[self.environment][1]


# =============================================================================
# Resources
# =============================================================================


class Envelopes(Resource):
    """Envelopes."""

    async def create(self, envelope: EnvelopeDefinition) -> EnvelopeSummary:
        """
        Create (and by default send) an envelope.

        Args:
            envelope: Documents and recipients, or a template with roles

        Returns:
            Envelope id and status
        """
        logger.info(f"[docusign] Creating envelope: {envelope.email_subject}")

        data = await self.client.post(
            self.client.account_path("/envelopes"),
            json=envelope.to_api_dict(),
        )

        summary = self.client.parse_model(EnvelopeSummary, data)
        logger.info(f"[docusign] Created envelope: {summary.envelope_id} ({summary.status})")
        return summary

    async def get(self, envelope_id: str) -> Envelope:
        data = await self.client.get(self.client.account_path(f"/envelopes/{encode_path(envelope_id)}"))
        return self.client.parse_model(Envelope, data)

    async def list_status_changes(
        self,
        *,
        from_date: str | None = None,
        to_date: str | None = None,
        status: EnvelopeStatus | str | None = None,
        envelope_ids: list[str] | None = None,
        search_text: str | None = None,
        count: int = 100,
        max_items: int | None = None,
    ) -> list[Envelope]:
        """
        List envelopes whose status changed in a period.

        from_date is required unless envelope_ids is given.

        Args:
            from_date: Start of the period, e.g. "2024-01-01"
            to_date: End of the period (defaults to now)
            status: Comma separated statuses to match
            envelope_ids: Explicit envelope ids
            search_text: Free-text filter over subject, sender and recipients
            count: Page size
            max_items: Stop after this many envelopes
        """
        if not from_date and not envelope_ids:
            raise ValueError("from_date is required unless envelope_ids is given")

        items = await self.client.unfold(
            self.client.account_path("/envelopes"),
            _paginator("envelopes"),
            params={
                "from_date": from_date,
                "to_date": to_date,
                "status": status,
                "envelope_ids": ",".join(envelope_ids) if envelope_ids else None,
                "search_text": search_text,
                "count": count,
            },
            max_items=max_items,
        )
        return self.client.parse_models(Envelope, items)


class Templates(Resource):
    async def list_all(
        self,
        *,
        search_text: str | None = None,
        folder_ids: list[str] | None = None,
        count: int = 100,
        max_items: int | None = None,
    ) -> list[EnvelopeTemplate]:
        items = await self.client.unfold(
            self.client.account_path("/templates"),
            _paginator("envelopeTemplates"),
            params={
                "search_text": search_text,
                "folder_ids": ",".join(folder_ids) if folder_ids else None,
                "count": count,
            },
            max_items=max_items,
        )
        return self.client.parse_models(EnvelopeTemplate, items)


class Users(Resource):
    async def list_all(
        self,
        *,
        email: str | None = None,
        status: str | None = None,
        count: int = 100,
        max_items: int | None = None,
    ) -> list[AccountUser]:
        """List account users, optionally filtered by email or status."""
        items = await self.client.unfold(
            self.client.account_path("/users"),
            _paginator("users"),
            params={"email": email, "status": status, "count": count},
            max_items=max_items,
        )
        return self.client.parse_models(AccountUser, items)


# =============================================================================
# Client
# =============================================================================


class DocuSignClient(ApiClient):
    """Async client for the DocuSign eSignature REST API."""

    def __init__(
        self,
        config: DocuSignConfig,
        *,
        on_refresh: RefreshCallback | None = None,
        **kwargs: Any,
    ):
        self._config: DocuSignConfig = config
        self._on_refresh = on_refresh
        super().__init__(config, **kwargs)

        self.envelopes = Envelopes(self)
        self.templates = Templates(self)
        self.users = Users(self)

    @classmethod
    def from_env(cls, **kwargs: Any) -> DocuSignClient:
        """
        Build a client from DOCUSIGN_ACCOUNT_ID, DOCUSIGN_TOKEN and friends.

        DOCUSIGN_ENVIRONMENT selects "www" or "demo"; DOCUSIGN_HOST sets the
        account base URI.
        """
        settings = load_provider_settings("docusign")
        config = DocuSignConfig(
            account_id=settings.require("account_id"),
            environment=settings.extra.get("environment", "www"),
            access_token=settings.secret("token"),
            client_id=settings.client_id,
            client_secret=settings.secret("client_secret"),
            redirect_uri=settings.redirect_uri,
            refresh_token=settings.extra.get("refresh_token", ""),
            base_url=settings.host or "",
        )
        return cls(config, **kwargs)

    @property
    def name(self) -> str:
        return "docusign"

    @property
    def host(self) -> str:
        base = self._config.base_url or ENVIRONMENTS[self._config.environment][0]
        base = base.rstrip("/")
        if base.endswith(API_PATH):
            return base
        return f"{base}{API_PATH}"

    @property
    def health_check_path(self) -> str:
        return self.account_path("")

    def account_path(self, path: str) -> str:
        """Prefix path with /accounts/{account_id}."""
        return f"/accounts/{encode_path(self._config.account_id)}{path}"

    def _build_credentials(self) -> Credentials:
        config = self._config
        if config.client_id:
            return OAuth2Credentials(
                client_id=config.client_id,
                client_secret=config.client_secret,
                redirect_uri=config.redirect_uri,
                token_endpoint=f"{config.oauth_host}/oauth/token",
                consent_endpoint=f"{config.oauth_host}/oauth/auth",
                access_token=config.access_token,
                refresh_token=config.refresh_token,
                auto_refresh=config.auto_refresh,
                on_refresh=self._on_refresh,
                provider=self.name,
            )
        if config.access_token:
            return BearerToken(config.access_token)
        raise ValueError("DOCUSIGN_TOKEN or DOCUSIGN_CLIENT_ID is not set")
