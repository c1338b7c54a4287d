"""
SendGrid v3 API Client.

Usage:
    async with SendGridClient(SendGridConfig(api_key="SG....")) as sendgrid:
        result = await sendgrid.mail_send.send(
            Mail.simple(to="a@example.com", sender="noreply@example.com",
                        subject="Hi", text="Hello")
        )

    # EU data residency
    client.set_host_override("https://api.eu.sendgrid.com/v3")

API Reference:
    https://docs.sendgrid.com/api-reference
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any

from saasclients.config import load_provider_settings
from saasclients.core.auth import BearerToken, Credentials
from saasclients.core.base import ApiClient, ClientConfig, Resource
from saasclients.core.pagination import OffsetPaginator
from saasclients.providers.sendgrid.schemas import ApiKey, Mail, MailSendResult, Stats

logger = logging.getLogger(__name__)

DEFAULT_HOST = "https://api.sendgrid.com/v3"


# =============================================================================
# Configuration
# =============================================================================


@dataclass(frozen=True, slots=True)
class SendGridConfig(ClientConfig):
    """Configuration for SendGrid client."""

    api_key: str = ""
    base_url: str = DEFAULT_HOST

    def __post_init__(self):
        """Validate configuration."""
        if not self.api_key:
            raise ValueError("SendGrid API key is required")


# =============================================================================
# Resources
# =============================================================================


class MailSend(Resource):
    """Mail Send."""

    async def send(self, mail: Mail) -> MailSendResult:
        """
        Send an email.

        Returns:
            Status code and the X-Message-Id SendGrid assigned
        """
        logger.info(f"[sendgrid] Sending mail to {len(mail.personalizations)} personalization(s)")

        response = await self.client.request_with_response(
            "POST", "/mail/send", json=mail.to_api_dict()
        )

        result = MailSendResult(
            status_code=response.status_code,
            message_id=response.headers.get("x-message-id"),
        )
        logger.info(f"[sendgrid] Mail accepted: {result.message_id}")
        return result


class StatsResource(Resource):
    """Global email statistics."""

    async def get_global(
        self,
        start_date: date | str,
        *,
        end_date: date | str | None = None,
        aggregated_by: str | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[Stats]:
        """
        Retrieve global email statistics.

        Args:
            start_date: First day to include (YYYY-MM-DD)
            end_date: Last day to include (defaults to today)
            aggregated_by: day, week or month
            limit: Number of results to return
            offset: Point in the list to begin retrieving results
        """
        data = await self.client.get(
            "/stats",
            params={
                "start_date": str(start_date),
                "end_date": str(end_date) if end_date else None,
                "aggregated_by": aggregated_by,
                "limit": limit,
                "offset": offset,
            },
        )
        return self.client.parse_models(Stats, data)


class ApiKeys(Resource):
    """API keys."""

    async def list_all(self, *, page_size: int = 100, max_items: int | None = None) -> list[ApiKey]:
        items = await self.client.unfold(
            "/api_keys",
            OffsetPaginator(items_path="result", page_size=page_size),
            max_items=max_items,
        )
        return self.client.parse_models(ApiKey, items)


# =============================================================================
# Client
# =============================================================================


class SendGridClient(ApiClient):
    """Async client for the SendGrid v3 API."""

    health_check_path = "/scopes"

    def __init__(self, config: SendGridConfig, **kwargs: Any):
        self._config: SendGridConfig = config
        super().__init__(config, **kwargs)

        self.mail_send = MailSend(self)
        self.stats = StatsResource(self)
        self.api_keys = ApiKeys(self)

    @classmethod
    def from_env(cls, **kwargs: Any) -> SendGridClient:
        """Build a client from SENDGRID_API_KEY; SENDGRID_HOST becomes the host override."""
        settings = load_provider_settings("sendgrid")
        config = SendGridConfig(
            api_key=settings.require("token"),
            host_override=settings.host,
        )
        return cls(config, **kwargs)

    @property
    def name(self) -> str:
        return "sendgrid"

    def _build_credentials(self) -> Credentials:
        return BearerToken(self._config.api_key)
