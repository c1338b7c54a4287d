"""Pydantic schemas for the SendGrid v3 API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# =============================================================================
# Request Schemas
# =============================================================================


class EmailAddress(BaseModel):
    email: str
    name: str | None = None


class Personalization(BaseModel):
    to: list[EmailAddress]
    cc: list[EmailAddress] | None = None
    bcc: list[EmailAddress] | None = None
    subject: str | None = None
    dynamic_template_data: dict[str, Any] | None = None


class Content(BaseModel):
    type: str = "text/plain"
    value: str


class Mail(BaseModel):
    """Body for POST /mail/send."""

    personalizations: list[Personalization] = Field(..., min_length=1)
    from_: EmailAddress = Field(..., alias="from")
    reply_to: EmailAddress | None = None
    subject: str | None = None
    content: list[Content] | None = None
    template_id: str | None = None
    categories: list[str] | None = None
    send_at: int | None = None

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def simple(
        cls,
        *,
        to: str,
        sender: str,
        subject: str,
        text: str,
        html: str | None = None,
    ) -> Mail:
        """One recipient, plain text (and optional HTML) body."""
        content = [Content(type="text/plain", value=text)]
        if html:
            content.append(Content(type="text/html", value=html))
        return cls(
            personalizations=[Personalization(to=[EmailAddress(email=to)])],
            from_=EmailAddress(email=sender),
            subject=subject,
            content=content,
        )

    def to_api_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


# =============================================================================
# Response Schemas
# =============================================================================


class Metrics(BaseModel):
    model_config = ConfigDict(extra="ignore")

    requests: int = 0
    delivered: int = 0
    opens: int = 0
    unique_opens: int = 0
    clicks: int = 0
    unique_clicks: int = 0
    bounces: int = 0
    spam_reports: int = 0
    unsubscribes: int = 0
    blocks: int = 0


class StatsEntry(BaseModel):
    model_config = ConfigDict(extra="ignore")

    metrics: Metrics = Field(default_factory=Metrics)


class Stats(BaseModel):
    """Stats for one day (or week/month when aggregated)."""

    model_config = ConfigDict(extra="ignore")

    date: str
    stats: list[StatsEntry] = Field(default_factory=list)


class ApiKey(BaseModel):
    model_config = ConfigDict(extra="ignore")

    api_key_id: str
    name: str


class MailSendResult(BaseModel):
    """Outcome of /mail/send: 202 with an empty body and an X-Message-Id header."""

    status_code: int
    message_id: str | None = None
