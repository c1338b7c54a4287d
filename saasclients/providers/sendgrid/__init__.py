"""
SendGrid provider.

Usage:
    from saasclients.providers.sendgrid import Mail, SendGridClient, SendGridConfig

    client = SendGridClient(SendGridConfig(api_key="SG...."))
    await client.mail_send.send(Mail.simple(to="a@example.com", sender="me@example.com",
                                            subject="Hi", text="Hello"))
"""

from saasclients.providers.sendgrid.client import (
    ApiKeys,
    MailSend,
    SendGridClient,
    SendGridConfig,
    StatsResource,
)
from saasclients.providers.sendgrid.schemas import (
    ApiKey,
    Content,
    EmailAddress,
    Mail,
    MailSendResult,
    Personalization,
    Stats,
)

__all__ = [
    "ApiKey",
    "ApiKeys",
    "Content",
    "EmailAddress",
    "Mail",
    "MailSend",
    "MailSendResult",
    "Personalization",
    "SendGridClient",
    "SendGridConfig",
    "Stats",
    "StatsResource",
]
