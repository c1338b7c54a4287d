"""
DocuSign eSignature provider.

Usage:
    from saasclients.providers.docusign import DocuSignClient, DocuSignConfig

    client = DocuSignClient(DocuSignConfig(account_id="...", access_token="..."))
    templates = await client.templates.list_all()
"""

from saasclients.providers.docusign.client import (
    DocuSignClient,
    DocuSignConfig,
    Envelopes,
    Templates,
    Users,
)
from saasclients.providers.docusign.schemas import (
    AccountUser,
    Document,
    Envelope,
    EnvelopeDefinition,
    EnvelopeStatus,
    EnvelopeSummary,
    EnvelopeTemplate,
    Recipients,
    Signer,
    TemplateRole,
)

__all__ = [
    "AccountUser",
    "DocuSignClient",
    "DocuSignConfig",
    "Document",
    "Envelope",
    "EnvelopeDefinition",
    "EnvelopeStatus",
    "EnvelopeSummary",
    "EnvelopeTemplate",
    "Envelopes",
    "Recipients",
    "Signer",
    "TemplateRole",
    "Templates",
    "Users",
]
