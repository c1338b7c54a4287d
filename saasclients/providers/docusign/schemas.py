"""Pydantic schemas for the DocuSign eSignature REST API (v2.1)."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class EnvelopeStatus(str, Enum):
    CREATED = "created"
    SENT = "sent"
    DELIVERED = "delivered"
    SIGNED = "signed"
    COMPLETED = "completed"
    DECLINED = "declined"
    VOIDED = "voided"


# =============================================================================
# Request Schemas
# =============================================================================


class Document(BaseModel):
    """A document attached to an envelope; content is base64 encoded."""

    model_config = ConfigDict(populate_by_name=True)

    document_id: str = Field(..., alias="documentId")
    name: str
    file_extension: str = Field("pdf", alias="fileExtension")
    document_base64: str = Field(..., alias="documentBase64")


class Signer(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: str
    name: str
    recipient_id: str = Field(..., alias="recipientId")
    routing_order: str = Field("1", alias="routingOrder")
    client_user_id: str | None = Field(None, alias="clientUserId")
    tabs: dict[str, Any] | None = None


class Recipients(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    signers: list[Signer] = Field(default_factory=list)
    carbon_copies: list[dict[str, Any]] | None = Field(None, alias="carbonCopies")


class TemplateRole(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: str
    name: str
    role_name: str = Field(..., alias="roleName")


class EnvelopeDefinition(BaseModel):
    """
    Envelope creation payload.

    Either documents plus recipients, or a template_id plus template_roles.
    status="sent" sends immediately; "created" saves a draft.
    """

    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    email_subject: str = Field(..., alias="emailSubject")
    email_blurb: str | None = Field(None, alias="emailBlurb")
    status: EnvelopeStatus = EnvelopeStatus.SENT
    documents: list[Document] | None = None
    recipients: Recipients | None = None
    template_id: str | None = Field(None, alias="templateId")
    template_roles: list[TemplateRole] | None = Field(None, alias="templateRoles")

    def to_api_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


# =============================================================================
# Response Schemas
# =============================================================================


class EnvelopeSummary(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    envelope_id: str = Field(..., alias="envelopeId")
    status: str
    status_date_time: str | None = Field(None, alias="statusDateTime")
    uri: str | None = None


class Envelope(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    envelope_id: str = Field(..., alias="envelopeId")
    status: str
    email_subject: str | None = Field(None, alias="emailSubject")
    created_date_time: str | None = Field(None, alias="createdDateTime")
    sent_date_time: str | None = Field(None, alias="sentDateTime")
    completed_date_time: str | None = Field(None, alias="completedDateTime")
    status_changed_date_time: str | None = Field(None, alias="statusChangedDateTime")


class EnvelopeTemplate(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    template_id: str = Field(..., alias="templateId")
    name: str | None = None
    description: str | None = None
    shared: str | None = None
    last_modified: str | None = Field(None, alias="lastModified")


class AccountUser(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    user_id: str = Field(..., alias="userId")
    user_name: str | None = Field(None, alias="userName")
    email: str | None = None
    user_status: str | None = Field(None, alias="userStatus")
    is_admin: str | None = Field(None, alias="isAdmin")
