"""
Pydantic schemas for the Stripe API.

Stripe timestamps are Unix epoch seconds and amounts are integers in the
smallest currency unit.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# =============================================================================
# Request Schemas
# =============================================================================


class Address(BaseModel):
    line1: str | None = None
    line2: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None


class CustomerCreate(BaseModel):
    """Parameters for POST /v1/customers."""

    email: str | None = None
    name: str | None = None
    phone: str | None = None
    description: str | None = None
    address: Address | None = None
    metadata: dict[str, str] | None = None

    def to_form(self) -> dict[str, Any]:
        """Nested params, ready for flatten_form."""
        return self.model_dump(exclude_none=True)


# =============================================================================
# Response Schemas
# =============================================================================


class Customer(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    object: str = "customer"
    email: str | None = None
    name: str | None = None
    phone: str | None = None
    description: str | None = None
    balance: int = 0
    currency: str | None = None
    created: int | None = None
    delinquent: bool | None = None
    livemode: bool = False
    metadata: dict[str, str] = Field(default_factory=dict)


class DeletedObject(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    object: str
    deleted: bool


class Charge(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    object: str = "charge"
    amount: int
    amount_captured: int = 0
    amount_refunded: int = 0
    currency: str
    customer: str | None = None
    description: str | None = None
    paid: bool = False
    refunded: bool = False
    status: str | None = None
    created: int | None = None
    receipt_url: str | None = None
    metadata: dict[str, str] = Field(default_factory=dict)


class CustomerList(BaseModel):
    """One page of customers."""

    model_config = ConfigDict(extra="ignore")

    object: str = "list"
    url: str | None = None
    has_more: bool = False
    data: list[Customer] = Field(default_factory=list)
