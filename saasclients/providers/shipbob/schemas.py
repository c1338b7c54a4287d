"""Pydantic schemas for the ShipBob API (1.0)."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SortOrder(str, Enum):
    NEWEST = "Newest"
    OLDEST = "Oldest"


class ShippingMethod(str, Enum):
    STANDARD = "Standard"
    EXPEDITED = "Expedited"
    TWO_DAY = "2-Day"
    OVERNIGHT = "Overnight"


# =============================================================================
# Request Schemas
# =============================================================================


class Address(BaseModel):
    address1: str
    address2: str | None = None
    city: str
    state: str | None = None
    zip_code: str | None = None
    country: str
    company_name: str | None = None


class Recipient(BaseModel):
    name: str
    address: Address
    email: str | None = None
    phone_number: str | None = None


class OrderProduct(BaseModel):
    """A line item; identify the product by id or by reference_id."""

    id: int | None = None
    reference_id: str | None = None
    name: str | None = None
    quantity: int = 1


class OrderCreate(BaseModel):
    """Order creation payload."""

    model_config = ConfigDict(use_enum_values=True)

    reference_id: str
    shipping_method: ShippingMethod | str = ShippingMethod.STANDARD
    recipient: Recipient
    products: list[OrderProduct]
    order_number: str | None = None
    tags: list[dict[str, str]] | None = None

    def to_api_dict(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


# =============================================================================
# Response Schemas
# =============================================================================


class Channel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    name: str
    application_name: str | None = None
    scopes: list[str] = Field(default_factory=list)


class Order(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    reference_id: str | None = None
    order_number: str | None = None
    status: str | None = None
    created_date: datetime | None = None
    purchase_date: datetime | None = None
    recipient: dict[str, Any] | None = None
    products: list[dict[str, Any]] = Field(default_factory=list)
    shipments: list[dict[str, Any]] = Field(default_factory=list)


class Product(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    reference_id: str | None = None
    name: str
    sku: str | None = None
    barcode: str | None = None
    created_date: datetime | None = None
    total_fulfillable_quantity: int = 0
    total_onhand_quantity: int = 0


class Inventory(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    name: str
    is_active: bool = True
    is_lot: bool = False
    total_fulfillable_quantity: int = 0
    total_onhand_quantity: int = 0
    total_committed_quantity: int = 0
    total_sellable_quantity: int = 0
