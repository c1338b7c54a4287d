"""Pydantic schemas for the Shopify Admin REST API."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# =============================================================================
# Request Schemas
# =============================================================================


class VariantCreate(BaseModel):
    price: str | None = None
    sku: str | None = None
    option1: str | None = None
    inventory_quantity: int | None = None


class ProductCreate(BaseModel):
    """Body for POST /products.json (wrapped in {"product": ...})."""

    title: str = Field(..., min_length=1)
    body_html: str | None = None
    vendor: str | None = None
    product_type: str | None = None
    tags: str | None = None
    status: str | None = Field(None, description="active, archived or draft")
    variants: list[VariantCreate] | None = None

    def to_api_dict(self) -> dict[str, Any]:
        return {"product": self.model_dump(exclude_none=True)}


# =============================================================================
# Response Schemas
# =============================================================================


class Variant(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    product_id: int | None = None
    title: str | None = None
    price: str | None = None
    sku: str | None = None
    inventory_quantity: int | None = None


class Product(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    title: str
    body_html: str | None = None
    vendor: str | None = None
    product_type: str | None = None
    handle: str | None = None
    status: str | None = None
    tags: str = ""
    variants: list[Variant] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None


class LineItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    title: str | None = None
    quantity: int = 0
    price: str | None = None
    sku: str | None = None
    product_id: int | None = None
    variant_id: int | None = None


class Order(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    name: str | None = None
    email: str | None = None
    currency: str | None = None
    total_price: str | None = None
    financial_status: str | None = None
    fulfillment_status: str | None = None
    line_items: list[LineItem] = Field(default_factory=list)
    created_at: datetime | None = None
    processed_at: datetime | None = None
    cancelled_at: datetime | None = None
