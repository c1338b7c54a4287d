"""
Stripe API Client.

Stripe takes form-encoded request bodies with bracketed keys for nested
values (`metadata[plan]=pro`, `expand[0]=customer`) and paginates lists with
`has_more` + `starting_after=<last id>`.

Usage:
    async with StripeClient(StripeConfig(api_key="sk_test_...")) as stripe:
        customer = await stripe.customers.create(CustomerCreate(email="a@example.com"))
        everyone = await stripe.customers.list_all()

API Reference:
    https://stripe.com/docs/api
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from saasclients.config import load_provider_settings
from saasclients.core.auth import BearerToken, Credentials
from saasclients.core.base import ApiClient, ClientConfig, Resource, encode_path
from saasclients.core.pagination import StartingAfterPaginator
from saasclients.providers.stripe.schemas import (
    Charge,
    Customer,
    CustomerCreate,
    CustomerList,
    DeletedObject,
)

logger = logging.getLogger(__name__)

DEFAULT_HOST = "https://api.stripe.com"


def flatten_form(data: Mapping[str, Any], prefix: str = "") -> dict[str, Any]:
    """
    Flatten nested params into Stripe's bracket notation.

    Example:
        flatten_form({"metadata": {"plan": "pro"}, "expand": ["customer"]})
        # -> {"metadata[plan]": "pro", "expand[0]": "customer"}
    """
    flat: dict[str, Any] = {}
    for key, value in data.items():
        name = f"{prefix}[{key}]" if prefix else str(key)
        if value is None:
            continue
        if isinstance(value, Mapping):
            flat.update(flatten_form(value, name))
        elif isinstance(value, (list, tuple)):
            flat.update(flatten_form({str(i): v for i, v in enumerate(value)}, name))
        elif isinstance(value, bool):
            flat[name] = "true" if value else "false"
        else:
            flat[name] = value
    return flat


# =============================================================================
# Configuration
# =============================================================================


@dataclass(frozen=True, slots=True)
class StripeConfig(ClientConfig):
    """Configuration for Stripe client."""

    api_key: str = ""
    base_url: str = DEFAULT_HOST

    # Pin an API version instead of the account default
    api_version: str | None = None

    def __post_init__(self):
        """Validate configuration."""
        if not self.api_key:
            raise ValueError("Stripe API key is required")


# =============================================================================
# Resources
# =============================================================================


class Customers(Resource):
    """Customers."""

    async def list(
        self,
        *,
        email: str | None = None,
        limit: int | None = None,
        starting_after: str | None = None,
        ending_before: str | None = None,
    ) -> CustomerList:
        """
        List one page of customers.

        Args:
            email: Filter by exact email
            limit: Page size (1-100)
            starting_after: Cursor: id of the last customer of the previous page
            ending_before: Cursor: id of the first customer of the next page
        """
        data = await self.client.get(
            "/v1/customers",
            params={
                "email": email,
                "limit": limit,
                "starting_after": starting_after,
                "ending_before": ending_before,
            },
        )
        return self.client.parse_model(CustomerList, data)

    async def list_all(
        self,
        *,
        email: str | None = None,
        max_items: int | None = None,
    ) -> list[Customer]:
        """List every customer, following has_more/starting_after."""
        items = await self.client.unfold(
            "/v1/customers",
            StartingAfterPaginator(),
            params={"email": email, "limit": 100},
            max_items=max_items,
        )
        return self.client.parse_models(Customer, items)

    async def get(self, customer_id: str) -> Customer:
        data = await self.client.get(f"/v1/customers/{encode_path(customer_id)}")
        return self.client.parse_model(Customer, data)

    async def create(self, customer: CustomerCreate) -> Customer:
        """
        Create a customer.

        Returns:
            Created customer
        """
        logger.info("[stripe] Creating customer")

        data = await self.client.post_form("/v1/customers", flatten_form(customer.to_form()))

        created = self.client.parse_model(Customer, data)
        logger.info(f"[stripe] Created customer: {created.id}")
        return created

    async def delete(self, customer_id: str) -> DeletedObject:
        logger.info(f"[stripe] Deleting customer: {customer_id}")
        data = await self.client.delete(f"/v1/customers/{encode_path(customer_id)}")
        return self.client.parse_model(DeletedObject, data)


class Charges(Resource):
    """Charges."""

    async def list_all(
        self,
        *,
        customer: str | None = None,
        payment_intent: str | None = None,
        max_items: int | None = None,
    ) -> list[Charge]:
        """
        List every charge, newest first.

        Args:
            customer: Only charges for this customer id
            payment_intent: Only charges for this PaymentIntent id
            max_items: Stop after this many charges
        """
        items = await self.client.unfold(
            "/v1/charges",
            StartingAfterPaginator(),
            params={"customer": customer, "payment_intent": payment_intent, "limit": 100},
            max_items=max_items,
        )
        return self.client.parse_models(Charge, items)

    async def get(self, charge_id: str) -> Charge:
        data = await self.client.get(f"/v1/charges/{encode_path(charge_id)}")
        return self.client.parse_model(Charge, data)


# =============================================================================
# Client
# =============================================================================


class StripeClient(ApiClient):
    """Async client for the Stripe API (secret key as bearer token)."""

    health_check_path = "/v1/balance"

    def __init__(self, config: StripeConfig, **kwargs: Any):
        self._config: StripeConfig = config
        super().__init__(config, **kwargs)

        self.customers = Customers(self)
        self.charges = Charges(self)

    @classmethod
    def from_env(cls, **kwargs: Any) -> StripeClient:
        """
        Build a client from STRIPE_API_KEY (or STRIPE_TOKEN) and STRIPE_HOST.

        Raises:
            ValueError: If STRIPE_API_KEY is not set
        """
        settings = load_provider_settings("stripe")
        config = StripeConfig(
            api_key=settings.require("token"),
            base_url=settings.host or DEFAULT_HOST,
            api_version=settings.extra.get("api_version"),
        )
        return cls(config, **kwargs)

    @property
    def name(self) -> str:
        return "stripe"

    def _build_credentials(self) -> Credentials:
        return BearerToken(self._config.api_key)

    def _get_default_headers(self) -> dict[str, str]:
        headers = super()._get_default_headers()
        if self._config.api_version:
            headers["Stripe-Version"] = self._config.api_version
        return headers
