"""
ShipBob API Client.

Write operations are scoped to a channel, sent as the `shipbob_channel_id`
header. Lists page with Page/Limit (at most 250 per page).

Usage:
    async with ShipBobClient(ShipBobConfig(token="...", channel_id=12345)) as shipbob:
        orders = await shipbob.orders.list_all(start_date=datetime(2024, 1, 1, tzinfo=UTC))

API Reference:
    https://developer.shipbob.com/api-docs/
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from saasclients.config import load_provider_settings
from saasclients.core.auth import BearerToken, Credentials
from saasclients.core.base import ApiClient, ClientConfig, Resource
from saasclients.core.pagination import PageNumberPaginator
from saasclients.providers.shipbob.schemas import (
    Channel,
    Inventory,
    Order,
    OrderCreate,
    Product,
    SortOrder,
)

logger = logging.getLogger(__name__)

DEFAULT_HOST = "https://api.shipbob.com/1.0"
CHANNEL_HEADER = "shipbob_channel_id"
MAX_PAGE_SIZE = 250


def _paginator(page_size: int) -> PageNumberPaginator:
    return PageNumberPaginator(
        page_param="Page",
        size_param="Limit",
        page_size=min(page_size, MAX_PAGE_SIZE),
    )


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


# =============================================================================
# Configuration
# =============================================================================


@dataclass(frozen=True, slots=True)
class ShipBobConfig(ClientConfig):
    """Configuration for ShipBob client."""

    # Personal access token
    token: str = ""

    # Channel used for write operations
    channel_id: int | None = None

    base_url: str = DEFAULT_HOST

    def __post_init__(self):
        """Validate configuration."""
        if not self.token:
            raise ValueError("ShipBob token is required")


# =============================================================================
# Resources
# =============================================================================


class Channels(Resource):
    async def list(self) -> list[Channel]:
        """List the channels the token can act for."""
        data = await self.client.get("/channel")
        return self.client.parse_models(Channel, data or [])


class Orders(Resource):
    """Orders."""

    async def list_all(
        self,
        *,
        ids: list[int] | None = None,
        reference_ids: list[str] | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        sort_order: SortOrder | str | None = None,
        has_tracking: bool | None = None,
        page_size: int = MAX_PAGE_SIZE,
        max_items: int | None = None,
    ) -> list[Order]:
        """
        List orders. All filters are ANDed together.

        Args:
            ids: Order ids
            reference_ids: Store reference ids
            start_date: Orders created on or after
            end_date: Orders created on or before
            sort_order: Newest or Oldest
            has_tracking: Only orders with (or without) tracking
            page_size: Orders per page
            max_items: Stop after this many orders
        """
        items = await self.client.unfold(
            "/order",
            _paginator(page_size),
            params={
                "IDs": " ".join(str(i) for i in ids) if ids else None,
                "ReferenceIds": " ".join(reference_ids) if reference_ids else None,
                "StartDate": _isoformat(start_date),
                "EndDate": _isoformat(end_date),
                "SortOrder": sort_order,
                "HasTracking": has_tracking,
            },
            max_items=max_items,
        )
        return self.client.parse_models(Order, items)

    async def get(self, order_id: int) -> Order:
        data = await self.client.get(f"/order/{order_id}")
        return self.client.parse_model(Order, data)

    async def create(self, order: OrderCreate, *, channel_id: int | None = None) -> Order:
        """
        Create an order on a channel.

        Args:
            order: Order details
            channel_id: Overrides the configured channel

        Returns:
            Created order
        """
        logger.info(f"[shipbob] Creating order: {order.reference_id}")

        data = await self.client.post(
            "/order",
            json=order.to_api_dict(),
            headers=self.client.channel_headers(channel_id),
        )

        created = self.client.parse_model(Order, data)
        logger.info(f"[shipbob] Created order: {created.id}")
        return created


class Products(Resource):
    async def list_all(
        self,
        *,
        reference_ids: list[str] | None = None,
        search: str | None = None,
        active_status: str | None = None,
        page_size: int = MAX_PAGE_SIZE,
        max_items: int | None = None,
    ) -> list[Product]:
        items = await self.client.unfold(
            "/product",
            _paginator(page_size),
            params={
                "ReferenceIds": ",".join(reference_ids) if reference_ids else None,
                "Search": search,
                "ActiveStatus": active_status,
            },
            max_items=max_items,
        )
        return self.client.parse_models(Product, items)


class InventoryResource(Resource):
    async def list_all(
        self,
        *,
        is_active: bool | None = None,
        is_digital: bool | None = None,
        search: str | None = None,
        page_size: int = MAX_PAGE_SIZE,
        max_items: int | None = None,
    ) -> list[Inventory]:
        items = await self.client.unfold(
            "/inventory",
            _paginator(page_size),
            params={"IsActive": is_active, "IsDigital": is_digital, "Search": search},
            max_items=max_items,
        )
        return self.client.parse_models(Inventory, items)


# =============================================================================
# Client
# =============================================================================


class ShipBobClient(ApiClient):
    """Async client for the ShipBob API."""

    health_check_path = "/channel"

    def __init__(self, config: ShipBobConfig, **kwargs: Any):
        self._config: ShipBobConfig = config
        super().__init__(config, **kwargs)

        self.channels = Channels(self)
        self.orders = Orders(self)
        self.products = Products(self)
        self.inventory = InventoryResource(self)

    @classmethod
    def from_env(cls, **kwargs: Any) -> ShipBobClient:
        """Build a client from SHIPBOB_TOKEN and SHIPBOB_CHANNEL_ID."""
        settings = load_provider_settings("shipbob")
        channel_id = settings.extra.get("channel_id")
        config = ShipBobConfig(
            token=settings.require("token"),
            channel_id=int(channel_id) if channel_id else None,
            base_url=settings.host or DEFAULT_HOST,
        )
        return cls(config, **kwargs)

    @property
    def name(self) -> str:
        return "shipbob"

    def channel_headers(self, channel_id: int | None = None) -> dict[str, str]:
        """Header selecting the channel for a write."""
        channel_id = channel_id if channel_id is not None else self._config.channel_id
        if channel_id is None:
            raise ValueError("ShipBob channel_id is required for write operations")
        return {CHANNEL_HEADER: str(channel_id)}

    def _build_credentials(self) -> Credentials:
        return BearerToken(self._config.token)
