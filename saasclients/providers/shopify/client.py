"""
Shopify Admin REST API Client.

Every shop has its own host, and the API version is part of the path:
`https://{shop}.myshopify.com/admin/api/{version}`. Lists paginate with
`page_info` cursors carried in Link headers.

Usage:
    config = ShopifyConfig(shop="my-store", access_token="shpat_...")
    async with ShopifyClient(config) as shopify:
        products = await shopify.products.list_all(status="active")
        order = await shopify.orders.get(450789469)

API Reference:
    https://shopify.dev/docs/api/admin-rest
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from saasclients.config import load_provider_settings
from saasclients.core.auth import ApiKeyHeader, Credentials
from saasclients.core.base import ApiClient, ClientConfig, Resource
from saasclients.core.pagination import LinkHeaderPaginator
from saasclients.providers.shopify.schemas import Order, Product, ProductCreate

logger = logging.getLogger(__name__)

DEFAULT_API_VERSION = "2024-01"
ACCESS_TOKEN_HEADER = "X-Shopify-Access-Token"


# =============================================================================
# Configuration
# =============================================================================


@dataclass(frozen=True, slots=True)
class ShopifyConfig(ClientConfig):
    """Configuration for Shopify client."""

    # Required
    shop: str = ""  # "my-store" or "my-store.myshopify.com"
    access_token: str = ""

    api_version: str = DEFAULT_API_VERSION

    def __post_init__(self):
        """Validate configuration."""
        if not self.shop and not self.base_url:
            raise ValueError("Shopify shop name is required")
        if not self.access_token:
            raise ValueError("Shopify access token is required")

    @property
    def shop_domain(self) -> str:
        shop = self.shop.removeprefix("https://").rstrip("/")
        return shop if "." in shop else f"{shop}.myshopify.com"


# =============================================================================
# Resources
# =============================================================================


class Products(Resource):
    """Products."""

    async def list_all(
        self,
        *,
        status: str | None = None,
        vendor: str | None = None,
        product_type: str | None = None,
        collection_id: int | None = None,
        fields: list[str] | None = None,
        max_items: int | None = None,
    ) -> list[Product]:
        """
        List every product, following page_info Link headers.

        Args:
            status: active, archived or draft
            vendor: Filter by vendor
            product_type: Filter by product type
            collection_id: Only products in this collection
            fields: Only return these fields
            max_items: Stop after this many products
        """
        items = await self.client.unfold(
            "/products.json",
            LinkHeaderPaginator(items_path="products"),
            params={
                "status": status,
                "vendor": vendor,
                "product_type": product_type,
                "collection_id": collection_id,
                "fields": ",".join(fields) if fields else None,
                "limit": 250,
            },
            max_items=max_items,
        )
        return self.client.parse_models(Product, items)

    async def get(self, product_id: int) -> Product:
        data = await self.client.get(f"/products/{product_id}.json")
        return self.client.parse_model(Product, data.get("product"))

    async def create(self, product: ProductCreate) -> Product:
        logger.info(f"[shopify] Creating product: {product.title}")

        data = await self.client.post("/products.json", json=product.to_api_dict())

        created = self.client.parse_model(Product, data.get("product"))
        logger.info(f"[shopify] Created product: {created.id}")
        return created


class Orders(Resource):
    """Orders."""

    async def list_all(
        self,
        *,
        status: str | None = "any",
        financial_status: str | None = None,
        fulfillment_status: str | None = None,
        created_at_min: str | None = None,
        created_at_max: str | None = None,
        max_items: int | None = None,
    ) -> list[Order]:
        """
        List every order.

        Args:
            status: open, closed, cancelled or any (Shopify defaults to open)
            financial_status: e.g. paid, pending, refunded
            fulfillment_status: e.g. shipped, partial, unshipped
            created_at_min: ISO 8601 lower bound
            created_at_max: ISO 8601 upper bound
            max_items: Stop after this many orders
        """
        items = await self.client.unfold(
            "/orders.json",
            LinkHeaderPaginator(items_path="orders"),
            params={
                "status": status,
                "financial_status": financial_status,
                "fulfillment_status": fulfillment_status,
                "created_at_min": created_at_min,
                "created_at_max": created_at_max,
                "limit": 250,
            },
            max_items=max_items,
        )
        return self.client.parse_models(Order, items)

    async def get(self, order_id: int) -> Order:
        data = await self.client.get(f"/orders/{order_id}.json")
        return self.client.parse_model(Order, data.get("order"))


# =============================================================================
# Client
# =============================================================================


class ShopifyClient(ApiClient):
    """Async client for the Shopify Admin REST API."""

    health_check_path = "/shop.json"

    def __init__(self, config: ShopifyConfig, **kwargs: Any):
        self._config: ShopifyConfig = config
        super().__init__(config, **kwargs)

        self.products = Products(self)
        self.orders = Orders(self)

    @classmethod
    def from_env(cls, **kwargs: Any) -> ShopifyClient:
        """Build a client from SHOPIFY_SHOP, SHOPIFY_TOKEN and SHOPIFY_API_VERSION."""
        settings = load_provider_settings("shopify")
        config = ShopifyConfig(
            shop=settings.require("shop"),
            access_token=settings.require("token"),
            api_version=settings.extra.get("api_version", DEFAULT_API_VERSION),
            base_url=settings.host or "",
        )
        return cls(config, **kwargs)

    @property
    def name(self) -> str:
        return "shopify"

    @property
    def host(self) -> str:
        if self._config.base_url:
            return self._config.base_url
        return f"https://{self._config.shop_domain}/admin/api/{self._config.api_version}"

    def _build_credentials(self) -> Credentials:
        return ApiKeyHeader(ACCESS_TOKEN_HEADER, self._config.access_token)
