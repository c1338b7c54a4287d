"""
Shopify provider.

Usage:
    from saasclients.providers.shopify import ShopifyClient, ShopifyConfig

    client = ShopifyClient(ShopifyConfig(shop="my-store", access_token="shpat_..."))
    orders = await client.orders.list_all(financial_status="paid")
"""

from saasclients.providers.shopify.client import Orders, Products, ShopifyClient, ShopifyConfig
from saasclients.providers.shopify.schemas import Order, Product, ProductCreate, Variant

__all__ = [
    "Order",
    "Orders",
    "Product",
    "ProductCreate",
    "Products",
    "ShopifyClient",
    "ShopifyConfig",
    "Variant",
]
