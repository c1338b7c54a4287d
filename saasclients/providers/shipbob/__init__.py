"""
ShipBob provider.

Usage:
    from saasclients.providers.shipbob import ShipBobClient, ShipBobConfig

    client = ShipBobClient(ShipBobConfig(token="...", channel_id=12345))
    inventory = await client.inventory.list_all(is_active=True)
"""

from saasclients.providers.shipbob.client import (
    Channels,
    InventoryResource,
    Orders,
    Products,
    ShipBobClient,
    ShipBobConfig,
)
from saasclients.providers.shipbob.schemas import (
    Address,
    Channel,
    Inventory,
    Order,
    OrderCreate,
    OrderProduct,
    Product,
    Recipient,
    ShippingMethod,
    SortOrder,
)

__all__ = [
    "Address",
    "Channel",
    "Channels",
    "Inventory",
    "InventoryResource",
    "Order",
    "OrderCreate",
    "OrderProduct",
    "Orders",
    "Product",
    "Products",
    "Recipient",
    "ShipBobClient",
    "ShipBobConfig",
    "ShippingMethod",
    "SortOrder",
]
