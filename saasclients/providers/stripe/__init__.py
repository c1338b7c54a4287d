"""
Stripe provider.

Usage:
    from saasclients.providers.stripe import StripeClient, StripeConfig

    client = StripeClient(StripeConfig(api_key="sk_test_..."))
    customers = await client.customers.list_all(email="a@example.com")
"""

from saasclients.providers.stripe.client import (
    Charges,
    Customers,
    StripeClient,
    StripeConfig,
    flatten_form,
)
from saasclients.providers.stripe.schemas import (
    Charge,
    Customer,
    CustomerCreate,
    CustomerList,
    DeletedObject,
)

__all__ = [
    "Charge",
    "Charges",
    "Customer",
    "CustomerCreate",
    "CustomerList",
    "Customers",
    "DeletedObject",
    "StripeClient",
    "StripeConfig",
    "flatten_form",
]
