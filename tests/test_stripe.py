"""
Tests for the Stripe client.
"""

from urllib.parse import parse_qs

import httpx
import pytest

from saasclients.core import ValidationError
from saasclients.providers.stripe import CustomerCreate, StripeClient, StripeConfig
from saasclients.providers.stripe.client import flatten_form


def make_client(http, **kwargs) -> StripeClient:
    return StripeClient(StripeConfig(api_key="sk_test_123", max_retries=0, **kwargs), http_client=http)


def form(request: httpx.Request) -> dict[str, list[str]]:
    return parse_qs(request.content.decode())


class TestFlattenForm:
    """Tests for Stripe's bracket notation."""

    def test_nested_mapping(self):
        assert flatten_form({"metadata": {"plan": "pro"}}) == {"metadata[plan]": "pro"}

    def test_lists_are_indexed(self):
        assert flatten_form({"expand": ["customer", "invoice"]}) == {
            "expand[0]": "customer",
            "expand[1]": "invoice",
        }

    def test_deep_nesting(self):
        data = {"items": [{"price": "price_1", "quantity": 2}]}
        assert flatten_form(data) == {"items[0][price]": "price_1", "items[0][quantity]": 2}

    def test_none_dropped_and_booleans_lowercased(self):
        assert flatten_form({"email": None, "livemode": False}) == {"livemode": "false"}


class TestStripeConfig:
    def test_api_key_required(self):
        with pytest.raises(ValueError, match="API key is required"):
            StripeConfig()

    def test_from_env(self, clean_env):
        clean_env.setenv("STRIPE_API_KEY", "sk_test_env")
        clean_env.setenv("STRIPE_API_VERSION", "2024-06-20")

        client = StripeClient.from_env()

        assert client.credentials.token == "sk_test_env"
        assert client._get_default_headers()["Stripe-Version"] == "2024-06-20"


class TestStripeCustomers:
    """Tests for the customers resource."""

    @pytest.mark.asyncio
    async def test_create_sends_form_body(self, mock_http):
        http, calls = mock_http(
            lambda request: httpx.Response(200, json={"id": "cus_1", "email": "a@example.com"})
        )
        client = make_client(http)

        customer = await client.customers.create(
            CustomerCreate(email="a@example.com", metadata={"plan": "pro"})
        )

        assert customer.id == "cus_1"
        assert calls.last.method == "POST"
        assert calls.last.url == "https://api.stripe.com/v1/customers"
        assert calls.last.headers["Authorization"] == "Bearer sk_test_123"
        assert calls.last.headers["Content-Type"] == "application/x-www-form-urlencoded"
        assert form(calls.last) == {"email": ["a@example.com"], "metadata[plan]": ["pro"]}

    @pytest.mark.asyncio
    async def test_list_all_follows_starting_after(self, mock_http):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.params.get("starting_after") == "cus_2":
                return httpx.Response(200, json={"data": [{"id": "cus_3"}], "has_more": False})
            return httpx.Response(
                200, json={"data": [{"id": "cus_1"}, {"id": "cus_2"}], "has_more": True}
            )

        http, calls = mock_http(handler)
        client = make_client(http)

        customers = await client.customers.list_all()

        assert [c.id for c in customers] == ["cus_1", "cus_2", "cus_3"]
        assert calls.requests[0].url.params["limit"] == "100"
        assert "starting_after" not in calls.requests[0].url.params

    @pytest.mark.asyncio
    async def test_list_one_page(self, mock_http):
        http, calls = mock_http(
            lambda request: httpx.Response(200, json={"data": [{"id": "cus_1"}], "has_more": True})
        )
        client = make_client(http)

        page = await client.customers.list(limit=1)

        assert page.has_more
        assert page.data[0].id == "cus_1"
        assert calls.last.url.params["limit"] == "1"

    @pytest.mark.asyncio
    async def test_delete(self, mock_http):
        http, calls = mock_http(
            lambda request: httpx.Response(200, json={"id": "cus_1", "object": "customer", "deleted": True})
        )
        client = make_client(http)

        deleted = await client.customers.delete("cus_1")

        assert deleted.deleted
        assert calls.last.method == "DELETE"

    @pytest.mark.asyncio
    async def test_api_version_header(self, mock_http):
        http, calls = mock_http(lambda request: httpx.Response(200, json={"id": "cus_1"}))
        client = make_client(http, api_version="2024-06-20")

        await client.customers.get("cus_1")

        assert calls.last.headers["Stripe-Version"] == "2024-06-20"

    @pytest.mark.asyncio
    async def test_card_error_is_validation_error(self, mock_http):
        http, _ = mock_http(
            lambda request: httpx.Response(
                400, json={"error": {"type": "invalid_request_error", "message": "No such customer"}}
            )
        )
        client = make_client(http)

        with pytest.raises(ValidationError):
            await client.customers.get("cus_missing")


class TestStripeCharges:
    @pytest.mark.asyncio
    async def test_list_all_filters_by_customer(self, mock_http):
        charge = {"id": "ch_1", "amount": 500, "currency": "usd", "customer": "cus_1"}
        http, calls = mock_http(
            lambda request: httpx.Response(200, json={"data": [charge], "has_more": False})
        )
        client = make_client(http)

        charges = await client.charges.list_all(customer="cus_1")

        assert charges[0].amount == 500
        assert calls.last.url.params["customer"] == "cus_1"
