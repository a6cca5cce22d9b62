"""Integration tests for the async client-side cart store.

Full-stack cases run the store against the real routes through
``httpx.ASGITransport``; transport failures are simulated with
``httpx.MockTransport``.
"""

import asyncio

import httpx
import pytest
from fastapi import FastAPI
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError

from wholesale.api import cart_router, checkout_router, register_exception_handlers
from wholesale.cart.cart import Cart
from wholesale.cart.items import AddCartItem
from wholesale.checkout.validation import CheckoutDetails, ContactAddress
from wholesale.client.store import CartStore
from wholesale.errors import (
    CartTimeoutError,
    ConsistencyWarning,
    NetworkError,
    RevisionConflictError,
    ServerError,
)
from wholesale.pricing.variation import VariationKey

BUYER = "buyer-store"

ADDRESS = ContactAddress(
    name="Ayesha Khan",
    email="ayesha@example.com",
    phone="+92 300 1234567",
    street="12 Mall Road",
    city="Lahore",
    state="Punjab",
    postal_code="54000",
    country="PK",
)


@pytest.fixture()
def asgi_app(catalogue, order_service):
    app = FastAPI()
    app.include_router(cart_router)
    app.include_router(checkout_router)
    register_exception_handlers(app)
    return app


def _store(app=None, handler=None):
    if handler is not None:
        transport = httpx.MockTransport(handler)
    else:
        transport = httpx.ASGITransport(app=app)
    return CartStore(BUYER, base_url="http://wholesale.test", timeout=2, transport=transport)


def _run(scenario):
    """Run ``scenario(store)`` against a store and close it afterwards."""

    async def main(store):
        async with store:
            return await scenario(store)

    return main


class TestReconciliation:
    def test_fetch_loads_server_state(self, asgi_app):
        current_domain.process(AddCartItem(buyer_id=BUYER, product_id="prod-shirt", quantity=60), asynchronous=False)

        async def scenario(store):
            await store.fetch()
            return store

        store = asyncio.run(_run(scenario)(_store(asgi_app)))

        assert len(store.items) == 1
        assert store.items[0].unit_price == 100.0
        assert store.total_items == 60
        assert store.revision == 1

    def test_fresh_store_updates_line_added_elsewhere(self, asgi_app):
        item_id = current_domain.process(
            AddCartItem(buyer_id=BUYER, product_id="prod-shirt", quantity=10), asynchronous=False
        )

        async def scenario(store):
            await store.update_quantity(item_id, 25)
            return store

        store = asyncio.run(_run(scenario)(_store(asgi_app)))

        assert store.items[0].quantity == 25
        assert store.revision == 2

    def test_fresh_store_removes_line_added_elsewhere(self, asgi_app):
        item_id = current_domain.process(
            AddCartItem(buyer_id=BUYER, product_id="prod-shirt", quantity=10), asynchronous=False
        )

        async def scenario(store):
            await store.remove_item(item_id)
            return store

        store = asyncio.run(_run(scenario)(_store(asgi_app)))

        assert store.items == []
        assert len(current_domain.repository_for(Cart).for_buyer(BUYER).items) == 0

    def test_add_then_update_follows_server(self, asgi_app):
        async def scenario(store):
            await store.fetch()
            await store.add_item("prod-shirt", 10, variation=VariationKey(color="Red"))
            item_id = store.items[0].id
            await store.update_quantity(item_id, 60)
            return store

        store = asyncio.run(_run(scenario)(_store(asgi_app)))

        line = store.items[0]
        # Stored unit price is kept on update; tiers re-apply only at checkout
        assert line.quantity == 60
        assert line.total_price == line.unit_price * 60
        assert line.variation.color == "Red"
        assert store.revision == 2
        assert store.error is None

    def test_remove_absent_item_only_refetches(self, asgi_app):
        async def scenario(store):
            await store.add_item("prod-shirt", 5)
            await store.remove_item("not-in-cart")
            return store

        store = asyncio.run(_run(scenario)(_store(asgi_app)))
        assert len(store.items) == 1

    def test_clear(self, asgi_app):
        async def scenario(store):
            await store.add_item("prod-shirt", 5)
            await store.add_item("prod-bag", 1)
            await store.clear()
            return store

        store = asyncio.run(_run(scenario)(_store(asgi_app)))
        assert store.items == []
        assert store.total_items == 0

    def test_concurrent_writer_surfaces_conflict(self, asgi_app):
        async def scenario(store):
            await store.add_item("prod-shirt", 5)
            # Another device adds a line behind this store's back
            current_domain.process(
                AddCartItem(buyer_id=BUYER, product_id="prod-bag", quantity=1), asynchronous=False
            )
            with pytest.raises(RevisionConflictError):
                await store.update_quantity(store.items[0].id, 8)
            return store

        store = asyncio.run(_run(scenario)(_store(asgi_app)))

        assert len(store.items) == 2
        assert store.revision == 2
        assert store.error is not None


class TestLocalValidation:
    def _refusing_handler(self, request):
        raise AssertionError(f"Unexpected request to {request.url}")

    def test_invalid_quantity_sends_nothing(self):
        async def scenario(store):
            with pytest.raises(ValidationError):
                await store.add_item("prod-shirt", 0)

        asyncio.run(_run(scenario)(_store(handler=self._refusing_handler)))

    def test_negative_price_sends_nothing(self):
        async def scenario(store):
            with pytest.raises(ValidationError):
                await store.add_item("prod-shirt", 3, unit_price=-1.0)

        asyncio.run(_run(scenario)(_store(handler=self._refusing_handler)))

    def test_update_unknown_line_sends_only_the_initial_fetch(self):
        sent = []

        def handler(request):
            sent.append(request.method)
            if request.method != "GET":
                raise AssertionError(f"Unexpected {request.method} to {request.url}")
            return httpx.Response(200, json={"success": True, "data": {"items": [], "revision": 0}})

        async def scenario(store):
            with pytest.raises(ObjectNotFoundError):
                await store.update_quantity("missing", 2)
            with pytest.raises(ObjectNotFoundError):
                await store.update_quantity("missing", 3)

        asyncio.run(_run(scenario)(_store(handler=handler)))
        assert sent == ["GET"]

    def test_incomplete_checkout_sends_nothing(self):
        async def scenario(store):
            with pytest.raises(ValidationError):
                await store.checkout(CheckoutDetails(shipping_address=ADDRESS, payment_method="bank"))

        asyncio.run(_run(scenario)(_store(handler=self._refusing_handler)))


class TestTransportFailures:
    def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        async def scenario(store):
            with pytest.raises(CartTimeoutError):
                await store.fetch()
            return store

        store = asyncio.run(_run(scenario)(_store(handler=handler)))
        assert store.error == "The cart service did not respond in time"

    def test_connection_failure(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        async def scenario(store):
            with pytest.raises(NetworkError):
                await store.fetch()

        asyncio.run(_run(scenario)(_store(handler=handler)))

    def test_server_error(self):
        def handler(request):
            return httpx.Response(500, json={"success": False, "error": "Internal server error"})

        async def scenario(store):
            with pytest.raises(ServerError) as exc:
                await store.fetch()
            return exc.value

        error = asyncio.run(_run(scenario)(_store(handler=handler)))
        assert error.status_code == 500
        assert error.message == "Internal server error"

    def test_validation_error_keeps_field(self):
        def handler(request):
            return httpx.Response(400, json={"success": False, "error": "Only 5 pieces available", "field": "quantity"})

        async def scenario(store):
            with pytest.raises(ValidationError) as exc:
                await store.add_item("prod-bag", 6)
            return exc.value

        error = asyncio.run(_run(scenario)(_store(handler=handler)))
        assert error.messages == {"quantity": ["Only 5 pieces available"]}

    def test_buyer_header_sent(self):
        seen = []

        def handler(request):
            seen.append(request.headers["X-Buyer-Id"])
            return httpx.Response(200, json={"success": True, "data": {"items": [], "revision": 0}})

        async def scenario(store):
            await store.fetch()

        asyncio.run(_run(scenario)(_store(handler=handler)))
        assert seen == [BUYER]


class TestCheckout:
    def test_checkout_empties_local_state(self, asgi_app, order_service):
        async def scenario(store):
            await store.add_item("prod-shirt", 60)
            body = await store.checkout(
                CheckoutDetails(shipping_address=ADDRESS, payment_method="card", terms_accepted=True)
            )
            return store, body

        store, body = asyncio.run(_run(scenario)(_store(asgi_app)))

        assert len(body["orders"]) == 1
        assert store.items == []
        assert store.total_amount == 0
        assert order_service.calls[0].payment_method == "card"

    def test_partial_checkout_warns(self, asgi_app, order_service):
        order_service.configure(failing_suppliers=["sup-lahore"])

        async def scenario(store):
            await store.add_item("prod-shirt", 10)
            await store.add_item("prod-mug", 10)
            return await store.checkout(
                CheckoutDetails(shipping_address=ADDRESS, payment_method="cod", terms_accepted=True)
            )

        with pytest.warns(ConsistencyWarning):
            body = asyncio.run(_run(scenario)(_store(asgi_app)))

        assert body["failedSuppliers"] == ["sup-lahore"]
