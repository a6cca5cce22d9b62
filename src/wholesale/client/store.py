"""Async client-side cart store.

``CartStore`` owns one buyer's view of the cart and exposes a narrow command
interface; UI code calls it rather than holding cart state itself. Its rules:

* input is validated locally before any request is made;
* mutations are serialized with a lock, so one store never has two writes in
  flight;
* every successful mutation is followed by a full ``GET /cart`` that replaces
  local state, never an optimistic merge;
* every request is bounded by a timeout. Retries happen only at connection
  level (``httpx`` transport ``retries``), so a mutation that reached the
  server is never sent twice.
"""

import asyncio
import warnings
from typing import Any

import httpx
import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError

from wholesale.cart.lines import LineItem
from wholesale.checkout.validation import CheckoutDetails, validate_checkout_details
from wholesale.config import Settings, get_settings
from wholesale.errors import (
    CartTimeoutError,
    ConsistencyWarning,
    NetworkError,
    RevisionConflictError,
    ServerError,
)
from wholesale.pricing.variation import VariationKey

logger = structlog.get_logger(__name__)


class CartStore:
    def __init__(
        self,
        buyer_id: str,
        base_url: str | None = None,
        timeout: float | None = None,
        retries: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.buyer_id = buyer_id

        if transport is None:
            transport = httpx.AsyncHTTPTransport(
                retries=self.settings.client_connect_retries if retries is None else retries
            )
        self._client = httpx.AsyncClient(
            base_url=base_url or self.settings.cart_service_url,
            timeout=httpx.Timeout(timeout or self.settings.client_timeout_seconds),
            transport=transport,
            headers={"X-Buyer-Id": buyer_id},
        )
        self._lock = asyncio.Lock()

        self.items: list[LineItem] = []
        self.total_items: int = 0
        self.total_amount: float = 0.0
        self.revision: int | None = None
        self.error: str | None = None

    async def __aenter__(self) -> "CartStore":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def find(self, item_id: str) -> LineItem | None:
        return next((item for item in self.items if item.id == str(item_id)), None)

    async def fetch(self) -> list[LineItem]:
        """Replace local state with the service's view of the cart."""
        async with self._lock:
            return await self._reconcile()

    refresh = fetch

    # -------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------
    async def add_item(
        self,
        product_id: str,
        quantity: int,
        item_type: str = "regular",
        unit_price: float | None = None,
        variation: VariationKey | None = None,
        is_bulk_order: bool = False,
        request_id: str | None = None,
        original_price: float | None = None,
        bid_price: float | None = None,
        discount_percent: float | None = None,
    ) -> list[LineItem]:
        if quantity is None or quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})
        for name, price in (("unit_price", unit_price), ("bid_price", bid_price)):
            if price is not None and price < 0:
                raise ValidationError({name: ["Price cannot be negative"]})
        if item_type == "bid" and (request_id is None or original_price is None or bid_price is None):
            raise ValidationError({"request_id": ["Bid items require requestId, originalPrice and bidPrice"]})

        payload: dict[str, Any] = {
            "type": item_type,
            "productId": product_id,
            "quantity": quantity,
            "isBulkOrder": is_bulk_order,
        }
        if unit_price is not None:
            payload["tierPrice"] = unit_price
        if variation is not None:
            payload.update(
                variantId=variation.variant_id,
                variantName=variation.variant_name,
                color=variation.color,
                size=variation.size,
                material=variation.material,
                style=variation.style,
                variationAttributes=[a.to_dict() for a in variation.attributes],
            )
        if item_type == "bid":
            payload.update(
                requestId=request_id,
                originalPrice=original_price,
                bidPrice=bid_price,
                discountPercent=discount_percent,
            )

        return await self._mutate("POST", "/cart", payload)

    async def update_quantity(self, item_id: str, quantity: int) -> list[LineItem]:
        """Set a line's quantity; zero or less removes it."""
        await self._ensure_loaded()
        if self.find(item_id) is None:
            raise ObjectNotFoundError({"_entity": f"Cart item `{item_id}` does not exist"})
        return await self._mutate("PATCH", "/cart", {"itemId": str(item_id), "quantity": quantity})

    async def remove_item(self, item_id: str) -> list[LineItem]:
        await self._ensure_loaded()
        if self.find(item_id) is None:
            # Already gone: nothing to send, but still resync
            return await self.fetch()
        return await self._mutate("DELETE", "/cart", {"itemId": str(item_id)})

    async def clear(self) -> list[LineItem]:
        return await self._mutate("POST", "/cart/clear", {})

    async def checkout(self, details: CheckoutDetails) -> dict[str, Any]:
        """Place the order. Local state is emptied once the service accepts it."""
        validate_checkout_details(details, self.settings.payment_methods)

        payload = {
            "shippingAddress": details.shipping_address.to_payload(),
            "shippingMethod": details.shipping_method,
            "paymentMethod": details.payment_method,
            "termsAccepted": details.terms_accepted,
            "notes": details.notes,
            "isDropshipping": details.is_dropshipping,
        }
        if details.is_dropshipping and details.customer_address is not None:
            payload["customerAddress"] = details.customer_address.to_payload()
            payload["dropshippingInstructions"] = details.dropshipping_instructions

        async with self._lock:
            body = await self._send("POST", "/checkout", self._guarded(payload))
            self._apply({})

            failed = body.get("failedSuppliers") or []
            if failed:
                logger.warning("Checkout left failed supplier orders", buyer_id=self.buyer_id, failed_suppliers=failed)
                warnings.warn(
                    f"Cart cleared but orders failed for suppliers: {', '.join(failed)}",
                    ConsistencyWarning,
                    stacklevel=2,
                )

            await self._reconcile()
            return body

    # -------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------
    async def _ensure_loaded(self) -> None:
        # Item lookups are only meaningful once the store has seen the service's cart
        if self.revision is None:
            await self.fetch()

    def _guarded(self, payload: dict[str, Any]) -> dict[str, Any]:
        if self.revision is not None:
            return dict(payload, expectedRevision=self.revision)
        return payload

    async def _mutate(self, method: str, path: str, payload: dict[str, Any]) -> list[LineItem]:
        async with self._lock:
            try:
                await self._send(method, path, self._guarded(payload))
            except RevisionConflictError as exc:
                # Someone else wrote first; pick up their state before surfacing the conflict
                await self._reconcile()
                self.error = exc.message
                raise
            return await self._reconcile()

    async def _reconcile(self) -> list[LineItem]:
        body = await self._send("GET", "/cart")
        self._apply(body.get("data") or {})
        return self.items

    def _apply(self, data: dict[str, Any]) -> None:
        self.items = [LineItem.from_payload(item) for item in data.get("items", [])]
        self.total_items = data.get("totalItems", sum(item.quantity for item in self.items))
        self.total_amount = data.get("totalAmount", sum(item.total_price for item in self.items))
        self.revision = data.get("revision", self.revision)
        self.error = None

    async def _send(self, method: str, path: str, payload: dict[str, Any] | None = None) -> dict[str, Any]:
        try:
            response = await self._client.request(method, path, json=payload)
        except httpx.TimeoutException as exc:
            self.error = "The cart service did not respond in time"
            logger.warning("Cart request timed out", method=method, path=path)
            raise CartTimeoutError(self.error) from exc
        except httpx.TransportError as exc:
            self.error = "Could not reach the cart service"
            logger.warning("Cart request failed", method=method, path=path, error=str(exc))
            raise NetworkError(self.error) from exc

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.is_success:
            return body

        message = body.get("error") or f"Cart service responded with {response.status_code}"
        self.error = message
        logger.warning("Cart request rejected", method=method, path=path, status=response.status_code, error=message)

        if response.status_code == 400:
            raise ValidationError({body.get("field") or "_entity": [message]})
        if response.status_code == 404:
            raise ObjectNotFoundError({"_entity": message})
        if response.status_code == 409:
            raise RevisionConflictError(message, actual=body.get("revision"))
        raise ServerError(message, status_code=response.status_code)
