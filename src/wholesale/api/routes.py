"""FastAPI routes for the buyer's cart and checkout.

The buyer is identified by the ``X-Buyer-Id`` header set by the upstream
auth layer. Every mutation answers with a freshly read cart snapshot.
"""

import json
from typing import Annotated, Literal

from fastapi import APIRouter, Header, Query
from protean.utils.globals import current_domain

from wholesale.api.schemas import (
    AddItemRequest,
    CartGroupsResponse,
    CartResponse,
    CheckoutRequest,
    CheckoutResponse,
    ClearCartRequest,
    RemoveItemRequest,
    UpdateItemRequest,
)
from wholesale.cart.aggregation import group_line_items
from wholesale.cart.cart import Cart
from wholesale.cart.items import AddCartItem, RemoveCartItem, UpdateCartItemQuantity
from wholesale.cart.lines import LineItem
from wholesale.cart.management import ClearCart
from wholesale.checkout.calculator import PricingProfile, calculate_totals, round_money
from wholesale.checkout.placement import PlaceOrder

BuyerId = Annotated[str, Header(alias="X-Buyer-Id")]


def _cart_for(buyer_id: str) -> Cart:
    return current_domain.repository_for(Cart).get_or_create(buyer_id)


def _lines(cart: Cart) -> list[LineItem]:
    return [LineItem.from_entity(item) for item in cart.items]


def _snapshot(cart: Cart) -> dict:
    return {
        "id": str(cart.id),
        "buyerId": str(cart.buyer_id),
        "items": [line.to_payload() for line in _lines(cart)],
        "totalItems": cart.total_items,
        "totalAmount": round_money(cart.total_amount),
        "revision": cart.revision,
    }


def _respond(buyer_id: str) -> CartResponse:
    return CartResponse(data=_snapshot(_cart_for(buyer_id)))


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(tags=["cart"])


@cart_router.get("/cart", response_model=CartResponse)
async def get_cart(buyer_id: BuyerId) -> CartResponse:
    return _respond(buyer_id)


@cart_router.post("/cart", response_model=CartResponse)
async def add_item(buyer_id: BuyerId, body: AddItemRequest) -> CartResponse:
    command = AddCartItem(
        buyer_id=buyer_id,
        item_type=body.type,
        product_id=body.product_id,
        quantity=body.quantity,
        tier_price=body.tier_price,
        is_bulk_order=body.is_bulk_order,
        variant_id=body.variant_id,
        variant_name=body.variant_name,
        color=body.color,
        size=body.size,
        material=body.material,
        style=body.style,
        variation_attributes=(
            json.dumps([a.model_dump() for a in body.variation_attributes]) if body.variation_attributes else None
        ),
        request_id=body.request_id,
        original_price=body.original_price,
        bid_price=body.bid_price,
        discount_percent=body.discount_percent,
        expected_revision=body.expected_revision,
    )
    current_domain.process(command, asynchronous=False)
    return _respond(buyer_id)


@cart_router.patch("/cart", response_model=CartResponse)
async def update_item(buyer_id: BuyerId, body: UpdateItemRequest) -> CartResponse:
    command = UpdateCartItemQuantity(
        buyer_id=buyer_id,
        item_id=body.item_id,
        quantity=body.quantity,
        expected_revision=body.expected_revision,
    )
    current_domain.process(command, asynchronous=False)
    return _respond(buyer_id)


@cart_router.delete("/cart", response_model=CartResponse)
async def remove_item(buyer_id: BuyerId, body: RemoveItemRequest) -> CartResponse:
    command = RemoveCartItem(
        buyer_id=buyer_id,
        item_id=body.item_id,
        expected_revision=body.expected_revision,
    )
    current_domain.process(command, asynchronous=False)
    return _respond(buyer_id)


@cart_router.post("/cart/clear", response_model=CartResponse)
async def clear_cart(buyer_id: BuyerId, body: ClearCartRequest | None = None) -> CartResponse:
    command = ClearCart(
        buyer_id=buyer_id,
        expected_revision=body.expected_revision if body else None,
    )
    current_domain.process(command, asynchronous=False)
    return _respond(buyer_id)


@cart_router.get("/cart/summary", response_model=CartResponse)
async def cart_summary(
    buyer_id: BuyerId,
    promo_code: str | None = Query(default=None, alias="promoCode"),
    profile: Literal["cart_preview", "checkout"] = "cart_preview",
) -> CartResponse:
    pricing = PricingProfile.cart_preview() if profile == "cart_preview" else PricingProfile.checkout()
    totals = calculate_totals(_lines(_cart_for(buyer_id)), pricing, promo_code=promo_code)
    return CartResponse(data=totals.to_payload())


@cart_router.get("/cart/groups", response_model=CartGroupsResponse)
async def cart_groups(buyer_id: BuyerId) -> CartGroupsResponse:
    groups = group_line_items(_lines(_cart_for(buyer_id)))
    return CartGroupsResponse(data=[group.to_payload() for group in groups])


# ---------------------------------------------------------------------------
# Checkout Router
# ---------------------------------------------------------------------------
checkout_router = APIRouter(tags=["checkout"])


# Plain def: the order service call blocks, so FastAPI runs this in its threadpool
@checkout_router.post("/checkout", status_code=201, response_model=CheckoutResponse)
def checkout(buyer_id: BuyerId, body: CheckoutRequest) -> CheckoutResponse:
    command = PlaceOrder(
        buyer_id=buyer_id,
        shipping_address=json.dumps(body.shipping_address.model_dump()),
        shipping_method=body.shipping_method,
        payment_method=body.payment_method,
        terms_accepted=body.terms_accepted,
        notes=body.notes,
        is_dropshipping=body.is_dropshipping,
        customer_address=json.dumps(body.customer_address.model_dump()) if body.customer_address else None,
        dropshipping_instructions=body.dropshipping_instructions,
        expected_revision=body.expected_revision,
    )
    outcome = current_domain.process(command, asynchronous=False)
    payload = outcome.to_payload()
    return CheckoutResponse(orders=payload["orders"], failed_suppliers=payload["failedSuppliers"], totals=payload["totals"])
