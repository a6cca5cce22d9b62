"""Shared BDD fixtures and step definitions for the wholesale cart."""

import pytest
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then

from wholesale.cart.cart import Cart
from wholesale.cart.events import CartCleared, CartItemAdded, CartItemQuantityUpdated, CartItemRemoved
from wholesale.pricing.tiers import PriceTier

_CART_EVENT_CLASSES = {
    "CartItemAdded": CartItemAdded,
    "CartItemQuantityUpdated": CartItemQuantityUpdated,
    "CartItemRemoved": CartItemRemoved,
    "CartCleared": CartCleared,
}


def parse_schedule(text):
    """Read ``"1-49:110, 50+:95"`` into price tiers."""
    tiers = []
    for band in text.split(","):
        quantities, price = band.strip().split(":")
        if quantities.endswith("+"):
            min_qty, max_qty = int(quantities[:-1]), None
        else:
            low, high = quantities.split("-")
            min_qty, max_qty = int(low), int(high)
        tiers.append(PriceTier(min_qty=min_qty, max_qty=max_qty, price=float(price)))
    return tuple(tiers)


@pytest.fixture()
def tier_text():
    return parse_schedule


@pytest.fixture()
def error():
    """Container for captured validation errors."""
    return {"exc": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("a buyer cart", target_fixture="cart")
def buyer_cart():
    cart = Cart.create(buyer_id="buyer-001")
    cart._events.clear()
    return cart


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then("the cart action fails with a validation error")
def cart_action_fails(error):
    assert error["exc"] is not None, "Expected a validation error but none was raised"
    assert isinstance(error["exc"], ValidationError)


@then(parsers.cfparse("a {event_type} cart event is raised"))
def cart_event_raised(cart, event_type):
    event_cls = _CART_EVENT_CLASSES[event_type]
    assert any(
        isinstance(e, event_cls) for e in cart._events
    ), f"No {event_type} event found. Events: {[type(e).__name__ for e in cart._events]}"
