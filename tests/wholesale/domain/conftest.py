"""Fixtures shared by the domain tests."""

import itertools

import pytest

from wholesale.cart.cart import LineItemKind
from wholesale.cart.lines import LineItem, NegotiatedDetails, RegularDetails
from wholesale.pricing.variation import VariationKey

_counter = itertools.count(1)


@pytest.fixture()
def regular_line():
    return make_regular_line


@pytest.fixture()
def bid_line():
    return make_bid_line


def make_regular_line(
    product_id="prod-001",
    supplier_id="sup-001",
    quantity=1,
    unit_price=100.0,
    total_price=None,
    original_price=None,
    price_tiers=(),
    variation=None,
):
    return LineItem(
        id=f"line-{next(_counter)}",
        kind=LineItemKind.REGULAR,
        product_id=product_id,
        product_name=f"Product {product_id}",
        supplier_id=supplier_id,
        supplier_name=f"Supplier {supplier_id}",
        quantity=quantity,
        unit_price=unit_price,
        total_price=unit_price * quantity if total_price is None else total_price,
        details=RegularDetails(variation=variation or VariationKey(), original_price=original_price),
        price_tiers=tuple(price_tiers),
    )


def make_bid_line(product_id="prod-bid", supplier_id="sup-001", quantity=100, unit_price=80.0, original_price=95.0):
    return LineItem(
        id=f"line-{next(_counter)}",
        kind=LineItemKind.BID,
        product_id=product_id,
        product_name="Custom order",
        supplier_id=supplier_id,
        supplier_name=None,
        quantity=quantity,
        unit_price=unit_price,
        total_price=unit_price * quantity,
        details=NegotiatedDetails(request_id="req-001", original_price=original_price),
        is_bulk_order=True,
    )
