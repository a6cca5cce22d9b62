"""Cart aggregate: one per buyer, holding an ordered list of line items.

Lines are never merged. Each add appends a new line even when an identical
variation is already present, so repeated custom-order submissions stay
distinguishable. Every mutation bumps ``revision`` so callers can guard
writes with an expected revision instead of overwriting the whole document.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, Identifier, Integer, String, Text, ValueObject

from wholesale.cart.events import (
    CartCheckedOut,
    CartCleared,
    CartCreated,
    CartItemAdded,
    CartItemQuantityUpdated,
    CartItemRemoved,
)
from wholesale.domain import wholesale
from wholesale.errors import RevisionConflictError
from wholesale.pricing.tiers import (
    bulk_discount_percent,
    bulk_discounts_json,
    parse_bulk_discounts,
    parse_price_tiers,
    tiers_json,
)
from wholesale.pricing.variation import VariationKey


class LineItemKind(Enum):
    REGULAR = "regular"
    BID = "bid"


def line_total(unit_price, quantity):
    return unit_price * quantity


@wholesale.value_object(part_of="Cart")
class NegotiatedTerms:
    """Terms of a supplier's accepted bid on a buyer's custom request."""

    request_id = Identifier(required=True)
    original_price = Float(required=True, min_value=0.0)
    discount_percent = Float(default=0.0, min_value=0.0, max_value=100.0)


@wholesale.entity(part_of="Cart")
class CartItem:
    kind = String(choices=LineItemKind, default=LineItemKind.REGULAR.value)
    product_id = Identifier(required=True)
    product_name = String(required=True, max_length=255)
    product_image = String(max_length=1024)
    supplier_id = Identifier(required=True)
    supplier_name = String(max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    total_price = Float(required=True, min_value=0.0)
    original_price = Float(min_value=0.0)  # Catalogue compare-at price, regular lines only
    is_bulk_order = Boolean(default=False)
    min_order_quantity = Integer(min_value=1)
    max_order_quantity = Integer(min_value=1)
    price_tiers = Text()  # JSON snapshot of the product's tier schedule
    bulk_discounts = Text()  # JSON snapshot of {minQty, discountPercent}
    variant_id = Identifier()
    variant_name = String(max_length=255)
    color = String(max_length=100)
    size = String(max_length=100)
    material = String(max_length=100)
    style = String(max_length=100)
    variation_attributes = Text()  # JSON array of {name, value}
    negotiation = ValueObject(NegotiatedTerms)
    added_at = DateTime()

    @property
    def variation(self) -> VariationKey:
        return VariationKey.build(
            variant_id=self.variant_id,
            variant_name=self.variant_name,
            color=self.color,
            size=self.size,
            material=self.material,
            style=self.style,
            attributes=self.variation_attributes,
        )

    def tier_schedule(self):
        return parse_price_tiers(self.price_tiers)

    def bulk_discount_schedule(self):
        return parse_bulk_discounts(self.bulk_discounts)

    @property
    def bulk_discount_percent(self) -> float:
        return bulk_discount_percent(self.bulk_discount_schedule(), self.quantity)


@wholesale.aggregate
class Cart:
    buyer_id = Identifier(required=True, unique=True)
    items = HasMany(CartItem)
    revision = Integer(default=0)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def line_totals_match_quantities(self):
        for item in self.items or []:
            if item.total_price != line_total(item.unit_price, item.quantity):
                raise ValidationError({"total_price": [f"Line {item.id} total is out of date"]})

    @invariant.post
    def bid_lines_carry_negotiated_terms(self):
        for item in self.items or []:
            if item.kind == LineItemKind.BID.value and item.negotiation is None:
                raise ValidationError({"negotiation": ["Bid items must reference an accepted bid"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, buyer_id):
        now = datetime.now(UTC)
        cart = cls(buyer_id=buyer_id, revision=0, created_at=now, updated_at=now)
        cart.raise_(CartCreated(cart_id=str(cart.id), buyer_id=str(buyer_id)))
        return cart

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def check_revision(self, expected_revision):
        """Reject the write when the caller's view of the cart is stale."""
        if expected_revision is not None and expected_revision != self.revision:
            raise RevisionConflictError.mismatch(expected_revision, self.revision)

    def find_item(self, item_id):
        return next((i for i in self.items if str(i.id) == str(item_id)), None)

    @property
    def total_items(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def total_amount(self) -> float:
        return sum(item.total_price for item in self.items)

    def _touch(self):
        self.revision = (self.revision or 0) + 1
        self.updated_at = datetime.now(UTC)

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_item(
        self,
        kind,
        product_id,
        product_name,
        supplier_id,
        quantity,
        unit_price,
        supplier_name=None,
        product_image=None,
        original_price=None,
        is_bulk_order=False,
        min_order_quantity=None,
        max_order_quantity=None,
        price_tiers=(),
        bulk_discounts=(),
        variation=None,
        negotiation=None,
    ):
        """Append a new line and return it."""
        try:
            kind = LineItemKind(kind)
        except ValueError:
            raise ValidationError({"type": [f"Unknown item type '{kind}'"]})

        if quantity is None or quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})
        if unit_price is None or unit_price < 0:
            raise ValidationError({"unit_price": ["Unit price cannot be negative"]})

        variation = variation or VariationKey()
        fields = dict(
            kind=kind.value,
            product_id=product_id,
            product_name=product_name,
            product_image=product_image,
            supplier_id=supplier_id,
            supplier_name=supplier_name,
            quantity=quantity,
            unit_price=unit_price,
            total_price=line_total(unit_price, quantity),
            is_bulk_order=is_bulk_order,
            min_order_quantity=min_order_quantity,
            max_order_quantity=max_order_quantity,
            price_tiers=tiers_json(price_tiers),
            bulk_discounts=bulk_discounts_json(bulk_discounts),
            added_at=datetime.now(UTC),
        )

        if kind == LineItemKind.REGULAR:
            fields.update(
                original_price=original_price,
                variant_id=variation.variant_id,
                variant_name=variation.variant_name,
                color=variation.color,
                size=variation.size,
                material=variation.material,
                style=variation.style,
                variation_attributes=variation.attributes_json(),
            )
        elif kind == LineItemKind.BID:
            if negotiation is None:
                raise ValidationError({"request_id": ["Bid items must reference an accepted bid"]})
            fields.update(negotiation=negotiation, is_bulk_order=True)
        else:
            raise ValidationError({"type": [f"Unhandled item type '{kind.value}'"]})

        item = CartItem(**fields)
        self.add_items(item)
        self._touch()

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                item_id=str(item.id),
                kind=kind.value,
                product_id=str(product_id),
                supplier_id=str(supplier_id),
                quantity=quantity,
                unit_price=unit_price,
                variation_key=variation.key,
            )
        )
        return item

    def update_item_quantity(self, item_id, quantity):
        """Set a line's quantity. A quantity of zero or less removes the line."""
        item = self.find_item(item_id)
        if item is None:
            raise ObjectNotFoundError({"_entity": f"Cart item `{item_id}` does not exist"})

        if quantity <= 0:
            self.remove_item(item_id)
            return None

        if item.min_order_quantity and quantity < item.min_order_quantity:
            raise ValidationError({"quantity": [f"Minimum order quantity is {item.min_order_quantity}"]})
        if item.max_order_quantity and quantity > item.max_order_quantity:
            raise ValidationError({"quantity": [f"Maximum order quantity is {item.max_order_quantity}"]})

        previous_quantity = item.quantity
        with atomic_change(self):
            item.quantity = quantity
            item.total_price = line_total(item.unit_price, quantity)
            self._touch()

        self.raise_(
            CartItemQuantityUpdated(
                cart_id=str(self.id),
                item_id=str(item.id),
                previous_quantity=previous_quantity,
                new_quantity=quantity,
                total_price=item.total_price,
            )
        )
        return item

    def remove_item(self, item_id):
        """Remove a line. Returns False when the line was already gone."""
        item = self.find_item(item_id)
        if item is None:
            return False

        self.remove_items(item)
        self._touch()

        self.raise_(CartItemRemoved(cart_id=str(self.id), item_id=str(item_id)))
        return True

    def clear(self):
        removed = len(self.items)
        if removed:
            self.remove_items(list(self.items))
        self._touch()

        self.raise_(CartCleared(cart_id=str(self.id), items_removed=removed))
        return removed

    # -------------------------------------------------------------------
    # Checkout
    # -------------------------------------------------------------------
    def check_out(self, order_numbers, failed_suppliers=()):
        """Empty the cart after the order service has accepted the request."""
        if self.items:
            self.remove_items(list(self.items))
        self._touch()

        self.raise_(
            CartCheckedOut(
                cart_id=str(self.id),
                buyer_id=str(self.buyer_id),
                order_numbers=json.dumps(list(order_numbers)),
                failed_suppliers=json.dumps(list(failed_suppliers)),
            )
        )
