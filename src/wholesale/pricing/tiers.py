"""Quantity-based price schedules.

A schedule is a tuple of ``PriceTier`` ordered by ascending ``min_qty``. The
resolver picks the *highest satisfied* tier rather than the first match, and
lets the last tier absorb quantities beyond its ``max_qty``.
"""

import json
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from protean.exceptions import ValidationError


@dataclass(frozen=True)
class PriceTier:
    min_qty: int
    max_qty: int | None
    price: float

    def covers(self, quantity: int) -> bool:
        return quantity >= self.min_qty and (self.max_qty is None or quantity <= self.max_qty)

    def to_dict(self) -> dict[str, Any]:
        return {"minQty": self.min_qty, "maxQty": self.max_qty, "price": self.price}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PriceTier":
        min_qty = data.get("minQty", data.get("min_qty"))
        max_qty = data.get("maxQty", data.get("max_qty"))
        return cls(
            min_qty=int(min_qty),
            # 0 and null both mean "no upper bound"
            max_qty=int(max_qty) if max_qty else None,
            price=float(data["price"]),
        )


@dataclass(frozen=True)
class BulkDiscount:
    min_qty: int
    discount_percent: float

    def to_dict(self) -> dict[str, Any]:
        return {"minQty": self.min_qty, "discountPercent": self.discount_percent}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BulkDiscount":
        return cls(
            min_qty=int(data.get("minQty", data.get("min_qty"))),
            discount_percent=float(data.get("discountPercent", data.get("discount_percent"))),
        )


def _load(raw: Any) -> list:
    if not raw:
        return []
    if isinstance(raw, str):
        return json.loads(raw)
    return list(raw)


def parse_price_tiers(raw: Any) -> tuple[PriceTier, ...]:
    """Parse and validate a schedule given as JSON text, dicts or ``PriceTier`` objects."""
    tiers = tuple(t if isinstance(t, PriceTier) else PriceTier.from_dict(t) for t in _load(raw))

    for tier in tiers:
        if tier.min_qty < 1:
            raise ValidationError({"price_tiers": ["Tier minimum quantity must be at least 1"]})
        if tier.max_qty is not None and tier.max_qty < tier.min_qty:
            raise ValidationError({"price_tiers": [f"Tier {tier.min_qty}-{tier.max_qty} has an empty range"]})
        if tier.price < 0:
            raise ValidationError({"price_tiers": ["Tier price cannot be negative"]})

    if any(a.min_qty > b.min_qty for a, b in zip(tiers, tiers[1:])):
        raise ValidationError({"price_tiers": ["Tiers must be ordered by ascending minimum quantity"]})

    return tiers


def parse_bulk_discounts(raw: Any) -> tuple[BulkDiscount, ...]:
    discounts = tuple(d if isinstance(d, BulkDiscount) else BulkDiscount.from_dict(d) for d in _load(raw))
    for discount in discounts:
        if not 0 <= discount.discount_percent <= 100:
            raise ValidationError({"bulk_discount": ["Discount percent must be between 0 and 100"]})
    return discounts


def tiers_json(tiers: Sequence[PriceTier]) -> str:
    return json.dumps([t.to_dict() for t in tiers])


def bulk_discounts_json(discounts: Sequence[BulkDiscount]) -> str:
    return json.dumps([d.to_dict() for d in discounts])


def resolve_tier_index(tiers: Sequence[PriceTier], quantity: int) -> int | None:
    """Index of the tier that applies to ``quantity``, or None for an empty schedule.

    Defaults to the first tier, then walks the whole schedule so that a later
    matching tier overrides an earlier one. The last tier also qualifies once
    its minimum is reached even if ``quantity`` exceeds its ``max_qty``.
    """
    if not tiers:
        return None

    index = 0
    last = len(tiers) - 1
    for i, tier in enumerate(tiers):
        if quantity >= tier.min_qty:
            if tier.max_qty is None or quantity <= tier.max_qty:
                index = i
            elif i == last:
                index = i
    return index


def resolve_unit_price(tiers: Sequence[PriceTier], quantity: int, default: float | None = None) -> float:
    """Unit price for ``quantity``; ``default`` is used when there is no schedule."""
    index = resolve_tier_index(tiers, quantity)
    if index is None:
        if default is None:
            raise ValidationError({"price_tiers": ["No price tiers and no fallback price"]})
        return default
    return tiers[index].price


def bulk_discount_percent(schedule: Sequence[BulkDiscount], quantity: int) -> float:
    """Discount of the highest threshold ``quantity`` reaches, 0 when none."""
    reached = [d for d in schedule if quantity >= d.min_qty]
    if not reached:
        return 0.0
    return max(reached, key=lambda d: d.min_qty).discount_percent
