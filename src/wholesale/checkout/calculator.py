"""Checkout totals.

Two pricing flows exist side by side and neither is a default:

* ``cart_preview``: stored unit prices, promo codes, no tax.
* ``checkout``: unit prices re-resolved from each line's tier schedule against
  the total quantity of its (product, supplier) group, with tax and no promo.

Both are built from ``Settings`` so thresholds and fees stay configuration.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

import structlog
from protean.exceptions import ValidationError

from wholesale.cart.aggregation import group_line_items
from wholesale.cart.cart import LineItemKind, line_total
from wholesale.cart.lines import LineItem, unknown_kind
from wholesale.config import Settings, get_settings
from wholesale.pricing.tiers import resolve_unit_price

logger = structlog.get_logger(__name__)


class PricingBasis(Enum):
    STORED = "stored"
    TIERED = "tiered"


def round_money(amount: float) -> float:
    return round(amount + 0.0, 2)


@dataclass(frozen=True)
class PricingProfile:
    name: str
    free_shipping_threshold: float
    shipping_fee: float
    tax_rate: float | None = None
    supports_promo: bool = False
    basis: PricingBasis = PricingBasis.STORED

    @classmethod
    def cart_preview(cls, settings: Settings | None = None) -> "PricingProfile":
        settings = settings or get_settings()
        return cls(
            name="cart_preview",
            free_shipping_threshold=settings.cart_preview_free_shipping_threshold,
            shipping_fee=settings.cart_preview_shipping_fee,
            supports_promo=True,
            basis=PricingBasis.STORED,
        )

    @classmethod
    def checkout(cls, settings: Settings | None = None) -> "PricingProfile":
        settings = settings or get_settings()
        return cls(
            name="checkout",
            free_shipping_threshold=settings.checkout_free_shipping_threshold,
            shipping_fee=settings.checkout_shipping_fee,
            tax_rate=settings.checkout_tax_rate,
            basis=PricingBasis.TIERED,
        )

    def shipping_for(self, subtotal: float, has_items: bool = True) -> float:
        """Free strictly above the threshold; an empty cart ships nothing."""
        if not has_items or subtotal > self.free_shipping_threshold:
            return 0.0
        return self.shipping_fee


@dataclass(frozen=True)
class CheckoutTotals:
    profile: str
    subtotal: float
    savings: float
    shipping: float
    promo_discount: float
    tax: float
    total: float
    promo_code: str | None = None
    promo_percent: float = 0.0

    def to_payload(self) -> dict[str, Any]:
        return {
            "profile": self.profile,
            "subtotal": self.subtotal,
            "savings": self.savings,
            "shipping": self.shipping,
            "promoCode": self.promo_code,
            "promoPercent": self.promo_percent,
            "promoDiscount": self.promo_discount,
            "tax": self.tax,
            "total": self.total,
        }


def resolve_promo_percent(code: str | None, table: Mapping[str, float] | None = None) -> float:
    """Percent off for a promo code, matched case-insensitively. Blank means none."""
    if not code or not code.strip():
        return 0.0
    table = get_settings().promo_codes if table is None else table
    percent = {k.upper(): v for k, v in table.items()}.get(code.strip().upper())
    if percent is None:
        raise ValidationError({"promo_code": ["Invalid promo code"]})
    return float(percent)


def effective_unit_price(line: LineItem, group_quantity: int, basis: PricingBasis) -> float:
    if basis == PricingBasis.STORED:
        return line.unit_price

    if line.kind == LineItemKind.BID:
        # Negotiated prices are fixed by the accepted bid
        return line.unit_price
    if line.kind == LineItemKind.REGULAR:
        return resolve_unit_price(line.price_tiers, group_quantity, default=line.unit_price)
    raise unknown_kind(line.kind)


def reprice_lines(lines: Iterable[LineItem], profile: PricingProfile) -> list[LineItem]:
    """Lines carrying the unit and total price ``profile`` charges, in their original order.

    Totals and the order request are both built from this, so the lines sent
    to the order service always add up to the computed subtotal.
    """
    lines = list(lines)
    group_quantities = {group.key: group.total_quantity for group in group_line_items(lines)}

    priced = []
    for line in lines:
        price = effective_unit_price(line, group_quantities[(line.product_id, line.supplier_id)], profile.basis)
        priced.append(replace(line, unit_price=price, total_price=line_total(price, line.quantity)))
    return priced


def calculate_totals(
    lines: Iterable[LineItem],
    profile: PricingProfile,
    promo_code: str | None = None,
    promo_table: Mapping[str, float] | None = None,
) -> CheckoutTotals:
    lines = reprice_lines(lines, profile)

    subtotal = 0.0
    savings = 0.0
    for line in lines:
        subtotal += line_total(line.unit_price, line.quantity)

        reference = line.reference_price
        if reference is not None and reference > line.unit_price:
            savings += (reference - line.unit_price) * line.quantity

    promo_percent = 0.0
    if profile.supports_promo:
        promo_percent = resolve_promo_percent(promo_code, promo_table)
    elif promo_code:
        logger.info("Promo code ignored by pricing profile", profile=profile.name, promo_code=promo_code)

    shipping = profile.shipping_for(subtotal, has_items=bool(lines))
    promo_discount = subtotal * promo_percent / 100
    tax = subtotal * profile.tax_rate if profile.tax_rate else 0.0

    return CheckoutTotals(
        profile=profile.name,
        subtotal=round_money(subtotal),
        savings=round_money(savings),
        shipping=round_money(shipping),
        promo_discount=round_money(promo_discount),
        tax=round_money(tax),
        total=round_money(subtotal + shipping + tax - promo_discount),
        promo_code=promo_code.strip().upper() if promo_percent else None,
        promo_percent=promo_percent,
    )
