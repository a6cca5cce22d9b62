"""Display grouping of cart lines.

Lines sharing (product, supplier) form one visual group regardless of their
variation. Group totals sum each line's committed ``total_price``; nothing is
re-derived from unit prices here, so per-line rounding survives.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from wholesale.cart.lines import LineItem
from wholesale.pricing.variation import VariationKey, is_meaningful

STANDARD_PRODUCT = "Standard Product"


@dataclass(frozen=True)
class CartGroup:
    product_id: str
    supplier_id: str
    product_name: str
    supplier_name: str | None
    product_image: str | None
    items: tuple[LineItem, ...]

    @property
    def key(self) -> tuple[str, str]:
        return (self.product_id, self.supplier_id)

    @property
    def total_quantity(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def total_price(self) -> float:
        return sum(item.total_price for item in self.items)

    def to_payload(self) -> dict[str, Any]:
        return {
            "productId": self.product_id,
            "supplierId": self.supplier_id,
            "productName": self.product_name,
            "supplierName": self.supplier_name,
            "productImage": self.product_image,
            "totalQuantity": self.total_quantity,
            "totalPrice": self.total_price,
            "items": [dict(item.to_payload(), variationDisplay=variation_display(item)) for item in self.items],
        }


def describe_variation(variation: VariationKey) -> str:
    """Human label for a variation.

    Explicit fields come first, then the generic attribute list, then the
    variant name; "default" values are never shown.
    """
    explicit = [f"{name.capitalize()}: {value}" for name, value in variation.explicit_values()]
    if explicit:
        return ", ".join(explicit)

    attributes = [f"{a.name}: {a.value}" for a in variation.attributes if is_meaningful(a.value)]
    if attributes:
        return ", ".join(attributes)

    if variation.variant_name:
        return variation.variant_name
    return STANDARD_PRODUCT


def variation_display(line: LineItem) -> str:
    return describe_variation(line.variation)


def group_line_items(lines: Iterable[LineItem]) -> list[CartGroup]:
    """Group lines by (product, supplier), keeping first-seen order."""
    buckets: dict[tuple[str, str], list[LineItem]] = {}
    for line in lines:
        buckets.setdefault((line.product_id, line.supplier_id), []).append(line)

    groups = []
    for (product_id, supplier_id), members in buckets.items():
        first = members[0]
        groups.append(
            CartGroup(
                product_id=product_id,
                supplier_id=supplier_id,
                product_name=first.product_name,
                supplier_name=first.supplier_name,
                product_image=first.product_image,
                items=tuple(members),
            )
        )
    return groups
