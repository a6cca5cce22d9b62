"""Canonical line-item shape shared by the API, the aggregator and the client.

``LineItem`` is a tagged value: ``kind`` selects exactly one details payload,
``RegularDetails`` for catalogue lines or ``NegotiatedDetails`` for accepted
bids. Alternate field names seen in older payloads (``price``, ``name``,
``total``, ``_id``...) are folded into this shape in ``from_payload`` and
nowhere else.
"""

from dataclasses import dataclass, field
from typing import Any

from protean.exceptions import ValidationError

from wholesale.cart.cart import LineItemKind
from wholesale.pricing.tiers import (
    BulkDiscount,
    PriceTier,
    bulk_discount_percent,
    parse_bulk_discounts,
    parse_price_tiers,
)
from wholesale.pricing.variation import VariationKey


@dataclass(frozen=True)
class RegularDetails:
    variation: VariationKey = field(default_factory=VariationKey)
    original_price: float | None = None


@dataclass(frozen=True)
class NegotiatedDetails:
    request_id: str
    original_price: float
    discount_percent: float = 0.0


def unknown_kind(kind) -> ValidationError:
    return ValidationError({"type": [f"Unknown item type '{kind}'"]})


@dataclass(frozen=True)
class LineItem:
    id: str
    kind: LineItemKind
    product_id: str
    product_name: str
    supplier_id: str
    supplier_name: str | None
    quantity: int
    unit_price: float
    total_price: float
    details: RegularDetails | NegotiatedDetails
    product_image: str | None = None
    added_at: str | None = None
    is_bulk_order: bool = False
    min_order_quantity: int | None = None
    max_order_quantity: int | None = None
    price_tiers: tuple[PriceTier, ...] = ()
    bulk_discounts: tuple[BulkDiscount, ...] = ()

    def __post_init__(self):
        expected = {LineItemKind.REGULAR: RegularDetails, LineItemKind.BID: NegotiatedDetails}.get(self.kind)
        if expected is None:
            raise unknown_kind(self.kind)
        if not isinstance(self.details, expected):
            raise ValidationError({"type": [f"A {self.kind.value} item cannot carry {type(self.details).__name__}"]})

    @property
    def variation(self) -> VariationKey:
        if self.kind == LineItemKind.REGULAR:
            return self.details.variation
        if self.kind == LineItemKind.BID:
            return VariationKey()
        raise unknown_kind(self.kind)

    @property
    def reference_price(self) -> float | None:
        """The price this line is compared against when computing savings."""
        if self.kind in (LineItemKind.REGULAR, LineItemKind.BID):
            return self.details.original_price
        raise unknown_kind(self.kind)

    @property
    def bulk_discount_percent(self) -> float:
        return bulk_discount_percent(self.bulk_discounts, self.quantity)

    # -------------------------------------------------------------------
    # Conversions
    # -------------------------------------------------------------------
    @classmethod
    def from_entity(cls, item) -> "LineItem":
        """Build from a persisted ``CartItem`` entity."""
        kind = LineItemKind(item.kind)
        if kind == LineItemKind.REGULAR:
            details = RegularDetails(variation=item.variation, original_price=item.original_price)
        elif kind == LineItemKind.BID:
            details = NegotiatedDetails(
                request_id=str(item.negotiation.request_id),
                original_price=item.negotiation.original_price,
                discount_percent=item.negotiation.discount_percent or 0.0,
            )
        else:
            raise unknown_kind(kind)

        return cls(
            id=str(item.id),
            kind=kind,
            product_id=str(item.product_id),
            product_name=item.product_name,
            supplier_id=str(item.supplier_id),
            supplier_name=item.supplier_name,
            quantity=item.quantity,
            unit_price=item.unit_price,
            total_price=item.total_price,
            details=details,
            product_image=item.product_image,
            added_at=item.added_at.isoformat() if item.added_at else None,
            is_bulk_order=bool(item.is_bulk_order),
            min_order_quantity=item.min_order_quantity,
            max_order_quantity=item.max_order_quantity,
            price_tiers=item.tier_schedule(),
            bulk_discounts=item.bulk_discount_schedule(),
        )

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "LineItem":
        """Build from a JSON payload, accepting the legacy field names."""
        raw_kind = data.get("type", data.get("kind")) or LineItemKind.REGULAR.value
        try:
            kind = LineItemKind(raw_kind)
        except ValueError:
            raise unknown_kind(raw_kind)

        supplier = data.get("supplier")
        supplier_id = data.get("supplierId")
        supplier_name = data.get("supplierName")
        if isinstance(supplier, dict):
            supplier_id = supplier_id or _identifier(supplier)
            supplier_name = supplier_name or supplier.get("name")
        elif supplier:
            supplier_name = supplier_name or supplier

        quantity = int(_first(data, "quantity"))
        unit_price = float(_first(data, "unitPrice", "price"))
        total_price = _first(data, "totalPrice", "total", default=None)
        original_price = data.get("originalPrice")

        if kind == LineItemKind.REGULAR:
            details = RegularDetails(
                variation=VariationKey.build(
                    variant_id=data.get("variantId"),
                    variant_name=data.get("variantName"),
                    color=data.get("color"),
                    size=data.get("size"),
                    material=data.get("material"),
                    style=data.get("style"),
                    attributes=data.get("variationAttributes"),
                ),
                original_price=float(original_price) if original_price is not None else None,
            )
        elif kind == LineItemKind.BID:
            details = NegotiatedDetails(
                request_id=str(_first(data, "requestId")),
                original_price=float(_first(data, "originalPrice")),
                discount_percent=float(data.get("discountPercent") or 0.0),
            )
        else:
            raise unknown_kind(kind)

        product = data.get("productId", data.get("product"))
        return cls(
            id=str(_identifier(data)),
            kind=kind,
            product_id=str(_identifier(product) if isinstance(product, dict) else product),
            product_name=_first(data, "productName", "name", default=""),
            supplier_id=str(supplier_id) if supplier_id is not None else "",
            supplier_name=supplier_name,
            quantity=quantity,
            unit_price=unit_price,
            total_price=float(total_price) if total_price is not None else unit_price * quantity,
            details=details,
            product_image=_first(data, "productImage", "image", default=None),
            added_at=data.get("addedAt"),
            is_bulk_order=bool(data.get("isBulkOrder", False)),
            min_order_quantity=data.get("minOrderQuantity"),
            max_order_quantity=data.get("maxOrderQuantity"),
            price_tiers=parse_price_tiers(data.get("priceTiers")),
            bulk_discounts=parse_bulk_discounts(data.get("bulkDiscounts", data.get("bulkDiscount"))),
        )

    def to_payload(self) -> dict[str, Any]:
        payload = {
            "id": self.id,
            "type": self.kind.value,
            "productId": self.product_id,
            "productName": self.product_name,
            "productImage": self.product_image,
            "supplierId": self.supplier_id,
            "supplierName": self.supplier_name,
            "quantity": self.quantity,
            "unitPrice": self.unit_price,
            "totalPrice": self.total_price,
            "addedAt": self.added_at,
            "isBulkOrder": self.is_bulk_order,
            "minOrderQuantity": self.min_order_quantity,
            "maxOrderQuantity": self.max_order_quantity,
            "priceTiers": [t.to_dict() for t in self.price_tiers],
            "bulkDiscounts": [d.to_dict() for d in self.bulk_discounts],
            "bulkDiscountPercent": self.bulk_discount_percent,
        }

        if self.kind == LineItemKind.REGULAR:
            variation = self.details.variation
            payload.update(
                variantId=variation.variant_id,
                variantName=variation.variant_name,
                color=variation.color,
                size=variation.size,
                material=variation.material,
                style=variation.style,
                variationAttributes=[a.to_dict() for a in variation.attributes],
                originalPrice=self.details.original_price,
            )
        elif self.kind == LineItemKind.BID:
            payload.update(
                requestId=self.details.request_id,
                originalPrice=self.details.original_price,
                discountPercent=self.details.discount_percent,
            )
        else:
            raise unknown_kind(self.kind)

        return payload


_MISSING = object()


def _first(data: dict[str, Any], *names: str, default: Any = _MISSING) -> Any:
    for name in names:
        if data.get(name) is not None:
            return data[name]
    if default is _MISSING:
        raise ValidationError({names[0]: [f"Line item is missing '{names[0]}'"]})
    return default


def _identifier(data: dict[str, Any]) -> Any:
    return _first(data, "id", "_id")
