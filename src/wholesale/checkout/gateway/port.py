"""Order-creation service port.

The wholesale engine does not create orders itself. It hands one request per
checkout to an external service, which may split it into per-supplier
sub-orders and may fail some suppliers independently.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class OrderRequest:
    buyer_id: str
    cart_id: str
    items: tuple[dict[str, Any], ...]
    shipping_address: dict[str, str]
    shipping_method: str
    payment_method: str
    totals: dict[str, Any]
    notes: str | None = None
    is_dropshipping: bool = False
    customer_address: dict[str, str] | None = None
    dropshipping_instructions: str | None = None
    currency: str = "PKR"

    def to_payload(self) -> dict[str, Any]:
        payload = {
            "buyerId": self.buyer_id,
            "cartId": self.cart_id,
            "items": list(self.items),
            "shippingAddress": self.shipping_address,
            "shippingMethod": self.shipping_method,
            "paymentMethod": self.payment_method,
            "notes": self.notes,
            "isDropshipping": self.is_dropshipping,
            "totals": self.totals,
            "currency": self.currency,
        }
        if self.is_dropshipping:
            payload["customerAddress"] = self.customer_address
            payload["dropshippingInstructions"] = self.dropshipping_instructions
        return payload


@dataclass(frozen=True)
class CreatedOrder:
    """One supplier's sub-order."""

    id: str
    order_number: str
    supplier_id: str
    supplier_name: str | None
    item_count: int
    total_amount: float
    status: str = "pending"
    estimated_delivery: str | None = None

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "orderNumber": self.order_number,
            "supplierId": self.supplier_id,
            "supplierName": self.supplier_name,
            "itemCount": self.item_count,
            "totalAmount": self.total_amount,
            "status": self.status,
            "estimatedDelivery": self.estimated_delivery,
        }

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "CreatedOrder":
        return cls(
            id=str(data.get("id") or data.get("_id")),
            order_number=data["orderNumber"],
            supplier_id=str(data.get("supplierId", "")),
            supplier_name=data.get("supplierName"),
            item_count=int(data.get("itemCount", 0)),
            total_amount=float(data.get("totalAmount", 0.0)),
            status=data.get("status", "pending"),
            estimated_delivery=data.get("estimatedDelivery"),
        )


@dataclass(frozen=True)
class OrderResult:
    orders: tuple[CreatedOrder, ...] = ()
    failed_suppliers: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_partial(self) -> bool:
        return bool(self.failed_suppliers)


class OrderService(ABC):
    """Abstract order-creation service."""

    @abstractmethod
    def create_orders(self, request: OrderRequest) -> OrderResult:
        """Submit a checkout. Raises ``OrderServiceError`` when no answer was obtained."""
        ...

    def close(self) -> None:
        """Release any connections held by the service."""
