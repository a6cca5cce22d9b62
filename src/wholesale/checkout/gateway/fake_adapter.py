"""In-process order service for development and testing.

Splits a checkout into one sub-order per supplier, the way the marketplace's
order service does, and can be told to fail chosen suppliers or to be
unreachable altogether.
"""

import random
import string
import time
from uuid import uuid4

from wholesale.checkout.gateway.port import CreatedOrder, OrderRequest, OrderResult, OrderService
from wholesale.errors import OrderServiceError

_BASE36 = string.digits + string.ascii_uppercase


def generate_order_number() -> str:
    """``WH-<epoch millis>-<9 random base36 characters>``."""
    suffix = "".join(random.choices(_BASE36, k=9))
    return f"WH-{int(time.time() * 1000)}-{suffix}"


class FakeOrderService(OrderService):
    def __init__(self) -> None:
        self.failing_suppliers: set[str] = set()
        self.unreachable: bool = False
        self.calls: list[OrderRequest] = []

    def configure(self, failing_suppliers=(), unreachable: bool = False) -> None:
        self.failing_suppliers = {str(s) for s in failing_suppliers}
        self.unreachable = unreachable

    def create_orders(self, request: OrderRequest) -> OrderResult:
        self.calls.append(request)
        if self.unreachable:
            raise OrderServiceError("Order service is unavailable")

        by_supplier: dict[str, list[dict]] = {}
        for item in request.items:
            by_supplier.setdefault(str(item["supplierId"]), []).append(item)

        orders = []
        failed = []
        for supplier_id, items in by_supplier.items():
            if supplier_id in self.failing_suppliers:
                failed.append(supplier_id)
                continue
            orders.append(
                CreatedOrder(
                    id=uuid4().hex,
                    order_number=generate_order_number(),
                    supplier_id=supplier_id,
                    supplier_name=items[0].get("supplierName"),
                    item_count=len(items),
                    total_amount=sum(i["unitPrice"] * i["quantity"] for i in items),
                    estimated_delivery="5-7 business days",
                )
            )

        return OrderResult(orders=tuple(orders), failed_suppliers=tuple(failed))
