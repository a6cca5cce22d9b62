"""Turns a validated cart into an order-creation request.

Once the order service answers, the cart is emptied even if some supplier
sub-orders failed. That gap is surfaced as a ``ConsistencyWarning`` and a log
entry instead of being hidden.
"""

import warnings
from dataclasses import dataclass

import structlog
from protean.exceptions import ValidationError

from wholesale.cart.cart import LineItemKind
from wholesale.cart.lines import LineItem
from wholesale.checkout.calculator import CheckoutTotals, PricingProfile, calculate_totals, reprice_lines
from wholesale.checkout.gateway import get_order_service
from wholesale.checkout.gateway.port import CreatedOrder, OrderRequest, OrderService
from wholesale.checkout.validation import CheckoutDetails, validate_checkout_details
from wholesale.config import Settings, get_settings
from wholesale.errors import ConsistencyWarning

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CheckoutOutcome:
    orders: tuple[CreatedOrder, ...]
    failed_suppliers: tuple[str, ...]
    totals: CheckoutTotals

    def to_payload(self) -> dict:
        return {
            "orders": [order.to_payload() for order in self.orders],
            "failedSuppliers": list(self.failed_suppliers),
            "totals": self.totals.to_payload(),
        }


def _order_line(line: LineItem) -> dict:
    payload = line.to_payload()
    if line.kind == LineItemKind.BID:
        payload["specifications"] = "From accepted bid"
    return payload


class OrderMaterializer:
    def __init__(self, order_service: OrderService | None = None, settings: Settings | None = None) -> None:
        self.order_service = order_service or get_order_service()
        self.settings = settings or get_settings()

    def build_request(
        self, cart, lines: list[LineItem], details: CheckoutDetails, totals: CheckoutTotals
    ) -> OrderRequest:
        dropshipping = bool(details.is_dropshipping)
        return OrderRequest(
            buyer_id=str(cart.buyer_id),
            cart_id=str(cart.id),
            items=tuple(_order_line(line) for line in lines),
            shipping_address=details.shipping_address.to_payload(),
            shipping_method=details.shipping_method,
            payment_method=details.payment_method,
            totals=totals.to_payload(),
            notes=details.notes,
            is_dropshipping=dropshipping,
            customer_address=details.customer_address.to_payload() if dropshipping else None,
            dropshipping_instructions=details.dropshipping_instructions if dropshipping else None,
            currency=self.settings.currency,
        )

    def materialize(self, cart, details: CheckoutDetails) -> CheckoutOutcome:
        """Validate, submit and empty the cart. The caller persists ``cart``."""
        validate_checkout_details(details, self.settings.payment_methods)
        if not cart.items:
            raise ValidationError({"cart": ["Cart is empty"]})

        profile = PricingProfile.checkout(self.settings)
        lines = [LineItem.from_entity(item) for item in cart.items]
        totals = calculate_totals(lines, profile)
        # Order lines carry the prices the totals were computed from
        request = self.build_request(cart, reprice_lines(lines, profile), details, totals)

        result = self.order_service.create_orders(request)

        cart.check_out(
            order_numbers=[order.order_number for order in result.orders],
            failed_suppliers=result.failed_suppliers,
        )

        if result.is_partial:
            logger.warning(
                "Cart cleared despite failed supplier orders",
                cart_id=str(cart.id),
                failed_suppliers=list(result.failed_suppliers),
                orders_created=len(result.orders),
            )
            warnings.warn(
                f"Cart {cart.id} was cleared but orders failed for suppliers: {', '.join(result.failed_suppliers)}",
                ConsistencyWarning,
                stacklevel=2,
            )
        else:
            logger.info("Checkout completed", cart_id=str(cart.id), orders_created=len(result.orders))

        return CheckoutOutcome(orders=result.orders, failed_suppliers=result.failed_suppliers, totals=totals)
