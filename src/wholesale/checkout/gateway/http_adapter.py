"""Order service reached over HTTP."""

import httpx
import structlog

from wholesale.checkout.gateway.port import CreatedOrder, OrderRequest, OrderResult, OrderService
from wholesale.errors import OrderServiceError

logger = structlog.get_logger(__name__)


class HttpOrderService(OrderService):
    def __init__(self, base_url: str, timeout: float = 15.0, transport: httpx.BaseTransport | None = None) -> None:
        self.client = httpx.Client(base_url=base_url, timeout=httpx.Timeout(timeout), transport=transport)

    def create_orders(self, request: OrderRequest) -> OrderResult:
        try:
            response = self.client.post("/orders", json=request.to_payload())
        except httpx.TransportError as exc:
            logger.error("Order service unreachable", cart_id=request.cart_id, error=str(exc))
            raise OrderServiceError(f"Order service unreachable: {exc}") from exc

        if response.status_code >= 400:
            logger.error("Order service rejected checkout", cart_id=request.cart_id, status=response.status_code)
            raise OrderServiceError(f"Order service responded with {response.status_code}")

        body = response.json()
        return OrderResult(
            orders=tuple(CreatedOrder.from_payload(o) for o in body.get("orders", [])),
            failed_suppliers=tuple(str(s) for s in body.get("failedSuppliers", [])),
        )

    def close(self) -> None:
        self.client.close()
