"""Order service factory.

Provides get_order_service() / set_order_service() to swap implementations:
- FakeOrderService for development and testing
- HttpOrderService when ``WHOLESALE_ORDER_SERVICE_URL`` is configured
"""

from wholesale.checkout.gateway.fake_adapter import FakeOrderService
from wholesale.checkout.gateway.http_adapter import HttpOrderService
from wholesale.checkout.gateway.port import OrderService
from wholesale.config import get_settings

_current_service: OrderService | None = None


def get_order_service() -> OrderService:
    """Return the current order service, building one from settings on first use."""
    global _current_service
    if _current_service is None:
        settings = get_settings()
        if settings.order_service_url:
            _current_service = HttpOrderService(
                settings.order_service_url,
                timeout=settings.order_service_timeout_seconds,
            )
        else:
            _current_service = FakeOrderService()
    return _current_service


def set_order_service(service: OrderService) -> None:
    """Override the active order service (useful for tests)."""
    global _current_service
    _current_service = service


def reset_order_service() -> None:
    """Close the active order service and forget it."""
    global _current_service
    if _current_service is not None:
        _current_service.close()
    _current_service = None
