"""Wholesale cart API package."""

from wholesale.api.errors import register_exception_handlers
from wholesale.api.routes import cart_router, checkout_router

__all__ = ["cart_router", "checkout_router", "register_exception_handlers"]
