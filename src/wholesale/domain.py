"""Wholesale bounded context: buyer carts, tiered pricing and checkout hand-off.

The cart is a state-stored aggregate (one per buyer). Pricing, grouping and
checkout totals are plain functions over the canonical line-item shape so the
server routes and the client-side CartStore share one implementation.
"""

import structlog
from protean.domain import Domain

from wholesale.utils.logging import configure_logging

configure_logging()

# Domain Composition Root
wholesale = Domain(name="wholesale")

logger = structlog.get_logger(__name__)
