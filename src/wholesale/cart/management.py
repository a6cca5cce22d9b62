"""Cart lookup and lifecycle: the per-buyer repository and clearing."""

import structlog
from protean import handle
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from wholesale.cart.cart import Cart
from wholesale.domain import wholesale

logger = structlog.get_logger(__name__)


@wholesale.repository(part_of=Cart)
class CartRepository:
    """Carts are addressed by buyer, never by cart id, at the API boundary."""

    def for_buyer(self, buyer_id) -> Cart | None:
        return self._dao.query.filter(buyer_id=str(buyer_id)).all().first

    def get_or_create(self, buyer_id) -> Cart:
        """Return the buyer's cart, creating and persisting an empty one on first access."""
        cart = self.for_buyer(buyer_id)
        if cart is None:
            cart = Cart.create(buyer_id=str(buyer_id))
            self.add(cart)
            logger.info("Created cart", cart_id=str(cart.id), buyer_id=str(buyer_id))
        return cart


@wholesale.command(part_of="Cart")
class ClearCart:
    """Remove every line from the buyer's cart."""

    buyer_id = Identifier(required=True)
    expected_revision = Integer()


@wholesale.command_handler(part_of=Cart)
class ManageCartHandler:
    @handle(ClearCart)
    def clear_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.get_or_create(command.buyer_id)
        cart.check_revision(command.expected_revision)

        removed = cart.clear()
        repo.add(cart)

        logger.info("Cleared cart", cart_id=str(cart.id), items_removed=removed)
        return removed
