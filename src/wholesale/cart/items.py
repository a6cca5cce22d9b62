"""Cart line management: commands and handler.

Each command addresses a single line so concurrent writers touch only the
lines they name. An optional ``expected_revision`` rejects writes made
against a stale view of the cart.
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Boolean, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from wholesale.cart.cart import Cart, LineItemKind, NegotiatedTerms
from wholesale.catalogue import get_catalogue
from wholesale.domain import wholesale
from wholesale.pricing.variation import VariationKey

logger = structlog.get_logger(__name__)


@wholesale.command(part_of="Cart")
class AddCartItem:
    buyer_id = Identifier(required=True)
    item_type = String(choices=LineItemKind, default=LineItemKind.REGULAR.value)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    tier_price = Float()  # Price the buyer was quoted on the product page
    is_bulk_order = Boolean(default=False)
    variant_id = Identifier()
    variant_name = String(max_length=255)
    color = String(max_length=100)
    size = String(max_length=100)
    material = String(max_length=100)
    style = String(max_length=100)
    variation_attributes = Text()  # JSON array of {name, value}
    request_id = Identifier()
    original_price = Float()
    bid_price = Float()
    discount_percent = Float()
    expected_revision = Integer()


@wholesale.command(part_of="Cart")
class UpdateCartItemQuantity:
    buyer_id = Identifier(required=True)
    item_id = Identifier(required=True)
    quantity = Integer(required=True)
    expected_revision = Integer()


@wholesale.command(part_of="Cart")
class RemoveCartItem:
    buyer_id = Identifier(required=True)
    item_id = Identifier(required=True)
    expected_revision = Integer()


def _fetch_product(product_id):
    product = get_catalogue().get_product(str(product_id))
    if product is None:
        raise ObjectNotFoundError({"_entity": f"Product `{product_id}` does not exist"})
    return product


@wholesale.command_handler(part_of=Cart)
class ManageCartItemsHandler:
    @handle(AddCartItem)
    def add_cart_item(self, command):
        product = _fetch_product(command.product_id)

        repo = current_domain.repository_for(Cart)
        cart = repo.get_or_create(command.buyer_id)
        cart.check_revision(command.expected_revision)

        common = dict(
            product_id=product.id,
            product_name=product.title,
            product_image=product.primary_image,
            supplier_id=product.supplier_id,
            supplier_name=product.display_supplier_name,
            quantity=command.quantity,
            bulk_discounts=product.bulk_discounts,
        )

        if command.item_type == LineItemKind.BID.value:
            if command.request_id is None or command.original_price is None or command.bid_price is None:
                raise ValidationError({"request_id": ["Bid items require requestId, originalPrice and bidPrice"]})

            # The accepted bid fixes both the price and the quantity floor
            item = cart.add_item(
                kind=LineItemKind.BID.value,
                unit_price=command.bid_price,
                min_order_quantity=command.quantity,
                negotiation=NegotiatedTerms(
                    request_id=command.request_id,
                    original_price=command.original_price,
                    discount_percent=command.discount_percent or 0.0,
                ),
                **common,
            )
        else:
            variation = VariationKey.build(
                variant_id=command.variant_id,
                variant_name=command.variant_name,
                color=command.color,
                size=command.size,
                material=command.material,
                style=command.style,
                attributes=command.variation_attributes,
            )
            self._check_availability(product, variation, command.quantity)

            unit_price = command.tier_price
            if unit_price is None:
                unit_price = product.unit_price(variation, command.quantity)

            item = cart.add_item(
                kind=LineItemKind.REGULAR.value,
                unit_price=unit_price,
                original_price=product.compare_at_price,
                is_bulk_order=bool(command.is_bulk_order),
                min_order_quantity=product.min_order_quantity,
                max_order_quantity=product.max_order_quantity,
                price_tiers=product.price_tiers,
                variation=variation,
                **common,
            )

        repo.add(cart)

        logger.info(
            "Added cart item",
            cart_id=str(cart.id),
            item_id=str(item.id),
            kind=item.kind,
            product_id=str(item.product_id),
            quantity=item.quantity,
            unit_price=item.unit_price,
        )
        return str(item.id)

    @staticmethod
    def _check_availability(product, variation, quantity):
        if quantity is None or quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})
        if product.min_order_quantity and quantity < product.min_order_quantity:
            raise ValidationError({"quantity": [f"Minimum order quantity is {product.min_order_quantity}"]})
        if product.max_order_quantity and quantity > product.max_order_quantity:
            raise ValidationError({"quantity": [f"Maximum order quantity is {product.max_order_quantity}"]})

        stock = product.available_stock(variation)
        if stock is not None and quantity > stock:
            raise ValidationError({"quantity": [f"Only {stock} pieces available"]})

    @handle(UpdateCartItemQuantity)
    def update_cart_item_quantity(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.get_or_create(command.buyer_id)
        cart.check_revision(command.expected_revision)

        item = cart.update_item_quantity(item_id=command.item_id, quantity=command.quantity)
        repo.add(cart)

        if item is None:
            logger.info("Removed cart item via zero quantity", cart_id=str(cart.id), item_id=str(command.item_id))
        else:
            logger.info(
                "Updated cart item quantity",
                cart_id=str(cart.id),
                item_id=str(item.id),
                quantity=item.quantity,
                total_price=item.total_price,
            )

    @handle(RemoveCartItem)
    def remove_cart_item(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.get_or_create(command.buyer_id)
        cart.check_revision(command.expected_revision)

        if cart.remove_item(command.item_id):
            repo.add(cart)
            logger.info("Removed cart item", cart_id=str(cart.id), item_id=str(command.item_id))
        else:
            logger.info("Cart item already absent", cart_id=str(cart.id), item_id=str(command.item_id))
