"""Domain events for the Cart aggregate."""

from protean.fields import Float, Identifier, Integer, String, Text

from wholesale.domain import wholesale


@wholesale.event(part_of="Cart")
class CartCreated:
    """A buyer's cart was created on first access."""

    __version__ = 1

    cart_id = Identifier(required=True)
    buyer_id = Identifier(required=True)


@wholesale.event(part_of="Cart")
class CartItemAdded:
    """A new line was appended to the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    kind = String(required=True)
    product_id = Identifier(required=True)
    supplier_id = Identifier(required=True)
    quantity = Integer(required=True)
    unit_price = Float(required=True)
    variation_key = String()


@wholesale.event(part_of="Cart")
class CartItemQuantityUpdated:
    """A line's quantity changed and its total was recomputed."""

    __version__ = 1

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)
    total_price = Float(required=True)


@wholesale.event(part_of="Cart")
class CartItemRemoved:
    """A line was removed from the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)


@wholesale.event(part_of="Cart")
class CartCleared:
    """All lines were removed from the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    items_removed = Integer(required=True)


@wholesale.event(part_of="Cart")
class CartCheckedOut:
    """The cart was handed to the order service and emptied."""

    __version__ = 1

    cart_id = Identifier(required=True)
    buyer_id = Identifier(required=True)
    order_numbers = Text(required=True)  # JSON array of created order numbers
    failed_suppliers = Text()  # JSON array of supplier ids whose sub-order failed
