"""Order placement: command and handler for checking out a buyer's cart."""

import json

from protean import handle
from protean.fields import Boolean, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from wholesale.cart.cart import Cart
from wholesale.checkout.materializer import OrderMaterializer
from wholesale.checkout.validation import CheckoutDetails, ContactAddress
from wholesale.domain import wholesale


@wholesale.command(part_of="Cart")
class PlaceOrder:
    buyer_id = Identifier(required=True)
    shipping_address = Text(required=True)  # JSON address
    shipping_method = String(max_length=50, default="standard")
    payment_method = String(max_length=50)
    terms_accepted = Boolean(default=False)
    notes = Text()
    is_dropshipping = Boolean(default=False)
    customer_address = Text()  # JSON address, dropshipping only
    dropshipping_instructions = Text()
    expected_revision = Integer()


def _address(raw):
    if not raw:
        return None
    return ContactAddress.from_payload(json.loads(raw) if isinstance(raw, str) else raw)


@wholesale.command_handler(part_of=Cart)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        details = CheckoutDetails(
            shipping_address=_address(command.shipping_address) or ContactAddress(),
            payment_method=command.payment_method,
            terms_accepted=bool(command.terms_accepted),
            shipping_method=command.shipping_method,
            notes=command.notes,
            is_dropshipping=bool(command.is_dropshipping),
            customer_address=_address(command.customer_address),
            dropshipping_instructions=command.dropshipping_instructions,
        )

        repo = current_domain.repository_for(Cart)
        cart = repo.get_or_create(command.buyer_id)
        cart.check_revision(command.expected_revision)

        outcome = OrderMaterializer().materialize(cart, details)
        repo.add(cart)
        return outcome
