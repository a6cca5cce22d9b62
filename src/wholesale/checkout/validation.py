"""Checkout preconditions.

Checks run in a fixed order and stop at the first failure, so the error
always names one field: shipping address, shipping and payment method, terms,
then the dropshipping customer address.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from protean.exceptions import ValidationError

SHIPPING_ADDRESS_FIELDS = ("name", "email", "phone", "street", "city", "state", "postal_code")
CUSTOMER_ADDRESS_FIELDS = ("name", "phone", "street", "city", "state", "postal_code")


def _label(field_name: str) -> str:
    return field_name.replace("_", " ").capitalize()


def _normalized(value: str | None) -> str:
    return " ".join((value or "").split()).casefold()


@dataclass(frozen=True)
class ContactAddress:
    name: str = ""
    email: str = ""
    phone: str = ""
    street: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country: str = ""

    @classmethod
    def from_payload(cls, data: dict[str, Any] | None) -> "ContactAddress":
        """Accepts camelCase or snake_case keys, and ``address``/``zipCode`` aliases."""
        data = data or {}
        return cls(
            name=data.get("name") or "",
            email=data.get("email") or "",
            phone=data.get("phone") or "",
            street=data.get("street") or data.get("address") or "",
            city=data.get("city") or "",
            state=data.get("state") or "",
            postal_code=data.get("postalCode") or data.get("postal_code") or data.get("zipCode") or "",
            country=data.get("country") or "",
        )

    def to_payload(self) -> dict[str, str]:
        return {
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "street": self.street,
            "city": self.city,
            "state": self.state,
            "postalCode": self.postal_code,
            "country": self.country,
        }

    def missing_fields(self, required: Sequence[str]) -> list[str]:
        return [name for name in required if not (getattr(self, name) or "").strip()]

    def same_destination(self, other: "ContactAddress") -> bool:
        fields = ("street", "city", "state", "postal_code", "country")
        return all(_normalized(getattr(self, f)) == _normalized(getattr(other, f)) for f in fields)


@dataclass(frozen=True)
class CheckoutDetails:
    shipping_address: ContactAddress
    payment_method: str | None = None
    terms_accepted: bool = False
    shipping_method: str | None = "standard"
    notes: str | None = None
    is_dropshipping: bool = False
    customer_address: ContactAddress | None = None
    dropshipping_instructions: str | None = None


def validate_checkout_details(details: CheckoutDetails, payment_methods: Sequence[str]) -> None:
    """Raise ``ValidationError`` keyed by the first failing field."""
    missing = details.shipping_address.missing_fields(SHIPPING_ADDRESS_FIELDS)
    if missing:
        raise ValidationError({missing[0]: [f"{_label(missing[0])} is required"]})

    if not (details.shipping_method or "").strip():
        raise ValidationError({"shipping_method": ["Shipping method is required"]})

    if not details.payment_method:
        raise ValidationError({"payment_method": ["Please select a payment method"]})
    if details.payment_method not in payment_methods:
        raise ValidationError({"payment_method": [f"Unsupported payment method '{details.payment_method}'"]})

    if not details.terms_accepted:
        raise ValidationError({"terms_accepted": ["Please accept the terms and conditions"]})

    if details.is_dropshipping:
        customer = details.customer_address
        if customer is None:
            raise ValidationError({"customer_address": ["Customer address is required for dropshipping orders"]})

        missing = customer.missing_fields(CUSTOMER_ADDRESS_FIELDS)
        if missing:
            raise ValidationError({f"customer_{missing[0]}": [f"Customer {_label(missing[0]).lower()} is required"]})

        if customer.same_destination(details.shipping_address):
            raise ValidationError({"customer_address": ["Customer address must differ from your own address"]})
