"""Pydantic request/response schemas for the cart and checkout API.

These are external contracts (anti-corruption layer), separate from the
internal Protean commands. Payloads use camelCase on the wire; snake_case
names are accepted too.
"""

from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, Field
from pydantic.alias_generators import to_camel

_WIRE_CONFIG = {"alias_generator": to_camel, "populate_by_name": True}


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class VariationAttributeSchema(BaseModel):
    name: str
    value: str


class AddressSchema(BaseModel):
    """Every field defaults to empty so checkout validation can name the gap."""

    name: str = ""
    email: str = ""
    phone: str = ""
    street: str = Field(default="", validation_alias=AliasChoices("street", "address"))
    city: str = ""
    state: str = ""
    postal_code: str = Field(default="", validation_alias=AliasChoices("postalCode", "postal_code", "zipCode"))
    country: str = ""

    model_config = _WIRE_CONFIG


# ---------------------------------------------------------------------------
# Cart Request Schemas
# ---------------------------------------------------------------------------
class AddItemRequest(BaseModel):
    type: Literal["regular", "bid"] = "regular"
    product_id: str
    quantity: int
    tier_price: float | None = None
    is_bulk_order: bool = False
    variant_id: str | None = None
    variant_name: str | None = None
    color: str | None = None
    size: str | None = None
    material: str | None = None
    style: str | None = None
    variation_attributes: list[VariationAttributeSchema] | None = None
    request_id: str | None = None
    original_price: float | None = None
    bid_price: float | None = None
    discount_percent: float | None = None
    expected_revision: int | None = None

    model_config = {
        **_WIRE_CONFIG,
        "json_schema_extra": {
            "examples": [
                {
                    "type": "regular",
                    "productId": "prod-001",
                    "quantity": 50,
                    "color": "Red",
                    "size": "M",
                }
            ]
        },
    }


class UpdateItemRequest(BaseModel):
    item_id: str
    quantity: int
    expected_revision: int | None = None

    model_config = _WIRE_CONFIG


class RemoveItemRequest(BaseModel):
    item_id: str
    expected_revision: int | None = None

    model_config = _WIRE_CONFIG


class ClearCartRequest(BaseModel):
    expected_revision: int | None = None

    model_config = _WIRE_CONFIG


class CheckoutRequest(BaseModel):
    shipping_address: AddressSchema = Field(default_factory=AddressSchema)
    shipping_method: str = "standard"
    payment_method: str | None = None
    terms_accepted: bool = False
    notes: str | None = None
    is_dropshipping: bool = False
    customer_address: AddressSchema | None = None
    dropshipping_instructions: str | None = None
    expected_revision: int | None = None

    model_config = _WIRE_CONFIG


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class CartResponse(BaseModel):
    success: bool = True
    data: dict[str, Any]


class CartGroupsResponse(BaseModel):
    success: bool = True
    data: list[dict[str, Any]]


class CheckoutResponse(BaseModel):
    success: bool = True
    orders: list[dict[str, Any]]
    failed_suppliers: list[str] = Field(default_factory=list, serialization_alias="failedSuppliers")
    totals: dict[str, Any]
