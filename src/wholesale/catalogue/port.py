"""Product catalogue port.

The cart never owns product data. It asks the catalogue for the facts it
needs to price and snapshot a line: title, image, supplier, base price,
tier schedule, order limits, bulk discounts, stock and variation
combinations.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from wholesale.pricing.tiers import BulkDiscount, PriceTier, resolve_unit_price
from wholesale.pricing.variation import VariationAttribute, VariationKey

DEFAULT_SUPPLIER_NAME = "Supplier"


@dataclass(frozen=True)
class VariationCombination:
    """One addressable SKU of a product, with its own price and stock."""

    id: str
    attributes: tuple[VariationAttribute, ...] = ()
    price: float | None = None
    stock: int | None = None
    name: str | None = None

    def matches_id(self, variation: VariationKey) -> bool:
        return bool(variation.variant_id) and variation.variant_id == self.id

    def matches_attributes(self, variation: VariationKey) -> bool:
        """Same (name, value) pairs as the selection, ignoring case and order."""
        if not variation.attributes:
            return False
        wanted = {(a.name.lower(), a.value.lower()) for a in variation.attributes}
        return wanted == {(a.name.lower(), a.value.lower()) for a in self.attributes}


@dataclass(frozen=True)
class CatalogueProduct:
    id: str
    title: str
    supplier_id: str
    price: float
    supplier_name: str | None = None
    images: tuple[str, ...] = ()
    compare_at_price: float | None = None
    price_tiers: tuple[PriceTier, ...] = ()
    bulk_discounts: tuple[BulkDiscount, ...] = ()
    min_order_quantity: int | None = None
    max_order_quantity: int | None = None
    stock: int | None = None
    combinations: tuple[VariationCombination, ...] = field(default_factory=tuple)

    @property
    def display_supplier_name(self) -> str:
        return self.supplier_name or DEFAULT_SUPPLIER_NAME

    @property
    def primary_image(self) -> str | None:
        return self.images[0] if self.images else None

    def combination_for(self, variation: VariationKey) -> VariationCombination | None:
        """The combination with the selected variant id, else the one with the selected attributes."""
        by_id = next((c for c in self.combinations if c.matches_id(variation)), None)
        if by_id is not None:
            return by_id
        return next((c for c in self.combinations if c.matches_attributes(variation)), None)

    def available_stock(self, variation: VariationKey) -> int | None:
        """Stock for the selected combination when it tracks its own, else product stock."""
        combination = self.combination_for(variation)
        if combination is not None and combination.stock is not None:
            return combination.stock
        return self.stock

    def unit_price(self, variation: VariationKey, quantity: int) -> float:
        """Catalogue price for `quantity` of the selected variation.

        The tier schedule wins when the product has one, then the combination's
        own price, then the base price.
        """
        if self.price_tiers:
            return resolve_unit_price(self.price_tiers, quantity)
        combination = self.combination_for(variation)
        if combination is not None and combination.price is not None:
            return combination.price
        return self.price


class ProductCatalogue(ABC):
    """Abstract read-only product lookup."""

    @abstractmethod
    def get_product(self, product_id: str) -> CatalogueProduct | None:
        """Return the product, or None when it does not exist."""
        ...
