"""In-process product catalogue for development and testing."""

from wholesale.catalogue.port import CatalogueProduct, ProductCatalogue


class InMemoryCatalogue(ProductCatalogue):
    def __init__(self, products: list[CatalogueProduct] | None = None) -> None:
        self._products: dict[str, CatalogueProduct] = {}
        self.lookups: list[str] = []
        for product in products or []:
            self.register(product)

    def register(self, product: CatalogueProduct) -> None:
        self._products[str(product.id)] = product

    def get_product(self, product_id: str) -> CatalogueProduct | None:
        self.lookups.append(str(product_id))
        return self._products.get(str(product_id))
