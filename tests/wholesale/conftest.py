import pytest
from protean import current_domain
from protean.integrations.pytest import DomainFixture

from wholesale.catalogue import reset_catalogue, set_catalogue
from wholesale.catalogue.memory_adapter import InMemoryCatalogue
from wholesale.catalogue.port import CatalogueProduct, VariationCombination
from wholesale.checkout.gateway import reset_order_service, set_order_service
from wholesale.checkout.gateway.fake_adapter import FakeOrderService
from wholesale.pricing.tiers import BulkDiscount, PriceTier
from wholesale.pricing.variation import VariationAttribute

STANDARD_TIERS = (
    PriceTier(min_qty=1, max_qty=49, price=110.0),
    PriceTier(min_qty=50, max_qty=199, price=100.0),
    PriceTier(min_qty=200, max_qty=None, price=95.0),
)


@pytest.fixture(scope="session")
def wholesale_bed():
    from wholesale.domain import wholesale

    bed = DomainFixture(wholesale)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(wholesale_bed):
    with wholesale_bed.domain_context():
        yield

        # Clear all databases
        for _, provider in current_domain.providers.items():
            provider._data_reset()

        # Drain event stores
        current_domain.event_store.store._data_reset()

    reset_catalogue()
    reset_order_service()


@pytest.fixture()
def catalogue():
    """Catalogue seeded with a tiered t-shirt, a flat-priced mug and a variation-priced bag."""
    products = InMemoryCatalogue(
        [
            CatalogueProduct(
                id="prod-shirt",
                title="Cotton T-Shirt",
                supplier_id="sup-karachi",
                supplier_name="Karachi Textiles",
                price=120.0,
                compare_at_price=130.0,
                images=("shirt-front.jpg", "shirt-back.jpg"),
                price_tiers=STANDARD_TIERS,
                bulk_discounts=(
                    BulkDiscount(min_qty=100, discount_percent=5.0),
                    BulkDiscount(min_qty=500, discount_percent=10.0),
                ),
                max_order_quantity=1000,
                stock=800,
            ),
            CatalogueProduct(
                id="prod-mug",
                title="Ceramic Mug",
                supplier_id="sup-lahore",
                price=250.0,
                min_order_quantity=10,
                stock=40,
            ),
            CatalogueProduct(
                id="prod-bag",
                title="Canvas Bag",
                supplier_id="sup-lahore",
                supplier_name="Lahore Crafts",
                price=500.0,
                stock=100,
                combinations=(
                    VariationCombination(
                        id="bag-red-large",
                        name="Red / Large",
                        attributes=(
                            VariationAttribute(name="Color", value="Red"),
                            VariationAttribute(name="Size", value="Large"),
                        ),
                        price=650.0,
                        stock=5,
                    ),
                ),
            ),
        ]
    )
    set_catalogue(products)
    return products


@pytest.fixture()
def order_service():
    service = FakeOrderService()
    set_order_service(service)
    return service
