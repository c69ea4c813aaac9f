import pytest
from protean.integrations.pytest import DomainFixture
from storefront.catalog import reset_catalog, set_catalog
from storefront.catalog.memory_adapter import InMemoryCatalog
from storefront.catalog.port import Product, VariantItem
from storefront.payments.gateway import reset_gateways, set_gateway
from storefront.payments.gateway.fake_adapter import FakeGateway


@pytest.fixture(scope="session")
def storefront_bed():
    from storefront.domain import storefront

    bed = DomainFixture(storefront)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(storefront_bed):
    with storefront_bed.domain_context():
        yield


def _products():
    return [
        Product(
            id="prod-tee",
            name="Linen Tee",
            base_price=120.0,
            offer_price=100.0,
            image="https://cdn.example.test/tee.jpg",
            variant_items={
                "color-red": VariantItem(id="color-red", name="Red", stock=10),
                "size-m": VariantItem(id="size-m", name="M", stock=5),
                "size-xl": VariantItem(id="size-xl", name="XL", price_delta=15.0, stock=1),
            },
        ),
        Product(id="prod-mug", name="Stoneware Mug", base_price=45.5, image="https://cdn.example.test/mug.jpg"),
        Product(id="prod-cap", name="Canvas Cap", base_price=60.0),
    ]


@pytest.fixture(autouse=True)
def catalog():
    """A fresh in-memory catalogue with a few products for every test."""
    catalog = InMemoryCatalog(_products())
    set_catalog(catalog)
    yield catalog
    reset_catalog()


@pytest.fixture(autouse=True)
def gateways():
    """Fake gateways for both providers, reset after every test."""
    fakes = {"stripe": FakeGateway("stripe"), "tabby": FakeGateway("tabby")}
    for provider, gateway in fakes.items():
        set_gateway(provider, gateway)
    yield fakes
    reset_gateways()


@pytest.fixture()
def tabby(gateways):
    return gateways["tabby"]
