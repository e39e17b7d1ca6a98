import pytest

from sales.collaborators.fake_adapter import FakeAccountDirectory, FakeCatalogue
from sales.config import Settings
from sales.gateway.fake_adapter import FakeGateway
from sales.services import build_services


@pytest.fixture(scope="session")
def _sales_domain():
    """Initialize the sales domain once per session."""
    from sales.domain import sales

    sales.init()
    return sales


@pytest.fixture(autouse=True)
def run_around_tests(_sales_domain):
    """Push domain context before each test, cleanup after."""
    ctx = _sales_domain.domain_context()
    ctx.push()

    yield

    from protean import current_domain

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    for _, broker in current_domain.brokers.items():
        broker._data_reset()

    current_domain.event_store.store._data_reset()
    ctx.pop()


@pytest.fixture()
def settings():
    return Settings(
        currency="USD",
        dependency_timeout=1.0,
        lock_timeout=2.0,
        admin_api_key="admin-secret",
        webhook_secret="whsec_unit",
    )


@pytest.fixture()
def catalogue():
    catalogue = FakeCatalogue()
    catalogue.add_product("prod-a", "Espresso Cup", "10.00")
    catalogue.add_product("prod-b", "Milk Jug", "5.50")
    catalogue.add_product("prod-c", "Tamper", "0.10")
    return catalogue


@pytest.fixture()
def accounts():
    accounts = FakeAccountDirectory()
    accounts.add_customer("cust-001", "Ada Lovelace", "ada@example.com")
    accounts.add_customer("cust-002", "Grace Hopper", "grace@example.com")
    return accounts


@pytest.fixture()
def gateway(settings):
    return FakeGateway(webhook_secret=settings.webhook_secret)


@pytest.fixture()
def services(settings, catalogue, accounts, gateway):
    return build_services(settings, catalogue=catalogue, accounts=accounts, gateway=gateway)


@pytest.fixture()
def placed_order(services):
    """An order for 2 x prod-a at 10.00 and 1 x prod-b at 5.50."""
    services.carts.add_item("cust-001", "prod-a", 2)
    services.carts.add_item("cust-001", "prod-b", 1)
    return services.orders.place_order("cust-001")
