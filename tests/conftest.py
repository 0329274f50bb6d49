import os
from pathlib import Path

import pytest
from protean.integrations.pytest import DomainFixture
from protean.utils.globals import current_domain


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    os.environ["PROTEAN_ENV"] = session.config.option.env
    os.environ.setdefault("PAYMENT_GATEWAY", "fake")
    os.environ.setdefault("CARRIER_ADAPTER", "fake")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(scope="session")
def marketplace_bed():
    from marketplace.domain import marketplace

    bed = DomainFixture(marketplace)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(marketplace_bed):
    with marketplace_bed.domain_context():
        yield


@pytest.fixture(autouse=True)
def run_around_tests(_ctx):
    """Clean up every store after each test"""
    yield

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    current_domain.event_store.store._data_reset()


@pytest.fixture(autouse=True)
def fake_gateway():
    from marketplace.gateway import reset_gateway, set_gateway
    from marketplace.gateway.fake_adapter import FakeGateway

    gateway = FakeGateway()
    set_gateway(gateway)
    yield gateway
    reset_gateway()


@pytest.fixture(autouse=True)
def fake_carrier():
    from marketplace.carrier import reset_carrier, set_carrier
    from marketplace.carrier.fake_adapter import FakeCarrier

    carrier = FakeCarrier()
    set_carrier(carrier)
    yield carrier
    reset_carrier()


# ---------------------------------------------------------------------------
# Seed data factories
# ---------------------------------------------------------------------------
@pytest.fixture
def make_product():
    from marketplace.inventory.management import RegisterProduct

    def _make(name="Widget", price=10.0, quantity=10, sale_price=None, status="active"):
        command = RegisterProduct(name=name, price=price, quantity=quantity, sale_price=sale_price, status=status)
        return current_domain.process(command, asynchronous=False)

    return _make


@pytest.fixture
def make_address():
    from marketplace.customer.address import add_address

    def _make(customer_id, city="Springfield"):
        address = add_address(customer_id, street="742 Evergreen Terrace", city=city, postal_code="49007", state="IL")
        return str(address.id)

    return _make


@pytest.fixture
def fill_cart():
    from marketplace.cart.items import AddCartItem

    def _fill(customer_id, *lines):
        for product_id, quantity in lines:
            current_domain.process(
                AddCartItem(customer_id=customer_id, product_id=product_id, quantity=quantity),
                asynchronous=False,
            )

    return _fill


@pytest.fixture
def checkout(make_address, fill_cart):
    """Fill a cart and place an order in one step. Returns the order id."""
    from marketplace.order.placement import place_order

    def _checkout(customer_id, *lines, **amounts):
        address_id = make_address(customer_id)
        fill_cart(customer_id, *lines)
        return place_order(customer_id=customer_id, shipping_address_id=address_id, **amounts)

    return _checkout


@pytest.fixture
def pay_order(fake_gateway):
    """Create an intent for an order and deliver a signed success webhook."""
    from marketplace.payment.intent import CreatePaymentIntent
    from marketplace.payment.reconciliation import reconcile_webhook

    def _pay(order_id):
        result = current_domain.process(CreatePaymentIntent(order_id=order_id), asynchronous=False)
        payload, signature = fake_gateway.build_webhook("payment_intent.succeeded", result["intent_id"])
        reconcile_webhook(payload, signature)
        return result

    return _pay
