"""Application tests for shipment creation."""

import pytest
from marketplace.exceptions import ConflictError, ExternalServiceError, InvalidStateTransitionError, NotFoundError
from marketplace.order.order import Order
from marketplace.shipment.creation import CreateShipment
from marketplace.shipment.queries import get_shipment, get_shipment_for_order, list_shipments
from marketplace.shipment.rates import quote_shipping_rates
from protean import current_domain


@pytest.fixture
def paid_order(make_product, checkout, pay_order):
    order_id = checkout("cust-sh-001", (make_product(quantity=5), 1))
    pay_order(order_id)
    return order_id


def _ship(order_id, rate_id="rate-test"):
    return current_domain.process(CreateShipment(order_id=order_id, rate_id=rate_id), asynchronous=False)


def test_ships_processing_order(paid_order, fake_carrier):
    shipment_id = _ship(paid_order)

    shipment = get_shipment(shipment_id)
    assert shipment.order_id == paid_order
    assert shipment.status == "pre_transit"
    assert shipment.tracking_number in fake_carrier.tracking
    assert current_domain.repository_for(Order).get(paid_order).status == "shipped"


def test_quoted_rate_drives_carrier_and_eta(paid_order, make_address, fake_carrier):
    address_id = make_address("cust-sh-001")
    quotes = quote_shipping_rates(address_id, address_id)
    ups = next(quote for quote in quotes if quote.carrier == "ups")

    shipment = get_shipment(_ship(paid_order, rate_id=ups.rate_id))

    assert shipment.carrier == "ups"
    assert shipment.service == "Ground"
    assert shipment.rate_id == ups.rate_id
    assert (shipment.estimated_delivery_date - shipment.created_at).days == 5


def test_second_shipment_conflicts(paid_order):
    first = _ship(paid_order)

    with pytest.raises(ConflictError):
        _ship(paid_order)

    assert str(get_shipment_for_order(paid_order).id) == first
    assert len(list_shipments()) == 1


def test_unpaid_order_cannot_ship(make_product, checkout, fake_carrier):
    order_id = checkout("cust-sh-002", (make_product(quantity=5), 1))

    with pytest.raises(InvalidStateTransitionError):
        _ship(order_id)

    assert fake_carrier.tracking == {}


def test_carrier_failure_leaves_order_processing(paid_order, fake_carrier):
    fake_carrier.configure(should_succeed=False)

    with pytest.raises(ExternalServiceError):
        _ship(paid_order)

    assert current_domain.repository_for(Order).get(paid_order).status == "processing"
    with pytest.raises(NotFoundError):
        get_shipment_for_order(paid_order)


def test_list_filters_by_carrier(paid_order):
    _ship(paid_order)
    assert len(list_shipments(carrier="usps")) == 1
    assert list_shipments(carrier="fedex") == []
    assert len(list_shipments(status="pre_transit")) == 1
