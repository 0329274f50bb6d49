"""Domain tests for the rules deriving order status from payments and shipments."""

from types import SimpleNamespace

from marketplace.order.order import Order, OrderStatus
from marketplace.order.synchronizer import (
    order_status_after_payment,
    order_status_after_shipment,
    sync_order_with_payment,
    sync_order_with_shipment,
)


def _order():
    return Order.place(
        customer_id="cust-001",
        order_number="ORD-260101-0002",
        lines=[{"product_id": "prod-1", "product_name": "Lamp", "quantity": 1, "unit_price": 10.0}],
        shipping_address_id="addr-001",
    )


class TestPaymentRule:
    def test_success_moves_pending_to_processing(self):
        assert order_status_after_payment("pending", "succeeded") == OrderStatus.PROCESSING

    def test_failure_changes_nothing(self):
        assert order_status_after_payment("pending", "failed") is None

    def test_success_leaves_cancelled_alone(self):
        assert order_status_after_payment("cancelled", "succeeded") is None

    def test_success_after_processing_is_noop(self):
        assert order_status_after_payment("processing", "succeeded") is None


class TestShipmentRule:
    def test_delivery_moves_shipped_to_delivered(self):
        assert order_status_after_shipment("shipped", "delivered") == OrderStatus.DELIVERED

    def test_in_transit_changes_nothing(self):
        assert order_status_after_shipment("shipped", "in_transit") is None

    def test_delivery_before_shipped_is_ignored(self):
        assert order_status_after_shipment("processing", "delivered") is None


class TestApply:
    def test_sync_with_payment_writes_one_status(self):
        order = _order()
        assert sync_order_with_payment(order, SimpleNamespace(status="succeeded"))
        assert order.status == "processing"

    def test_sync_is_idempotent(self):
        order = _order()
        sync_order_with_payment(order, SimpleNamespace(status="succeeded"))
        assert not sync_order_with_payment(order, SimpleNamespace(status="succeeded"))

    def test_sync_with_shipment(self):
        order = _order()
        order.transition_to(OrderStatus.PROCESSING)
        order.transition_to(OrderStatus.SHIPPED)
        assert sync_order_with_shipment(order, SimpleNamespace(status="delivered"))
        assert order.status == "delivered"
