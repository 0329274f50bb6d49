"""Domain tests for the Order aggregate and its status table."""

import pytest
from marketplace.exceptions import InvalidStateTransitionError
from marketplace.order.events import OrderCancelled, OrderPlaced, OrderStatusChanged
from marketplace.order.order import Order, OrderPaymentStatus, OrderStatus, can_transition
from protean.exceptions import ValidationError

_LINES = [
    {"product_id": "prod-1", "product_name": "Lamp", "quantity": 2, "unit_price": 19.99},
    {"product_id": "prod-2", "product_name": "Rug", "quantity": 1, "unit_price": 80.0},
]


def _order(**overrides):
    params = {
        "customer_id": "cust-001",
        "order_number": "ORD-260101-0001",
        "lines": _LINES,
        "shipping_address_id": "addr-001",
    }
    params.update(overrides)
    return Order.place(**params)


class TestPlacement:
    def test_totals_are_computed(self):
        order = _order(shipping_amount=5.0, tax_amount=3.0, discount_amount=10.0)
        assert order.subtotal == 119.98
        assert order.total_amount == 117.98

    def test_line_totals_are_captured(self):
        order = _order()
        totals = sorted(line.line_total for line in order.lines)
        assert totals == [39.98, 80.0]

    def test_starts_pending(self):
        order = _order()
        assert order.status == OrderStatus.PENDING.value
        assert order.payment_status == OrderPaymentStatus.PENDING.value

    def test_billing_defaults_to_shipping(self):
        assert str(_order().billing_address_id) == "addr-001"

    def test_raises_order_placed(self):
        event = _order()._events[-1]
        assert isinstance(event, OrderPlaced)
        assert event.line_count == 2

    def test_discount_larger_than_order_rejected(self):
        with pytest.raises(ValidationError):
            _order(discount_amount=500.0)

    def test_order_needs_lines(self):
        with pytest.raises(ValidationError):
            _order(lines=[])


class TestStatusTable:
    @pytest.mark.parametrize(
        "current,target",
        [
            ("pending", "processing"),
            ("pending", "cancelled"),
            ("processing", "shipped"),
            ("processing", "cancelled"),
            ("shipped", "delivered"),
        ],
    )
    def test_allowed(self, current, target):
        assert can_transition(current, target)

    @pytest.mark.parametrize(
        "current,target",
        [
            ("pending", "shipped"),
            ("pending", "delivered"),
            ("processing", "pending"),
            ("shipped", "cancelled"),
            ("delivered", "cancelled"),
            ("cancelled", "pending"),
            ("cancelled", "processing"),
        ],
    )
    def test_rejected(self, current, target):
        assert not can_transition(current, target)


class TestTransitions:
    def test_forward_transition(self):
        order = _order()
        order.transition_to(OrderStatus.PROCESSING)
        assert order.status == "processing"
        assert isinstance(order._events[-1], OrderStatusChanged)

    def test_skipping_ahead_rejected(self):
        order = _order()
        with pytest.raises(InvalidStateTransitionError):
            order.transition_to(OrderStatus.SHIPPED)

    def test_cancel_pending(self):
        order = _order()
        order.cancel(reason="Changed my mind")
        assert order.status == "cancelled"
        assert order.cancelled_by == "customer"
        assert order.cancellation_reason == "Changed my mind"
        assert isinstance(order._events[-1], OrderCancelled)

    def test_cancel_shipped_rejected(self):
        order = _order()
        order.transition_to(OrderStatus.PROCESSING)
        order.transition_to(OrderStatus.SHIPPED)
        with pytest.raises(InvalidStateTransitionError):
            order.cancel()

    def test_cancel_twice_rejected(self):
        order = _order()
        order.cancel()
        with pytest.raises(InvalidStateTransitionError):
            order.cancel()


class TestPaymentStatus:
    def test_paid(self):
        order = _order()
        assert order.record_payment_status(OrderPaymentStatus.PAID)
        assert order.payment_status == "paid"

    def test_repeat_is_noop(self):
        order = _order()
        order.record_payment_status(OrderPaymentStatus.PAID)
        assert not order.record_payment_status(OrderPaymentStatus.PAID)

    def test_refund_requires_paid(self):
        with pytest.raises(InvalidStateTransitionError):
            _order().record_payment_status(OrderPaymentStatus.REFUNDED)

    def test_failed_can_retry(self):
        order = _order()
        order.record_payment_status(OrderPaymentStatus.FAILED)
        assert order.record_payment_status(OrderPaymentStatus.PENDING)

    def test_claim_for_payment_touches_pending_order(self):
        order = _order()
        placed_at = order.updated_at
        order.claim_for_payment()
        assert order.payment_status == OrderPaymentStatus.PENDING.value
        assert order.updated_at >= placed_at

    def test_claim_for_payment_reopens_failed_order(self):
        order = _order()
        order.record_payment_status(OrderPaymentStatus.FAILED)
        order.claim_for_payment()
        assert order.payment_status == OrderPaymentStatus.PENDING.value

    def test_claim_for_payment_rejects_paid_order(self):
        order = _order()
        order.record_payment_status(OrderPaymentStatus.PAID)
        with pytest.raises(InvalidStateTransitionError):
            order.claim_for_payment()
