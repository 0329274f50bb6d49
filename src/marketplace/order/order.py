"""Order aggregate: the durable record of a completed checkout.

Order lifecycle:
    pending -> processing -> shipped -> delivered
    pending | processing -> cancelled

Payment status is tracked separately:
    pending -> paid | failed, failed -> pending | paid, paid -> refunded

Line items are captured at checkout with the unit price in force at that
moment and never change afterwards.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from marketplace.domain import marketplace
from marketplace.exceptions import InvalidStateTransitionError
from marketplace.order.events import OrderCancelled, OrderPaymentStatusChanged, OrderPlaced, OrderStatusChanged


class OrderStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class OrderPaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class CancelledBy(Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"


_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}

_PAYMENT_STATUS_TRANSITIONS = {
    OrderPaymentStatus.PENDING: {OrderPaymentStatus.PAID, OrderPaymentStatus.FAILED},
    OrderPaymentStatus.FAILED: {OrderPaymentStatus.PENDING, OrderPaymentStatus.PAID},
    OrderPaymentStatus.PAID: {OrderPaymentStatus.REFUNDED},
    OrderPaymentStatus.REFUNDED: set(),
}


def can_transition(current, target) -> bool:
    """Whether the order status table allows ``current -> target``."""
    return OrderStatus(target) in _VALID_TRANSITIONS[OrderStatus(current)]


@marketplace.entity(part_of="Order")
class OrderLine:
    product_id = Identifier(required=True)
    product_name = String(required=True, max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    line_total = Float(required=True, min_value=0.0)


@marketplace.aggregate
class Order:
    customer_id = Identifier(required=True)
    order_number = String(required=True, max_length=20, unique=True)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    payment_status = String(choices=OrderPaymentStatus, default=OrderPaymentStatus.PENDING.value)
    lines = HasMany(OrderLine)
    subtotal = Float(default=0.0, min_value=0.0)
    shipping_amount = Float(default=0.0, min_value=0.0)
    tax_amount = Float(default=0.0, min_value=0.0)
    discount_amount = Float(default=0.0, min_value=0.0)
    total_amount = Float(default=0.0, min_value=0.0)
    currency = String(max_length=3, default="USD")
    shipping_address_id = Identifier(required=True)
    billing_address_id = Identifier(required=True)
    cancelled_by = String(choices=CancelledBy)
    cancellation_reason = String(max_length=500)
    cancelled_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def total_must_match_components(self):
        if self.subtotal is None or self.total_amount is None:
            return
        expected = round(
            self.subtotal + (self.shipping_amount or 0) + (self.tax_amount or 0) - (self.discount_amount or 0), 2
        )
        if abs(expected - self.total_amount) > 0.005:
            raise ValidationError({"total_amount": ["Order total does not match its components"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        customer_id,
        order_number,
        lines,
        shipping_address_id,
        billing_address_id=None,
        shipping_amount=0.0,
        tax_amount=0.0,
        discount_amount=0.0,
        currency="USD",
    ):
        """Build a pending order from priced line dicts.

        Each line needs ``product_id``, ``product_name``, ``quantity`` and
        ``unit_price``; ``line_total`` is computed here.
        """
        if not lines:
            raise ValidationError({"lines": ["An order must have at least one line"]})

        order_lines = [
            OrderLine(
                product_id=line["product_id"],
                product_name=line["product_name"],
                quantity=line["quantity"],
                unit_price=line["unit_price"],
                line_total=round(line["unit_price"] * line["quantity"], 2),
            )
            for line in lines
        ]
        subtotal = round(sum(line.line_total for line in order_lines), 2)
        shipping_amount = shipping_amount or 0.0
        tax_amount = tax_amount or 0.0
        discount_amount = discount_amount or 0.0
        total = round(subtotal + shipping_amount + tax_amount - discount_amount, 2)
        if total < 0:
            raise ValidationError({"discount_amount": ["Discount cannot exceed the order amount"]})

        now = datetime.now(UTC)
        order = cls(
            customer_id=customer_id,
            order_number=order_number,
            status=OrderStatus.PENDING.value,
            payment_status=OrderPaymentStatus.PENDING.value,
            lines=order_lines,
            subtotal=subtotal,
            shipping_amount=shipping_amount,
            tax_amount=tax_amount,
            discount_amount=discount_amount,
            total_amount=total,
            currency=currency,
            shipping_address_id=shipping_address_id,
            billing_address_id=billing_address_id or shipping_address_id,
            created_at=now,
            updated_at=now,
        )
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                customer_id=str(customer_id),
                order_number=order_number,
                total_amount=total,
                currency=currency,
                line_count=len(order_lines),
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def is_owned_by(self, customer_id) -> bool:
        return str(self.customer_id) == str(customer_id)

    @property
    def is_cancellable(self) -> bool:
        return can_transition(self.status, OrderStatus.CANCELLED)

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target: OrderStatus) -> None:
        if not can_transition(self.status, target):
            raise InvalidStateTransitionError("Order", self.status, target.value)

    def transition_to(self, target) -> None:
        """Move to ``target`` following the status table. Cancellation goes through ``cancel``."""
        target = OrderStatus(target)
        if target == OrderStatus.CANCELLED:
            raise ValidationError({"status": ["Use cancel() to cancel an order"]})
        self._assert_can_transition(target)

        previous = self.status
        now = datetime.now(UTC)
        self.status = target.value
        self.updated_at = now
        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                customer_id=str(self.customer_id),
                previous_status=previous,
                new_status=target.value,
                changed_at=now,
            )
        )

    def cancel(self, cancelled_by=CancelledBy.CUSTOMER.value, reason=None) -> None:
        if not self.is_cancellable:
            raise InvalidStateTransitionError(
                "Order",
                self.status,
                OrderStatus.CANCELLED.value,
                reason=f"Order cannot be cancelled in {self.status} status",
            )

        now = datetime.now(UTC)
        self.status = OrderStatus.CANCELLED.value
        self.cancelled_by = CancelledBy(cancelled_by).value
        self.cancellation_reason = reason
        self.cancelled_at = now
        self.updated_at = now
        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                customer_id=str(self.customer_id),
                order_number=self.order_number,
                cancelled_by=self.cancelled_by,
                reason=reason,
                cancelled_at=now,
            )
        )

    def record_payment_status(self, target) -> bool:
        """Move the payment status. Returns False when it is already ``target``."""
        target = OrderPaymentStatus(target)
        current = OrderPaymentStatus(self.payment_status)
        if current == target:
            return False
        if target not in _PAYMENT_STATUS_TRANSITIONS[current]:
            raise InvalidStateTransitionError("Order payment", current.value, target.value)

        now = datetime.now(UTC)
        self.payment_status = target.value
        self.updated_at = now
        self.raise_(
            OrderPaymentStatusChanged(
                order_id=str(self.id),
                previous_status=current.value,
                new_status=target.value,
                changed_at=now,
            )
        )
        return True

    def claim_for_payment(self) -> None:
        """Mark the order as awaiting a fresh payment intent.

        Always changes the order, so two intents requested for it at the same
        time collide on its version and only one creates the Payment.
        """
        if not self.record_payment_status(OrderPaymentStatus.PENDING):
            self.updated_at = datetime.now(UTC)
