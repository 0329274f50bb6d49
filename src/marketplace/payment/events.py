"""Domain events raised by the Payment aggregate."""

from protean.fields import Boolean, DateTime, Float, Identifier, String

from marketplace.domain import marketplace


@marketplace.event(part_of="Payment")
class PaymentIntentCreated:
    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    intent_id = String(required=True, max_length=255)
    amount = Float(required=True)
    currency = String(max_length=3, default="USD")
    created_at = DateTime(required=True)


@marketplace.event(part_of="Payment")
class PaymentSucceeded:
    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    intent_id = String(required=True, max_length=255)
    amount = Float(required=True)
    succeeded_at = DateTime(required=True)


@marketplace.event(part_of="Payment")
class PaymentFailed:
    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    intent_id = String(required=True, max_length=255)
    reason = String(max_length=500)
    failed_at = DateTime(required=True)


@marketplace.event(part_of="Payment")
class PaymentRefunded:
    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    refund_id = String(required=True, max_length=255)
    amount = Float(required=True)
    full_refund = Boolean(default=True)
    refunded_at = DateTime(required=True)
