"""Read side for payments."""

from marketplace.exceptions import NotFoundError
from marketplace.payment.payment import Payment
from marketplace.utils.repository import find_one, load


def payment_to_dict(payment: Payment) -> dict:
    return {
        "id": str(payment.id),
        "order_id": str(payment.order_id),
        "customer_id": str(payment.customer_id),
        "intent_id": payment.intent_id,
        "amount": payment.amount,
        "currency": payment.currency,
        "status": payment.status,
        "attempt_count": payment.attempt_count,
        "failure_reason": payment.failure_reason,
        "refund_id": payment.refund_id,
        "refunded_amount": payment.refunded_amount,
        "refunded_at": payment.refunded_at,
        "created_at": payment.created_at,
        "updated_at": payment.updated_at,
    }


def get_payment(payment_id) -> Payment:
    return load(Payment, payment_id)


def get_payment_for_order(order_id) -> Payment:
    payment = find_one(Payment, order_id=str(order_id))
    if payment is None:
        raise NotFoundError({"payment": [f"No payment found for order {order_id}"]})
    return payment
