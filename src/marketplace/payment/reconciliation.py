"""Reconciling gateway outcomes into payments and orders.

Webhook deliveries and client-initiated confirmation both funnel through
``apply_gateway_outcome``. Deliveries are deduplicated by gateway event id;
a repeated or out-of-order outcome after a terminal state changes nothing.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.gateway import get_gateway
from marketplace.order.order import Order, OrderPaymentStatus
from marketplace.order.synchronizer import sync_order_with_payment
from marketplace.payment.payment import Payment, PaymentStatus
from marketplace.payment.webhook_log import is_processed, mark_processed
from marketplace.utils.repository import find_one, load

logger = structlog.get_logger(__name__)

WEBHOOK_EVENT_OUTCOMES = {
    "payment_intent.succeeded": PaymentStatus.SUCCEEDED,
    "payment_intent.payment_failed": PaymentStatus.FAILED,
}

# Gateway statuses not listed here leave the payment pending
INTENT_STATUS_OUTCOMES = {
    "succeeded": PaymentStatus.SUCCEEDED,
    "canceled": PaymentStatus.FAILED,
}


def apply_gateway_outcome(payment: Payment, order: Order, outcome: PaymentStatus, reason=None) -> bool:
    """Apply one gateway outcome to a payment and its order. Returns True when state changed."""
    if not payment.apply_outcome(outcome, reason=reason):
        logger.info(
            "Ignoring gateway outcome for settled payment",
            payment_id=str(payment.id),
            status=payment.status,
            outcome=outcome.value,
        )
        return False

    if outcome == PaymentStatus.SUCCEEDED:
        order.record_payment_status(OrderPaymentStatus.PAID)
    else:
        order.record_payment_status(OrderPaymentStatus.FAILED)
    sync_order_with_payment(order, payment)

    current_domain.repository_for(Payment).add(payment)
    current_domain.repository_for(Order).add(order)
    logger.info(
        "Payment outcome applied",
        payment_id=str(payment.id),
        order_id=str(order.id),
        payment_status=payment.status,
        order_status=order.status,
    )
    return True


@marketplace.command(part_of="Payment")
class ApplyPaymentWebhookEvent:
    event_id = String(required=True, max_length=255)
    event_type = String(required=True, max_length=100)
    intent_id = String(required=True, max_length=255)


@marketplace.command(part_of="Payment")
class ConfirmPayment:
    payment_id = Identifier(required=True)


@marketplace.command_handler(part_of=Payment)
class PaymentReconciliationHandler:
    @handle(ApplyPaymentWebhookEvent)
    def apply_webhook_event(self, command: ApplyPaymentWebhookEvent):
        if is_processed(command.event_id):
            logger.info("Duplicate webhook event skipped", event_id=command.event_id)
            return False

        outcome = WEBHOOK_EVENT_OUTCOMES.get(command.event_type)
        if outcome is None:
            logger.info("Unhandled webhook event type", event_id=command.event_id, event_type=command.event_type)
            return False

        payment = find_one(Payment, intent_id=command.intent_id)
        if payment is None:
            logger.warning("Webhook for unknown payment intent", event_id=command.event_id, intent_id=command.intent_id)
            return False

        order = load(Order, payment.order_id)
        changed = apply_gateway_outcome(payment, order, outcome, reason="Payment failed at gateway")
        mark_processed(command.event_id, command.event_type, command.intent_id)
        return changed

    @handle(ConfirmPayment)
    def confirm_payment(self, command: ConfirmPayment):
        payment = load(Payment, command.payment_id)
        if not payment.is_terminal:
            gateway_status = get_gateway().retrieve_intent(payment.intent_id)
            outcome = INTENT_STATUS_OUTCOMES.get(gateway_status)
            if outcome is not None:
                order = load(Order, payment.order_id)
                apply_gateway_outcome(payment, order, outcome, reason=f"Payment intent {gateway_status}")
        return {"payment_id": str(payment.id), "order_id": str(payment.order_id), "status": payment.status}


def reconcile_webhook(payload: bytes, signature: str) -> bool:
    """Verify a raw webhook delivery and apply it.

    Raises ``AuthenticationError`` before anything is parsed when the
    signature does not verify.
    """
    event = get_gateway().parse_webhook(payload, signature)
    logger.info("Payment webhook received", event_id=event.id, event_type=event.type)
    return current_domain.process(
        ApplyPaymentWebhookEvent(event_id=event.id, event_type=event.type, intent_id=event.object_id),
        asynchronous=False,
    )
