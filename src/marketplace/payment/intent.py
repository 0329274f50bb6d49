"""Payment intent creation for an order."""

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.exceptions import InvalidStateTransitionError
from marketplace.gateway import get_gateway
from marketplace.gateway.port import to_minor_units
from marketplace.order.order import Order, OrderPaymentStatus, OrderStatus
from marketplace.payment.payment import Payment, PaymentStatus
from marketplace.utils.repository import find_one, load

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Payment")
class CreatePaymentIntent:
    order_id = Identifier(required=True)


@marketplace.command_handler(part_of=Payment)
class CreatePaymentIntentHandler:
    @handle(CreatePaymentIntent)
    def create_payment_intent(self, command: CreatePaymentIntent):
        order = load(Order, command.order_id)
        if order.status == OrderStatus.CANCELLED.value:
            raise InvalidStateTransitionError(
                "Order", order.status, OrderPaymentStatus.PAID.value, reason="Cannot pay for a cancelled order"
            )
        if order.payment_status not in (OrderPaymentStatus.PENDING.value, OrderPaymentStatus.FAILED.value):
            raise InvalidStateTransitionError(
                "Order", order.payment_status, OrderPaymentStatus.PAID.value, reason="Order is already paid"
            )

        payment = find_one(Payment, order_id=str(order.id))
        if payment is not None and payment.status not in (PaymentStatus.PENDING.value, PaymentStatus.FAILED.value):
            raise InvalidStateTransitionError(
                "Payment", payment.status, PaymentStatus.PENDING.value, reason="Payment has already been processed"
            )

        intent = get_gateway().create_intent(
            amount=to_minor_units(order.total_amount),
            currency=order.currency.lower(),
            metadata={"order_id": str(order.id), "order_number": order.order_number},
        )

        if payment is None:
            payment = Payment.create(
                order_id=str(order.id),
                customer_id=str(order.customer_id),
                amount=order.total_amount,
                currency=order.currency,
                intent_id=intent.id,
                client_secret=intent.client_secret,
            )
        else:
            payment.renew_intent(intent.id, intent.client_secret, order.total_amount)

        order.claim_for_payment()
        current_domain.repository_for(Order).add(order)
        current_domain.repository_for(Payment).add(payment)

        logger.info(
            "Payment intent created",
            payment_id=str(payment.id),
            order_id=str(order.id),
            intent_id=intent.id,
            attempt=payment.attempt_count,
        )
        return {
            "payment_id": str(payment.id),
            "intent_id": intent.id,
            "client_secret": intent.client_secret,
            "amount": order.total_amount,
            "currency": order.currency,
        }
