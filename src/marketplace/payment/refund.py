"""Full and partial refunds of succeeded payments."""

import structlog
from protean import handle
from protean.fields import Float, Identifier
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.exceptions import NotFoundError
from marketplace.gateway import get_gateway
from marketplace.gateway.port import to_minor_units
from marketplace.order.order import Order, OrderPaymentStatus
from marketplace.payment.payment import Payment
from marketplace.utils.repository import find_one, load

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Payment")
class RefundPayment:
    order_id = Identifier(required=True)
    amount = Float()


@marketplace.command_handler(part_of=Payment)
class RefundPaymentHandler:
    @handle(RefundPayment)
    def refund_payment(self, command: RefundPayment):
        payment = find_one(Payment, order_id=str(command.order_id))
        if payment is None:
            raise NotFoundError({"payment": [f"No payment found for order {command.order_id}"]})
        order = load(Order, payment.order_id)

        amount = payment.refundable_amount(command.amount)
        refund = get_gateway().create_refund(payment.intent_id, to_minor_units(amount))

        payment.record_refund(amount, refund.id)
        order.record_payment_status(OrderPaymentStatus.REFUNDED)
        current_domain.repository_for(Payment).add(payment)
        current_domain.repository_for(Order).add(order)

        logger.info(
            "Payment refunded",
            payment_id=str(payment.id),
            order_id=str(order.id),
            refund_id=refund.id,
            amount=amount,
            status=payment.status,
        )
        return {
            "payment_id": str(payment.id),
            "refund_id": refund.id,
            "amount": amount,
            "status": payment.status,
        }
