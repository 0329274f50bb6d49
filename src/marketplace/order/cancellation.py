"""Order cancellation with stock restoration in the same unit of work."""

import structlog
from protean import handle
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.exceptions import NotFoundError
from marketplace.inventory.product import Product
from marketplace.order.order import CancelledBy, Order
from marketplace.utils.repository import load

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    requester_id = Identifier(required=True)
    is_admin = Boolean(default=False)
    reason = String(max_length=500)


def restore_order_stock(order: Order) -> None:
    """Give every line's quantity back to its product."""
    product_repo = current_domain.repository_for(Product)
    for line in order.lines:
        product = load(Product, line.product_id)
        product.restore_stock(line.quantity)
        product_repo.add(product)


def cancel_and_restock(order: Order, cancelled_by: str, reason=None) -> None:
    order.cancel(cancelled_by=cancelled_by, reason=reason)
    restore_order_stock(order)
    current_domain.repository_for(Order).add(order)
    logger.info(
        "Order cancelled",
        order_id=str(order.id),
        cancelled_by=cancelled_by,
        restored_lines=len(order.lines),
    )


@marketplace.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command: CancelOrder):
        order = load(Order, command.order_id)
        # Other customers' orders are reported as missing
        if not command.is_admin and not order.is_owned_by(command.requester_id):
            raise NotFoundError({"order": [f"Order {command.order_id} not found"]})

        cancelled_by = CancelledBy.ADMIN.value if command.is_admin else CancelledBy.CUSTOMER.value
        cancel_and_restock(order, cancelled_by, command.reason)
        return order.status
