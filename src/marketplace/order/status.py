"""Administrative order status updates."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.order.cancellation import cancel_and_restock
from marketplace.order.order import CancelledBy, Order, OrderStatus
from marketplace.utils.repository import load


@marketplace.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, choices=OrderStatus)
    reason = String(max_length=500)


@marketplace.command_handler(part_of=Order)
class UpdateOrderStatusHandler:
    @handle(UpdateOrderStatus)
    def update_order_status(self, command: UpdateOrderStatus):
        order = load(Order, command.order_id)
        if command.status == OrderStatus.CANCELLED.value:
            cancel_and_restock(order, CancelledBy.ADMIN.value, command.reason)
        else:
            order.transition_to(command.status)
            current_domain.repository_for(Order).add(order)
        return order.status
