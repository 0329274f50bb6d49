"""Rules that derive order status from payment and shipment outcomes.

The rules are pure: they look at the current order status and the new
payment or shipment status and return the order status that should follow,
or None when nothing should change. ``sync_order_*`` apply that result.
"""

from marketplace.order.order import Order, OrderStatus, can_transition


def order_status_after_payment(order_status, payment_status):
    """A successful payment moves a pending order into processing."""
    if payment_status == "succeeded" and order_status == OrderStatus.PENDING.value:
        return OrderStatus.PROCESSING
    return None


def order_status_after_shipment(order_status, shipment_status):
    """A delivered shipment moves a shipped order to delivered."""
    if shipment_status == "delivered" and order_status == OrderStatus.SHIPPED.value:
        return OrderStatus.DELIVERED
    return None


def _apply(order: Order, target) -> bool:
    if target is None or not can_transition(order.status, target):
        return False
    order.transition_to(target)
    return True


def sync_order_with_payment(order: Order, payment) -> bool:
    return _apply(order, order_status_after_payment(order.status, payment.status))


def sync_order_with_shipment(order: Order, shipment) -> bool:
    return _apply(order, order_status_after_shipment(order.status, shipment.status))
