"""Event handlers that queue customer notifications for order, payment and shipment events."""

from protean.utils.mixins import handle

from marketplace.domain import marketplace
from marketplace.notification.notification import NotificationKind, NotificationRecord, notify_once
from marketplace.order.events import OrderCancelled, OrderPlaced, OrderStatusChanged
from marketplace.payment.events import PaymentFailed, PaymentRefunded, PaymentSucceeded
from marketplace.shipment.events import ShipmentCreated, ShipmentDelivered


@marketplace.event_handler(part_of=NotificationRecord, stream_category="marketplace::order")
class OrderNotificationHandler:
    @handle(OrderPlaced)
    def on_order_placed(self, event: OrderPlaced) -> None:
        notify_once(
            NotificationKind.ORDER_PLACED,
            event.order_id,
            event.customer_id,
            order_number=event.order_number,
            total_amount=event.total_amount,
            currency=event.currency,
        )

    @handle(OrderCancelled)
    def on_order_cancelled(self, event: OrderCancelled) -> None:
        notify_once(
            NotificationKind.ORDER_CANCELLED,
            event.order_id,
            event.customer_id,
            order_number=event.order_number,
            reason=event.reason,
        )

    @handle(OrderStatusChanged)
    def on_order_status_changed(self, event: OrderStatusChanged) -> None:
        notify_once(
            NotificationKind.ORDER_STATUS_CHANGED,
            f"{event.order_id}:{event.new_status}",
            event.customer_id,
            previous_status=event.previous_status,
            new_status=event.new_status,
        )


@marketplace.event_handler(part_of=NotificationRecord, stream_category="marketplace::payment")
class PaymentNotificationHandler:
    @handle(PaymentSucceeded)
    def on_payment_succeeded(self, event: PaymentSucceeded) -> None:
        notify_once(NotificationKind.PAYMENT_SUCCEEDED, event.intent_id, event.customer_id, amount=event.amount)

    @handle(PaymentFailed)
    def on_payment_failed(self, event: PaymentFailed) -> None:
        notify_once(NotificationKind.PAYMENT_FAILED, event.intent_id, event.customer_id, reason=event.reason)

    @handle(PaymentRefunded)
    def on_payment_refunded(self, event: PaymentRefunded) -> None:
        notify_once(
            NotificationKind.PAYMENT_REFUNDED,
            event.refund_id,
            event.customer_id,
            amount=event.amount,
            full_refund=event.full_refund,
        )


@marketplace.event_handler(part_of=NotificationRecord, stream_category="marketplace::shipment")
class ShipmentNotificationHandler:
    @handle(ShipmentCreated)
    def on_shipment_created(self, event: ShipmentCreated) -> None:
        notify_once(
            NotificationKind.SHIPMENT_CREATED,
            event.shipment_id,
            tracking_number=event.tracking_number,
            carrier=event.carrier,
            order_id=str(event.order_id),
        )

    @handle(ShipmentDelivered)
    def on_shipment_delivered(self, event: ShipmentDelivered) -> None:
        notify_once(
            NotificationKind.SHIPMENT_DELIVERED,
            event.shipment_id,
            order_id=str(event.order_id),
            delivered_at=event.delivered_at,
        )
