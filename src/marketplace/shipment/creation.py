"""Shipment creation: buy a label and move the order to shipped."""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.carrier import get_carrier
from marketplace.domain import marketplace
from marketplace.exceptions import ConflictError, InvalidStateTransitionError
from marketplace.order.order import Order, OrderStatus
from marketplace.shipment.shipment import Shipment
from marketplace.utils.repository import find_one, load

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Shipment")
class CreateShipment:
    order_id = Identifier(required=True)
    rate_id = String(required=True, max_length=100)
    carrier = String(max_length=50)
    service = String(max_length=100)


@marketplace.command_handler(part_of=Shipment)
class CreateShipmentHandler:
    @handle(CreateShipment)
    def create_shipment(self, command: CreateShipment):
        order = load(Order, command.order_id)
        if find_one(Shipment, order_id=str(order.id)) is not None:
            raise ConflictError({"shipment": [f"Order {order.id} already has a shipment"]})
        if order.status != OrderStatus.PROCESSING.value:
            raise InvalidStateTransitionError(
                "Order",
                order.status,
                OrderStatus.SHIPPED.value,
                reason=f"Order must be processing to ship, it is {order.status}",
            )

        label = get_carrier().purchase_label(command.rate_id)
        shipment = Shipment.create(
            order_id=str(order.id),
            tracking_number=label.tracking_number,
            carrier=label.carrier or command.carrier,
            service=label.service or command.service,
            rate_id=command.rate_id,
            label_url=label.label_url,
            estimated_days=label.estimated_days,
        )
        order.transition_to(OrderStatus.SHIPPED)

        current_domain.repository_for(Shipment).add(shipment)
        current_domain.repository_for(Order).add(order)

        logger.info(
            "Shipment created",
            shipment_id=str(shipment.id),
            order_id=str(order.id),
            tracking_number=shipment.tracking_number,
            carrier=shipment.carrier,
        )
        return str(shipment.id)
