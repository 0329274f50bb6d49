"""Tracking updates from carrier webhooks and on-demand polling."""

import json

import structlog
from protean import handle
from protean.fields import String, Text
from protean.utils.globals import current_domain

from marketplace.carrier import get_carrier
from marketplace.domain import marketplace
from marketplace.exceptions import NotFoundError
from marketplace.order.order import Order
from marketplace.order.synchronizer import sync_order_with_shipment
from marketplace.shipment.shipment import Shipment, ShipmentStatus, map_carrier_status
from marketplace.utils.repository import find_one, load

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Shipment")
class ApplyTrackingUpdate:
    tracking_number = String(required=True, max_length=100)
    carrier_status = String(required=True, max_length=50)
    details = Text()


def find_by_tracking_number(tracking_number) -> Shipment:
    shipment = find_one(Shipment, tracking_number=tracking_number)
    if shipment is None:
        raise NotFoundError({"shipment": [f"No shipment with tracking number {tracking_number}"]})
    return shipment


@marketplace.command_handler(part_of=Shipment)
class TrackingUpdateHandler:
    @handle(ApplyTrackingUpdate)
    def apply_tracking_update(self, command: ApplyTrackingUpdate):
        shipment = find_by_tracking_number(command.tracking_number)
        status = map_carrier_status(command.carrier_status)
        details = json.loads(command.details) if command.details else {}

        if not shipment.apply_tracking_status(status, carrier_status=command.carrier_status, details=details):
            logger.info(
                "Tracking update ignored",
                tracking_number=command.tracking_number,
                current_status=shipment.status,
                carrier_status=command.carrier_status,
            )
            return False

        if status == ShipmentStatus.DELIVERED:
            order = load(Order, shipment.order_id)
            if sync_order_with_shipment(order, shipment):
                current_domain.repository_for(Order).add(order)

        current_domain.repository_for(Shipment).add(shipment)
        logger.info("Tracking update applied", tracking_number=command.tracking_number, status=shipment.status)
        return True


def apply_tracking_update(tracking_number, carrier_status, details=None) -> bool:
    return current_domain.process(
        ApplyTrackingUpdate(
            tracking_number=tracking_number,
            carrier_status=carrier_status,
            details=json.dumps(details or {}),
        ),
        asynchronous=False,
    )


def refresh_tracking(tracking_number):
    """Poll the carrier for the latest status and apply it."""
    shipment = find_by_tracking_number(tracking_number)
    info = get_carrier().track(tracking_number, carrier=shipment.carrier)
    apply_tracking_update(tracking_number, info.status, {"source": "poll", "events": info.events})
    return info
