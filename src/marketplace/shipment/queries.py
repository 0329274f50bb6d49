"""Read side for shipments."""

import json

from protean.utils.globals import current_domain

from marketplace.exceptions import NotFoundError
from marketplace.shipment.shipment import Shipment, ShipmentStatus
from marketplace.utils.repository import find_one, load


def shipment_to_dict(shipment: Shipment) -> dict:
    history = sorted(shipment.history, key=lambda entry: entry.occurred_at)
    return {
        "id": str(shipment.id),
        "order_id": str(shipment.order_id),
        "tracking_number": shipment.tracking_number,
        "carrier": shipment.carrier,
        "service": shipment.service,
        "label_url": shipment.label_url,
        "status": shipment.status,
        "estimated_delivery_date": shipment.estimated_delivery_date,
        "actual_delivery_date": shipment.actual_delivery_date,
        "history": [
            {
                "status": entry.status,
                "carrier_status": entry.carrier_status,
                "details": json.loads(entry.details) if entry.details else {},
                "occurred_at": entry.occurred_at,
            }
            for entry in history
        ],
        "created_at": shipment.created_at,
        "updated_at": shipment.updated_at,
    }


def get_shipment(shipment_id) -> Shipment:
    return load(Shipment, shipment_id)


def get_shipment_for_order(order_id) -> Shipment:
    shipment = find_one(Shipment, order_id=str(order_id))
    if shipment is None:
        raise NotFoundError({"shipment": [f"No shipment found for order {order_id}"]})
    return shipment


def list_shipments(status=None, carrier=None, limit=100) -> list[Shipment]:
    filters = {}
    if status is not None:
        filters["status"] = ShipmentStatus(status).value
    if carrier is not None:
        filters["carrier"] = carrier

    query = current_domain.repository_for(Shipment)._dao.query
    if filters:
        query = query.filter(**filters)
    return query.order_by("-created_at").limit(limit).all().items
