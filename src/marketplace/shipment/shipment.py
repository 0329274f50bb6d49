"""Shipment aggregate: the carrier label and tracking state for one order.

Shipment lifecycle:
    pre_transit -> in_transit -> out_for_delivery -> delivered
    any non-terminal -> exception | returned
    exception -> in_transit | out_for_delivery | delivered

``delivered`` and ``returned`` are terminal. Updates that would move a
shipment backwards are ignored. Every applied change appends one entry to
the status history; entries are never edited or removed.
"""

import json
from datetime import UTC, datetime, timedelta
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, String, Text

from marketplace.domain import marketplace
from marketplace.shipment.events import ShipmentCreated, ShipmentDelivered, ShipmentStatusChanged

DEFAULT_DELIVERY_DAYS = 3


class ShipmentStatus(Enum):
    PRE_TRANSIT = "pre_transit"
    IN_TRANSIT = "in_transit"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    EXCEPTION = "exception"
    RETURNED = "returned"


_VALID_TRANSITIONS = {
    ShipmentStatus.PRE_TRANSIT: {
        ShipmentStatus.IN_TRANSIT,
        ShipmentStatus.OUT_FOR_DELIVERY,
        ShipmentStatus.DELIVERED,
        ShipmentStatus.EXCEPTION,
        ShipmentStatus.RETURNED,
    },
    ShipmentStatus.IN_TRANSIT: {
        ShipmentStatus.OUT_FOR_DELIVERY,
        ShipmentStatus.DELIVERED,
        ShipmentStatus.EXCEPTION,
        ShipmentStatus.RETURNED,
    },
    ShipmentStatus.OUT_FOR_DELIVERY: {
        ShipmentStatus.DELIVERED,
        ShipmentStatus.EXCEPTION,
        ShipmentStatus.RETURNED,
    },
    ShipmentStatus.EXCEPTION: {
        ShipmentStatus.IN_TRANSIT,
        ShipmentStatus.OUT_FOR_DELIVERY,
        ShipmentStatus.DELIVERED,
        ShipmentStatus.RETURNED,
    },
    ShipmentStatus.DELIVERED: set(),
    ShipmentStatus.RETURNED: set(),
}

# Raw carrier status -> internal status
CARRIER_STATUS_MAP = {
    "pre_transit": ShipmentStatus.PRE_TRANSIT,
    "unknown": ShipmentStatus.PRE_TRANSIT,
    "label_created": ShipmentStatus.PRE_TRANSIT,
    "pending": ShipmentStatus.PRE_TRANSIT,
    "transit": ShipmentStatus.IN_TRANSIT,
    "in_transit": ShipmentStatus.IN_TRANSIT,
    "out_for_delivery": ShipmentStatus.OUT_FOR_DELIVERY,
    "delivered": ShipmentStatus.DELIVERED,
    "failure": ShipmentStatus.EXCEPTION,
    "exception": ShipmentStatus.EXCEPTION,
    "failed": ShipmentStatus.EXCEPTION,
    "returned": ShipmentStatus.RETURNED,
    "return_to_sender": ShipmentStatus.RETURNED,
}


def map_carrier_status(carrier_status: str) -> ShipmentStatus:
    status = CARRIER_STATUS_MAP.get((carrier_status or "").strip().lower())
    if status is None:
        raise ValidationError({"status": [f"Unknown carrier status: {carrier_status}"]})
    return status


@marketplace.entity(part_of="Shipment")
class ShipmentStatusEntry:
    status = String(required=True, choices=ShipmentStatus)
    carrier_status = String(max_length=50)
    details = Text()
    occurred_at = DateTime(required=True)


@marketplace.aggregate
class Shipment:
    order_id = Identifier(required=True, unique=True)
    tracking_number = String(required=True, max_length=100, unique=True)
    carrier = String(required=True, max_length=50)
    service = String(max_length=100)
    rate_id = String(max_length=100)
    label_url = String(max_length=500)
    status = String(choices=ShipmentStatus, default=ShipmentStatus.PRE_TRANSIT.value)
    history = HasMany(ShipmentStatusEntry)
    estimated_delivery_date = DateTime()
    actual_delivery_date = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(
        cls, order_id, tracking_number, carrier, service=None, rate_id=None, label_url=None, estimated_days=None
    ):
        now = datetime.now(UTC)
        days = estimated_days if estimated_days else DEFAULT_DELIVERY_DAYS
        shipment = cls(
            order_id=order_id,
            tracking_number=tracking_number,
            carrier=carrier,
            service=service,
            rate_id=rate_id,
            label_url=label_url,
            status=ShipmentStatus.PRE_TRANSIT.value,
            history=[
                ShipmentStatusEntry(
                    status=ShipmentStatus.PRE_TRANSIT.value,
                    carrier_status="label_created",
                    details=json.dumps({"message": "Shipping label created"}),
                    occurred_at=now,
                )
            ],
            estimated_delivery_date=now + timedelta(days=days),
            created_at=now,
            updated_at=now,
        )
        shipment.raise_(
            ShipmentCreated(
                shipment_id=str(shipment.id),
                order_id=str(order_id),
                tracking_number=tracking_number,
                carrier=carrier,
                service=service,
                estimated_delivery_date=shipment.estimated_delivery_date,
                created_at=now,
            )
        )
        return shipment

    @property
    def is_terminal(self) -> bool:
        return not _VALID_TRANSITIONS[ShipmentStatus(self.status)]

    def can_move_to(self, target) -> bool:
        return ShipmentStatus(target) in _VALID_TRANSITIONS[ShipmentStatus(self.status)]

    def apply_tracking_status(self, target, carrier_status=None, details=None, occurred_at=None) -> bool:
        """Apply a mapped carrier status. Returns False for repeats, stale updates and terminal shipments."""
        target = ShipmentStatus(target)
        if target.value == self.status or not self.can_move_to(target):
            return False

        now = occurred_at or datetime.now(UTC)
        previous = self.status
        self.status = target.value
        self.updated_at = datetime.now(UTC)
        self.add_history(
            ShipmentStatusEntry(
                status=target.value,
                carrier_status=carrier_status,
                details=json.dumps(details or {}),
                occurred_at=now,
            )
        )
        self.raise_(
            ShipmentStatusChanged(
                shipment_id=str(self.id),
                order_id=str(self.order_id),
                previous_status=previous,
                new_status=target.value,
                carrier_status=carrier_status,
                occurred_at=now,
            )
        )

        if target == ShipmentStatus.DELIVERED:
            self.actual_delivery_date = now
            self.raise_(
                ShipmentDelivered(
                    shipment_id=str(self.id),
                    order_id=str(self.order_id),
                    tracking_number=self.tracking_number,
                    delivered_at=now,
                )
            )
        return True
