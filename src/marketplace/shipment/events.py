"""Domain events raised by the Shipment aggregate."""

from protean.fields import DateTime, Identifier, String

from marketplace.domain import marketplace


@marketplace.event(part_of="Shipment")
class ShipmentCreated:
    __version__ = 1

    shipment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    tracking_number = String(required=True, max_length=100)
    carrier = String(required=True, max_length=50)
    service = String(max_length=100)
    estimated_delivery_date = DateTime()
    created_at = DateTime(required=True)


@marketplace.event(part_of="Shipment")
class ShipmentStatusChanged:
    __version__ = 1

    shipment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    previous_status = String(required=True, max_length=30)
    new_status = String(required=True, max_length=30)
    carrier_status = String(max_length=50)
    occurred_at = DateTime(required=True)


@marketplace.event(part_of="Shipment")
class ShipmentDelivered:
    __version__ = 1

    shipment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    tracking_number = String(required=True, max_length=100)
    delivered_at = DateTime(required=True)
