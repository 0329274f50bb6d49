from datetime import timedelta

import pytest
from marketplace.shipment.events import ShipmentCreated, ShipmentDelivered, ShipmentStatusChanged
from marketplace.shipment.shipment import (
    DEFAULT_DELIVERY_DAYS,
    Shipment,
    ShipmentStatus,
    map_carrier_status,
)
from protean.exceptions import ValidationError


def _shipment(**overrides):
    return Shipment.create(
        order_id=overrides.pop("order_id", "ord-001"),
        tracking_number=overrides.pop("tracking_number", "TRK-001"),
        carrier=overrides.pop("carrier", "usps"),
        service=overrides.pop("service", "Priority"),
        **overrides,
    )


class TestCreate:
    def test_starts_pre_transit_with_label_entry(self):
        shipment = _shipment()

        assert shipment.status == "pre_transit"
        assert len(shipment.history) == 1
        assert shipment.history[0].carrier_status == "label_created"
        assert isinstance(shipment._events[0], ShipmentCreated)

    def test_estimated_delivery_uses_rate_days(self):
        shipment = _shipment(estimated_days=5)
        assert shipment.estimated_delivery_date - shipment.created_at == timedelta(days=5)

    def test_estimated_delivery_defaults(self):
        shipment = _shipment()
        assert shipment.estimated_delivery_date - shipment.created_at == timedelta(days=DEFAULT_DELIVERY_DAYS)


class TestCarrierStatusMapping:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("pre_transit", ShipmentStatus.PRE_TRANSIT),
            ("UNKNOWN", ShipmentStatus.PRE_TRANSIT),
            ("transit", ShipmentStatus.IN_TRANSIT),
            ("out_for_delivery", ShipmentStatus.OUT_FOR_DELIVERY),
            ("Delivered", ShipmentStatus.DELIVERED),
            ("failure", ShipmentStatus.EXCEPTION),
            ("returned", ShipmentStatus.RETURNED),
            ("return_to_sender", ShipmentStatus.RETURNED),
        ],
    )
    def test_known_statuses(self, raw, expected):
        assert map_carrier_status(raw) == expected

    @pytest.mark.parametrize("raw", ["teleported", "", None])
    def test_unknown_status_rejected(self, raw):
        with pytest.raises(ValidationError):
            map_carrier_status(raw)


class TestTrackingStatus:
    def test_forward_progress_appends_history(self):
        shipment = _shipment()

        assert shipment.apply_tracking_status(ShipmentStatus.IN_TRANSIT, carrier_status="transit") is True
        assert shipment.apply_tracking_status(ShipmentStatus.OUT_FOR_DELIVERY) is True

        assert shipment.status == "out_for_delivery"
        assert [entry.status for entry in shipment.history] == ["pre_transit", "in_transit", "out_for_delivery"]
        assert isinstance(shipment._events[-1], ShipmentStatusChanged)

    def test_repeat_is_a_noop(self):
        shipment = _shipment()
        shipment.apply_tracking_status(ShipmentStatus.IN_TRANSIT)

        assert shipment.apply_tracking_status(ShipmentStatus.IN_TRANSIT) is False
        assert len(shipment.history) == 2

    def test_backward_update_ignored(self):
        shipment = _shipment()
        shipment.apply_tracking_status(ShipmentStatus.OUT_FOR_DELIVERY)

        assert shipment.apply_tracking_status(ShipmentStatus.IN_TRANSIT) is False
        assert shipment.status == "out_for_delivery"

    def test_exception_can_recover(self):
        shipment = _shipment()
        shipment.apply_tracking_status(ShipmentStatus.EXCEPTION)
        assert shipment.apply_tracking_status(ShipmentStatus.IN_TRANSIT) is True

    def test_delivered_is_terminal(self):
        shipment = _shipment()
        shipment.apply_tracking_status(ShipmentStatus.DELIVERED)

        assert shipment.is_terminal
        assert shipment.actual_delivery_date is not None
        assert isinstance(shipment._events[-1], ShipmentDelivered)
        assert shipment.apply_tracking_status(ShipmentStatus.RETURNED) is False

    def test_details_stored_as_json(self):
        shipment = _shipment()
        shipment.apply_tracking_status(ShipmentStatus.IN_TRANSIT, details={"location": "Memphis, TN"})
        assert '"Memphis, TN"' in shipment.history[-1].details
