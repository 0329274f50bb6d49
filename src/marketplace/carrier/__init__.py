"""Carrier adapter factory.

``CARRIER_ADAPTER`` selects the adapter: ``fake`` (default) or ``shippo``.
"""

import os

from marketplace.carrier.port import CarrierPort

_carrier_instance: CarrierPort | None = None


def get_carrier() -> CarrierPort:
    """Return the configured carrier adapter (singleton)."""
    global _carrier_instance
    if _carrier_instance is None:
        adapter = os.environ.get("CARRIER_ADAPTER", "fake")
        webhook_secret = os.environ.get("CARRIER_WEBHOOK_SECRET")
        if adapter == "fake":
            from marketplace.carrier.fake_adapter import FakeCarrier

            _carrier_instance = FakeCarrier(webhook_secret=webhook_secret)
        elif adapter == "shippo":
            from marketplace.carrier.shippo_adapter import ShippoCarrier

            _carrier_instance = ShippoCarrier(
                api_key=os.environ.get("SHIPPO_API_KEY", ""),
                webhook_secret=webhook_secret,
                timeout=float(os.environ.get("CARRIER_TIMEOUT_SECONDS", "10")),
            )
        else:
            raise ValueError(f"Unknown carrier adapter: {adapter}")
    return _carrier_instance


def set_carrier(carrier: CarrierPort) -> None:
    global _carrier_instance
    _carrier_instance = carrier


def reset_carrier():
    """Reset the carrier singleton (useful for testing)."""
    global _carrier_instance
    _carrier_instance = None
