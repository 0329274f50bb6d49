"""Carrier port: abstract interface for shipping carrier integrations.

Domain code programs against the port; adapters are swapped via the
``CARRIER_ADAPTER`` setting. Adapters raise ``ExternalServiceError`` when the
carrier cannot be reached or rejects a request.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class RateQuote:
    carrier: str
    service: str
    price: float
    rate_id: str
    currency: str = "USD"
    estimated_days: int | None = None

    def to_dict(self) -> dict:
        return {
            "carrier": self.carrier,
            "service": self.service,
            "price": self.price,
            "currency": self.currency,
            "estimated_days": self.estimated_days,
            "rate_id": self.rate_id,
        }


@dataclass(frozen=True)
class Label:
    label_url: str
    tracking_number: str
    carrier: str
    service: str
    estimated_days: int | None = None


@dataclass(frozen=True)
class TrackingInfo:
    tracking_number: str
    status: str
    carrier: str | None = None
    estimated_delivery: datetime | None = None
    events: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "tracking_number": self.tracking_number,
            "status": self.status,
            "carrier": self.carrier,
            "estimated_delivery": self.estimated_delivery,
            "events": list(self.events),
        }


class CarrierPort(ABC):
    @abstractmethod
    def quote_rates(self, origin: dict, destination: dict, parcel: dict) -> list[RateQuote]:
        """Return the available rates for shipping ``parcel`` between two addresses."""
        ...

    @abstractmethod
    def purchase_label(self, rate_id: str) -> Label:
        ...

    @abstractmethod
    def track(self, tracking_number: str, carrier: str | None = None) -> TrackingInfo:
        """Return the carrier's current raw status for a tracking number."""
        ...

    @abstractmethod
    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:
        ...
