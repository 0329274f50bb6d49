"""Deterministic carrier for testing and development.

Quotes a fixed rate card, issues ``FAKE-`` tracking numbers and reports
whatever status a test has set with ``set_tracking_status``.
"""

from uuid import uuid4

from marketplace.carrier.port import CarrierPort, Label, RateQuote, TrackingInfo
from marketplace.exceptions import ExternalServiceError
from marketplace.gateway.signature import verify_signature

_RATE_CARD = (
    ("usps", "Priority", 7.50, 3),
    ("ups", "Ground", 9.25, 5),
    ("fedex", "Express", 24.00, 1),
)


class FakeCarrier(CarrierPort):
    def __init__(self, webhook_secret: str | None = None):
        self.webhook_secret = webhook_secret
        self.should_succeed = True
        self.failure_reason = "Carrier unavailable"
        self.rates: dict[str, RateQuote] = {}
        self.tracking: dict[str, dict] = {}

    def configure(self, should_succeed: bool = True, failure_reason: str = "Carrier unavailable"):
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def _guard(self):
        if not self.should_succeed:
            raise ExternalServiceError("carrier", self.failure_reason)

    def quote_rates(self, origin: dict, destination: dict, parcel: dict) -> list[RateQuote]:  # noqa: ARG002
        self._guard()
        quotes = []
        for carrier, service, price, days in _RATE_CARD:
            quote = RateQuote(
                carrier=carrier,
                service=service,
                price=price,
                rate_id=f"rate_{uuid4().hex[:12]}",
                estimated_days=days,
            )
            self.rates[quote.rate_id] = quote
            quotes.append(quote)
        return quotes

    def purchase_label(self, rate_id: str) -> Label:
        self._guard()
        rate = self.rates.get(rate_id)
        tracking_number = f"FAKE{uuid4().hex[:12].upper()}"
        self.tracking[tracking_number] = {"status": "pre_transit", "carrier": rate.carrier if rate else "usps"}
        return Label(
            label_url=f"https://fake-carrier.example.com/labels/{tracking_number}.pdf",
            tracking_number=tracking_number,
            carrier=rate.carrier if rate else "usps",
            service=rate.service if rate else "Priority",
            estimated_days=rate.estimated_days if rate else None,
        )

    def track(self, tracking_number: str, carrier: str | None = None) -> TrackingInfo:
        self._guard()
        entry = self.tracking.get(tracking_number, {"status": "unknown", "carrier": carrier})
        return TrackingInfo(
            tracking_number=tracking_number,
            status=entry["status"],
            carrier=entry.get("carrier"),
            events=[{"status": entry["status"], "details": "Fake carrier status"}],
        )

    def set_tracking_status(self, tracking_number: str, status: str) -> None:
        self.tracking.setdefault(tracking_number, {"carrier": "usps"})["status"] = status

    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:
        # Without a secret every delivery is accepted
        if self.webhook_secret is None:
            return True
        return verify_signature(payload, signature, self.webhook_secret)
