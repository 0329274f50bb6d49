"""Shippo carrier adapter.

Uses the Shippo REST API over httpx. Rates come from creating a shipment
object, labels from purchasing a transaction for one of its rates.
"""

from datetime import datetime

import httpx
import structlog

from marketplace.carrier.port import CarrierPort, Label, RateQuote, TrackingInfo
from marketplace.exceptions import ExternalServiceError
from marketplace.gateway.signature import verify_signature

logger = structlog.get_logger(__name__)

SHIPPO_BASE_URL = "https://api.goshippo.com"


class ShippoCarrier(CarrierPort):
    def __init__(
        self,
        api_key: str,
        webhook_secret: str | None = None,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        if not api_key:
            raise ValueError("SHIPPO_API_KEY is required")
        self.webhook_secret = webhook_secret
        self._client = httpx.Client(
            base_url=SHIPPO_BASE_URL,
            headers={"Authorization": f"ShippoToken {api_key}"},
            timeout=timeout,
            transport=transport,
        )

    def _request(self, method: str, endpoint: str, json_data: dict | None = None) -> dict:
        try:
            response = self._client.request(method, endpoint, json=json_data)
        except httpx.TimeoutException as exc:
            logger.error("Shippo request timed out", endpoint=endpoint)
            raise ExternalServiceError("carrier", "Carrier timed out") from exc
        except httpx.HTTPError as exc:
            logger.error("Shippo request failed", endpoint=endpoint, error=str(exc))
            raise ExternalServiceError("carrier", f"Carrier unreachable: {exc}") from exc

        data = response.json() if response.content else {}
        if not response.is_success:
            logger.error("Shippo API error", endpoint=endpoint, status_code=response.status_code, response=data)
            raise ExternalServiceError("carrier", data.get("detail", "Unknown Shippo error"))
        return data

    def quote_rates(self, origin: dict, destination: dict, parcel: dict) -> list[RateQuote]:
        data = self._request(
            "POST",
            "/shipments/",
            json_data={
                "address_from": origin,
                "address_to": destination,
                "parcels": [parcel],
                "async": False,
            },
        )
        return [
            RateQuote(
                carrier=rate["provider"],
                service=rate["servicelevel"]["name"],
                price=float(rate["amount"]),
                currency=rate.get("currency", "USD"),
                estimated_days=rate.get("estimated_days"),
                rate_id=rate["object_id"],
            )
            for rate in data.get("rates", [])
        ]

    def purchase_label(self, rate_id: str) -> Label:
        data = self._request(
            "POST",
            "/transactions/",
            json_data={"rate": rate_id, "label_file_type": "PDF", "async": False},
        )
        if data.get("status") != "SUCCESS":
            messages = "; ".join(m.get("text", "") for m in data.get("messages", []))
            raise ExternalServiceError("carrier", f"Label purchase failed: {messages or data.get('status')}")

        rate = data.get("rate")
        rate = rate if isinstance(rate, dict) else self._request("GET", f"/rates/{rate_id}")
        return Label(
            label_url=data["label_url"],
            tracking_number=data["tracking_number"],
            carrier=rate.get("provider", ""),
            service=rate.get("servicelevel", {}).get("name", ""),
            estimated_days=rate.get("estimated_days"),
        )

    def track(self, tracking_number: str, carrier: str | None = None) -> TrackingInfo:
        data = self._request("GET", f"/tracks/{carrier or 'shippo'}/{tracking_number}")
        current = data.get("tracking_status") or {}
        eta = data.get("eta")
        return TrackingInfo(
            tracking_number=tracking_number,
            status=(current.get("status") or "unknown").lower(),
            carrier=data.get("carrier", carrier),
            estimated_delivery=datetime.fromisoformat(eta.replace("Z", "+00:00")) if eta else None,
            events=[
                {
                    "status": (event.get("status") or "").lower(),
                    "details": event.get("status_details"),
                    "occurred_at": event.get("status_date"),
                }
                for event in data.get("tracking_history", [])
            ],
        )

    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:
        if not self.webhook_secret:
            logger.warning("Carrier webhook secret not configured, rejecting delivery")
            return False
        return verify_signature(payload, signature, self.webhook_secret)
