"""Stripe payment gateway adapter.

Talks to the Stripe REST API over httpx with form-encoded bodies. Every
call is bounded by ``timeout`` seconds; timeouts, transport failures and
non-2xx responses are reported as ``ExternalServiceError``.
"""

import json

import httpx
import structlog

from marketplace.exceptions import AuthenticationError, ExternalServiceError
from marketplace.gateway.port import IntentResult, PaymentGateway, RefundResult, WebhookEvent
from marketplace.gateway.signature import verify_signature

logger = structlog.get_logger(__name__)

STRIPE_BASE_URL = "https://api.stripe.com/v1"


class StripeGateway(PaymentGateway):
    def __init__(
        self,
        api_key: str,
        webhook_secret: str,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        if not api_key:
            raise ValueError("STRIPE_API_KEY is required")
        self.webhook_secret = webhook_secret
        self._client = httpx.Client(
            base_url=STRIPE_BASE_URL,
            auth=(api_key, ""),
            timeout=timeout,
            transport=transport,
        )

    def _request(self, method: str, endpoint: str, data: dict | None = None, idempotency_key: str | None = None):
        headers = {"Idempotency-Key": idempotency_key} if idempotency_key else None
        try:
            response = self._client.request(method, endpoint, data=data, headers=headers)
        except httpx.TimeoutException as exc:
            logger.error("Stripe request timed out", endpoint=endpoint)
            raise ExternalServiceError("payment_gateway", "Payment gateway timed out") from exc
        except httpx.HTTPError as exc:
            logger.error("Stripe request failed", endpoint=endpoint, error=str(exc))
            raise ExternalServiceError("payment_gateway", f"Payment gateway unreachable: {exc}") from exc

        body = response.json() if response.content else {}
        if not response.is_success:
            message = body.get("error", {}).get("message", "Unknown Stripe error")
            logger.error("Stripe API error", endpoint=endpoint, status_code=response.status_code, message=message)
            raise ExternalServiceError("payment_gateway", message)
        return body

    def create_intent(self, amount: int, currency: str, metadata: dict) -> IntentResult:
        data = {"amount": amount, "currency": currency.lower()}
        for key, value in metadata.items():
            data[f"metadata[{key}]"] = str(value)

        body = self._request("POST", "/payment_intents", data=data)
        return IntentResult(id=body["id"], client_secret=body["client_secret"], status=body["status"])

    def retrieve_intent(self, intent_id: str) -> str:
        return self._request("GET", f"/payment_intents/{intent_id}")["status"]

    def create_refund(self, intent_id: str, amount: int) -> RefundResult:
        body = self._request("POST", "/refunds", data={"payment_intent": intent_id, "amount": amount})
        return RefundResult(id=body["id"], status=body["status"])

    def parse_webhook(self, payload: bytes, signature: str) -> WebhookEvent:
        if not verify_signature(payload, signature, self.webhook_secret):
            raise AuthenticationError({"signature": ["Invalid webhook signature"]})

        event = json.loads(payload)
        obj = event["data"]["object"]
        return WebhookEvent(id=event["id"], type=event["type"], object_id=obj["id"], data=obj)
