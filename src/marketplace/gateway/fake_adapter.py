"""Configurable in-memory payment gateway for development and testing.

Intents live in a dict keyed by id. Tests move an intent through its
lifecycle with ``set_intent_status`` and build correctly signed webhook
deliveries with ``build_webhook``.
"""

import json
from uuid import uuid4

from marketplace.exceptions import AuthenticationError, ExternalServiceError
from marketplace.gateway.port import IntentResult, PaymentGateway, RefundResult, WebhookEvent
from marketplace.gateway.signature import sign_payload, verify_signature

DEFAULT_WEBHOOK_SECRET = "whsec_fake"


class FakeGateway(PaymentGateway):
    def __init__(self, webhook_secret: str = DEFAULT_WEBHOOK_SECRET) -> None:
        self.webhook_secret = webhook_secret
        self.should_succeed: bool = True
        self.failure_reason: str = "Gateway unavailable"
        self.intents: dict[str, dict] = {}
        self.refunds: dict[str, dict] = {}
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Gateway unavailable") -> None:
        """Make subsequent outbound calls succeed or fail."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def _guard(self) -> None:
        if not self.should_succeed:
            raise ExternalServiceError("payment_gateway", self.failure_reason)

    def create_intent(self, amount: int, currency: str, metadata: dict) -> IntentResult:
        self.calls.append({"method": "create_intent", "amount": amount, "currency": currency, "metadata": metadata})
        self._guard()

        intent_id = f"pi_fake_{uuid4().hex[:16]}"
        client_secret = f"{intent_id}_secret_{uuid4().hex[:8]}"
        self.intents[intent_id] = {
            "amount": amount,
            "currency": currency,
            "metadata": dict(metadata),
            "status": "requires_payment_method",
        }
        return IntentResult(id=intent_id, client_secret=client_secret, status="requires_payment_method")

    def retrieve_intent(self, intent_id: str) -> str:
        self.calls.append({"method": "retrieve_intent", "intent_id": intent_id})
        self._guard()

        if intent_id not in self.intents:
            raise ExternalServiceError("payment_gateway", f"No such payment intent: {intent_id}")
        return self.intents[intent_id]["status"]

    def create_refund(self, intent_id: str, amount: int) -> RefundResult:
        self.calls.append({"method": "create_refund", "intent_id": intent_id, "amount": amount})
        self._guard()

        refund_id = f"re_fake_{uuid4().hex[:16]}"
        self.refunds[refund_id] = {"intent_id": intent_id, "amount": amount}
        return RefundResult(id=refund_id, status="succeeded")

    def parse_webhook(self, payload: bytes, signature: str) -> WebhookEvent:
        if not verify_signature(payload, signature, self.webhook_secret):
            raise AuthenticationError({"signature": ["Invalid webhook signature"]})

        event = json.loads(payload)
        return WebhookEvent(
            id=event["id"],
            type=event["type"],
            object_id=event["data"]["object"]["id"],
            data=event["data"]["object"],
        )

    # -------------------------------------------------------------------
    # Test helpers
    # -------------------------------------------------------------------
    def set_intent_status(self, intent_id: str, status: str) -> None:
        self.intents[intent_id]["status"] = status

    def build_webhook(self, event_type: str, intent_id: str, event_id: str | None = None, timestamp=None):
        """Return ``(payload, signature)`` for a signed webhook delivery."""
        payload = json.dumps(
            {
                "id": event_id or f"evt_fake_{uuid4().hex[:16]}",
                "type": event_type,
                "data": {"object": {"id": intent_id, "object": "payment_intent"}},
            }
        ).encode()
        return payload, sign_payload(payload, self.webhook_secret, timestamp)
