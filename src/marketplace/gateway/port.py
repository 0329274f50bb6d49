"""Payment gateway port (abstract interface).

Amounts cross this boundary in minor units (cents). Every adapter raises
``ExternalServiceError`` when the provider cannot be reached or rejects a
call, and ``AuthenticationError`` when a webhook signature does not verify.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class IntentResult:
    """A payment intent as created at the gateway."""

    id: str
    client_secret: str
    status: str = "requires_payment_method"


@dataclass(frozen=True)
class RefundResult:
    id: str
    status: str = "succeeded"


@dataclass(frozen=True)
class WebhookEvent:
    """A verified gateway webhook event."""

    id: str
    type: str
    object_id: str
    data: dict = field(default_factory=dict)


def to_minor_units(amount: float) -> int:
    return int(round(amount * 100))


class PaymentGateway(ABC):
    @abstractmethod
    def create_intent(self, amount: int, currency: str, metadata: dict) -> IntentResult:
        """Create a payment intent for ``amount`` minor units."""
        ...

    @abstractmethod
    def retrieve_intent(self, intent_id: str) -> str:
        """Return the gateway's current status string for an intent."""
        ...

    @abstractmethod
    def create_refund(self, intent_id: str, amount: int) -> RefundResult:
        ...

    @abstractmethod
    def parse_webhook(self, payload: bytes, signature: str) -> WebhookEvent:
        """Verify ``signature`` over the raw ``payload`` and decode the event."""
        ...
