"""Payment gateway factory.

``PAYMENT_GATEWAY`` selects the adapter: ``fake`` (default) or ``stripe``.
Tests swap implementations with ``set_gateway`` / ``reset_gateway``.
"""

import os

from marketplace.gateway.fake_adapter import DEFAULT_WEBHOOK_SECRET, FakeGateway
from marketplace.gateway.port import PaymentGateway
from marketplace.gateway.stripe_adapter import StripeGateway

_current_gateway: PaymentGateway | None = None


def _build_gateway() -> PaymentGateway:
    adapter = os.environ.get("PAYMENT_GATEWAY", "fake").lower()
    webhook_secret = os.environ.get("PAYMENT_WEBHOOK_SECRET", DEFAULT_WEBHOOK_SECRET)
    if adapter == "stripe":
        return StripeGateway(
            api_key=os.environ.get("STRIPE_API_KEY", ""),
            webhook_secret=webhook_secret,
            timeout=float(os.environ.get("GATEWAY_TIMEOUT_SECONDS", "10")),
        )
    return FakeGateway(webhook_secret=webhook_secret)


def get_gateway() -> PaymentGateway:
    """Return the active payment gateway, building it on first use."""
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = _build_gateway()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    global _current_gateway
    _current_gateway = None
