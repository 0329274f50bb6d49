"""StripeGateway against a mocked HTTP transport."""

import json
from urllib.parse import parse_qs

import httpx
import pytest
from marketplace.exceptions import AuthenticationError, ExternalServiceError
from marketplace.gateway.signature import sign_payload
from marketplace.gateway.stripe_adapter import StripeGateway


def _gateway(handler):
    return StripeGateway(api_key="sk_test_123", webhook_secret="whsec_test", transport=httpx.MockTransport(handler))


def test_create_intent_sends_minor_units_and_metadata():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["form"] = parse_qs(request.content.decode())
        return httpx.Response(
            200, json={"id": "pi_123", "client_secret": "pi_123_secret", "status": "requires_payment_method"}
        )

    intent = _gateway(handler).create_intent(2599, "USD", {"order_id": "ord-1", "order_number": "ORD-1"})

    assert intent.id == "pi_123"
    assert intent.client_secret == "pi_123_secret"
    assert seen["path"] == "/v1/payment_intents"
    assert seen["form"]["amount"] == ["2599"]
    assert seen["form"]["currency"] == ["usd"]
    assert seen["form"]["metadata[order_id]"] == ["ord-1"]


def test_retrieve_intent_returns_status():
    def handler(request):
        assert request.url.path == "/v1/payment_intents/pi_123"
        return httpx.Response(200, json={"id": "pi_123", "status": "succeeded"})

    assert _gateway(handler).retrieve_intent("pi_123") == "succeeded"


def test_create_refund():
    def handler(request):
        form = parse_qs(request.content.decode())
        assert form["payment_intent"] == ["pi_123"]
        assert form["amount"] == ["500"]
        return httpx.Response(200, json={"id": "re_123", "status": "succeeded"})

    refund = _gateway(handler).create_refund("pi_123", 500)
    assert refund.id == "re_123"


def test_api_error_becomes_external_service_error():
    def handler(request):
        return httpx.Response(402, json={"error": {"message": "Your card was declined."}})

    with pytest.raises(ExternalServiceError) as exc_info:
        _gateway(handler).create_intent(100, "usd", {})
    assert exc_info.value.service == "payment_gateway"
    assert "declined" in str(exc_info.value.messages)


def test_timeout_becomes_external_service_error():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(ExternalServiceError):
        _gateway(handler).retrieve_intent("pi_123")


def test_api_key_required():
    with pytest.raises(ValueError):
        StripeGateway(api_key="", webhook_secret="whsec_test")


def test_parse_webhook():
    payload = json.dumps(
        {"id": "evt_1", "type": "payment_intent.succeeded", "data": {"object": {"id": "pi_123"}}}
    ).encode()
    gateway = _gateway(lambda request: httpx.Response(200))

    event = gateway.parse_webhook(payload, sign_payload(payload, "whsec_test"))

    assert event.id == "evt_1"
    assert event.type == "payment_intent.succeeded"
    assert event.object_id == "pi_123"

    with pytest.raises(AuthenticationError):
        gateway.parse_webhook(payload, sign_payload(payload, "whsec_wrong"))
