"""FastAPI routes for carts, orders, payments and shipments."""

import json

import structlog
from fastapi import APIRouter, Header, HTTPException, Request
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain
from pydantic import ValidationError as PydanticValidationError

from marketplace.api.schemas import (
    AddCartItemRequest,
    CancelOrderRequest,
    CartItemIdResponse,
    CreatePaymentIntentRequest,
    CreateShipmentRequest,
    OrderPlacedResponse,
    PaymentConfirmationResponse,
    PaymentIntentResponse,
    PlaceOrderRequest,
    QuoteRatesRequest,
    RateSchema,
    RefundRequest,
    RefundResponse,
    ShipmentCreatedResponse,
    StatusResponse,
    TrackingWebhookRequest,
    UpdateCartItemRequest,
    UpdateOrderStatusRequest,
    WebhookAckResponse,
)
from marketplace.carrier import get_carrier
from marketplace.cart.items import AddCartItem, ClearCart, RemoveCartItem, UpdateCartItemQuantity
from marketplace.cart.snapshot import snapshot_cart
from marketplace.exceptions import AuthenticationError, MarketplaceError
from marketplace.order.cancellation import CancelOrder
from marketplace.order.placement import place_order
from marketplace.order.queries import get_order, list_orders, order_to_dict
from marketplace.order.status import UpdateOrderStatus
from marketplace.payment.intent import CreatePaymentIntent
from marketplace.payment.queries import get_payment, payment_to_dict
from marketplace.payment.reconciliation import ConfirmPayment, reconcile_webhook
from marketplace.payment.refund import RefundPayment
from marketplace.shipment.creation import CreateShipment
from marketplace.shipment.queries import get_shipment, list_shipments, shipment_to_dict
from marketplace.shipment.rates import quote_shipping_rates
from marketplace.shipment.tracking import apply_tracking_update, find_by_tracking_number, refresh_tracking

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/carts", tags=["carts"])


@cart_router.get("/{customer_id}")
async def view_cart(customer_id: str) -> dict:
    """Current cart contents validated against live stock and prices."""
    return snapshot_cart(customer_id).to_dict()


@cart_router.post("/{customer_id}/items", status_code=201, response_model=CartItemIdResponse)
async def add_cart_item(customer_id: str, body: AddCartItemRequest) -> CartItemIdResponse:
    command = AddCartItem(customer_id=customer_id, product_id=body.product_id, quantity=body.quantity)
    item_id = current_domain.process(command, asynchronous=False)
    return CartItemIdResponse(item_id=item_id)


@cart_router.put("/{customer_id}/items/{item_id}", response_model=StatusResponse)
async def update_cart_item(customer_id: str, item_id: str, body: UpdateCartItemRequest) -> StatusResponse:
    command = UpdateCartItemQuantity(customer_id=customer_id, item_id=item_id, quantity=body.quantity)
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="updated")


@cart_router.delete("/{customer_id}/items/{item_id}", response_model=StatusResponse)
async def remove_cart_item(customer_id: str, item_id: str) -> StatusResponse:
    current_domain.process(RemoveCartItem(customer_id=customer_id, item_id=item_id), asynchronous=False)
    return StatusResponse(status="removed")


@cart_router.delete("/{customer_id}", response_model=StatusResponse)
async def clear_cart(customer_id: str) -> StatusResponse:
    current_domain.process(ClearCart(customer_id=customer_id), asynchronous=False)
    return StatusResponse(status="cleared")


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderPlacedResponse)
async def create_order(body: PlaceOrderRequest) -> OrderPlacedResponse:
    """Check out the customer's cart."""
    order_id = place_order(
        customer_id=body.customer_id,
        shipping_address_id=body.shipping_address_id,
        billing_address_id=body.billing_address_id,
        shipping_amount=body.shipping_amount,
        tax_amount=body.tax_amount,
        discount_amount=body.discount_amount,
    )
    order = get_order(order_id)
    return OrderPlacedResponse(order_id=order_id, order_number=order.order_number, total_amount=order.total_amount)


@order_router.get("")
async def search_orders(
    customer_id: str | None = None,
    status: str | None = None,
    page: int = 1,
    limit: int = 10,
) -> dict:
    """Paginated orders, newest first. Without ``customer_id`` all orders are listed."""
    return list_orders(customer_id=customer_id, status=status, page=page, limit=limit)


@order_router.get("/{order_id}")
async def fetch_order(order_id: str, customer_id: str | None = None) -> dict:
    return order_to_dict(get_order(order_id, customer_id=customer_id))


@order_router.put("/{order_id}/cancel", response_model=StatusResponse)
async def cancel_order(order_id: str, body: CancelOrderRequest) -> StatusResponse:
    command = CancelOrder(
        order_id=order_id,
        requester_id=body.requester_id,
        is_admin=body.is_admin,
        reason=body.reason,
    )
    return StatusResponse(status=current_domain.process(command, asynchronous=False))


@order_router.put("/{order_id}/status", response_model=StatusResponse)
async def update_order_status(order_id: str, body: UpdateOrderStatusRequest) -> StatusResponse:
    command = UpdateOrderStatus(order_id=order_id, status=body.status, reason=body.reason)
    return StatusResponse(status=current_domain.process(command, asynchronous=False))


# ---------------------------------------------------------------------------
# Payment Router
# ---------------------------------------------------------------------------
payment_router = APIRouter(prefix="/payments", tags=["payments"])


@payment_router.post("/intents", status_code=201, response_model=PaymentIntentResponse)
async def create_payment_intent(body: CreatePaymentIntentRequest) -> PaymentIntentResponse:
    result = current_domain.process(CreatePaymentIntent(order_id=body.order_id), asynchronous=False)
    return PaymentIntentResponse(**result)


@payment_router.post("/webhook", response_model=WebhookAckResponse)
async def payment_webhook(request: Request, x_gateway_signature: str = Header(default="")) -> WebhookAckResponse:
    """Gateway callback. Always acknowledged; failures are logged for reconciliation."""
    payload = await request.body()
    try:
        reconcile_webhook(payload, x_gateway_signature)
    except AuthenticationError:
        logger.warning("Rejected payment webhook with invalid signature")
    except (MarketplaceError, ValidationError, ValueError, KeyError) as exc:
        logger.error("Payment webhook could not be applied", error=str(exc))
    except Exception:
        # The gateway retries anything but a 2xx; the event is left for reconciliation
        logger.exception("Payment webhook failed unexpectedly")
    return WebhookAckResponse(received=True)


@payment_router.post("/refunds", response_model=RefundResponse)
async def refund_payment(body: RefundRequest) -> RefundResponse:
    result = current_domain.process(RefundPayment(order_id=body.order_id, amount=body.amount), asynchronous=False)
    return RefundResponse(**result)


@payment_router.post("/{payment_id}/confirm", response_model=PaymentConfirmationResponse)
async def confirm_payment(payment_id: str) -> PaymentConfirmationResponse:
    result = current_domain.process(ConfirmPayment(payment_id=payment_id), asynchronous=False)
    return PaymentConfirmationResponse(**result)


@payment_router.get("/{payment_id}")
async def fetch_payment(payment_id: str) -> dict:
    return payment_to_dict(get_payment(payment_id))


# ---------------------------------------------------------------------------
# Shipment Router
# ---------------------------------------------------------------------------
shipment_router = APIRouter(prefix="/shipments", tags=["shipments"])


@shipment_router.post("/rates", response_model=list[RateSchema])
async def quote_rates(body: QuoteRatesRequest) -> list[RateSchema]:
    parcel = body.parcel.model_dump() if body.parcel else None
    quotes = quote_shipping_rates(body.origin_address_id, body.destination_address_id, parcel)
    return [RateSchema(**quote.to_dict()) for quote in quotes]


@shipment_router.post("", status_code=201, response_model=ShipmentCreatedResponse)
async def create_shipment(body: CreateShipmentRequest) -> ShipmentCreatedResponse:
    command = CreateShipment(order_id=body.order_id, rate_id=body.rate_id, carrier=body.carrier, service=body.service)
    shipment_id = current_domain.process(command, asynchronous=False)
    shipment = get_shipment(shipment_id)
    return ShipmentCreatedResponse(shipment_id=shipment_id, tracking_number=shipment.tracking_number)


@shipment_router.get("")
async def search_shipments(status: str | None = None, carrier: str | None = None) -> list[dict]:
    return [shipment_to_dict(shipment) for shipment in list_shipments(status=status, carrier=carrier)]


@shipment_router.get("/track/{tracking_number}")
async def track_shipment(tracking_number: str) -> dict:
    """Poll the carrier, apply the latest status and return the shipment."""
    info = refresh_tracking(tracking_number)
    return {"tracking": info.to_dict(), "shipment": shipment_to_dict(find_by_tracking_number(tracking_number))}


@shipment_router.post("/tracking/webhook", response_model=WebhookAckResponse)
async def tracking_webhook(request: Request, x_carrier_signature: str = Header(default="")) -> WebhookAckResponse:
    payload = await request.body()
    if not get_carrier().verify_webhook_signature(payload, x_carrier_signature):
        raise HTTPException(status_code=401, detail="Invalid webhook signature")

    try:
        body = TrackingWebhookRequest.model_validate(json.loads(payload))
    except (json.JSONDecodeError, PydanticValidationError) as exc:
        raise HTTPException(status_code=400, detail="Malformed tracking payload") from exc

    try:
        apply_tracking_update(body.tracking_number, body.status, body.details)
    except (MarketplaceError, ValidationError) as exc:
        logger.error("Tracking webhook could not be applied", tracking_number=body.tracking_number, error=str(exc))
    except Exception:
        logger.exception("Tracking webhook failed unexpectedly", tracking_number=body.tracking_number)
    return WebhookAckResponse(received=True)


@shipment_router.get("/{shipment_id}")
async def fetch_shipment(shipment_id: str) -> dict:
    return shipment_to_dict(get_shipment(shipment_id))
