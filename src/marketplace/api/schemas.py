"""Pydantic request/response schemas for the marketplace API.

These are external contracts, kept separate from the internal Protean
commands they are translated into.
"""

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class AddCartItemRequest(BaseModel):
    product_id: str
    quantity: int = Field(ge=1)


class UpdateCartItemRequest(BaseModel):
    quantity: int = Field(ge=1)


class CartItemIdResponse(BaseModel):
    item_id: str


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class PlaceOrderRequest(BaseModel):
    customer_id: str
    shipping_address_id: str
    billing_address_id: str | None = None
    shipping_amount: float = Field(default=0.0, ge=0)
    tax_amount: float = Field(default=0.0, ge=0)
    discount_amount: float = Field(default=0.0, ge=0)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "customer_id": "cust-001",
                    "shipping_address_id": "addr-001",
                    "shipping_amount": 5.99,
                    "tax_amount": 2.40,
                }
            ]
        }
    }


class OrderPlacedResponse(BaseModel):
    order_id: str
    order_number: str
    total_amount: float


class CancelOrderRequest(BaseModel):
    requester_id: str
    is_admin: bool = False
    reason: str | None = None


class UpdateOrderStatusRequest(BaseModel):
    status: str
    reason: str | None = None


class StatusResponse(BaseModel):
    status: str


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------
class CreatePaymentIntentRequest(BaseModel):
    order_id: str


class PaymentIntentResponse(BaseModel):
    payment_id: str
    intent_id: str
    client_secret: str
    amount: float
    currency: str


class PaymentConfirmationResponse(BaseModel):
    payment_id: str
    order_id: str
    status: str


class RefundRequest(BaseModel):
    order_id: str
    amount: float | None = Field(default=None, gt=0)


class RefundResponse(BaseModel):
    payment_id: str
    refund_id: str
    amount: float
    status: str


class WebhookAckResponse(BaseModel):
    received: bool = True


# ---------------------------------------------------------------------------
# Shipments
# ---------------------------------------------------------------------------
class ParcelSchema(BaseModel):
    length: float = Field(gt=0)
    width: float = Field(gt=0)
    height: float = Field(gt=0)
    weight: float = Field(gt=0)
    distance_unit: str = "in"
    mass_unit: str = "lb"


class QuoteRatesRequest(BaseModel):
    origin_address_id: str
    destination_address_id: str
    parcel: ParcelSchema | None = None


class RateSchema(BaseModel):
    carrier: str
    service: str
    price: float
    currency: str
    estimated_days: int | None = None
    rate_id: str


class CreateShipmentRequest(BaseModel):
    order_id: str
    rate_id: str
    carrier: str | None = None
    service: str | None = None


class ShipmentCreatedResponse(BaseModel):
    shipment_id: str
    tracking_number: str


class TrackingWebhookRequest(BaseModel):
    tracking_number: str
    status: str
    details: dict = Field(default_factory=dict)
