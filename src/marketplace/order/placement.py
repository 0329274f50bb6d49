"""Checkout: turn a customer's cart into an order in one unit of work.

The handler re-reads every product inside the transaction, verifies all
stock before writing anything, then creates the order, decrements stock and
empties the cart. Any failure rolls the whole unit of work back.

A concurrent writer that changed one of the same records surfaces as
``ExpectedVersionError``. The handler is re-run in a fresh unit of work up to
``MAX_COMMAND_ATTEMPTS`` times in total; ``place_order`` turns a conflict that
survives every attempt into ``ConflictError``.
"""

import os

import structlog
from protean import handle
from protean.exceptions import ExpectedVersionError, ValidationError
from protean.fields import Float, Identifier, String
from protean.utils.globals import current_domain

from marketplace.cart.cart import ShoppingCart
from marketplace.cart.snapshot import InvalidReason, snapshot_cart
from marketplace.customer.address import resolve_customer_address
from marketplace.domain import MAX_COMMAND_ATTEMPTS, marketplace
from marketplace.exceptions import ConflictError, InsufficientStockError
from marketplace.inventory.product import Product
from marketplace.order.numbering import allocate_order_number, open_order_day
from marketplace.order.order import Order
from marketplace.utils.repository import find_one

logger = structlog.get_logger(__name__)


def order_currency() -> str:
    return os.environ.get("ORDER_CURRENCY", "USD").upper()


@marketplace.command(part_of="Order")
class PlaceOrder:
    customer_id = Identifier(required=True)
    shipping_address_id = Identifier(required=True)
    billing_address_id = Identifier()
    shipping_amount = Float(default=0.0, min_value=0.0)
    tax_amount = Float(default=0.0, min_value=0.0)
    discount_amount = Float(default=0.0, min_value=0.0)
    order_day = String(required=True, max_length=6)


@marketplace.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command: PlaceOrder):
        customer_id = str(command.customer_id)

        snapshot = snapshot_cart(customer_id)
        if snapshot.is_empty:
            raise ValidationError({"cart": ["Cart is empty"]})
        unavailable = [line for line in snapshot.invalid_lines if line.reason != InvalidReason.INSUFFICIENT_STOCK.value]
        if unavailable:
            raise ValidationError({"cart": [f"Product {line.product_id} is {line.reason}" for line in unavailable]})
        if snapshot.invalid_lines:
            short = snapshot.invalid_lines[0]
            raise InsufficientStockError(short.product_id, requested=short.quantity, available=short.available_quantity)

        shipping_address = resolve_customer_address(command.shipping_address_id, customer_id)
        billing_address = resolve_customer_address(
            command.billing_address_id or shipping_address.id, customer_id, field="billing_address_id"
        )

        # Re-read and verify every product before the first write
        product_repo = current_domain.repository_for(Product)
        products = {}
        for line in snapshot.lines:
            product = product_repo.get(line.product_id)
            product.ensure_available(line.quantity)
            products[line.product_id] = product

        order = Order.place(
            customer_id=customer_id,
            order_number=allocate_order_number(command.order_day),
            lines=[
                {
                    "product_id": line.product_id,
                    "product_name": products[line.product_id].name,
                    "quantity": line.quantity,
                    "unit_price": products[line.product_id].effective_price,
                }
                for line in snapshot.lines
            ],
            shipping_address_id=str(shipping_address.id),
            billing_address_id=str(billing_address.id),
            shipping_amount=command.shipping_amount,
            tax_amount=command.tax_amount,
            discount_amount=command.discount_amount,
            currency=order_currency(),
        )

        for line in snapshot.lines:
            product = products[line.product_id]
            product.decrement_stock(line.quantity)
            product_repo.add(product)

        cart = find_one(ShoppingCart, customer_id=customer_id)
        cart.clear()
        current_domain.repository_for(ShoppingCart).add(cart)

        current_domain.repository_for(Order).add(order)

        logger.info(
            "Order placed",
            order_id=str(order.id),
            order_number=order.order_number,
            customer_id=customer_id,
            total_amount=order.total_amount,
        )
        return str(order.id)


def place_order(
    customer_id,
    shipping_address_id,
    billing_address_id=None,
    shipping_amount=0.0,
    tax_amount=0.0,
    discount_amount=0.0,
) -> str:
    """Run checkout. Raises ``ConflictError`` when concurrent writers win every attempt."""
    command = PlaceOrder(
        customer_id=customer_id,
        shipping_address_id=shipping_address_id,
        billing_address_id=billing_address_id,
        shipping_amount=shipping_amount,
        tax_amount=tax_amount,
        discount_amount=discount_amount,
        order_day=open_order_day(),
    )
    try:
        return current_domain.process(command, asynchronous=False)
    except ExpectedVersionError as exc:
        logger.warning(
            "Checkout conflicted with concurrent updates",
            customer_id=str(customer_id),
            attempts=MAX_COMMAND_ATTEMPTS,
            error=str(exc),
        )
        raise ConflictError(
            {"order": ["Checkout could not complete because of concurrent updates, please retry"]}
        ) from exc
