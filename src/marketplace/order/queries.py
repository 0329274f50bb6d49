"""Read side for orders: single lookups, customer history and admin listing."""

import math

from protean.utils.globals import current_domain

from marketplace.exceptions import NotFoundError
from marketplace.order.order import Order, OrderStatus
from marketplace.utils.repository import load

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


def order_to_dict(order: Order) -> dict:
    return {
        "id": str(order.id),
        "order_number": order.order_number,
        "customer_id": str(order.customer_id),
        "status": order.status,
        "payment_status": order.payment_status,
        "lines": [
            {
                "id": str(line.id),
                "product_id": str(line.product_id),
                "product_name": line.product_name,
                "quantity": line.quantity,
                "unit_price": line.unit_price,
                "line_total": line.line_total,
            }
            for line in order.lines
        ],
        "subtotal": order.subtotal,
        "shipping_amount": order.shipping_amount,
        "tax_amount": order.tax_amount,
        "discount_amount": order.discount_amount,
        "total_amount": order.total_amount,
        "currency": order.currency,
        "shipping_address_id": str(order.shipping_address_id),
        "billing_address_id": str(order.billing_address_id),
        "cancelled_by": order.cancelled_by,
        "cancellation_reason": order.cancellation_reason,
        "created_at": order.created_at,
        "updated_at": order.updated_at,
    }


def is_order_owned_by(order_id, customer_id) -> bool:
    return load(Order, order_id).is_owned_by(customer_id)


def get_order(order_id, customer_id=None) -> Order:
    """Fetch an order. With ``customer_id`` set, another customer's order is reported as missing."""
    order = load(Order, order_id)
    if customer_id is not None and not order.is_owned_by(customer_id):
        raise NotFoundError({"order": [f"Order {order_id} not found"]})
    return order


def list_orders(customer_id=None, status=None, page=1, limit=DEFAULT_PAGE_SIZE) -> dict:
    """Newest-first page of orders, optionally filtered by customer and status."""
    page = max(int(page), 1)
    limit = min(max(int(limit), 1), MAX_PAGE_SIZE)

    filters = {}
    if customer_id is not None:
        filters["customer_id"] = str(customer_id)
    if status is not None:
        filters["status"] = OrderStatus(status).value

    query = current_domain.repository_for(Order)._dao.query
    if filters:
        query = query.filter(**filters)
    results = query.order_by("-created_at").offset((page - 1) * limit).limit(limit).all()

    total = results.total
    return {
        "orders": [order_to_dict(order) for order in results.items],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit) if total else 0,
        },
    }
