"""Marketplace API package."""

from marketplace.api.routes import cart_router, order_router, payment_router, shipment_router

__all__ = ["cart_router", "order_router", "payment_router", "shipment_router"]
