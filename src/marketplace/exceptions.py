"""Error taxonomy shared by every marketplace operation.

Each error carries a ``messages`` dict in the same shape as Protean's
``ValidationError`` so the API layer can render all of them uniformly.
"""

from protean.exceptions import ValidationError

__all__ = [
    "AuthenticationError",
    "ConflictError",
    "ExternalServiceError",
    "InsufficientStockError",
    "InvalidStateTransitionError",
    "MarketplaceError",
    "NotFoundError",
    "ValidationError",
]


class MarketplaceError(Exception):
    def __init__(self, messages):
        if not isinstance(messages, dict):
            messages = {"_error": [str(messages)]}
        self.messages = messages
        super().__init__(messages)

    def __str__(self):
        return str(self.messages)


class NotFoundError(MarketplaceError):
    """Raised when a record does not exist or is not visible to the caller."""


class InsufficientStockError(MarketplaceError):
    def __init__(self, product_id: str, requested: int, available: int):
        self.product_id = str(product_id)
        self.requested = requested
        self.available = available
        super().__init__(
            {
                "product_id": [
                    f"Insufficient stock for product {product_id}: "
                    f"{available} available, {requested} requested"
                ]
            }
        )


class InvalidStateTransitionError(MarketplaceError):
    def __init__(self, entity: str, current, target, reason: str | None = None):
        self.entity = entity
        self.current = current
        self.target = target
        message = reason or f"Cannot transition {entity} from {current} to {target}"
        super().__init__({"status": [message]})


class AuthenticationError(MarketplaceError):
    """Raised when an inbound webhook signature cannot be verified."""


class ConflictError(MarketplaceError):
    """Raised on duplicate records and exhausted optimistic retries."""


class ExternalServiceError(MarketplaceError):
    def __init__(self, service: str, message: str):
        self.service = service
        super().__init__({service: [message]})
