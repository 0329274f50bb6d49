"""Product aggregate: the sellable catalog record and its stock ledger.

Stock is a single ``quantity`` counter. It is only ever decremented by a
committed checkout and incremented by a committed cancellation or a stock
receipt; the counter never goes negative.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Integer, String, Text

from marketplace.domain import marketplace
from marketplace.exceptions import InsufficientStockError


class ProductStatus(Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    DRAFT = "draft"


@marketplace.aggregate
class Product:
    name = String(required=True, max_length=255)
    description = Text()
    price = Float(required=True, min_value=0.0)
    sale_price = Float(min_value=0.0)
    status = String(choices=ProductStatus, default=ProductStatus.ACTIVE.value)
    quantity = Integer(default=0, min_value=0)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, name, price, quantity=0, sale_price=None, status=ProductStatus.ACTIVE.value, description=None):
        now = datetime.now(UTC)
        return cls(
            name=name,
            description=description,
            price=price,
            sale_price=sale_price,
            status=status,
            quantity=quantity,
            created_at=now,
            updated_at=now,
        )

    @property
    def is_active(self) -> bool:
        return self.status == ProductStatus.ACTIVE.value

    @property
    def effective_price(self) -> float:
        """Sale price when one is set below the list price, otherwise the list price."""
        if self.sale_price is not None and self.sale_price < self.price:
            return self.sale_price
        return self.price

    def has_stock_for(self, quantity: int) -> bool:
        return (self.quantity or 0) >= quantity

    def ensure_available(self, quantity: int) -> None:
        if not self.is_active:
            raise ValidationError({"product_id": [f"Product {self.id} is not available for purchase"]})
        if not self.has_stock_for(quantity):
            raise InsufficientStockError(self.id, requested=quantity, available=self.quantity or 0)

    def decrement_stock(self, quantity: int) -> None:
        if quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})
        if not self.has_stock_for(quantity):
            raise InsufficientStockError(self.id, requested=quantity, available=self.quantity or 0)
        self.quantity = self.quantity - quantity
        self.updated_at = datetime.now(UTC)

    def restore_stock(self, quantity: int) -> None:
        if quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})
        self.quantity = (self.quantity or 0) + quantity
        self.updated_at = datetime.now(UTC)
