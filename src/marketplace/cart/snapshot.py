"""Read-only validation of a customer's cart against live catalog data.

``snapshot_cart`` never writes. It re-reads every product in the cart and
splits the lines into priced, purchasable lines and invalid lines with the
reason each one cannot be bought.
"""

from dataclasses import dataclass, field
from enum import Enum

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from marketplace.cart.cart import ShoppingCart
from marketplace.inventory.product import Product
from marketplace.utils.repository import find_one


class InvalidReason(Enum):
    NOT_FOUND = "not_found"
    INACTIVE = "inactive"
    INSUFFICIENT_STOCK = "insufficient_stock"


@dataclass(frozen=True)
class SnapshotLine:
    item_id: str
    product_id: str
    product_name: str
    quantity: int
    unit_price: float
    available_quantity: int

    @property
    def line_total(self) -> float:
        return round(self.unit_price * self.quantity, 2)


@dataclass(frozen=True)
class InvalidLine:
    item_id: str
    product_id: str
    quantity: int
    reason: str
    available_quantity: int | None = None


@dataclass
class CartSnapshot:
    customer_id: str
    cart_id: str | None = None
    lines: list[SnapshotLine] = field(default_factory=list)
    invalid_lines: list[InvalidLine] = field(default_factory=list)

    @property
    def subtotal(self) -> float:
        return round(sum(line.line_total for line in self.lines), 2)

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    @property
    def is_empty(self) -> bool:
        return not self.lines and not self.invalid_lines

    @property
    def is_valid(self) -> bool:
        return not self.is_empty and not self.invalid_lines

    def to_dict(self) -> dict:
        return {
            "customer_id": self.customer_id,
            "cart_id": self.cart_id,
            "items": [
                {
                    "item_id": line.item_id,
                    "product_id": line.product_id,
                    "product_name": line.product_name,
                    "quantity": line.quantity,
                    "unit_price": line.unit_price,
                    "line_total": line.line_total,
                    "available_quantity": line.available_quantity,
                }
                for line in self.lines
            ],
            "invalid_items": [
                {
                    "item_id": line.item_id,
                    "product_id": line.product_id,
                    "quantity": line.quantity,
                    "reason": line.reason,
                    "available_quantity": line.available_quantity,
                }
                for line in self.invalid_lines
            ],
            "subtotal": self.subtotal,
            "item_count": self.item_count,
            "is_valid": self.is_valid,
        }


def snapshot_cart(customer_id) -> CartSnapshot:
    cart = find_one(ShoppingCart, customer_id=str(customer_id))
    snapshot = CartSnapshot(customer_id=str(customer_id))
    if cart is None:
        return snapshot

    snapshot.cart_id = str(cart.id)
    product_repo = current_domain.repository_for(Product)
    for item in cart.items:
        try:
            product = product_repo.get(str(item.product_id))
        except ObjectNotFoundError:
            snapshot.invalid_lines.append(
                InvalidLine(str(item.id), str(item.product_id), item.quantity, InvalidReason.NOT_FOUND.value)
            )
            continue

        if not product.is_active:
            reason = InvalidReason.INACTIVE.value
        elif not product.has_stock_for(item.quantity):
            reason = InvalidReason.INSUFFICIENT_STOCK.value
        else:
            reason = None

        if reason:
            snapshot.invalid_lines.append(
                InvalidLine(str(item.id), str(item.product_id), item.quantity, reason, product.quantity)
            )
        else:
            snapshot.lines.append(
                SnapshotLine(
                    item_id=str(item.id),
                    product_id=str(product.id),
                    product_name=product.name,
                    quantity=item.quantity,
                    unit_price=product.effective_price,
                    available_quantity=product.quantity,
                )
            )

    return snapshot
