"""Customer postal addresses referenced by orders."""

from protean.exceptions import ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.utils.repository import find_one


@marketplace.aggregate
class Address:
    customer_id = Identifier(required=True)
    name = String(max_length=255)
    street = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    postal_code = String(required=True, max_length=20)
    country = String(required=True, max_length=2, default="US")
    phone = String(max_length=30)

    def belongs_to(self, customer_id) -> bool:
        return str(self.customer_id) == str(customer_id)

    def to_carrier_dict(self) -> dict:
        return {
            "name": self.name or "",
            "street1": self.street,
            "city": self.city,
            "state": self.state or "",
            "zip": self.postal_code,
            "country": self.country,
            "phone": self.phone or "",
        }


def resolve_customer_address(address_id, customer_id, field: str = "shipping_address_id") -> Address:
    """Return the address if it exists and belongs to the customer."""
    address = find_one(Address, id=str(address_id)) if address_id else None
    if address is None or not address.belongs_to(customer_id):
        raise ValidationError({field: ["Address not found for this customer"]})
    return address


def add_address(customer_id, street, city, postal_code, country="US", state=None, name=None, phone=None) -> Address:
    address = Address(
        customer_id=customer_id,
        name=name,
        street=street,
        city=city,
        state=state,
        postal_code=postal_code,
        country=country,
        phone=phone,
    )
    current_domain.repository_for(Address).add(address)
    return address
