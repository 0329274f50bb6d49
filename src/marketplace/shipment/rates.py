"""Shipping rate quotes between two stored addresses."""

from marketplace.carrier import get_carrier
from marketplace.carrier.port import RateQuote
from marketplace.customer.address import Address
from marketplace.utils.repository import load

DEFAULT_PARCEL = {
    "length": "10",
    "width": "8",
    "height": "4",
    "distance_unit": "in",
    "weight": "2",
    "mass_unit": "lb",
}


def quote_shipping_rates(origin_address_id, destination_address_id, parcel: dict | None = None) -> list[RateQuote]:
    origin = load(Address, origin_address_id)
    destination = load(Address, destination_address_id)
    return get_carrier().quote_rates(
        origin.to_carrier_dict(),
        destination.to_carrier_dict(),
        {**DEFAULT_PARCEL, **(parcel or {})},
    )
