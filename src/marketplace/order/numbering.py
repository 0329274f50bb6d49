"""Human-readable order numbers of the form ``ORD-YYMMDD-NNNN``.

Numbers come from a per-day counter row. ``open_order_day`` creates the row
before any checkout of that day starts, so every allocation inside a checkout
unit of work is an update of an existing row. Two checkouts racing for the
same day then collide on the row's version instead of both inserting a fresh
counter and reusing a number.
"""

import threading
from datetime import UTC, datetime

from protean.exceptions import ObjectNotFoundError
from protean.fields import Integer, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace

ORDER_NUMBER_PREFIX = "ORD"

_open_day_lock = threading.Lock()


@marketplace.aggregate
class OrderNumberSequence:
    day = String(identifier=True, max_length=6)
    last_value = Integer(default=0, min_value=0)

    def advance(self) -> int:
        self.last_value = (self.last_value or 0) + 1
        return self.last_value


def format_order_number(day: str, value: int) -> str:
    return f"{ORDER_NUMBER_PREFIX}-{day}-{value:04d}"


def order_day(now: datetime | None = None) -> str:
    now = now or datetime.now(UTC)
    return now.strftime("%y%m%d")


def open_order_day(now: datetime | None = None) -> str:
    """Make sure the counter row for ``now``'s day exists. Returns the day key.

    Runs outside any checkout unit of work. An existing row is left untouched.
    """
    day = order_day(now)
    repo = current_domain.repository_for(OrderNumberSequence)
    with _open_day_lock:
        try:
            repo.get(day)
        except ObjectNotFoundError:
            repo.add(OrderNumberSequence(day=day, last_value=0))
    return day


def allocate_order_number(day: str) -> str:
    """Advance the counter for ``day`` and return the next order number.

    Raises ``ObjectNotFoundError`` when the day was never opened.
    """
    repo = current_domain.repository_for(OrderNumberSequence)
    sequence = repo.get(day)
    value = sequence.advance()
    repo.add(sequence)
    return format_order_number(day, value)
