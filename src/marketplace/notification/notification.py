"""Customer notification records, deduplicated by key.

The record id is ``<kind>:<reference>``, so a notification for the same
business fact is only ever queued once even when the triggering event is
delivered more than once.
"""

import json
from datetime import UTC, datetime
from enum import Enum

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Identifier, String, Text
from protean.utils.globals import current_domain

from marketplace.domain import marketplace

logger = structlog.get_logger(__name__)


class NotificationKind(Enum):
    ORDER_PLACED = "order_placed"
    ORDER_CANCELLED = "order_cancelled"
    ORDER_STATUS_CHANGED = "order_status_changed"
    PAYMENT_SUCCEEDED = "payment_succeeded"
    PAYMENT_FAILED = "payment_failed"
    PAYMENT_REFUNDED = "payment_refunded"
    SHIPMENT_CREATED = "shipment_created"
    SHIPMENT_DELIVERED = "shipment_delivered"


@marketplace.aggregate
class NotificationRecord:
    dedupe_key = String(identifier=True, max_length=255)
    kind = String(required=True, choices=NotificationKind)
    customer_id = Identifier()
    reference_id = String(required=True, max_length=255)
    context = Text()
    queued_at = DateTime()


def notify_once(kind, reference_id, customer_id=None, **context) -> bool:
    """Queue a notification unless one with the same kind and reference exists."""
    kind = NotificationKind(kind)
    dedupe_key = f"{kind.value}:{reference_id}"
    repo = current_domain.repository_for(NotificationRecord)
    try:
        repo.get(dedupe_key)
        logger.info("Duplicate notification skipped", dedupe_key=dedupe_key)
        return False
    except ObjectNotFoundError:
        pass

    repo.add(
        NotificationRecord(
            dedupe_key=dedupe_key,
            kind=kind.value,
            customer_id=str(customer_id) if customer_id else None,
            reference_id=str(reference_id),
            context=json.dumps(context, default=str),
            queued_at=datetime.now(UTC),
        )
    )
    logger.info("Notification queued", dedupe_key=dedupe_key, customer_id=str(customer_id) if customer_id else None)
    return True
