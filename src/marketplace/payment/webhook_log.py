"""Ledger of gateway webhook events that have already been applied."""

from datetime import UTC, datetime

from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace


@marketplace.aggregate
class ProcessedWebhookEvent:
    event_id = String(identifier=True, max_length=255)
    event_type = String(required=True, max_length=100)
    object_id = String(max_length=255)
    processed_at = DateTime()


def is_processed(event_id: str) -> bool:
    try:
        current_domain.repository_for(ProcessedWebhookEvent).get(event_id)
    except ObjectNotFoundError:
        return False
    return True


def mark_processed(event_id: str, event_type: str, object_id: str) -> None:
    current_domain.repository_for(ProcessedWebhookEvent).add(
        ProcessedWebhookEvent(
            event_id=event_id,
            event_type=event_type,
            object_id=object_id,
            processed_at=datetime.now(UTC),
        )
    )
