"""
Webhook utilities for idempotent processing.

The dedup record is claimed before a handler runs and released again when
the handler fails, so the provider's automatic retry can reprocess it.
These calls run in autocommit mode: handlers call Stripe, and external
calls must not happen inside a database transaction.
"""

from django.db import DatabaseError, IntegrityError, transaction

from apps.core.logging import get_logger
from apps.core.models import WebhookEvent

logger = get_logger(__name__)


def claim_webhook_event(event_id: str, event_type: str) -> bool:
    """
    Insert the dedup record for an event.

    Uses INSERT with unique constraint to handle race conditions.

    Returns:
        True if claimed, False if a record already exists
    """
    try:
        with transaction.atomic():
            WebhookEvent.objects.create(stripe_event_id=event_id, event_type=event_type)
        return True
    except IntegrityError:
        logger.debug("webhook_already_processed", event_id=event_id, event_type=event_type)
        return False


def complete_webhook_event(event_id: str) -> None:
    """Mark a claimed event as fully applied."""
    WebhookEvent.objects.filter(stripe_event_id=event_id).update(processed=True)


def release_webhook_event(event_id: str) -> None:
    """
    Delete the dedup record after a failed handler.

    Best-effort: a failure here is logged, never raised, so the original
    handler error is what reaches the caller.
    """
    try:
        WebhookEvent.objects.filter(stripe_event_id=event_id).delete()
    except DatabaseError:
        logger.exception("webhook_release_failed", event_id=event_id)
