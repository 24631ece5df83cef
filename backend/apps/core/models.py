"""
Core models - shared base classes and webhook bookkeeping.
"""

from django.db import models


class TimestampedModel(models.Model):
    """
    Abstract base model with created_at/updated_at timestamps.
    """

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class WebhookEvent(models.Model):
    """
    Dedup record for a Stripe webhook event.

    Existence means the event was processed or is being processed.
    The unique constraint on stripe_event_id is what serializes
    concurrent deliveries of the same event.
    """

    stripe_event_id = models.CharField(
        max_length=255,
        unique=True,
        help_text="Stripe event ID, e.g. 'evt_xxx'",
    )
    event_type = models.CharField(max_length=100)
    processed = models.BooleanField(
        default=False,
        help_text="Set once the handler finished successfully",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "webhook_events"
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.event_type}:{self.stripe_event_id}"
