"""
Billing models - plan catalog.

Subscription state lives on Organization and is synced from Stripe via
webhooks.
"""

from django.db import models


class Plan(models.Model):
    """
    Paid plan backed by a recurring Stripe price.

    Read-only reference table for request handlers: prices are always
    resolved from here at decision time, never from client input.
    The free tier has no row (Organization.plan is None).
    """

    id = models.CharField(primary_key=True, max_length=64)
    name = models.CharField(max_length=100, unique=True)
    stripe_price_id = models.CharField(
        max_length=255,
        unique=True,
        help_text="Stripe price ID, e.g. 'price_xxx'",
    )
    description = models.TextField(blank=True, default="")
    display_price = models.CharField(
        max_length=50,
        blank=True,
        default="",
        help_text="Price label shown on the plans page, e.g. '$9/month'",
    )
    features = models.JSONField(default=list, blank=True)

    class Meta:
        db_table = "plans"
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name
