"""
Organizations models - the tenant and billing boundary.
"""

from django.db import models

from apps.core.models import TimestampedModel


class SubscriptionStatus(models.TextChoices):
    """Internal subscription status. Provider statuses are mapped onto these."""

    INACTIVE = "INACTIVE", "Inactive"
    ACTIVE = "ACTIVE", "Active"
    CANCELED = "CANCELED", "Canceled"
    PAST_DUE = "PAST_DUE", "Past Due"
    UNPAID = "UNPAID", "Unpaid"
    INCOMPLETE = "INCOMPLETE", "Incomplete"
    INCOMPLETE_EXPIRED = "INCOMPLETE_EXPIRED", "Incomplete Expired"
    TRIALING = "TRIALING", "Trialing"


class Organization(TimestampedModel):
    """
    A tenant: owns boards, members and the billing relationship.

    Created empty at signup. Billing fields are written only by Stripe
    webhook reconciliation; plan=None means the free tier.
    """

    name = models.CharField(max_length=255)

    stripe_customer_id = models.CharField(
        max_length=255,
        unique=True,
        null=True,
        blank=True,
        help_text="Stripe customer ID, e.g. 'cus_xxx'",
    )
    stripe_subscription_id = models.CharField(
        max_length=255,
        unique=True,
        null=True,
        blank=True,
        help_text="Stripe subscription ID, e.g. 'sub_xxx'",
    )
    stripe_current_period_end = models.DateTimeField(
        null=True,
        blank=True,
        help_text="End of current billing period (next invoice date)",
    )
    subscription_status = models.CharField(
        max_length=32,
        choices=SubscriptionStatus.choices,
        default=SubscriptionStatus.INACTIVE,
    )
    plan = models.ForeignKey(
        "billing.Plan",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="organizations",
    )

    class Meta:
        db_table = "organizations"
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.name

    @property
    def is_free_tier(self) -> bool:
        """No plan attached."""
        return self.plan_id is None

    @property
    def has_subscription(self) -> bool:
        """Both Stripe ids are set; new checkouts go through the portal instead."""
        return bool(self.stripe_customer_id and self.stripe_subscription_id)

    @property
    def member_count(self) -> int:
        return self.members.count()

    @property
    def pending_invite_count(self) -> int:
        from apps.invites.models import OrganizationInvite

        return self.invites.filter(status=OrganizationInvite.Status.PENDING).count()
