"""
Invites models - per-email invitations and shareable self-serve links.
"""

from django.conf import settings
from django.db import models
from django.utils import timezone

from apps.core.models import TimestampedModel
from apps.core.utils import generate_token


class OrganizationInvite(TimestampedModel):
    """
    Invitation addressed to a single email.

    Pending invites count against the free-tier member cap until they are
    accepted or declined.
    """

    class Status(models.TextChoices):
        PENDING = "PENDING", "Pending"
        ACCEPTED = "ACCEPTED", "Accepted"
        DECLINED = "DECLINED", "Declined"

    email = models.EmailField()
    organization = models.ForeignKey(
        "organizations.Organization",
        on_delete=models.CASCADE,
        related_name="invites",
    )
    invited_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="sent_invites",
    )
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
    )

    class Meta:
        db_table = "organization_invites"
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["email", "organization"],
                name="unique_invite_email_per_org",
            ),
        ]
        indexes = [
            models.Index(fields=["organization", "status"], name="invite_org_status_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.email} -> {self.organization_id} ({self.status})"


class OrganizationSelfServeInvite(TimestampedModel):
    """
    Shareable join link.

    usage_count never exceeds usage_limit outside a transaction: redemption
    increments first and rolls back when the re-read count is over the limit.
    """

    class State(models.TextChoices):
        PENDING = "pending", "Pending"
        EXHAUSTED = "exhausted", "Exhausted"
        EXPIRED = "expired", "Expired"
        DEACTIVATED = "deactivated", "Deactivated"

    token = models.CharField(max_length=64, unique=True, default=generate_token)
    name = models.CharField(max_length=255)
    organization = models.ForeignKey(
        "organizations.Organization",
        on_delete=models.CASCADE,
        related_name="self_serve_invites",
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_self_serve_invites",
    )
    usage_count = models.PositiveIntegerField(default=0)
    usage_limit = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text="Maximum redemptions; empty means unlimited",
    )
    expires_at = models.DateTimeField(null=True, blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "organization_self_serve_invites"
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.name} ({self.state})"

    @property
    def is_expired(self) -> bool:
        return self.expires_at is not None and self.expires_at < timezone.now()

    @property
    def is_exhausted(self) -> bool:
        return self.usage_limit is not None and self.usage_count >= self.usage_limit

    @property
    def state(self) -> "OrganizationSelfServeInvite.State":
        """
        Current lifecycle state.

        Checked in redemption order: deactivation wins over expiry, and an
        expired link reports expired even with uses left.
        """
        if not self.is_active:
            return self.State.DEACTIVATED
        if self.is_expired:
            return self.State.EXPIRED
        if self.is_exhausted:
            return self.State.EXHAUSTED
        return self.State.PENDING
