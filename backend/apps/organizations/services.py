"""
Organization services - tenant creation.
"""

from dataclasses import dataclass, field

from django.db import IntegrityError, transaction

from apps.accounts.models import User
from apps.core.exceptions import ConflictError, ValidationError
from apps.core.logging import get_logger
from apps.core.utils import normalize_email
from apps.invites.emails import send_invite_email
from apps.invites.models import OrganizationInvite
from apps.invites.services import validated_email
from apps.organizations.models import Organization
from config.settings.base import settings

logger = get_logger(__name__)


@dataclass
class OrganizationCreated:
    organization: Organization
    invites: list[OrganizationInvite] = field(default_factory=list)
    # Emails held back for the paid-plan checkout, invited after payment
    deferred_team_emails: list[str] = field(default_factory=list)


def create_organization(
    user: User,
    name: str,
    team_emails: list[str] | None = None,
    defer_invites: bool = False,
) -> OrganizationCreated:
    """
    Create a free-tier organization with the user as its admin.

    Team emails are invited immediately and count against the free-tier
    cap. With defer_invites the caller is heading to a paid checkout: the
    cap does not apply and no invites are created.
    """
    name = (name or "").strip()
    if not name:
        raise ValidationError("Organization name is required")

    if user.organization_id is not None:
        raise ConflictError("You already belong to an organization")

    emails = list(dict.fromkeys(validated_email(e) for e in team_emails or [] if e.strip()))
    emails = [e for e in emails if e != normalize_email(user.email)]

    max_invites = settings.FREE_PLAN_MEMBER_LIMIT - 1
    if not defer_invites and len(emails) > max_invites:
        raise ConflictError(
            f"Free plan is limited to {settings.FREE_PLAN_MEMBER_LIMIT} members total "
            f"(1 creator + {max_invites} invites)",
            details={"limit": settings.FREE_PLAN_MEMBER_LIMIT},
        )

    with transaction.atomic():
        org = Organization.objects.create(name=name)
        user.organization = org
        user.is_admin = True
        user.save(update_fields=["organization", "is_admin", "updated_at"])

    logger.info("organization_created", organization_id=org.id, user_id=user.id)

    if defer_invites:
        return OrganizationCreated(organization=org, deferred_team_emails=emails)

    invites = []
    for email in emails:
        try:
            invite = OrganizationInvite.objects.create(
                email=email,
                organization=org,
                invited_by=user,
                status=OrganizationInvite.Status.PENDING,
            )
        except IntegrityError:
            logger.warning("organization_team_invite_failed", organization_id=org.id)
            continue
        invites.append(invite)
        send_invite_email(email, org.name, invite.id)

    return OrganizationCreated(organization=org, invites=invites)
