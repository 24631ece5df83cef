"""
Invite services - per-email invitations and self-serve link redemption.

Redemption of a self-serve link runs one guarded sequence for both the
signed-in and the anonymous variant:

1. look up the token
2. reject deactivated, expired and exhausted links (in that order)
3. a user already in the link's organization is an idempotent success
4. a user in another organization is rejected
5. free-tier capacity: members + pending invites + 1 must fit the cap
6. reserve a use inside a transaction: lock the row, increment, re-read,
   and roll back when the count went over the limit
7. attach the user

Emails are sent after the database work, never inside a transaction.
"""

from dataclasses import dataclass
from datetime import datetime

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import validate_email
from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from apps.accounts.models import User
from apps.core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from apps.core.logging import get_logger
from apps.core.utils import normalize_email
from apps.invites.emails import send_invite_email
from apps.invites.exceptions import (
    AlreadyInOrganizationError,
    InviteDeactivatedError,
    InviteExpiredError,
    InviteLimitReachedError,
    MemberLimitExceededError,
)
from apps.invites.models import OrganizationInvite, OrganizationSelfServeInvite
from apps.organizations.models import Organization
from config.settings.base import settings

logger = get_logger(__name__)


@dataclass
class JoinResult:
    """
    Outcome of a redemption.

    joined is False for the idempotent same-organization case; created is
    True only when the anonymous variant provisioned the account.
    """

    user: User
    organization: Organization
    joined: bool
    created: bool = False


def _require_admin(user: User) -> Organization:
    if user.organization_id is None:
        raise NotFoundError("No organization found")
    if not user.is_admin:
        raise AuthorizationError("Only admins can perform this action")
    return user.organization


def check_member_capacity(org: Organization) -> None:
    """
    Reject one more member for a free-tier organization at its cap.

    Organizations with a plan have no member cap.
    """
    if not org.is_free_tier:
        return

    limit = settings.FREE_PLAN_MEMBER_LIMIT
    active_members = org.member_count
    pending_invites = org.pending_invite_count
    if active_members + pending_invites + 1 > limit:
        logger.info(
            "member_limit_reached",
            organization_id=org.id,
            members=active_members,
            pending_invites=pending_invites,
        )
        raise MemberLimitExceededError(
            f"Free plan is limited to {limit} members total "
            f"({active_members} current + {pending_invites} pending). "
            "Upgrade to Team plan for unlimited members.",
            details={"limit": limit, "members": active_members, "pending_invites": pending_invites},
        )


# --- Per-email invites ---


def invite_member(user: User, email: str) -> OrganizationInvite:
    """
    Invite an email address to the admin's organization.

    A declined or accepted invite for the same address is reset to pending.
    """
    org = _require_admin(user)
    clean_email = validated_email(email)

    check_member_capacity(org)

    if User.objects.filter(email=clean_email, organization=org).exists():
        raise ConflictError("User is already a member of this organization")

    if OrganizationInvite.objects.filter(
        email=clean_email, organization=org, status=OrganizationInvite.Status.PENDING
    ).exists():
        raise ConflictError("Invite already sent to this email")

    invite, _ = OrganizationInvite.objects.update_or_create(
        email=clean_email,
        organization=org,
        defaults={"status": OrganizationInvite.Status.PENDING},
        create_defaults={"status": OrganizationInvite.Status.PENDING, "invited_by": user},
    )
    logger.info("invite_created", invite_id=invite.id, organization_id=org.id)

    send_invite_email(clean_email, org.name, invite.id)
    return invite


def accept_invite(invite_id: int, user: User) -> OrganizationInvite:
    """Accept a pending invite addressed to the user's email."""
    try:
        invite = OrganizationInvite.objects.select_related("organization").get(pk=invite_id)
    except OrganizationInvite.DoesNotExist:
        raise NotFoundError("Invite not found") from None

    if invite.email != normalize_email(user.email):
        raise AuthorizationError("This invite was sent to a different email address")

    if invite.status != OrganizationInvite.Status.PENDING:
        raise ConflictError("This invite is no longer pending")

    if user.organization_id is not None and user.organization_id != invite.organization_id:
        raise AlreadyInOrganizationError()

    with transaction.atomic():
        locked_user = User.objects.select_for_update().get(pk=user.pk)
        if locked_user.organization_id not in (None, invite.organization_id):
            raise AlreadyInOrganizationError()
        locked_user.organization = invite.organization
        locked_user.mark_email_verified()
        locked_user.save(update_fields=["organization", "email_verified", "updated_at"])

        invite.status = OrganizationInvite.Status.ACCEPTED
        invite.save(update_fields=["status", "updated_at"])

    user.refresh_from_db()
    logger.info("invite_accepted", invite_id=invite.id, organization_id=invite.organization_id)
    return invite


def decline_invite(invite_id: int, user: User) -> OrganizationInvite:
    """Decline a pending invite; it stops counting against the member cap."""
    try:
        invite = OrganizationInvite.objects.get(pk=invite_id)
    except OrganizationInvite.DoesNotExist:
        raise NotFoundError("Invite not found") from None

    if invite.email != normalize_email(user.email):
        raise AuthorizationError("This invite was sent to a different email address")
    if invite.status != OrganizationInvite.Status.PENDING:
        raise ConflictError("This invite is no longer pending")

    invite.status = OrganizationInvite.Status.DECLINED
    invite.save(update_fields=["status", "updated_at"])
    logger.info("invite_declined", invite_id=invite.id, organization_id=invite.organization_id)
    return invite


# --- Self-serve invite links ---


def create_self_serve_invite(
    user: User,
    name: str,
    usage_limit: int | None = None,
    expires_at: datetime | None = None,
) -> OrganizationSelfServeInvite:
    """Create a shareable join link for the admin's organization."""
    org = _require_admin(user)

    name = (name or "").strip()
    if not name:
        raise ValidationError("Invite name is required")
    if usage_limit is not None and usage_limit < 1:
        raise ValidationError("Usage limit must be at least 1")
    if expires_at is not None and expires_at <= timezone.now():
        raise ValidationError("Expiration must be in the future")

    invite = OrganizationSelfServeInvite.objects.create(
        name=name,
        organization=org,
        created_by=user,
        usage_limit=usage_limit,
        expires_at=expires_at,
    )
    logger.info("self_serve_invite_created", invite_id=invite.id, organization_id=org.id)
    return invite


def deactivate_self_serve_invite(user: User, token: str) -> OrganizationSelfServeInvite:
    """Deactivate a link. Terminal: a deactivated link never accepts redemptions again."""
    org = _require_admin(user)
    invite = _get_self_serve_invite(token)
    if invite.organization_id != org.id:
        raise AuthorizationError("Invite belongs to another organization")

    if invite.is_active:
        invite.is_active = False
        invite.save(update_fields=["is_active", "updated_at"])
        logger.info("self_serve_invite_deactivated", invite_id=invite.id, organization_id=org.id)
    return invite


def get_invite_summary(token: str) -> dict:
    """Public view of a link for the join page."""
    invite = _get_self_serve_invite(token)
    return {
        "token": invite.token,
        "name": invite.name,
        "organization_name": invite.organization.name,
        "usage_count": invite.usage_count,
        "usage_limit": invite.usage_limit,
        "expires_at": invite.expires_at,
        "state": invite.state,
    }


def join_organization(token: str, user: User) -> JoinResult:
    """Redeem a link as a signed-in user."""
    invite = _get_self_serve_invite(token)
    _validate_invite_state(invite)
    org = invite.organization

    if user.organization_id == org.id:
        logger.info("invite_join_already_member", invite_id=invite.id, user_id=user.id)
        return JoinResult(user=user, organization=org, joined=False)
    if user.organization_id is not None:
        raise AlreadyInOrganizationError(
            "You are already a member of another organization. "
            "Please leave your current organization first."
        )

    check_member_capacity(org)

    with transaction.atomic():
        _reserve_slot(invite.pk)
        locked_user = User.objects.select_for_update().get(pk=user.pk)
        if locked_user.organization_id is not None:
            raise AlreadyInOrganizationError()
        locked_user.organization = org
        locked_user.mark_email_verified()
        locked_user.save(update_fields=["organization", "email_verified", "updated_at"])

    user.refresh_from_db()
    logger.info("invite_redeemed", invite_id=invite.id, organization_id=org.id, user_id=user.id)
    return JoinResult(user=user, organization=org, joined=True)


def join_with_email(token: str, email: str) -> JoinResult:
    """
    Redeem a link anonymously.

    Provisions the account when the email is unknown. Clicking the link
    counts as email verification for a new account only; result.created
    tells the caller whether it may establish a session. An existing
    account still has to sign in.
    """
    clean_email = validated_email(email)
    try:
        return _join_with_email(token, clean_email)
    except IntegrityError:
        # A concurrent join created the account first; the retry takes the existing-user path
        logger.info("invite_join_email_conflict", token=token)
        return _join_with_email(token, clean_email)


def _join_with_email(token: str, clean_email: str) -> JoinResult:
    invite = _get_self_serve_invite(token)
    _validate_invite_state(invite)
    org = invite.organization

    existing = _find_user_by_email(clean_email)
    if existing is not None and existing.organization_id == org.id:
        logger.info("invite_join_already_member", invite_id=invite.id, user_id=existing.id)
        return JoinResult(user=existing, organization=org, joined=False)
    if existing is not None and existing.organization_id is not None:
        raise AlreadyInOrganizationError()

    check_member_capacity(org)

    with transaction.atomic():
        _reserve_slot(invite.pk)
        if existing is None:
            user = User.objects.create_user(
                email=clean_email,
                organization=org,
                email_verified=timezone.now(),
            )
        else:
            user = User.objects.select_for_update().get(pk=existing.pk)
            if user.organization_id is not None:
                raise AlreadyInOrganizationError()
            user.organization = org
            user.save(update_fields=["organization", "updated_at"])

    logger.info(
        "invite_redeemed",
        invite_id=invite.id,
        organization_id=org.id,
        user_id=user.id,
        user_created=existing is None,
    )
    return JoinResult(user=user, organization=org, joined=True, created=existing is None)


def _find_user_by_email(email: str) -> User | None:
    return User.objects.filter(email=email).first()


def validated_email(email: str) -> str:
    clean_email = normalize_email(email or "")
    if not clean_email:
        raise ValidationError("Email is required")
    try:
        validate_email(clean_email)
    except DjangoValidationError:
        raise ValidationError("Invalid email address") from None
    return clean_email


def _get_self_serve_invite(token: str) -> OrganizationSelfServeInvite:
    try:
        return OrganizationSelfServeInvite.objects.select_related("organization").get(token=token)
    except OrganizationSelfServeInvite.DoesNotExist:
        raise NotFoundError("Invalid or expired invitation link") from None


def _validate_invite_state(invite: OrganizationSelfServeInvite) -> None:
    if not invite.is_active:
        raise InviteDeactivatedError()
    if invite.is_expired:
        raise InviteExpiredError()
    if invite.is_exhausted:
        raise InviteLimitReachedError()


def _reserve_slot(invite_id: int) -> OrganizationSelfServeInvite:
    """
    Take one use of a link. Must run inside transaction.atomic().

    The row lock serializes concurrent redemptions; the re-read after the
    increment catches a redemption that passed the pre-check but lost the
    race for the last slot. Raising rolls the increment back.
    """
    OrganizationSelfServeInvite.objects.select_for_update().get(pk=invite_id)
    OrganizationSelfServeInvite.objects.filter(pk=invite_id).update(usage_count=F("usage_count") + 1)
    invite = OrganizationSelfServeInvite.objects.get(pk=invite_id)

    if invite.usage_limit is not None and invite.usage_count > invite.usage_limit:
        logger.info("invite_reservation_rejected", invite_id=invite_id, usage_count=invite.usage_count)
        raise InviteLimitReachedError()
    return invite
