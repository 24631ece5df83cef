"""
Invite redemption failures.

Each carries a stable ``reason`` code so clients can tell the terminal
token states apart without parsing messages.
"""

from apps.core.exceptions import ConflictError


class InviteRejectedError(ConflictError):
    """Base for invite redemption conflicts."""

    reason = "rejected"

    def to_dict(self) -> dict:
        payload = super().to_dict()
        payload["reason"] = self.reason
        return payload


class InviteDeactivatedError(InviteRejectedError):
    reason = "deactivated"
    default_message = "This invitation link has been deactivated"


class InviteExpiredError(InviteRejectedError):
    reason = "expired"
    default_message = "This invitation link has expired"


class InviteLimitReachedError(InviteRejectedError):
    reason = "usage_limit_reached"
    default_message = "This invitation link has reached its usage limit"


class MemberLimitExceededError(InviteRejectedError):
    """Free-tier organization is at its member cap."""

    reason = "member_limit"
    default_message = "Free plan member limit reached. Upgrade to Team plan for unlimited members."


class AlreadyInOrganizationError(InviteRejectedError):
    reason = "already_in_organization"
    default_message = "You are already a member of another organization"
