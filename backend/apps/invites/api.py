"""
Invites API endpoints.

Per-email invites and self-serve link management live under /organization;
link redemption lives under /join.
"""

from urllib.parse import urlencode

from django.contrib.auth import login
from django.http import HttpRequest
from ninja import Router

from apps.billing.stripe_client import app_url
from apps.core.logging import get_logger
from apps.core.schemas import ErrorResponse
from apps.core.security import get_auth_context, session_auth
from apps.core.throttling import check_rate_limit
from apps.core.utils import get_client_ip
from apps.invites.models import OrganizationInvite, OrganizationSelfServeInvite
from apps.invites.schemas import (
    InviteMemberRequest,
    InviteResponse,
    InviteSummaryResponse,
    JoinResponse,
    JoinWithEmailRequest,
    SelfServeInviteCreateRequest,
    SelfServeInviteResponse,
)
from apps.invites.services import (
    JoinResult,
    accept_invite,
    create_self_serve_invite,
    deactivate_self_serve_invite,
    decline_invite,
    get_invite_summary,
    invite_member,
    join_organization,
    join_with_email,
)
from config.settings.base import settings

logger = get_logger(__name__)

router = Router(tags=["organizations"])
join_router = Router(tags=["join"])


def _invite_response(invite: OrganizationInvite) -> InviteResponse:
    return InviteResponse(
        id=invite.id,
        email=invite.email,
        organization_id=invite.organization_id,
        status=invite.status,
        created_at=invite.created_at,
    )


def _self_serve_response(invite: OrganizationSelfServeInvite) -> SelfServeInviteResponse:
    return SelfServeInviteResponse(
        token=invite.token,
        name=invite.name,
        usage_count=invite.usage_count,
        usage_limit=invite.usage_limit,
        expires_at=invite.expires_at,
        is_active=invite.is_active,
        state=invite.state,
        join_url=app_url(f"/join/{invite.token}"),
    )


def _join_response(result: JoinResult, sign_in_url: str | None = None) -> JoinResponse:
    return JoinResponse(
        organization_id=result.organization.id,
        organization_name=result.organization.name,
        user_id=result.user.id,
        joined=result.joined,
        created=result.created,
        sign_in_url=sign_in_url,
    )


def _sign_in_url(email: str, token: str) -> str:
    query = urlencode({"email": email, "callbackUrl": f"/join/{token}"})
    return app_url(f"/auth/signin?{query}")


# --- Organization invites ---


@router.post(
    "/invite",
    response={
        201: InviteResponse,
        400: ErrorResponse,
        401: ErrorResponse,
        403: ErrorResponse,
        404: ErrorResponse,
    },
    auth=session_auth,
    operation_id="inviteMember",
    summary="Invite a member by email",
)
def create_invite(request: HttpRequest, payload: InviteMemberRequest) -> tuple[int, InviteResponse]:
    """
    Invite an email address to the organization.

    Admin only. Free-tier organizations are limited by the member cap,
    which counts pending invites.
    """
    user = get_auth_context(request).require_user()
    invite = invite_member(user, payload.email)
    return 201, _invite_response(invite)


@router.post(
    "/invites/{invite_id}/accept",
    response={200: InviteResponse, 400: ErrorResponse, 401: ErrorResponse, 403: ErrorResponse, 404: ErrorResponse},
    auth=session_auth,
    operation_id="acceptInvite",
    summary="Accept an invite",
)
def accept(request: HttpRequest, invite_id: int) -> InviteResponse:
    user = get_auth_context(request).require_user()
    return _invite_response(accept_invite(invite_id, user))


@router.post(
    "/invites/{invite_id}/decline",
    response={200: InviteResponse, 400: ErrorResponse, 401: ErrorResponse, 403: ErrorResponse, 404: ErrorResponse},
    auth=session_auth,
    operation_id="declineInvite",
    summary="Decline an invite",
)
def decline(request: HttpRequest, invite_id: int) -> InviteResponse:
    user = get_auth_context(request).require_user()
    return _invite_response(decline_invite(invite_id, user))


@router.post(
    "/self-serve-invites",
    response={201: SelfServeInviteResponse, 400: ErrorResponse, 401: ErrorResponse, 403: ErrorResponse},
    auth=session_auth,
    operation_id="createSelfServeInvite",
    summary="Create a shareable join link",
)
def create_link(
    request: HttpRequest, payload: SelfServeInviteCreateRequest
) -> tuple[int, SelfServeInviteResponse]:
    """Admin only."""
    user = get_auth_context(request).require_user()
    invite = create_self_serve_invite(
        user,
        name=payload.name,
        usage_limit=payload.usage_limit,
        expires_at=payload.expires_at,
    )
    return 201, _self_serve_response(invite)


@router.delete(
    "/self-serve-invites/{token}",
    response={200: SelfServeInviteResponse, 401: ErrorResponse, 403: ErrorResponse, 404: ErrorResponse},
    auth=session_auth,
    operation_id="deactivateSelfServeInvite",
    summary="Deactivate a join link",
)
def deactivate_link(request: HttpRequest, token: str) -> SelfServeInviteResponse:
    """Admin only. Deactivation is permanent."""
    user = get_auth_context(request).require_user()
    return _self_serve_response(deactivate_self_serve_invite(user, token))


# --- Join links ---


@join_router.get(
    "/{token}",
    response={200: InviteSummaryResponse, 404: ErrorResponse},
    operation_id="getJoinInvite",
    summary="Describe a join link",
)
def get_join_invite(request: HttpRequest, token: str) -> InviteSummaryResponse:
    return InviteSummaryResponse(**get_invite_summary(token))


@join_router.post(
    "/{token}",
    response={200: JoinResponse, 400: ErrorResponse, 401: ErrorResponse, 404: ErrorResponse},
    auth=session_auth,
    operation_id="joinOrganization",
    summary="Join with the signed-in account",
)
def join(request: HttpRequest, token: str) -> JoinResponse:
    user = get_auth_context(request).require_user()
    return _join_response(join_organization(token, user))


@join_router.post(
    "/{token}/email",
    response={200: JoinResponse, 400: ErrorResponse, 404: ErrorResponse, 429: ErrorResponse},
    operation_id="joinWithEmail",
    summary="Join with an email address",
)
def join_by_email(request: HttpRequest, token: str, payload: JoinWithEmailRequest) -> JoinResponse:
    """
    Anonymous join. Creates the account when needed.

    Only an account provisioned by this request is signed in. An existing
    account gets a sign-in URL that returns to the join page.
    Rate limited per client IP.
    """
    client_ip = get_client_ip(request, default="unknown")
    check_rate_limit(f"join_email:{client_ip}", max_requests=settings.JOIN_RATE_LIMIT, window_seconds=60)

    result = join_with_email(token, payload.email)

    if not result.created:
        logger.info("invite_join_sign_in_required", user_id=result.user.id)
        return _join_response(result, sign_in_url=_sign_in_url(result.user.email, token))

    # Session write happens after the redemption transaction committed
    login(request, result.user, backend="django.contrib.auth.backends.ModelBackend")
    return _join_response(result)
