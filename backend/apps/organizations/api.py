"""
Organizations API endpoints.
"""

from django.http import HttpRequest
from ninja import Router

from apps.core.schemas import ErrorResponse
from apps.core.security import get_auth_context, session_auth
from apps.organizations.models import Organization
from apps.organizations.schemas import (
    OrganizationCreateRequest,
    OrganizationCreateResponse,
    OrganizationResponse,
)
from apps.organizations.services import create_organization

router = Router(tags=["organizations"])


def organization_response(org: Organization) -> OrganizationResponse:
    return OrganizationResponse(
        id=org.id,
        name=org.name,
        subscription_status=org.subscription_status,
        plan_id=org.plan_id,
        is_free_tier=org.is_free_tier,
        member_count=org.member_count,
        pending_invite_count=org.pending_invite_count,
    )


@router.post(
    "",
    response={201: OrganizationCreateResponse, 400: ErrorResponse, 401: ErrorResponse},
    auth=session_auth,
    operation_id="createOrganization",
    summary="Create an organization",
)
def create(
    request: HttpRequest, payload: OrganizationCreateRequest
) -> tuple[int, OrganizationCreateResponse]:
    """
    Create an organization and make the caller its admin.

    Starts on the free tier; team emails are invited right away unless
    defer_invites is set for a paid checkout.
    """
    user = get_auth_context(request).require_user()
    result = create_organization(
        user,
        name=payload.name,
        team_emails=payload.team_emails,
        defer_invites=payload.defer_invites,
    )
    return 201, OrganizationCreateResponse(
        organization=organization_response(result.organization),
        invited_emails=[invite.email for invite in result.invites],
        deferred_team_emails=result.deferred_team_emails,
    )


@router.get(
    "",
    response={200: OrganizationResponse, 401: ErrorResponse, 404: ErrorResponse},
    auth=session_auth,
    operation_id="getOrganization",
    summary="Get the current organization",
)
def get_current(request: HttpRequest) -> OrganizationResponse:
    _, org = get_auth_context(request).require_auth()
    return organization_response(org)
