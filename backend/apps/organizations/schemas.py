"""
Organizations schemas.
"""

from ninja import Schema
from pydantic import Field


class OrganizationCreateRequest(Schema):
    name: str = Field(..., min_length=1, max_length=255)
    team_emails: list[str] = Field(default_factory=list)
    # Set when the user picked a paid plan: invites go out after checkout
    defer_invites: bool = False


class OrganizationResponse(Schema):
    id: int
    name: str
    subscription_status: str
    plan_id: str | None
    is_free_tier: bool
    member_count: int
    pending_invite_count: int


class OrganizationCreateResponse(Schema):
    organization: OrganizationResponse
    invited_emails: list[str]
    deferred_team_emails: list[str]
