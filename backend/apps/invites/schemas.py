"""
Invites schemas - request/response types for invite and join endpoints.
"""

from datetime import datetime

from ninja import Schema
from pydantic import Field


class InviteMemberRequest(Schema):
    """Per-email invite."""

    email: str = Field(..., min_length=1, max_length=254)


class InviteResponse(Schema):
    id: int
    email: str
    organization_id: int
    status: str
    created_at: datetime


class SelfServeInviteCreateRequest(Schema):
    """New shareable join link."""

    name: str = Field(..., min_length=1, max_length=255)
    usage_limit: int | None = Field(None, ge=1)
    expires_at: datetime | None = None


class SelfServeInviteResponse(Schema):
    token: str
    name: str
    usage_count: int
    usage_limit: int | None
    expires_at: datetime | None
    is_active: bool
    state: str
    join_url: str


class InviteSummaryResponse(Schema):
    """What the join page shows before redemption."""

    token: str
    name: str
    organization_name: str
    usage_count: int
    usage_limit: int | None
    expires_at: datetime | None
    state: str


class JoinWithEmailRequest(Schema):
    email: str = Field(..., min_length=1, max_length=254)


class JoinResponse(Schema):
    organization_id: int
    organization_name: str
    user_id: int
    joined: bool
    created: bool = False
    # Set when an existing account must sign in to finish joining
    sign_in_url: str | None = None
