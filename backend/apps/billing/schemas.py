"""
Billing schemas - request/response types for billing endpoints and the
metadata contracts Stripe events must carry.
"""

from datetime import datetime

from ninja import Schema
from pydantic import BaseModel, ConfigDict, Field


class PlanResponse(Schema):
    """Plan catalog entry."""

    id: str
    name: str
    stripe_price_id: str
    description: str
    display_price: str
    features: list[str]


class CheckoutSessionRequest(Schema):
    """Request to create a Stripe Checkout session."""

    plan_id: str = Field(..., min_length=1)
    team_emails: str | None = None  # Comma-separated, invited after payment


class RedirectUrlResponse(Schema):
    """Hosted Stripe page to redirect the browser to."""

    url: str


class CheckSessionRequest(Schema):
    """Request to inspect a Checkout session after redirect."""

    session_id: str = Field(..., min_length=1)


class CheckoutSessionSummary(Schema):
    """Checkout session state as seen by the paying user."""

    id: str
    status: str | None
    payment_status: str | None
    customer_email: str | None
    subscription_id: str | None
    metadata: dict[str, str]


class CheckSessionResponse(Schema):
    session: CheckoutSessionSummary


class SubscriptionResponse(Schema):
    """Current billing state of the organization."""

    status: str
    plan_id: str | None
    plan_name: str | None
    current_period_end: datetime | None
    stripe_customer_id: str | None
    is_free_tier: bool


# --- Stripe metadata contracts ---


class _StripeMetadata(BaseModel):
    model_config = ConfigDict(extra="ignore")


class SubscriptionMetadata(_StripeMetadata):
    """Metadata required on created/updated subscriptions and paid invoices."""

    organizationId: int
    planId: str = Field(..., min_length=1)
    userId: str | None = None


class DeletedSubscriptionMetadata(_StripeMetadata):
    """Metadata on deleted subscriptions: plan is optional."""

    organizationId: int
    planId: str | None = None


class FailedPaymentMetadata(_StripeMetadata):
    """Metadata on the subscription of a failed invoice."""

    organizationId: int
