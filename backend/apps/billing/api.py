"""
Billing API endpoints.

Handles the plan catalog, Stripe checkout, subscription status and customer portal.
"""

from django.http import HttpRequest, HttpResponseRedirect
from ninja import Router

from apps.billing.schemas import (
    CheckoutSessionRequest,
    CheckSessionRequest,
    CheckSessionResponse,
    CheckoutSessionSummary,
    PlanResponse,
    RedirectUrlResponse,
    SubscriptionResponse,
)
from apps.billing.services import (
    create_checkout_session,
    create_customer_portal_session,
    get_checkout_session,
    list_plans,
    resolve_checkout_result,
)
from apps.billing.stripe_client import app_url
from apps.core.logging import get_logger
from apps.core.schemas import ErrorResponse
from apps.core.security import get_auth_context, require_admin, session_auth

logger = get_logger(__name__)

router = Router(tags=["billing"])
plans_router = Router(tags=["billing"])


@plans_router.get(
    "",
    response={200: list[PlanResponse]},
    operation_id="listPlans",
    summary="List available plans",
)
def get_plans(request: HttpRequest) -> list[PlanResponse]:
    """Public plan catalog."""
    return [PlanResponse.from_orm(plan) for plan in list_plans()]


@router.post(
    "/checkout",
    response={
        200: RedirectUrlResponse,
        400: ErrorResponse,
        401: ErrorResponse,
        403: ErrorResponse,
        404: ErrorResponse,
    },
    auth=session_auth,
    operation_id="createCheckoutSession",
    summary="Create Stripe Checkout session",
)
@require_admin
def create_checkout(request: HttpRequest, payload: CheckoutSessionRequest) -> RedirectUrlResponse:
    """
    Create a Stripe Checkout session for subscribing to a plan.

    Admin only. Returns URL to redirect user to Stripe Checkout.
    """
    user, org = get_auth_context(request).require_auth()

    url = create_checkout_session(
        org=org,
        user=user,
        plan_id=payload.plan_id,
        team_emails=payload.team_emails,
    )
    return RedirectUrlResponse(url=url)


@router.post(
    "/portal",
    response={200: RedirectUrlResponse, 401: ErrorResponse, 403: ErrorResponse, 404: ErrorResponse},
    auth=session_auth,
    operation_id="createPortalSession",
    summary="Create Stripe Customer Portal session",
)
@require_admin
def create_portal(request: HttpRequest) -> RedirectUrlResponse:
    """
    Create a Stripe Customer Portal session.

    Admin only. Returns URL to redirect user to manage their subscription.
    """
    _, org = get_auth_context(request).require_auth()
    return RedirectUrlResponse(url=create_customer_portal_session(org))


@router.post(
    "/check-session",
    response={200: CheckSessionResponse, 401: ErrorResponse, 403: ErrorResponse},
    auth=session_auth,
    operation_id="checkCheckoutSession",
    summary="Inspect a Checkout session",
)
def check_session(request: HttpRequest, payload: CheckSessionRequest) -> CheckSessionResponse:
    """Checkout session state, visible only to the user who started it."""
    user = get_auth_context(request).require_user()
    session = get_checkout_session(payload.session_id, user)
    return CheckSessionResponse(session=CheckoutSessionSummary(**session))


@router.get(
    "/checkout-success",
    auth=session_auth,
    operation_id="checkoutSuccess",
    summary="Post-checkout redirect",
)
def checkout_success(request: HttpRequest, session_id: str = "") -> HttpResponseRedirect:
    """
    Stripe redirects here after payment.

    Sends the browser on to the dashboard with the checkout outcome.
    """
    if not session_id:
        return HttpResponseRedirect(app_url("/dashboard?subscription=error"))

    user = get_auth_context(request).require_user()
    result = resolve_checkout_result(session_id, user)
    logger.info("checkout_success_redirect", session_id=session_id, result=result)
    return HttpResponseRedirect(app_url(f"/dashboard?subscription={result}"))


@router.get(
    "/subscription",
    response={200: SubscriptionResponse, 401: ErrorResponse, 404: ErrorResponse},
    auth=session_auth,
    operation_id="getSubscription",
    summary="Get current subscription status",
)
def get_subscription(request: HttpRequest) -> SubscriptionResponse:
    """
    Get current billing state.

    Free-tier organizations report status INACTIVE with no plan.
    """
    _, org = get_auth_context(request).require_auth()
    plan = org.plan
    return SubscriptionResponse(
        status=org.subscription_status,
        plan_id=plan.id if plan else None,
        plan_name=plan.name if plan else None,
        current_period_end=org.stripe_current_period_end,
        stripe_customer_id=org.stripe_customer_id,
        is_free_tier=org.is_free_tier,
    )
