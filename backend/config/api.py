"""
Django Ninja API configuration.
"""

from django.http import HttpRequest, HttpResponse
from ninja import NinjaAPI
from ninja.errors import HttpError
from ninja.errors import ValidationError as NinjaValidationError

from apps.billing.api import plans_router
from apps.billing.api import router as billing_router
from apps.core.exceptions import GumboardError
from apps.core.throttling import RateLimitExceeded
from apps.invites.api import join_router
from apps.invites.api import router as invites_router
from apps.organizations.api import router as organizations_router

api = NinjaAPI(
    title="Gumboard API",
    version="1.0.0",
    description="Organization membership, invite links and Stripe billing.",
    openapi_extra={
        "info": {
            "contact": {"name": "API Support"},
        },
        "tags": [
            {
                "name": "billing",
                "description": "Plans, Stripe Checkout and the customer portal",
            },
            {
                "name": "organizations",
                "description": "Organization creation and member invites",
            },
            {
                "name": "join",
                "description": "Self-serve invite links",
            },
            {
                "name": "health",
                "description": "Service health and readiness checks",
            },
        ],
    },
)

# Register routers
api.add_router("/plans", plans_router)
api.add_router("/billing", billing_router)
api.add_router("/organization", organizations_router)
api.add_router("/organization", invites_router)
api.add_router("/join", join_router)


@api.exception_handler(GumboardError)
def handle_gumboard_error(request: HttpRequest, exc: GumboardError) -> HttpResponse:
    response = api.create_response(request, exc.to_dict(), status=exc.status_code)
    if isinstance(exc, RateLimitExceeded) and exc.retry_after:
        response["Retry-After"] = str(exc.retry_after)
    return response


@api.exception_handler(HttpError)
def handle_http_error(request: HttpRequest, exc: HttpError) -> HttpResponse:
    return api.create_response(request, {"error": str(exc)}, status=exc.status_code)


@api.exception_handler(NinjaValidationError)
def handle_validation_error(request: HttpRequest, exc: NinjaValidationError) -> HttpResponse:
    details = [
        {"field": ".".join(str(p) for p in err.get("loc", [])), "message": err.get("msg", "")}
        for err in exc.errors
    ]
    return api.create_response(request, {"error": "Invalid request", "details": details}, status=400)


@api.get("/health", tags=["health"], operation_id="healthCheck", summary="Health check")
def health_check(request: HttpRequest) -> dict:
    """Health check endpoint for load balancer."""
    return {"status": "ok"}
