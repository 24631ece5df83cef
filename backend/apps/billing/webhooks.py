"""
Stripe webhook handler.

Handles incoming webhooks from Stripe for subscription and invoice events.
This is a separate view (not Django Ninja) for raw request handling
needed to verify Stripe signatures.

Processing order: verify signature, drop irrelevant event types, claim the
dedup record, then apply. A failure after the claim releases the record
so Stripe's retry can reprocess the event.
"""

import stripe
from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from apps.billing.services import (
    handle_invoice_payment_failed,
    handle_invoice_payment_succeeded,
    handle_subscription_deleted,
    handle_subscription_updated,
)
from apps.billing.stripe_client import as_dict, get_stripe
from apps.core.exceptions import AuthenticationError, GumboardError, ValidationError
from apps.core.logging import bind_contextvars, get_logger
from apps.core.webhooks import claim_webhook_event, complete_webhook_event, release_webhook_event
from config.settings.base import settings

logger = get_logger(__name__)

RELEVANT_EVENTS = frozenset(
    {
        "customer.subscription.created",
        "customer.subscription.updated",
        "customer.subscription.deleted",
        "invoice.payment_succeeded",
        "invoice.payment_failed",
    }
)


def _acknowledge() -> JsonResponse:
    return JsonResponse({"received": True})


def _error(exc: GumboardError) -> JsonResponse:
    return JsonResponse(exc.to_dict(), status=exc.status_code)


def dispatch_event(event: dict) -> None:
    """Route a verified, claimed event to its reconciliation handler."""
    data_object = event["data"]["object"]

    match event["type"]:
        case "customer.subscription.created" | "customer.subscription.updated":
            handle_subscription_updated(data_object)

        case "customer.subscription.deleted":
            handle_subscription_deleted(data_object)

        case "invoice.payment_succeeded":
            handle_invoice_payment_succeeded(data_object)

        case "invoice.payment_failed":
            handle_invoice_payment_failed(data_object)

        case _:
            logger.debug("stripe_webhook_unhandled_event", event_type=event["type"])


@csrf_exempt
@require_POST
def stripe_webhook(request: HttpRequest) -> JsonResponse:
    """
    Handle Stripe webhook events.

    Responds {"received": true} for processed, duplicate and ignored events,
    400 for authentication and metadata problems, 500 for processing
    failures (Stripe retries those with exponential backoff).
    """
    payload = request.body
    sig_header = request.headers.get("Stripe-Signature")

    if not sig_header:
        logger.warning("stripe_webhook_missing_signature")
        return _error(AuthenticationError("No signature"))

    if not settings.STRIPE_WEBHOOK_SECRET:
        logger.error("stripe_webhook_secret_not_configured")
        return JsonResponse({"error": "Webhook secret not configured"}, status=500)

    get_stripe()  # Ensure Stripe is configured
    try:
        event = stripe.Webhook.construct_event(
            payload,
            sig_header,
            settings.STRIPE_WEBHOOK_SECRET,
        )
    except ValueError as e:
        logger.warning("stripe_webhook_invalid_payload", error=str(e))
        return _error(AuthenticationError(f"Webhook Error: {e}"))
    except stripe.SignatureVerificationError as e:
        logger.warning("stripe_webhook_invalid_signature", error=str(e))
        return _error(AuthenticationError(f"Webhook Error: {e}"))

    event = as_dict(event)
    event_id = event["id"]
    event_type = event["type"]
    bind_contextvars(**{"stripe.event_id": event_id, "stripe.event_type": event_type})

    logger.info("stripe_webhook_received", event_type=event_type)

    if event_type not in RELEVANT_EVENTS:
        logger.debug("stripe_webhook_ignored_event", event_type=event_type)
        return _acknowledge()

    if not claim_webhook_event(event_id, event_type):
        logger.info("stripe_webhook_duplicate", event_id=event_id)
        return _acknowledge()

    try:
        dispatch_event(event)
    except ValidationError as e:
        release_webhook_event(event_id)
        return _error(e)
    except Exception:
        logger.exception("stripe_webhook_handler_error")
        release_webhook_event(event_id)
        return JsonResponse({"error": "Webhook handler failed"}, status=500)

    complete_webhook_event(event_id)
    return _acknowledge()
