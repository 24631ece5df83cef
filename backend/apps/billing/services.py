"""
Billing services - Stripe integration and subscription reconciliation.

All Stripe API calls are isolated here for testability.
External calls must NOT be inside database transactions.

Reconciliation handlers converge an Organization's billing fields to the
state Stripe reports. Each handler validates event metadata before touching
the database, so a rejected event never leaves a partial write behind.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any

import stripe
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from apps.accounts.models import User
from apps.billing.models import Plan
from apps.billing.schemas import (
    DeletedSubscriptionMetadata,
    FailedPaymentMetadata,
    SubscriptionMetadata,
)
from apps.billing.stripe_client import app_url, as_dict, get_stripe, object_id
from apps.core.exceptions import (
    AuthorizationError,
    ConflictError,
    GumboardError,
    NotFoundError,
    TransientProviderError,
    ValidationError,
)
from apps.core.logging import get_logger
from apps.organizations.models import Organization, SubscriptionStatus

logger = get_logger(__name__)

STRIPE_STATUS_MAP: dict[str, SubscriptionStatus] = {
    "active": SubscriptionStatus.ACTIVE,
    "canceled": SubscriptionStatus.CANCELED,
    "incomplete": SubscriptionStatus.INCOMPLETE,
    "incomplete_expired": SubscriptionStatus.INCOMPLETE_EXPIRED,
    "past_due": SubscriptionStatus.PAST_DUE,
    "trialing": SubscriptionStatus.TRIALING,
    "unpaid": SubscriptionStatus.UNPAID,
}

# Invoices created by these flows can be traced back to a subscription
# through the customer when the invoice itself does not reference one.
SUBSCRIPTION_BILLING_REASONS = ("subscription_create", "subscription_cycle")


class MissingOrganizationError(GumboardError):
    """A deleted subscription carries no organizationId; nothing can be reconciled."""

    default_message = "Missing organizationId"


def map_stripe_status(status: str | None) -> SubscriptionStatus:
    """
    Map a Stripe subscription status to the internal enum.

    Unrecognized values (including 'paused' and anything Stripe adds later)
    map to INACTIVE instead of failing the webhook.
    """
    return STRIPE_STATUS_MAP.get(status or "", SubscriptionStatus.INACTIVE)


@contextmanager
def stripe_errors(operation: str) -> Iterator[None]:
    """Translate Stripe SDK failures into TransientProviderError."""
    try:
        yield
    except stripe.StripeError as e:
        logger.warning("stripe_request_failed", operation=operation, error=str(e))
        raise TransientProviderError(f"Stripe request failed: {operation}") from e


def _validate_metadata(schema: type[BaseModel], metadata: dict | None, label: str) -> Any:
    try:
        return schema.model_validate(metadata or {})
    except PydanticValidationError as e:
        details = [
            {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
            for err in e.errors()
        ]
        logger.warning("stripe_metadata_invalid", object=label, details=details)
        raise ValidationError(f"Invalid {label} metadata", details=details) from None


def _get_plan(plan_id: str) -> Plan:
    try:
        return Plan.objects.get(pk=plan_id)
    except Plan.DoesNotExist:
        raise ValidationError("Unknown plan", details=[{"field": "planId", "message": plan_id}]) from None


def _current_period_end(subscription: dict) -> datetime | None:
    """
    Period end from the first subscription item.

    Stripe API 2025+ moved current_period_end onto items; older payloads
    carry it on the subscription itself.
    """
    items = as_dict(subscription.get("items")).get("data") or []
    timestamp = None
    if items:
        timestamp = as_dict(items[0]).get("current_period_end")
    if not timestamp:
        timestamp = subscription.get("current_period_end")
    if not timestamp:
        return None
    return datetime.fromtimestamp(timestamp, tz=UTC)


def retrieve_subscription(subscription_id: str) -> dict:
    """Fetch a subscription from Stripe."""
    client = get_stripe()
    with stripe_errors("subscription_retrieve"):
        return as_dict(client.Subscription.retrieve(subscription_id))


def get_subscription_id_from_invoice(invoice: dict) -> str | None:
    """
    Find the subscription an invoice belongs to.

    Checks the invoice's parent details, legacy top-level field and line
    items. Subscription creation and renewal invoices fall back to the
    customer's most recent subscription.
    """
    parent = as_dict(invoice.get("parent"))
    subscription_ref = as_dict(parent.get("subscription_details")).get("subscription")
    if subscription_ref:
        return object_id(subscription_ref)

    if invoice.get("subscription"):
        return object_id(invoice["subscription"])

    for line in as_dict(invoice.get("lines")).get("data") or []:
        line = as_dict(line)
        line_parent = as_dict(line.get("parent"))
        subscription_ref = line.get("subscription") or as_dict(
            line_parent.get("subscription_item_details")
        ).get("subscription")
        if subscription_ref:
            return object_id(subscription_ref)

    if invoice.get("billing_reason") in SUBSCRIPTION_BILLING_REASONS:
        customer_id = object_id(invoice.get("customer"))
        if not customer_id:
            logger.info("stripe_invoice_without_customer", invoice_id=invoice.get("id"))
            return None

        client = get_stripe()
        with stripe_errors("subscription_list"):
            subscriptions = client.Subscription.list(customer=customer_id, status="all", limit=10)
        if subscriptions.data:
            return object_id(subscriptions.data[0])

    return None


def handle_subscription_updated(subscription: dict) -> Organization:
    """
    Handle customer.subscription.created and customer.subscription.updated.

    The organization row must already exist; it is created at signup,
    before any checkout can reference it.
    """
    metadata = _validate_metadata(SubscriptionMetadata, subscription.get("metadata"), "subscription")
    plan = _get_plan(metadata.planId)

    org = Organization.objects.get(pk=metadata.organizationId)
    org.stripe_subscription_id = subscription["id"]
    customer_id = object_id(subscription.get("customer"))
    if customer_id:
        org.stripe_customer_id = customer_id
    org.stripe_current_period_end = _current_period_end(subscription)
    org.subscription_status = map_stripe_status(subscription.get("status"))
    org.plan = plan
    org.save(
        update_fields=[
            "stripe_subscription_id",
            "stripe_customer_id",
            "stripe_current_period_end",
            "subscription_status",
            "plan",
            "updated_at",
        ]
    )

    logger.info(
        "subscription_synced",
        organization_id=org.id,
        subscription_id=subscription["id"],
        status=org.subscription_status,
        plan_id=plan.id,
    )
    return org


def handle_subscription_deleted(subscription: dict) -> Organization:
    """
    Handle customer.subscription.deleted.

    Returns the organization to the free tier. The customer id is kept so
    the billing portal keeps working for past invoices.
    """
    metadata = subscription.get("metadata") or {}
    if not metadata.get("organizationId"):
        logger.error("subscription_deleted_without_organization", subscription_id=subscription.get("id"))
        raise MissingOrganizationError()
    parsed = _validate_metadata(DeletedSubscriptionMetadata, metadata, "subscription")

    org = Organization.objects.get(pk=parsed.organizationId)
    org.stripe_subscription_id = None
    org.stripe_current_period_end = None
    org.subscription_status = SubscriptionStatus.INACTIVE
    org.plan = None
    org.save(
        update_fields=[
            "stripe_subscription_id",
            "stripe_current_period_end",
            "subscription_status",
            "plan",
            "updated_at",
        ]
    )

    logger.info("subscription_deleted", organization_id=org.id, subscription_id=subscription.get("id"))
    return org


def handle_invoice_payment_succeeded(invoice: dict) -> Organization | None:
    """
    Handle invoice.payment_succeeded.

    Upserts the organization: this event can arrive before the
    organization row is visible to this worker.
    """
    subscription_id = get_subscription_id_from_invoice(invoice)
    if not subscription_id:
        logger.info("stripe_invoice_not_subscription", invoice_id=invoice.get("id"))
        return None

    subscription = retrieve_subscription(subscription_id)
    metadata = _validate_metadata(SubscriptionMetadata, subscription.get("metadata"), "subscription")
    plan = _get_plan(metadata.planId)

    billing_fields = {
        "stripe_subscription_id": subscription["id"],
        "stripe_current_period_end": _current_period_end(subscription),
        "subscription_status": map_stripe_status(subscription.get("status")),
        "plan": plan,
    }
    customer_id = object_id(subscription.get("customer")) or object_id(invoice.get("customer"))
    if customer_id:
        billing_fields["stripe_customer_id"] = customer_id

    name = (subscription.get("metadata") or {}).get("organizationName") or f"Organization {metadata.organizationId}"
    org, created = Organization.objects.update_or_create(
        pk=metadata.organizationId,
        defaults=billing_fields,
        create_defaults={**billing_fields, "name": name},
    )

    logger.info(
        "invoice_payment_succeeded",
        organization_id=org.id,
        subscription_id=subscription["id"],
        invoice_id=invoice.get("id"),
        organization_created=created,
    )
    return org


def handle_invoice_payment_failed(invoice: dict) -> Organization | None:
    """Handle invoice.payment_failed: flag the organization as past due."""
    subscription_id = get_subscription_id_from_invoice(invoice)
    if not subscription_id:
        logger.info("stripe_failed_invoice_not_subscription", invoice_id=invoice.get("id"))
        return None

    subscription = retrieve_subscription(subscription_id)
    metadata = _validate_metadata(FailedPaymentMetadata, subscription.get("metadata"), "subscription")

    org = Organization.objects.get(pk=metadata.organizationId)
    org.subscription_status = SubscriptionStatus.PAST_DUE
    org.save(update_fields=["subscription_status", "updated_at"])

    logger.warning(
        "invoice_payment_failed",
        organization_id=org.id,
        subscription_id=subscription_id,
        invoice_id=invoice.get("id"),
    )
    return org


# --- Checkout and portal ---


def list_plans() -> list[Plan]:
    """Plan catalog, read fresh on every call."""
    return list(Plan.objects.order_by("name"))


def create_checkout_session(
    org: Organization,
    user: User,
    plan_id: str,
    team_emails: str | None = None,
) -> str:
    """
    Create a Stripe Checkout Session for a new subscription.

    The price is resolved from the stored Plan; the client only names the plan.

    Returns the checkout session URL.
    """
    try:
        plan = Plan.objects.get(pk=plan_id)
    except Plan.DoesNotExist:
        raise NotFoundError("Plan not found") from None

    if not plan.stripe_price_id:
        raise ConflictError("Plan is not configured for payments")

    if org.has_subscription:
        raise ConflictError(
            "Organization already has an active subscription. Use billing portal to change plans."
        )

    metadata = {
        "organizationId": str(org.id),
        "organizationName": org.name,
        "userId": str(user.id),
        "planId": plan.id,
    }
    if team_emails:
        metadata["teamEmails"] = team_emails

    client = get_stripe()
    params: dict[str, Any] = {
        "mode": "subscription",
        "line_items": [{"price": plan.stripe_price_id, "quantity": 1}],
        "success_url": app_url("/api/v1/billing/checkout-success?session_id={CHECKOUT_SESSION_ID}"),
        "cancel_url": app_url("/dashboard?canceled=true"),
        "client_reference_id": str(user.id),
        "allow_promotion_codes": True,
        "metadata": metadata,
        "subscription_data": {"metadata": metadata},
    }
    if org.stripe_customer_id:
        params["customer"] = org.stripe_customer_id
    else:
        params["customer_email"] = user.email

    with stripe_errors("checkout_session_create"):
        session = client.checkout.Session.create(**params)

    logger.info("checkout_session_created", session_id=session.id, organization_id=org.id, plan_id=plan.id)
    return session.url


def create_customer_portal_session(org: Organization, return_url: str | None = None) -> str:
    """
    Create a Stripe Customer Portal session.

    Returns the portal URL.
    """
    if not org.stripe_customer_id:
        raise NotFoundError("No active subscription found")

    client = get_stripe()
    try:
        session = client.billing_portal.Session.create(
            customer=org.stripe_customer_id,
            return_url=return_url or app_url("/dashboard/organization"),
        )
    except stripe.InvalidRequestError as e:
        if "No such customer" in str(e):
            logger.warning("portal_customer_missing", organization_id=org.id)
            raise NotFoundError("Customer not found in Stripe") from e
        raise TransientProviderError("Failed to create portal session") from e
    except stripe.StripeError as e:
        raise TransientProviderError("Failed to create portal session") from e

    return session.url


def get_checkout_session(session_id: str, user: User) -> dict:
    """
    Fetch a Checkout Session on behalf of the user who started it.

    Raises:
        AuthorizationError: The session was started by someone else
    """
    client = get_stripe()
    with stripe_errors("checkout_session_retrieve"):
        session = as_dict(
            client.checkout.Session.retrieve(session_id, expand=["subscription", "customer"])
        )

    metadata = session.get("metadata") or {}
    if metadata.get("userId") != str(user.id):
        raise AuthorizationError("Session does not belong to authenticated user")

    customer_details = as_dict(session.get("customer_details"))
    return {
        "id": session["id"],
        "status": session.get("status"),
        "payment_status": session.get("payment_status"),
        "customer_email": session.get("customer_email") or customer_details.get("email"),
        "subscription_id": object_id(session.get("subscription")),
        "metadata": metadata,
    }


def resolve_checkout_result(session_id: str, user: User) -> str:
    """
    Outcome of a finished checkout, used for the post-payment redirect.

    'processing' means Stripe took the payment but the subscription webhook
    has not been applied yet.
    """
    try:
        session = get_checkout_session(session_id, user)
    except (AuthorizationError, TransientProviderError):
        logger.warning("checkout_success_lookup_failed", session_id=session_id)
        return "error"

    if session["payment_status"] == "unpaid":
        return "unpaid"
    if session["payment_status"] != "paid":
        return "pending"

    org_id = session["metadata"].get("organizationId")
    if not org_id or not org_id.isdigit():
        return "pending"
    org = Organization.objects.filter(pk=org_id).only("stripe_subscription_id").first()
    if org and org.stripe_subscription_id:
        return "success"
    return "processing"
