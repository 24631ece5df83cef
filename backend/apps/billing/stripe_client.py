"""
Stripe client configuration.

Provides a configured Stripe module for billing operations.
"""

from types import ModuleType
from typing import Any

import stripe

from config.settings.base import settings

STRIPE_API_VERSION = "2025-07-30.basil"

# Stripe SDK has 80s default timeout which is reasonable for payment APIs.
# Retries are safe due to automatic idempotency key generation.
STRIPE_MAX_NETWORK_RETRIES = 2


def configure_stripe() -> None:
    """Configure Stripe API with settings."""
    stripe.api_key = settings.STRIPE_SECRET_KEY
    stripe.api_version = STRIPE_API_VERSION
    stripe.max_network_retries = STRIPE_MAX_NETWORK_RETRIES


def get_stripe() -> ModuleType:
    """
    Get configured Stripe module.

    Ensures Stripe is configured before use.
    """
    configure_stripe()
    return stripe


def app_url(path: str = "") -> str:
    """Absolute URL on the public app host, for Stripe redirect targets."""
    return f"{settings.APP_URL.rstrip('/')}{path}"


def as_dict(obj: Any) -> dict:
    """Plain dict view of a Stripe object (or an already-plain payload)."""
    if obj is None:
        return {}
    if isinstance(obj, dict):
        return obj
    return obj.to_dict()


def object_id(value: Any) -> str | None:
    """Stripe expands references into objects on request; accept either form."""
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return as_dict(value).get("id")
