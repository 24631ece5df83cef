"""
Core utility functions.
"""

import secrets

from django.http import HttpRequest


def get_client_ip(request: HttpRequest, default: str | None = None) -> str | None:
    """
    Extract client IP from X-Forwarded-For or REMOTE_ADDR.

    With a proxy chain in X-Forwarded-For the first entry is the original
    client.
    """
    forwarded_for = request.META.get("HTTP_X_FORWARDED_FOR")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.META.get("REMOTE_ADDR") or default


def normalize_email(email: str) -> str:
    """Trim and lower-case an email address. Emails are matched case-insensitively."""
    return email.strip().lower()


def generate_token(nbytes: int = 24) -> str:
    """URL-safe random token for shareable links."""
    return secrets.token_urlsafe(nbytes)
