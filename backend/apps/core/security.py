"""
Core security - request authentication helpers for API endpoints.
"""

from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar

from django.http import HttpRequest
from ninja.security import SessionAuth

from apps.core.auth import AuthContext

F = TypeVar("F", bound=Callable[..., Any])

# Django session cookie auth; CSRF is enforced for unsafe methods.
session_auth = SessionAuth()


def get_auth_context(request: HttpRequest) -> AuthContext:
    """
    Build the AuthContext for a request.

    Organization is re-read through the user's FK so endpoints always see
    the current plan and billing fields.
    """
    user = getattr(request, "user", None)
    if user is None or not user.is_authenticated:
        return AuthContext()
    return AuthContext(user=user, organization=user.organization)


def require_admin(func: F) -> F:
    """Reject the call unless the acting user is an organization admin."""

    @wraps(func)
    def wrapper(request: HttpRequest, *args: Any, **kwargs: Any) -> Any:
        get_auth_context(request).require_admin()
        return func(request, *args, **kwargs)

    return wrapper  # type: ignore[return-value]
