"""
Application error taxonomy.

Services raise these; the API layer renders them as
``{"error": message, "details": ...}`` with the class's HTTP status.
"""

from typing import Any


class GumboardError(Exception):
    """Base exception for all application errors."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None, details: Any = None) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Stable error payload."""
        payload: dict[str, Any] = {"error": self.message}
        if self.details is not None:
            payload["details"] = self.details
        return payload


class AuthenticationError(GumboardError):
    """Webhook signature missing or invalid."""

    status_code = 400
    default_message = "Invalid signature"


class ValidationError(GumboardError):
    """Malformed request body or event metadata."""

    status_code = 400
    default_message = "Invalid request"


class NotFoundError(GumboardError):
    """Unknown token, plan or organization."""

    status_code = 404
    default_message = "Not found"


class AuthorizationError(GumboardError):
    """Cross-tenant access or missing role."""

    status_code = 403
    default_message = "Forbidden"


class ConflictError(GumboardError):
    """Capacity, usage limit or membership conflict."""

    status_code = 400
    default_message = "Conflict"


class TransientProviderError(GumboardError):
    """Upstream payment provider call failed. Retryable by the caller."""

    status_code = 500
    default_message = "Payment provider request failed"
