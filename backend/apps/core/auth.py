"""
Authentication context for request lifecycle.

Provides a typed container for the acting user and their organization.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from ninja.errors import HttpError

from apps.core.exceptions import AuthorizationError, NotFoundError

if TYPE_CHECKING:
    from apps.accounts.models import User
    from apps.organizations.models import Organization


@dataclass
class AuthContext:
    """
    Authentication context derived from the Django session user.

    Attributes:
        user: The authenticated User, or None if anonymous
        organization: The Organization the user belongs to, or None
    """

    user: "User | None" = None
    organization: "Organization | None" = None

    @property
    def is_authenticated(self) -> bool:
        """Check if the request carries an authenticated user."""
        return self.user is not None

    def require_user(self) -> "User":
        """
        Get the authenticated user or raise 401.

        Raises:
            HttpError 401: If not authenticated
        """
        if self.user is None:
            raise HttpError(401, "Unauthorized")
        return self.user

    def require_auth(self) -> tuple["User", "Organization"]:
        """
        Get the authenticated user and their organization.

        Raises:
            HttpError 401: If not authenticated
            NotFoundError: If the user has no organization
        """
        user = self.require_user()
        if self.organization is None:
            raise NotFoundError("No organization found")
        return user, self.organization

    def require_admin(self) -> tuple["User", "Organization"]:
        """
        Get authenticated context and verify the organization admin flag.

        Raises:
            HttpError 401: If not authenticated
            NotFoundError: If the user has no organization
            AuthorizationError: If the user is not an admin
        """
        user, org = self.require_auth()
        if not user.is_admin:
            raise AuthorizationError("Only admins can perform this action")
        return user, org
