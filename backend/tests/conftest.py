"""
Shared pytest fixtures for all tests.

This module provides common fixtures used across multiple test modules.
Individual test modules can override these fixtures if needed.

Factories
---------
Import factories directly from their modules:

    from tests.accounts.factories import UserFactory, OrganizationFactory
    from tests.billing.factories import PlanFactory
    from tests.invites.factories import OrganizationInviteFactory, SelfServeInviteFactory

Example usage:

    @pytest.mark.django_db
    def test_something():
        org = OrganizationFactory.create()
        user = UserFactory.create(email="test@example.com", organization=org, is_admin=True)
"""

from typing import Any

import pytest
from django.contrib.auth.models import AnonymousUser
from django.contrib.sessions.backends.db import SessionStore
from django.core.cache import cache
from django.http import HttpRequest
from django.test import Client, RequestFactory


@pytest.fixture(autouse=True)
def clear_cache():
    """Rate limit counters live in the cache; start every test from zero."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def request_factory() -> RequestFactory:
    """
    Django request factory for unit testing views.

    Use this when you need to test view functions directly without going through
    the full HTTP stack. Useful for testing Django Ninja endpoints.
    """
    return RequestFactory()


@pytest.fixture
def api_client() -> Client:
    """
    Django test client for full HTTP request/response cycle tests.

    Use this when you need to test the complete HTTP flow including middleware,
    routing, and response handling.
    """
    return Client()


def make_request(
    request_factory: RequestFactory,
    method: str,
    path: str,
    user: Any = None,
    data: dict | None = None,
) -> HttpRequest:
    """
    Build a request as the session middleware would hand it to a view.

    Anonymous when user is None.
    """
    method_func = getattr(request_factory, method.lower())
    kwargs: dict[str, Any] = {}
    if data is not None:
        kwargs["data"] = data
        kwargs["content_type"] = "application/json"

    request = method_func(path, **kwargs)
    request.user = user if user is not None else AnonymousUser()
    request.session = SessionStore()
    return request


def create_authenticated_request(
    request_factory: RequestFactory,
    method: str,
    path: str,
    org: Any = None,
    is_admin: bool = True,
    user: Any = None,
) -> HttpRequest:
    """
    Helper to create an authenticated request with user/org attached.

    Creates organization and user if not provided.

    Args:
        request_factory: Django RequestFactory instance
        method: HTTP method (get, post, delete, patch, put)
        path: Request path
        org: Optional Organization instance (created if None)
        is_admin: Organization admin flag for the created user
        user: Optional User instance (created in org if None)

    Returns:
        Request object with request.user set
    """
    from tests.accounts.factories import OrganizationFactory, UserFactory

    if user is None:
        if org is None:
            org = OrganizationFactory.create()
        user = UserFactory.create(organization=org, is_admin=is_admin)

    return make_request(request_factory, method, path, user=user)


@pytest.fixture
def organization(db):
    """Free-tier organization."""
    from tests.accounts.factories import OrganizationFactory

    return OrganizationFactory.create()


@pytest.fixture
def admin_user(organization):
    """
    Organization admin.

    Example:
        def test_admin_only_action(admin_user):
            assert admin_user.is_admin
    """
    from tests.accounts.factories import UserFactory

    return UserFactory.create(organization=organization, is_admin=True)


@pytest.fixture
def member_user(organization):
    """Regular (non-admin) member of the same organization."""
    from tests.accounts.factories import UserFactory

    return UserFactory.create(organization=organization, is_admin=False)
