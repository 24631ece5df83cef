"""
Tests for invite and join API endpoints.
"""

from datetime import timedelta
from unittest.mock import patch

import pytest
from django.test import Client, RequestFactory
from django.utils import timezone
from ninja.errors import HttpError

from apps.accounts.models import User
from apps.core.exceptions import AuthorizationError
from apps.invites.api import (
    accept,
    create_invite,
    create_link,
    deactivate_link,
    get_join_invite,
    join,
    join_by_email,
)
from apps.invites.models import OrganizationInvite
from apps.invites.schemas import InviteMemberRequest, JoinWithEmailRequest, SelfServeInviteCreateRequest
from tests.accounts.factories import OrganizationFactory, UserFactory
from tests.conftest import create_authenticated_request, make_request
from tests.invites.factories import OrganizationInviteFactory, SelfServeInviteFactory


@pytest.mark.django_db
class TestCreateInvite:
    """Tests for POST /organization/invite."""

    @patch("apps.invites.services.send_invite_email")
    def test_creates_invite(self, mock_send, request_factory: RequestFactory) -> None:
        request = create_authenticated_request(request_factory, "post", "/api/v1/organization/invite")

        status, result = create_invite(request, InviteMemberRequest(email="Friend@Example.com"))

        assert status == 201
        assert result.email == "friend@example.com"
        assert result.status == "PENDING"
        mock_send.assert_called_once()

    def test_member_forbidden(self, request_factory: RequestFactory) -> None:
        request = create_authenticated_request(
            request_factory, "post", "/api/v1/organization/invite", is_admin=False
        )

        with pytest.raises(AuthorizationError):
            create_invite(request, InviteMemberRequest(email="friend@example.com"))

    @patch("apps.invites.services.send_invite_email")
    def test_member_limit_over_http(self, mock_send, client: Client) -> None:
        org = OrganizationFactory.create()
        admin = UserFactory.create(organization=org, is_admin=True)
        UserFactory.create(organization=org)
        OrganizationInviteFactory.create(organization=org)
        client.force_login(admin)

        response = client.post(
            "/api/v1/organization/invite",
            data={"email": "fourth@example.com"},
            content_type="application/json",
        )

        assert response.status_code == 400
        body = response.json()
        assert body["reason"] == "member_limit"
        assert body["details"] == {"limit": 3, "members": 2, "pending_invites": 1}
        mock_send.assert_not_called()

    def test_unauthenticated_over_http(self, client: Client) -> None:
        response = client.post(
            "/api/v1/organization/invite",
            data={"email": "friend@example.com"},
            content_type="application/json",
        )

        assert response.status_code == 401


@pytest.mark.django_db
class TestAcceptInvite:
    def test_accept(self, request_factory: RequestFactory) -> None:
        invite = OrganizationInviteFactory.create(email="invitee@example.com")
        user = UserFactory.create(email="invitee@example.com")
        request = make_request(
            request_factory, "post", f"/api/v1/organization/invites/{invite.id}/accept", user=user
        )

        result = accept(request, invite.id)

        assert result.status == OrganizationInvite.Status.ACCEPTED
        user.refresh_from_db()
        assert user.organization_id == invite.organization_id


@pytest.mark.django_db
class TestSelfServeInviteEndpoints:
    """Tests for join link management."""

    def test_create_link(self, request_factory: RequestFactory) -> None:
        request = create_authenticated_request(
            request_factory, "post", "/api/v1/organization/self-serve-invites"
        )

        status, result = create_link(request, SelfServeInviteCreateRequest(name="Team", usage_limit=5))

        assert status == 201
        assert result.name == "Team"
        assert result.usage_limit == 5
        assert result.state == "pending"
        assert result.join_url.endswith(f"/join/{result.token}")

    def test_create_link_validation_over_http(self, client: Client) -> None:
        client.force_login(UserFactory.create(organization=OrganizationFactory.create(), is_admin=True))

        response = client.post(
            "/api/v1/organization/self-serve-invites",
            data={"name": "Team", "usage_limit": 0},
            content_type="application/json",
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request"

    def test_deactivate_link(self, request_factory: RequestFactory) -> None:
        invite = SelfServeInviteFactory.create()
        admin = UserFactory.create(organization=invite.organization, is_admin=True)
        request = make_request(
            request_factory, "delete", f"/api/v1/organization/self-serve-invites/{invite.token}", user=admin
        )

        result = deactivate_link(request, invite.token)

        assert result.is_active is False
        assert result.state == "deactivated"


@pytest.mark.django_db
class TestJoinEndpoints:
    """Tests for /join/{token}."""

    def test_summary_is_public(self, client: Client) -> None:
        invite = SelfServeInviteFactory.create(organization=OrganizationFactory.create(name="Acme"))

        response = client.get(f"/api/v1/join/{invite.token}")

        assert response.status_code == 200
        assert response.json()["organization_name"] == "Acme"
        assert response.json()["state"] == "pending"

    def test_summary_unknown_token(self, client: Client) -> None:
        response = client.get("/api/v1/join/unknown")

        assert response.status_code == 404
        assert response.json() == {"error": "Invalid or expired invitation link"}

    def test_summary_direct(self, request_factory: RequestFactory) -> None:
        invite = SelfServeInviteFactory.create(usage_limit=3)

        result = get_join_invite(request_factory.get(f"/api/v1/join/{invite.token}"), invite.token)

        assert result.usage_limit == 3

    def test_join_signed_in(self, request_factory: RequestFactory) -> None:
        invite = SelfServeInviteFactory.create()
        user = UserFactory.create()
        request = make_request(request_factory, "post", f"/api/v1/join/{invite.token}", user=user)

        result = join(request, invite.token)

        assert result.joined is True
        assert result.organization_id == invite.organization_id
        assert result.user_id == user.id

    def test_join_requires_login(self, request_factory: RequestFactory) -> None:
        invite = SelfServeInviteFactory.create()
        request = make_request(request_factory, "post", f"/api/v1/join/{invite.token}")

        with pytest.raises(HttpError) as exc_info:
            join(request, invite.token)

        assert exc_info.value.status_code == 401

    def test_join_expired_over_http(self, client: Client) -> None:
        invite = SelfServeInviteFactory.create(expires_at=timezone.now() - timedelta(hours=1))
        client.force_login(UserFactory.create())

        response = client.post(f"/api/v1/join/{invite.token}")

        assert response.status_code == 400
        assert response.json() == {"error": "This invitation link has expired", "reason": "expired"}

    def test_join_by_email_signs_in(self, request_factory: RequestFactory) -> None:
        invite = SelfServeInviteFactory.create()
        request = make_request(
            request_factory,
            "post",
            f"/api/v1/join/{invite.token}/email",
            data={"email": "new@example.com"},
        )

        result = join_by_email(request, invite.token, JoinWithEmailRequest(email="New@Example.com"))

        user = User.objects.get(email="new@example.com")
        assert result.user_id == user.id
        assert result.joined is True
        assert request.user == user
        assert request.session["_auth_user_id"] == str(user.pk)

    def test_join_by_email_over_http_establishes_session(self, client: Client) -> None:
        invite = SelfServeInviteFactory.create()

        response = client.post(
            f"/api/v1/join/{invite.token}/email",
            data={"email": "walkin@example.com"},
            content_type="application/json",
        )

        assert response.status_code == 200
        assert response.json()["joined"] is True
        user = User.objects.get(email="walkin@example.com")
        assert client.session["_auth_user_id"] == str(user.pk)

        followup = client.post(f"/api/v1/join/{invite.token}")
        assert followup.status_code == 200
        assert followup.json()["joined"] is False

    def test_join_by_email_existing_member_stays_anonymous(self, client: Client) -> None:
        invite = SelfServeInviteFactory.create()
        UserFactory.create(email="admin@example.com", organization=invite.organization, is_admin=True)

        response = client.post(
            f"/api/v1/join/{invite.token}/email",
            data={"email": "admin@example.com"},
            content_type="application/json",
        )

        assert response.status_code == 200
        body = response.json()
        assert body["joined"] is False
        assert body["created"] is False
        assert body["sign_in_url"].endswith(
            f"/auth/signin?email=admin%40example.com&callbackUrl=%2Fjoin%2F{invite.token}"
        )
        assert "_auth_user_id" not in client.session
        assert client.get("/api/v1/billing/subscription").status_code == 401

    def test_join_by_email_existing_unaffiliated_user_must_sign_in(self, client: Client) -> None:
        invite = SelfServeInviteFactory.create()
        user = UserFactory.create(email="known@example.com")

        response = client.post(
            f"/api/v1/join/{invite.token}/email",
            data={"email": "known@example.com"},
            content_type="application/json",
        )

        assert response.status_code == 200
        assert response.json()["joined"] is True
        assert response.json()["created"] is False
        assert response.json()["sign_in_url"] is not None
        assert "_auth_user_id" not in client.session
        user.refresh_from_db()
        assert user.organization_id == invite.organization_id
        assert user.email_verified is None

    def test_join_by_email_invalid_email(self, client: Client) -> None:
        invite = SelfServeInviteFactory.create()

        response = client.post(
            f"/api/v1/join/{invite.token}/email",
            data={"email": "nope"},
            content_type="application/json",
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid email address"}

    def test_join_by_email_rate_limited(self, client: Client) -> None:
        for _ in range(10):
            response = client.post(
                "/api/v1/join/missing/email",
                data={"email": "someone@example.com"},
                content_type="application/json",
            )
            assert response.status_code == 404

        response = client.post(
            "/api/v1/join/missing/email",
            data={"email": "someone@example.com"},
            content_type="application/json",
        )

        assert response.status_code == 429
        assert response["Retry-After"] == "60"
