"""
Tests for organizations app models.
"""

import pytest

from apps.invites.models import OrganizationInvite
from apps.organizations.models import SubscriptionStatus
from tests.accounts.factories import OrganizationFactory, UserFactory
from tests.billing.factories import PlanFactory, SubscribedOrganizationFactory
from tests.invites.factories import OrganizationInviteFactory


@pytest.mark.django_db
class TestOrganizationModel:
    """Tests for Organization model."""

    def test_new_organization_is_free_tier(self) -> None:
        org = OrganizationFactory.create(name="Acme Corp")

        assert str(org) == "Acme Corp"
        assert org.is_free_tier is True
        assert org.has_subscription is False
        assert org.subscription_status == SubscriptionStatus.INACTIVE

    def test_plan_makes_it_paid(self) -> None:
        org = OrganizationFactory.create(plan=PlanFactory.create())

        assert org.is_free_tier is False

    def test_has_subscription_needs_both_ids(self) -> None:
        org = OrganizationFactory.create(stripe_customer_id="cus_only")

        assert org.has_subscription is False
        assert SubscribedOrganizationFactory.create().has_subscription is True

    def test_member_and_pending_invite_counts(self) -> None:
        org = OrganizationFactory.create()
        UserFactory.create_batch(2, organization=org)
        UserFactory.create()
        OrganizationInviteFactory.create(organization=org)
        OrganizationInviteFactory.create(organization=org, status=OrganizationInvite.Status.ACCEPTED)
        OrganizationInviteFactory.create(organization=org, status=OrganizationInvite.Status.DECLINED)

        assert org.member_count == 2
        assert org.pending_invite_count == 1

    def test_deleting_organization_keeps_members(self) -> None:
        org = OrganizationFactory.create()
        user = UserFactory.create(organization=org, is_admin=True)

        org.delete()

        user.refresh_from_db()
        assert user.organization is None
