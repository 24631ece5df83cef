"""
Factories for billing app models.

Used in tests to create test data.
"""

from datetime import UTC, datetime, timedelta

import factory
from factory.django import DjangoModelFactory

from apps.billing.models import Plan
from apps.organizations.models import SubscriptionStatus
from tests.accounts.factories import OrganizationFactory


class PlanFactory(DjangoModelFactory):
    """Factory for Plan model."""

    class Meta:
        model = Plan
        django_get_or_create = ("id",)

    id = factory.Sequence(lambda n: f"plan-{n}")
    name = factory.Sequence(lambda n: f"Plan {n}")
    stripe_price_id = factory.Sequence(lambda n: f"price_test_{n}")
    description = "Unlimited members and boards"
    display_price = "$9/month"
    features = factory.LazyFunction(lambda: ["Unlimited members", "Priority support"])


class SubscribedOrganizationFactory(OrganizationFactory):
    """Organization with an active paid subscription."""

    plan = factory.SubFactory(PlanFactory)
    stripe_customer_id = factory.Sequence(lambda n: f"cus_test_{n}")
    stripe_subscription_id = factory.Sequence(lambda n: f"sub_test_{n}")
    subscription_status = SubscriptionStatus.ACTIVE
    stripe_current_period_end = factory.LazyFunction(
        lambda: datetime.now(tz=UTC) + timedelta(days=30)
    )
