"""
Tests for billing management commands.
"""

from io import StringIO
from unittest.mock import MagicMock, patch

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from apps.billing.management.commands.sync_plans import format_display_price
from apps.billing.models import Plan
from tests.billing.factories import PlanFactory


def mock_stripe_catalog(mock_get_stripe: MagicMock, prices: list[dict]) -> MagicMock:
    mock_client = MagicMock()
    mock_client.Product.search.return_value = MagicMock(
        data=[
            {
                "id": "prod_team",
                "name": "Team",
                "description": "For growing teams",
                "metadata": {"app": "gumboard", "plan_id": "team"},
                "marketing_features": [{"name": "Unlimited members"}, {"name": "Unlimited boards"}],
            }
        ]
    )
    mock_client.Price.list.return_value = MagicMock(data=prices)
    mock_get_stripe.return_value = mock_client
    return mock_client


class TestFormatDisplayPrice:
    def test_whole_dollars(self) -> None:
        price = {"unit_amount": 900, "currency": "usd", "recurring": {"interval": "month"}}
        assert format_display_price(price) == "$9/month"

    def test_cents_and_other_currency(self) -> None:
        price = {"unit_amount": 1250, "currency": "eur", "recurring": {"interval": "year"}}
        assert format_display_price(price) == "EUR 12.50/year"

    def test_no_amount(self) -> None:
        assert format_display_price({"unit_amount": None}) == ""


@pytest.mark.django_db
class TestSyncPlans:
    """Tests for sync_plans command."""

    @patch("apps.billing.management.commands.sync_plans.settings")
    @patch("apps.billing.management.commands.sync_plans.get_stripe")
    def test_creates_plan_from_price(self, mock_get_stripe: MagicMock, mock_settings: MagicMock) -> None:
        mock_settings.STRIPE_SECRET_KEY = "sk_test"
        mock_stripe_catalog(
            mock_get_stripe,
            [
                {
                    "id": "price_team_monthly",
                    "lookup_key": None,
                    "unit_amount": 900,
                    "currency": "usd",
                    "recurring": {"interval": "month"},
                }
            ],
        )

        out = StringIO()
        call_command("sync_plans", stdout=out)

        plan = Plan.objects.get(id="team")
        assert plan.name == "Team"
        assert plan.stripe_price_id == "price_team_monthly"
        assert plan.display_price == "$9/month"
        assert plan.features == ["Unlimited members", "Unlimited boards"]
        assert "Created plan team" in out.getvalue()

    @patch("apps.billing.management.commands.sync_plans.settings")
    @patch("apps.billing.management.commands.sync_plans.get_stripe")
    def test_refreshes_existing_plan(self, mock_get_stripe: MagicMock, mock_settings: MagicMock) -> None:
        mock_settings.STRIPE_SECRET_KEY = "sk_test"
        PlanFactory.create(id="team", name="Old name", stripe_price_id="price_old")
        mock_stripe_catalog(
            mock_get_stripe,
            [{"id": "price_new", "lookup_key": "team", "unit_amount": 1200, "currency": "usd"}],
        )

        call_command("sync_plans", stdout=StringIO())

        plan = Plan.objects.get(id="team")
        assert plan.name == "Team"
        assert plan.stripe_price_id == "price_new"

    @patch("apps.billing.management.commands.sync_plans.settings")
    @patch("apps.billing.management.commands.sync_plans.get_stripe")
    def test_dry_run_writes_nothing(self, mock_get_stripe: MagicMock, mock_settings: MagicMock) -> None:
        mock_settings.STRIPE_SECRET_KEY = "sk_test"
        mock_stripe_catalog(mock_get_stripe, [{"id": "price_team", "lookup_key": "team", "unit_amount": 900}])

        out = StringIO()
        call_command("sync_plans", "--dry-run", stdout=out)

        assert not Plan.objects.exists()
        assert "Would sync plan team" in out.getvalue()

    @patch("apps.billing.management.commands.sync_plans.settings")
    def test_requires_secret_key(self, mock_settings: MagicMock) -> None:
        mock_settings.STRIPE_SECRET_KEY = ""

        with pytest.raises(CommandError):
            call_command("sync_plans", stdout=StringIO())
