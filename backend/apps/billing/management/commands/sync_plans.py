"""
Management command to sync the plan catalog from Stripe.

Creates or refreshes a Plan row for every active recurring price of the
Gumboard products. Plan ids come from the price's lookup_key, falling
back to the product's 'plan_id' metadata.
Usage: python manage.py sync_plans [--dry-run]
"""

from django.core.management.base import BaseCommand, CommandError

from apps.billing.models import Plan
from apps.billing.stripe_client import as_dict, get_stripe
from config.settings.base import settings

PRODUCT_QUERY = "metadata['app']:'gumboard' AND active:'true'"


def format_display_price(price: dict) -> str:
    """Human price label, e.g. '$9/month'."""
    amount = price.get("unit_amount")
    if amount is None:
        return ""
    currency = (price.get("currency") or "usd").upper()
    interval = as_dict(price.get("recurring")).get("interval", "month")
    value = f"{amount / 100:.2f}".removesuffix(".00")
    prefix = "$" if currency == "USD" else f"{currency} "
    return f"{prefix}{value}/{interval}"


class Command(BaseCommand):
    help = "Create or refresh Plan rows from active recurring Stripe prices"

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Show what would be synced without writing",
        )

    def handle(self, *args, **options):
        if not settings.STRIPE_SECRET_KEY:
            raise CommandError("STRIPE_SECRET_KEY not set. Add it to your .env file first.")

        stripe = get_stripe()
        products = stripe.Product.search(query=PRODUCT_QUERY)
        if not products.data:
            self.stdout.write(self.style.WARNING("No active Gumboard products found in Stripe"))
            return

        synced = 0
        for product in products.data:
            product = as_dict(product)
            prices = stripe.Price.list(product=product["id"], active=True, type="recurring")

            for price in prices.data:
                price = as_dict(price)
                plan_id = price.get("lookup_key") or (product.get("metadata") or {}).get("plan_id")
                if not plan_id:
                    self.stdout.write(
                        self.style.WARNING(f"Skipping {price['id']}: no lookup_key or plan_id metadata")
                    )
                    continue

                values = {
                    "name": product["name"],
                    "stripe_price_id": price["id"],
                    "description": product.get("description") or "",
                    "display_price": format_display_price(price),
                    "features": [
                        feature["name"]
                        for feature in product.get("marketing_features") or []
                        if feature.get("name")
                    ],
                }

                if options["dry_run"]:
                    self.stdout.write(f"Would sync plan {plan_id}: {values['name']} ({price['id']})")
                else:
                    _, created = Plan.objects.update_or_create(id=plan_id, defaults=values)
                    verb = "Created" if created else "Updated"
                    self.stdout.write(f"{verb} plan {plan_id}: {values['name']} ({price['id']})")
                synced += 1

        self.stdout.write(self.style.SUCCESS(f"Synced {synced} plan(s)"))
