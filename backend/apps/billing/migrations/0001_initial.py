from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Plan",
            fields=[
                ("id", models.CharField(max_length=64, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=100, unique=True)),
                (
                    "stripe_price_id",
                    models.CharField(
                        help_text="Stripe price ID, e.g. 'price_xxx'", max_length=255, unique=True
                    ),
                ),
                ("description", models.TextField(blank=True, default="")),
                (
                    "display_price",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Price label shown on the plans page, e.g. '$9/month'",
                        max_length=50,
                    ),
                ),
                ("features", models.JSONField(blank=True, default=list)),
            ],
            options={
                "db_table": "plans",
                "ordering": ["name"],
            },
        ),
    ]
