from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="WebhookEvent",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True, primary_key=True, serialize=False, verbose_name="ID"
                    ),
                ),
                (
                    "stripe_event_id",
                    models.CharField(
                        help_text="Stripe event ID, e.g. 'evt_xxx'", max_length=255, unique=True
                    ),
                ),
                ("event_type", models.CharField(max_length=100)),
                (
                    "processed",
                    models.BooleanField(
                        default=False, help_text="Set once the handler finished successfully"
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "db_table": "webhook_events",
                "ordering": ["-created_at"],
            },
        ),
    ]
