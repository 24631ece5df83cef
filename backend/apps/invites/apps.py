"""Invites app configuration."""

from django.apps import AppConfig


class InvitesConfig(AppConfig):
    """Configuration for invites app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.invites"
