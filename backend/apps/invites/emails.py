"""
Invitation emails sent through Resend.
"""

import resend
from django.utils.html import format_html

from apps.core.logging import get_logger
from config.settings.base import settings

logger = get_logger(__name__)


def build_invite_html(organization_name: str, accept_url: str) -> str:
    """Invite body. Organization names are user input and are escaped."""
    return format_html(
        """
      <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
        <h2>You're invited to join {}!</h2>
        <p>You've been invited to join the team on Gumboard.</p>
        <p>Click the link below to accept the invitation:</p>
        <a href="{}"
           style="background-color: #007bff; color: white; padding: 12px 24px; text-decoration: none; border-radius: 6px; display: inline-block;">
          Accept Invitation
        </a>
        <p style="margin-top: 20px; color: #666;">
          If you don't want to receive these emails, please ignore this message.
        </p>
      </div>
    """,
        organization_name,
        accept_url,
    )


def send_invite_email(to: str, organization_name: str, invite_id: int) -> bool:
    """
    Send an organization invitation.

    Best-effort: a delivery failure is logged and reported as False, the
    invite itself stays valid and can be resent.
    """
    if not settings.RESEND_API_KEY:
        logger.warning("invite_email_skipped_no_api_key", invite_id=invite_id)
        return False

    accept_url = f"{settings.APP_URL.rstrip('/')}/invite/accept?token={invite_id}"
    resend.api_key = settings.RESEND_API_KEY
    try:
        resend.Emails.send(
            {
                "from": settings.EMAIL_FROM,
                "to": [to],
                "subject": f"You're invited to join {organization_name}",
                "html": build_invite_html(organization_name, accept_url),
            }
        )
    except Exception:
        logger.exception("invite_email_failed", invite_id=invite_id)
        return False

    logger.info("invite_email_sent", invite_id=invite_id)
    return True
