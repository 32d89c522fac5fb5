import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi_mail import FastMail, MessageSchema, ConnectionConfig, MessageType
from jinja2 import Template

from .config import settings

logger = logging.getLogger(__name__)

_fastmail: Optional[FastMail] = None


def get_mail_client() -> FastMail:
    """Build the mail client on first use; config validation needs real settings."""
    global _fastmail
    if _fastmail is None:
        email_config = ConnectionConfig(
            MAIL_USERNAME=settings.MAIL_USER,
            MAIL_PASSWORD=settings.MAIL_PASSWORD,
            MAIL_FROM=settings.MAIL_FROM or settings.MAIL_USER,
            MAIL_PORT=settings.MAIL_PORT,
            MAIL_SERVER=settings.MAIL_HOST,
            MAIL_FROM_NAME=settings.MAIL_FROM_NAME,
            MAIL_STARTTLS=settings.MAIL_SECURE,
            MAIL_SSL_TLS=False,
            USE_CREDENTIALS=True,
            VALIDATE_CERTS=True,
        )
        _fastmail = FastMail(email_config)
    return _fastmail


KIND_TITLES = {
    "master_role": "master role application",
    "staff": "staff request",
    "resignation": "resignation request",
    "enrollment": "enrollment request",
}

DECISION_TEMPLATE = """
<html>
<body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
    <div style="background-color: #f8f9fa; padding: 30px; border-radius: 10px;">
        <h2 style="color: #1f2937; margin-bottom: 20px;">
            Your {{ kind_title }} was {{ status }}
        </h2>

        <p style="color: #4b5563; font-size: 16px; line-height: 1.6;">
            Hi {{ display_name }},
        </p>

        <p style="color: #4b5563; font-size: 16px; line-height: 1.6;">
            {% if status == "approved" or status == "active" %}
            Good news: your {{ kind_title }} has been approved.
            {% else %}
            Your {{ kind_title }} was reviewed and not approved this time.
            {% endif %}
        </p>

        {% if notes %}
        <p style="color: #4b5563; font-size: 16px; line-height: 1.6;">
            <strong>Reviewer notes:</strong> {{ notes }}
        </p>
        {% endif %}

        <div style="text-align: center; margin: 30px 0;">
            <a href="{{ dashboard_url }}"
               style="background-color: #2563eb; color: white; padding: 15px 30px;
                      text-decoration: none; border-radius: 5px; font-weight: bold;
                      display: inline-block;">
                Open your dashboard
            </a>
        </div>

        <p style="color: #9ca3af; font-size: 12px; text-align: center;">
            &copy; {{ current_year }} {{ sender_name }}
        </p>
    </div>
</body>
</html>
"""


def render_decision_email(
    display_name: str, kind: str, status: str, notes: Optional[str] = None
) -> str:
    """Generate HTML body for a decision notification."""
    template = Template(DECISION_TEMPLATE)
    return template.render(
        display_name=display_name,
        kind_title=KIND_TITLES.get(kind, "request"),
        status=status,
        notes=notes,
        dashboard_url=f"{settings.FRONTEND_URL}/dashboard",
        current_year=datetime.now(timezone.utc).year,
        sender_name=settings.MAIL_FROM_NAME,
    )


async def send_decision_email(
    recipient: str, display_name: str, kind: str, status: str, notes: Optional[str] = None
) -> None:
    """Send a decision notification to the applicant."""
    message = MessageSchema(
        subject=f"Your {KIND_TITLES.get(kind, 'request')} was {status}",
        recipients=[recipient],
        body=render_decision_email(display_name, kind, status, notes),
        subtype=MessageType.html,
    )

    await get_mail_client().send_message(message)
    logger.info(f"Decision email sent to {recipient}")
