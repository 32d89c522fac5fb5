import asyncio
import logging
from typing import Any, Dict

from .core.config import settings
from .core.email import send_decision_email

logger = logging.getLogger(__name__)


def notify_decision(payload: Dict[str, Any]) -> bool:
    """
    RQ job: email an applicant about the decision on their request.

    Args:
        payload: DecisionEvent.to_payload() output.

    Returns:
        True when an email was sent, False when skipped.
    """
    recipient = payload.get("applicant_email")
    if not recipient:
        logger.warning(f"No recipient for decision on {payload.get('kind')} {payload.get('request_id')}")
        return False

    if not settings.MAIL_USER and not settings.MAIL_FROM:
        logger.warning("Mail settings not configured; skipping decision email")
        return False

    asyncio.run(
        send_decision_email(
            recipient=recipient,
            display_name=payload.get("applicant_name") or recipient,
            kind=payload["kind"],
            status=payload["status"],
            notes=payload.get("notes"),
        )
    )
    logger.info(f"Processed decision notification for {payload['kind']} {payload['request_id']}")
    return True
