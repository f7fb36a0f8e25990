"""
Forward fetched emails to an n8n workflow webhook.
"""

import logging
from typing import Optional, Sequence

import requests

from finmail import config
from finmail.exceptions import WebhookError
from finmail.models.email import EmailRecord

logger = logging.getLogger(__name__)


def forward_emails(
    emails: Sequence[EmailRecord],
    url: Optional[str] = None,
    timeout: float = 30
) -> bool:
    """
    POST {"emails": [...]} to the workflow webhook.

    Returns:
        False when no webhook is configured, True once delivered

    Raises:
        WebhookError: the webhook could not be reached or rejected the call
    """
    target = url or config.N8N_WEBHOOK_URL
    if not target:
        return False

    try:
        response = requests.post(
            target,
            json={"emails": [email.to_json_dict() for email in emails]},
            timeout=timeout
        )
        response.raise_for_status()
    except requests.RequestException as e:
        raise WebhookError(f"Failed to send emails to webhook: {e}") from e

    logger.info("📤 Sent %d emails to n8n", len(emails))
    return True
