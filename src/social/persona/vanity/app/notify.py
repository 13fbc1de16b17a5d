"""Out-of-band error notification.

Unexpected claim failures are posted to a Discord-compatible webhook so that
the domain owner hears about a broken database before users give up. Delivery
is best-effort: the caller learns whether it worked and decides what to show
the user, but a failed notification never raises.
"""

from datetime import datetime, timezone
import logging
from typing import Optional
from aiohttp import ClientSession
import sentry_sdk

logger = logging.getLogger(__name__)


def format_error_message(error: str, mention: Optional[str] = None) -> str:
    timestamp = datetime.now(timezone.utc).isoformat()
    message = f"An error occurred at {timestamp}:\n```{error}```"
    if mention:
        return f"{mention} {message}"
    return message


async def notify_error(
    session: ClientSession,
    webhook_url: Optional[str],
    error: str,
    mention: Optional[str] = None,
) -> bool:
    """Post an error report to the notification webhook.

    Args:
        session: HTTP client session
        webhook_url: Webhook URL, None when notifications are not configured
        error: Error text to report
        mention: Optional mention prepended to the message

    Returns:
        True if the webhook accepted the message, False otherwise
    """
    if not webhook_url:
        logger.error("notify_error: no webhook configured, dropping: %s", error)
        return False

    body = {"content": format_error_message(error, mention)}
    try:
        async with session.post(webhook_url, json=body) as resp:
            if resp.status >= 400:
                logger.error("notify_error: webhook returned status %s", resp.status)
                return False
            return True
    except Exception as e:
        sentry_sdk.capture_exception(e)
        logger.exception("notify_error: webhook failed")
        return False
