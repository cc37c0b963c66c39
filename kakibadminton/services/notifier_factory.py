"""
Reminder notifier factory.
Configures how overdue reminders are delivered.
"""

from typing import Optional

from kakibadminton.services.interfaces import ReminderNotifier, LoggingNotifier, WebhookNotifier
from kakibadminton.core.config import get_settings


def build_notifier() -> ReminderNotifier:
    """
    Build the configured notifier.

    - log: LoggingNotifier (default)
    - webhook: WebhookNotifier posting to REMINDER_WEBHOOK_URL
    """
    settings = get_settings()

    if settings.REMINDER_NOTIFIER == "webhook":
        if not settings.REMINDER_WEBHOOK_URL:
            raise ValueError("REMINDER_WEBHOOK_URL must be set for the webhook notifier")
        return WebhookNotifier(
            settings.REMINDER_WEBHOOK_URL,
            timeout=settings.REMINDER_WEBHOOK_TIMEOUT,
            api_key=settings.API_KEY,
        )
    return LoggingNotifier()


# Singleton instance
_notifier: Optional[ReminderNotifier] = None


def get_notifier() -> ReminderNotifier:
    """Get notifier singleton. Also usable as a FastAPI dependency."""
    global _notifier
    if _notifier is None:
        _notifier = build_notifier()
    return _notifier


async def close_notifier() -> None:
    global _notifier
    if _notifier is not None:
        await _notifier.close()
        _notifier = None
