"""
Logging notifier - no delivery, reminders only show up in the logs.
"""

from kakibadminton.services.interfaces.notifier import ReminderNotifier, OverduePayment
from kakibadminton.core.logging import get_logger

logger = get_logger(__name__)


class LoggingNotifier(ReminderNotifier):
    """
    Use when:
    - Running locally without a chat transport
    - Tests
    """

    async def send_reminder(self, overdue: OverduePayment) -> None:
        logger.info(
            "payment_reminder",
            session_id=overdue.session_id,
            group_id=overdue.group_id,
            user_id=overdue.user_id,
            amount=str(overdue.amount),
        )
