"""
Reminder notifier interface.
Lets the overdue sweep stay ignorant of how reminders reach the chat.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class OverduePayment:
    """One pending obligation whose session deadline has passed."""

    session_id: int
    group_id: int
    bill_message_id: Optional[int]
    user_id: int
    amount: Decimal
    first_name: str
    username: Optional[str]
    host_first_name: Optional[str] = None
    host_username: Optional[str] = None
    # Chat file reference of the host's payout QR, if they saved one
    host_payment_qr_file_id: Optional[str] = None

    @property
    def display_name(self) -> str:
        return f"@{self.username}" if self.username else self.first_name

    @property
    def host_display_name(self) -> Optional[str]:
        if self.host_username:
            return f"@{self.host_username}"
        return self.host_first_name


class ReminderNotifier(ABC):
    """
    Interface for delivering overdue payment reminders.

    Implementations:
    - LoggingNotifier: Only logs the reminder (development, tests)
    - WebhookNotifier: POSTs the reminder to the chat transport
    """

    @abstractmethod
    async def send_reminder(self, overdue: OverduePayment) -> None:
        """
        Deliver one reminder. Raise on failure so the sweep leaves the
        payment unflagged and retries on the next tick.
        """

    async def close(self) -> None:
        """Release any held resources."""
