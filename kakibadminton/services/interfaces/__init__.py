"""
Service interfaces for dependency inversion.
Allows swapping implementations without changing business logic.
"""

from .notifier import ReminderNotifier, OverduePayment
from .logging_notifier import LoggingNotifier
from .webhook_notifier import WebhookNotifier

__all__ = ['ReminderNotifier', 'OverduePayment', 'LoggingNotifier', 'WebhookNotifier']
