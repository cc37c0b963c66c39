"""
Webhook notifier - hands reminders to the chat transport over HTTP.
"""

import httpx

from kakibadminton.services.interfaces.notifier import ReminderNotifier, OverduePayment


class WebhookNotifier(ReminderNotifier):
    """
    POSTs one JSON document per reminder; the transport renders and sends
    the chat message (reply to bill_message_id in group_id).
    Non-2xx responses raise httpx.HTTPStatusError.
    """

    def __init__(self, url: str, timeout: float = 5.0, api_key: str = None, client: httpx.AsyncClient = None):
        self.url = url
        headers = {"X-Api-Key": api_key} if api_key else {}
        self.client = client or httpx.AsyncClient(timeout=timeout, headers=headers)

    async def send_reminder(self, overdue: OverduePayment) -> None:
        response = await self.client.post(
            self.url,
            json={
                "type": "payment_reminder",
                "session_id": overdue.session_id,
                "group_id": overdue.group_id,
                "bill_message_id": overdue.bill_message_id,
                "user_id": overdue.user_id,
                "display_name": overdue.display_name,
                "amount": str(overdue.amount),
                "host_display_name": overdue.host_display_name,
                "host_payment_qr_file_id": overdue.host_payment_qr_file_id,
            },
        )
        response.raise_for_status()

    async def close(self) -> None:
        await self.client.aclose()
