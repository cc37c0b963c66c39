"""
Overdue sweep: reminding players who have not paid by the deadline.

DELIVERY GUARANTEE
==================

For every pending payment past its session's deadline the sweep first asks
the notifier to send a reminder, then sets reminder_sent. A crash between
the two means the reminder goes out again on the next tick: delivery is
at-least-once. A notifier error leaves the row unflagged so it is retried.

Each flag is committed as soon as it is set. A failure later in the pass
(another flag, the proof-request purge) rolls back only the uncommitted
work, never a reminder that was already delivered and flagged.

The sweep holds no state between runs beyond the reminder_sent flags.
Two sweeps must not run in parallel (there is no per-row guard); the
in-process loop below runs them strictly one after another.
"""

import asyncio
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from kakibadminton.models.payment import Payment, STATUS_PENDING
from kakibadminton.models.participant import Participant
from kakibadminton.models.session import PlaySession, STATUS_SETTLED
from kakibadminton.models.user import User
from kakibadminton.services import payment_service, proof_service
from kakibadminton.services.interfaces import ReminderNotifier, OverduePayment
from kakibadminton.db.base import utcnow
from kakibadminton.core.metrics import record_reminder, sweep_latency
from kakibadminton.core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class SweepResult:
    found: int = 0
    reminded: int = 0
    failed: int = 0
    purged_proof_requests: int = 0


async def find_overdue_payments(db: AsyncSession, now: Optional[datetime] = None) -> list[OverduePayment]:
    """Pending, not yet reminded payments of settled sessions whose deadline has passed."""
    now = now or utcnow()
    result = await db.execute(
        select(
            PlaySession.id.label("session_id"),
            PlaySession.group_id,
            PlaySession.bill_message_id,
            Payment.user_id,
            Payment.amount,
            Participant.first_name,
            Participant.username,
            User.first_name.label("host_first_name"),
            User.username.label("host_username"),
            User.payment_qr_file_id.label("host_payment_qr_file_id"),
        )
        .select_from(PlaySession)
        .join(User, User.id == PlaySession.host_id)
        .join(Payment, Payment.session_id == PlaySession.id)
        .join(
            Participant,
            and_(
                Participant.session_id == PlaySession.id,
                Participant.user_id == Payment.user_id,
            ),
        )
        .where(
            PlaySession.payment_deadline < now,
            PlaySession.status == STATUS_SETTLED,
            Payment.status == STATUS_PENDING,
            Payment.reminder_sent.is_(False),
        )
        .order_by(PlaySession.id.asc(), Payment.id.asc())
    )
    return [OverduePayment(**row._mapping) for row in result.all()]


async def run_overdue_sweep(
    db: AsyncSession,
    notifier: ReminderNotifier,
    now: Optional[datetime] = None,
) -> SweepResult:
    """
    One sweep pass. Commits after every reminder flag; the proof-request
    purge at the end is left for the caller to commit.
    """
    now = now or utcnow()
    started = time.perf_counter()

    overdue = await find_overdue_payments(db, now)
    result = SweepResult(found=len(overdue))

    for item in overdue:
        try:
            await notifier.send_reminder(item)
        except Exception as e:
            result.failed += 1
            record_reminder(sent=False)
            logger.error(
                "reminder_failed",
                session_id=item.session_id,
                user_id=item.user_id,
                error=str(e),
            )
            continue

        await payment_service.mark_reminder_sent(db, item.session_id, item.user_id, now=now)
        await db.commit()
        result.reminded += 1
        record_reminder(sent=True)
        logger.info("reminder_sent", session_id=item.session_id, user_id=item.user_id)

    result.purged_proof_requests = await proof_service.purge_expired_proof_requests(db, now)

    sweep_latency.observe(time.perf_counter() - started)
    logger.info(
        "overdue_sweep_completed",
        found=result.found,
        reminded=result.reminded,
        failed=result.failed,
        purged_proof_requests=result.purged_proof_requests,
    )
    return result


async def sweep_forever(
    session_factory: async_sessionmaker,
    notifier: ReminderNotifier,
    interval_seconds: float,
) -> None:
    """
    Run the sweep every `interval_seconds` until cancelled.
    A failed pass is rolled back and logged; the loop keeps going.
    """
    logger.info("overdue_sweep_scheduled", interval_seconds=interval_seconds)
    while True:
        async with session_factory() as db:
            try:
                await run_overdue_sweep(db, notifier)
                await db.commit()
            except asyncio.CancelledError:
                await db.rollback()
                raise
            except Exception as e:
                await db.rollback()
                logger.error("overdue_sweep_failed", error=str(e))
        await asyncio.sleep(interval_seconds)
