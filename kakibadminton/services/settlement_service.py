"""
Settlement engine: turns the entered costs and the current roster into
payment obligations.

SETTLEMENT RULES
================

Snapshot:
  The roster at the moment of settlement is what gets billed. Players who
  join afterwards are not billed; players who leave afterwards still owe.

Host:
  The host collects the money, so their own row is created already paid.

Atomicity:
  Payment inserts and the open -> settled flip are flushed in the caller's
  transaction (one request = one transaction, see db/session.py). Nobody can
  observe a settled session with a partial set of obligations.

Concurrency:
  The open -> settled flip is a conditional UPDATE ... WHERE status='open'
  (same idea as the version-checked seat update in bookings). Of two
  settles racing on one session, the second updates zero rows and gets
  SessionAlreadySettledError instead of a unique-constraint failure.

Re-settlement:
  Settling an already settled session with the SAME per-person amount is an
  idempotent re-apply: existing rows are untouched, players who joined since
  get a pending row at that amount, settled_at and the deadline stay as they
  were. A DIFFERENT amount is rejected with SessionAlreadySettledError so
  that one session never carries two different shares.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from kakibadminton.models.payment import Payment, STATUS_PAID, STATUS_PENDING
from kakibadminton.models.session import PlaySession, STATUS_OPEN, STATUS_SETTLED
from kakibadminton.services import roster_service, session_service
from kakibadminton.services.billing import Number, to_money
from kakibadminton.db.base import utcnow
from kakibadminton.core.config import get_settings
from kakibadminton.core.exceptions import SessionAlreadySettledError
from kakibadminton.core.metrics import record_settlement, record_payment_created
from kakibadminton.core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class SettlementResult:
    session: PlaySession
    payments: list[Payment]
    created: list[Payment] = field(default_factory=list)
    reapplied: bool = False


async def get_session_payments(db: AsyncSession, session_id: int) -> list[Payment]:
    result = await db.execute(
        select(Payment)
        .where(Payment.session_id == session_id)
        .order_by(Payment.id.asc())
    )
    return list(result.scalars().all())


async def settle_session(
    db: AsyncSession,
    session_id: int,
    per_person: Number,
    court_fee: Number,
    tube_price: Number,
    shuttles_used: int,
    now: Optional[datetime] = None,
) -> SettlementResult:
    """
    Bill every participant currently in the session and mark it settled.
    Amounts are trusted as computed by the calculator.
    """
    session = await session_service.get_session(db, session_id)
    amount = to_money(per_person)
    now = now or utcnow()

    existing = {p.user_id: p for p in await get_session_payments(db, session_id)}
    reapplied = session.is_settled

    if reapplied:
        billed: set[Decimal] = {p.amount for p in existing.values()}
        if billed and billed != {amount}:
            record_settlement("rejected")
            logger.warning(
                "settlement_rejected",
                session_id=session_id,
                reason="amount_mismatch",
                billed=[str(a) for a in sorted(billed)],
                requested=str(amount),
            )
            raise SessionAlreadySettledError(
                f"Session {session_id} was already settled at a different amount"
            )

    roster = await roster_service.list_participants(db, session_id)

    if not reapplied:
        # Conditional flip: a concurrent settle of the same session waits on
        # the row lock and then matches nothing
        flip = await db.execute(
            update(PlaySession)
            .where(PlaySession.id == session_id, PlaySession.status == STATUS_OPEN)
            .values(
                court_fee=to_money(court_fee),
                tube_price=to_money(tube_price),
                shuttles_used=shuttles_used,
                status=STATUS_SETTLED,
                settled_at=now,
                payment_deadline=now + timedelta(hours=get_settings().PAYMENT_WINDOW_HOURS),
            )
        )
        if flip.rowcount == 0:
            record_settlement("rejected")
            logger.warning("settlement_rejected", session_id=session_id, reason="concurrent_settlement")
            raise SessionAlreadySettledError(f"Session {session_id} was settled concurrently")

    created = []
    for participant in roster:
        if participant.user_id in existing:
            continue

        is_host = participant.user_id == session.host_id
        payment = Payment(
            session_id=session_id,
            user_id=participant.user_id,
            amount=amount,
            status=STATUS_PAID if is_host else STATUS_PENDING,
            paid_at=now if is_host else None,
            reminder_sent=False,
        )
        db.add(payment)
        created.append(payment)

    try:
        await db.flush()
    except IntegrityError:
        # Another re-apply billed the same newcomer first
        record_settlement("rejected")
        logger.warning("settlement_rejected", session_id=session_id, reason="duplicate_obligation")
        raise SessionAlreadySettledError(f"Session {session_id} was settled concurrently")
    await db.refresh(session)

    for payment in created:
        record_payment_created(payment.status)

    record_settlement("reapplied" if reapplied else "settled")
    logger.info(
        "session_settled",
        session_id=session_id,
        per_person=str(amount),
        billed=len(created),
        roster_size=len(roster),
        reapplied=reapplied,
    )
    return SettlementResult(
        session=session,
        payments=await get_session_payments(db, session_id),
        created=created,
        reapplied=reapplied,
    )
