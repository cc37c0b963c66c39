"""
Payment ledger: tracking each obligation from pending to paid.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import select, and_, func
from sqlalchemy.engine import Row
from sqlalchemy.ext.asyncio import AsyncSession

from kakibadminton.models.payment import Payment, STATUS_PAID, STATUS_PENDING
from kakibadminton.models.participant import Participant, STATUS_IN
from kakibadminton.models.session import PlaySession
from kakibadminton.db.base import utcnow
from kakibadminton.core.exceptions import SessionNotFoundError, PaymentNotFoundError
from kakibadminton.core.metrics import record_payment_paid
from kakibadminton.core.logging import get_logger

logger = get_logger(__name__)


async def get_payment(db: AsyncSession, session_id: int, user_id: int) -> Payment:
    """Fetch one obligation, distinguishing a missing session from a missing row."""
    if await db.get(PlaySession, session_id) is None:
        raise SessionNotFoundError(session_id)

    result = await db.execute(
        select(Payment).where(
            Payment.session_id == session_id,
            Payment.user_id == user_id,
        )
    )
    payment = result.scalar_one_or_none()
    if not payment:
        raise PaymentNotFoundError(session_id, user_id)
    return payment


async def mark_paid(
    db: AsyncSession,
    session_id: int,
    user_id: int,
    now: Optional[datetime] = None,
    source: str = "claim",
) -> Payment:
    """
    Record the user's claim that they paid. Re-marking a paid row just
    refreshes paid_at.
    """
    payment = await get_payment(db, session_id, user_id)
    payment.status = STATUS_PAID
    payment.paid_at = now or utcnow()
    await db.flush()

    record_payment_paid(source)
    logger.info(
        "payment_marked_paid",
        session_id=session_id,
        user_id=user_id,
        amount=str(payment.amount),
        source=source,
    )
    return payment


async def attach_proof(db: AsyncSession, session_id: int, user_id: int, evidence_ref: str) -> Payment:
    """Store a reference to the submitted evidence. Does not change status."""
    payment = await get_payment(db, session_id, user_id)
    payment.proof_file_id = evidence_ref
    await db.flush()

    logger.info("payment_proof_attached", session_id=session_id, user_id=user_id)
    return payment


async def mark_reminder_sent(
    db: AsyncSession,
    session_id: int,
    user_id: int,
    now: Optional[datetime] = None,
) -> Payment:
    payment = await get_payment(db, session_id, user_id)
    payment.reminder_sent = True
    payment.reminder_sent_at = now or utcnow()
    await db.flush()
    return payment


async def get_payment_status(db: AsyncSession, session_id: int) -> list[Row]:
    """
    Payment view of the current roster.

    Every participant who is in gets an entry; those without a payment row
    (not billed yet) show as pending with no amount. Paid entries come first
    in the order they paid, unpaid ones last.
    """
    if await db.get(PlaySession, session_id) is None:
        raise SessionNotFoundError(session_id)

    result = await db.execute(
        select(
            Participant.user_id,
            Participant.first_name,
            Participant.username,
            func.coalesce(Payment.status, STATUS_PENDING).label("payment_status"),
            Payment.paid_at,
            Payment.amount,
        )
        .select_from(Participant)
        .outerjoin(
            Payment,
            and_(
                Payment.session_id == Participant.session_id,
                Payment.user_id == Participant.user_id,
            ),
        )
        .where(
            Participant.session_id == session_id,
            Participant.status == STATUS_IN,
        )
        .order_by(
            Payment.paid_at.is_(None),
            Payment.paid_at.asc(),
            Participant.joined_at.asc(),
        )
    )
    return list(result.all())


async def list_unpaid(db: AsyncSession, session_id: int) -> list[Row]:
    """Participants who were billed and have not paid. Never-billed players are excluded."""
    if await db.get(PlaySession, session_id) is None:
        raise SessionNotFoundError(session_id)

    result = await db.execute(
        select(
            Participant.user_id,
            Participant.first_name,
            Participant.username,
            Payment.amount,
        )
        .select_from(Participant)
        .join(
            Payment,
            and_(
                Payment.session_id == Participant.session_id,
                Payment.user_id == Participant.user_id,
            ),
        )
        .where(
            Participant.session_id == session_id,
            Participant.status == STATUS_IN,
            Payment.status == STATUS_PENDING,
        )
        .order_by(Participant.joined_at.asc())
    )
    return list(result.all())
