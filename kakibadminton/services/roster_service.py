"""
Roster manager: who is in a session.

Membership is one row per (session, user). Leaving flips the row to 'out'
and joining again flips it back with a fresh joined_at, so the roster order
reflects the latest join. Payments are never touched from here: a player
who leaves after settlement still owes their share.
"""

from typing import Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from kakibadminton.models.participant import Participant, STATUS_IN, STATUS_OUT
from kakibadminton.models.session import PlaySession
from kakibadminton.db.base import utcnow
from kakibadminton.core.exceptions import SessionNotFoundError, InvalidStateError
from kakibadminton.core.metrics import record_roster_change
from kakibadminton.core.logging import get_logger

logger = get_logger(__name__)


async def _require_session(db: AsyncSession, session_id: int) -> PlaySession:
    session = await db.get(PlaySession, session_id)
    if session is None:
        raise SessionNotFoundError(session_id)
    return session


async def _get_row(db: AsyncSession, session_id: int, user_id: int) -> Optional[Participant]:
    result = await db.execute(
        select(Participant).where(
            Participant.session_id == session_id,
            Participant.user_id == user_id,
        )
    )
    return result.scalar_one_or_none()


async def join_session(
    db: AsyncSession,
    session_id: int,
    user_id: int,
    first_name: str,
    username: Optional[str] = None,
) -> Participant:
    """Add the user to the roster, or bring them back in. Always succeeds."""
    await _require_session(db, session_id)

    participant = await _get_row(db, session_id, user_id)
    if participant is None:
        participant = Participant(
            session_id=session_id,
            user_id=user_id,
            first_name=first_name,
            username=username,
            status=STATUS_IN,
            joined_at=utcnow(),
        )
        db.add(participant)
    else:
        participant.status = STATUS_IN
        participant.first_name = first_name
        participant.username = username
        participant.joined_at = utcnow()
    await db.flush()

    record_roster_change("join")
    logger.info("participant_joined", session_id=session_id, user_id=user_id)
    return participant


async def leave_session(db: AsyncSession, session_id: int, user_id: int) -> bool:
    """
    Mark the user as out. Returns False when they were not in.
    The host is part of every session and cannot leave it.
    """
    session = await _require_session(db, session_id)
    if session.host_id == user_id:
        raise InvalidStateError("The host cannot leave their own session")

    participant = await _get_row(db, session_id, user_id)
    if participant is None or participant.status == STATUS_OUT:
        return False

    participant.status = STATUS_OUT
    await db.flush()

    record_roster_change("leave")
    logger.info("participant_left", session_id=session_id, user_id=user_id)
    return True


async def list_participants(db: AsyncSession, session_id: int) -> list[Participant]:
    """Current roster in join order."""
    await _require_session(db, session_id)
    result = await db.execute(
        select(Participant)
        .where(
            Participant.session_id == session_id,
            Participant.status == STATUS_IN,
        )
        .order_by(Participant.joined_at.asc(), Participant.id.asc())
    )
    return list(result.scalars().all())


async def count_participants(db: AsyncSession, session_id: int) -> int:
    await _require_session(db, session_id)
    result = await db.execute(
        select(func.count())
        .select_from(Participant)
        .where(
            Participant.session_id == session_id,
            Participant.status == STATUS_IN,
        )
    )
    return result.scalar_one()


async def is_participant(db: AsyncSession, session_id: int, user_id: int) -> bool:
    await _require_session(db, session_id)
    participant = await _get_row(db, session_id, user_id)
    return participant is not None and participant.status == STATUS_IN
