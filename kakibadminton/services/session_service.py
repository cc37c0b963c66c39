"""
Session store: creating, reading and editing sessions.

Status, cost fields, settled_at and payment_deadline are deliberately not
writable here; settlement_service owns them.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from kakibadminton.models.session import PlaySession, DEFAULT_TITLE
from kakibadminton.models.user import User
from kakibadminton.schemas.session import SessionUpdate
from kakibadminton.services import roster_service
from kakibadminton.core.config import get_settings
from kakibadminton.core.exceptions import SessionNotFoundError, SessionAlreadySettledError
from kakibadminton.core.metrics import record_session_created
from kakibadminton.core.logging import get_logger

logger = get_logger(__name__)

# Fields that stay editable after settlement
_POST_SETTLEMENT_FIELDS = {"bill_message_id"}


async def create_session(
    db: AsyncSession,
    group_id: int,
    host: User,
    title: Optional[str] = None,
    location: Optional[str] = None,
    scheduled_for: Optional[str] = None,
    message_id: Optional[int] = None,
) -> PlaySession:
    """Open a new session and put the host on its roster."""
    session = PlaySession(
        group_id=group_id,
        host_id=host.id,
        title=title or DEFAULT_TITLE,
        location=location or None,
        scheduled_for=scheduled_for or None,
        message_id=message_id,
        court_fee=0,
        tube_price=get_settings().DEFAULT_TUBE_PRICE,
        shuttles_used=0,
    )
    db.add(session)
    await db.flush()

    await roster_service.join_session(db, session.id, host.id, host.first_name, host.username)
    await db.refresh(session)

    record_session_created()
    logger.info("session_created", session_id=session.id, group_id=group_id, host_id=host.id)
    return session


async def get_session(db: AsyncSession, session_id: int) -> PlaySession:
    result = await db.execute(select(PlaySession).where(PlaySession.id == session_id))
    session = result.scalar_one_or_none()

    if not session:
        raise SessionNotFoundError(session_id)
    return session


async def update_session(db: AsyncSession, session_id: int, changes: SessionUpdate) -> PlaySession:
    """
    Apply the fields explicitly set on `changes`.
    Once settled, only bill_message_id may change.
    """
    session = await get_session(db, session_id)
    values = changes.model_dump(exclude_unset=True)

    if session.is_settled:
        blocked = sorted(set(values) - _POST_SETTLEMENT_FIELDS)
        if blocked:
            raise SessionAlreadySettledError(
                f"Session {session_id} is settled; cannot change {', '.join(blocked)}"
            )

    if "title" in values and not values["title"]:
        values["title"] = DEFAULT_TITLE

    for field, value in values.items():
        setattr(session, field, value)
    await db.flush()
    await db.refresh(session)

    logger.info("session_updated", session_id=session_id, fields=sorted(values))
    return session
