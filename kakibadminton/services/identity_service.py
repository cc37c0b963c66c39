"""
Identity registry: users seen by the chat transport and their payout QR.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from kakibadminton.models.user import User
from kakibadminton.core.exceptions import UserNotFoundError
from kakibadminton.core.logging import get_logger

logger = get_logger(__name__)


async def upsert_user(
    db: AsyncSession,
    user_id: int,
    first_name: str,
    username: Optional[str] = None,
) -> User:
    """
    Insert the user on first sight, otherwise overwrite name and handle.
    Called on every request, so unchanged values are not re-written.
    """
    user = await db.get(User, user_id)

    if user is None:
        user = User(id=user_id, first_name=first_name, username=username)
        db.add(user)
        await db.flush()
        logger.info("user_registered", user_id=user_id)
        return user

    if user.first_name != first_name or user.username != username:
        user.first_name = first_name
        user.username = username
        await db.flush()
        logger.debug("user_profile_updated", user_id=user_id)
    return user


async def set_payout_reference(db: AsyncSession, user_id: int, file_id: str) -> User:
    """Overwrite the stored payout QR reference. The user must already exist."""
    user = await get_user(db, user_id)
    user.payment_qr_file_id = file_id
    await db.flush()

    logger.info("payout_qr_saved", user_id=user_id)
    return user


async def get_user(db: AsyncSession, user_id: int) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise UserNotFoundError(user_id)
    return user
