"""
Request dependencies: transport authentication and caller identity.

The chat transport forwards who triggered an intent in headers:
  X-User-Id          numeric chat user id (required)
  X-User-First-Name  display name, percent-encoded (required)
  X-User-Username    handle without '@' (optional)
Every identified request refreshes the caller in the identity registry,
the same way the bot used to upsert users on every update.
"""

import secrets
from typing import Optional
from urllib.parse import unquote

import structlog
from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from kakibadminton.db.session import get_db
from kakibadminton.models.user import User
from kakibadminton.services.identity_service import upsert_user
from kakibadminton.core.config import get_settings
from kakibadminton.core.exceptions import AuthenticationError
from kakibadminton.core.logging import get_logger

logger = get_logger(__name__)


async def verify_api_key(x_api_key: Optional[str] = Header(None)) -> None:
    expected = get_settings().API_KEY
    if not expected:
        return
    if not x_api_key or not secrets.compare_digest(x_api_key, expected):
        logger.warning("api_key_rejected")
        raise AuthenticationError("Invalid API key")


async def get_current_user(
    x_user_id: Optional[int] = Header(None),
    x_user_first_name: Optional[str] = Header(None),
    x_user_username: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
) -> User:
    if x_user_id is None or not x_user_first_name:
        raise AuthenticationError()

    username = unquote(x_user_username).lstrip("@") if x_user_username else None
    user = await upsert_user(db, x_user_id, unquote(x_user_first_name), username or None)

    structlog.contextvars.bind_contextvars(user_id=user.id)
    return user
