"""
Payment proof requests.

A player taps "send proof" for a session, then uploads an image in a later
message. The request row remembers which session that image belongs to.
Each user has at most one open request, and it expires after
PROOF_REQUEST_TTL_MINUTES; expired rows are purged by the overdue sweep.
"""

from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from kakibadminton.models.payment import Payment
from kakibadminton.models.proof_request import ProofRequest
from kakibadminton.services import payment_service
from kakibadminton.db.base import utcnow
from kakibadminton.core.config import get_settings
from kakibadminton.core.exceptions import ProofRequestNotFoundError
from kakibadminton.core.logging import get_logger

logger = get_logger(__name__)


async def _get_request(db: AsyncSession, user_id: int) -> Optional[ProofRequest]:
    result = await db.execute(select(ProofRequest).where(ProofRequest.user_id == user_id))
    return result.scalar_one_or_none()


async def open_proof_request(
    db: AsyncSession,
    session_id: int,
    user_id: int,
    now: Optional[datetime] = None,
) -> ProofRequest:
    """
    Start waiting for the user's proof image for this session.
    Replaces any request the user had open for another session.
    """
    # Only billed players can send proof
    await payment_service.get_payment(db, session_id, user_id)

    now = now or utcnow()
    expires_at = now + timedelta(minutes=get_settings().PROOF_REQUEST_TTL_MINUTES)

    request = await _get_request(db, user_id)
    if request is None:
        request = ProofRequest(user_id=user_id, session_id=session_id)
        db.add(request)
    request.session_id = session_id
    request.requested_at = now
    request.expires_at = expires_at
    await db.flush()

    logger.info("proof_request_opened", session_id=session_id, user_id=user_id, expires_at=expires_at.isoformat())
    return request


async def get_active_proof_request(
    db: AsyncSession,
    user_id: int,
    now: Optional[datetime] = None,
) -> Optional[ProofRequest]:
    request = await _get_request(db, user_id)
    if request is None or request.is_expired(now or utcnow()):
        return None
    return request


async def submit_proof(
    db: AsyncSession,
    user_id: int,
    evidence_ref: str,
    now: Optional[datetime] = None,
) -> Payment:
    """Attach the image to the pending session's payment and mark it paid."""
    now = now or utcnow()
    request = await _get_request(db, user_id)

    if request is None:
        raise ProofRequestNotFoundError()
    if request.is_expired(now):
        # Left for purge_expired_proof_requests
        logger.info("proof_request_expired", session_id=request.session_id, user_id=user_id)
        raise ProofRequestNotFoundError()

    session_id = request.session_id
    await payment_service.attach_proof(db, session_id, user_id, evidence_ref)
    payment = await payment_service.mark_paid(db, session_id, user_id, now=now, source="proof")

    await db.delete(request)
    await db.flush()
    return payment


async def purge_expired_proof_requests(db: AsyncSession, now: Optional[datetime] = None) -> int:
    result = await db.execute(
        delete(ProofRequest).where(ProofRequest.expires_at <= (now or utcnow()))
    )
    purged = result.rowcount or 0
    if purged:
        logger.info("proof_requests_purged", count=purged)
    return purged
