"""
Payment ledger endpoints: status views, payment claims, proof requests.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from kakibadminton.api.deps import get_current_user
from kakibadminton.db.session import get_db
from kakibadminton.models.payment import STATUS_PAID
from kakibadminton.models.user import User
from kakibadminton.schemas.payment import (
    PaymentResponse, PaymentStatusEntry, PaymentStatusResponse,
    UnpaidEntry, ProofRequestResponse,
)
from kakibadminton.services.payment_service import get_payment_status, list_unpaid, mark_paid
from kakibadminton.services.proof_service import open_proof_request
from kakibadminton.services.cache_service import get_cached_view, set_cached_view, invalidate_session_cache
from kakibadminton.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/sessions/{session_id}/payments", tags=["Payments"])

STATUS_VIEW = "payment_status"


@router.get("/", response_model=PaymentStatusResponse)
async def payment_status_endpoint(session_id: int, db: AsyncSession = Depends(get_db)):
    """
    Bill card data: paid players first in the order they paid, then the rest.
    Cached in Redis until the next roster or payment change.
    """
    cached = await get_cached_view(session_id, STATUS_VIEW)
    if cached:
        cached["cached"] = True
        return PaymentStatusResponse(**cached)

    rows = await get_payment_status(db, session_id)
    entries = [PaymentStatusEntry.model_validate(r) for r in rows]
    response = PaymentStatusResponse(
        session_id=session_id,
        paid_count=sum(1 for e in entries if e.payment_status == STATUS_PAID),
        total_count=len(entries),
        entries=entries,
    )

    await set_cached_view(session_id, STATUS_VIEW, response.model_dump(mode="json"))
    return response


@router.get("/unpaid", response_model=list[UnpaidEntry])
async def unpaid_endpoint(session_id: int, db: AsyncSession = Depends(get_db)):
    """Billed players who have not paid yet."""
    return [UnpaidEntry.model_validate(r) for r in await list_unpaid(db, session_id)]


@router.post("/me/paid", response_model=PaymentResponse)
async def claim_paid_endpoint(
    session_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """The caller says they have paid. Nothing is verified against a bank."""
    payment = await mark_paid(db, session_id, user.id, source="claim")
    await db.commit()
    await invalidate_session_cache(session_id)
    return payment


@router.post("/me/proof-request", response_model=ProofRequestResponse, status_code=status.HTTP_201_CREATED)
async def proof_request_endpoint(
    session_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Announce that the caller's next uploaded image is proof for this session."""
    return await open_proof_request(db, session_id, user.id)
