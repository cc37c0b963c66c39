"""
Proof upload endpoint: resolves the caller's open proof request.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from kakibadminton.api.deps import get_current_user
from kakibadminton.db.session import get_db
from kakibadminton.models.user import User
from kakibadminton.schemas.payment import PaymentResponse, ProofSubmit
from kakibadminton.services.proof_service import submit_proof
from kakibadminton.services.cache_service import invalidate_session_cache

router = APIRouter(prefix="/proofs", tags=["Payments"])


@router.post("/", response_model=PaymentResponse)
async def submit_proof_endpoint(
    data: ProofSubmit,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Attach the uploaded image to the payment the caller asked to prove and
    mark it paid. 404 when there is no open (unexpired) request.
    """
    payment = await submit_proof(db, user.id, data.file_id)
    await db.commit()
    await invalidate_session_cache(payment.session_id)
    return payment
