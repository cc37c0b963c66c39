"""
Identity endpoints: the caller's profile and payout QR.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from kakibadminton.api.deps import get_current_user
from kakibadminton.db.session import get_db
from kakibadminton.models.user import User
from kakibadminton.schemas.user import UserResponse, PayoutQrUpdate
from kakibadminton.services.identity_service import set_payout_reference

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/me", response_model=UserResponse)
async def get_me(user: User = Depends(get_current_user)):
    return user


@router.put("/me/payout-qr", response_model=UserResponse)
async def set_payout_qr(
    data: PayoutQrUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Save the QR image shown to players when the host settles a bill."""
    return await set_payout_reference(db, user.id, data.file_id)
