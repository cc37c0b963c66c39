"""
Scheduler hook: run the overdue sweep now.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from kakibadminton.db.session import get_db
from kakibadminton.schemas.payment import SweepResponse
from kakibadminton.services.interfaces import ReminderNotifier
from kakibadminton.services.notifier_factory import get_notifier
from kakibadminton.services.overdue_service import run_overdue_sweep

router = APIRouter(prefix="/sweeps", tags=["Sweeps"])


@router.post("/overdue", response_model=SweepResponse)
async def overdue_sweep_endpoint(
    db: AsyncSession = Depends(get_db),
    notifier: ReminderNotifier = Depends(get_notifier),
):
    """For an external scheduler. Do not call concurrently with the in-process loop."""
    result = await run_overdue_sweep(db, notifier)
    return SweepResponse(
        found=result.found,
        reminded=result.reminded,
        failed=result.failed,
        purged_proof_requests=result.purged_proof_requests,
    )
