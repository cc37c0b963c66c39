"""
Session endpoints: open a session, RSVP, and settle the bill.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from kakibadminton.api.deps import get_current_user
from kakibadminton.db.session import get_db
from kakibadminton.models.session import PlaySession
from kakibadminton.models.user import User
from kakibadminton.schemas.session import (
    SessionCreate, SessionUpdate, SessionResponse, SessionDetailResponse,
    RosterResponse, ParticipantResponse,
)
from kakibadminton.schemas.user import UserResponse
from kakibadminton.schemas.payment import CostEntry, SettlementResponse, BillBreakdownResponse, PaymentResponse
from kakibadminton.services import roster_service
from kakibadminton.services.session_service import create_session, get_session, update_session
from kakibadminton.services.settlement_service import settle_session, get_session_payments
from kakibadminton.services.identity_service import get_user
from kakibadminton.services.billing import compute_bill
from kakibadminton.services.cache_service import invalidate_session_cache
from kakibadminton.core.exceptions import NotSessionHostError
from kakibadminton.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/sessions", tags=["Sessions"])


def _require_host(session: PlaySession, user: User) -> None:
    if session.host_id != user.id:
        raise NotSessionHostError()


async def _roster(db: AsyncSession, session: PlaySession) -> RosterResponse:
    participants = await roster_service.list_participants(db, session.id)
    return RosterResponse(
        session_id=session.id,
        host_id=session.host_id,
        count=len(participants),
        participants=[ParticipantResponse.model_validate(p) for p in participants],
    )


async def _detail(db: AsyncSession, session: PlaySession) -> SessionDetailResponse:
    return SessionDetailResponse(
        session=SessionResponse.model_validate(session),
        roster=await _roster(db, session),
    )


@router.post("/", response_model=SessionDetailResponse, status_code=status.HTTP_201_CREATED)
async def create_session_endpoint(
    data: SessionCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Open a session in a group chat. The caller becomes host and first player."""
    session = await create_session(
        db,
        data.group_id,
        user,
        title=data.title,
        location=data.location,
        scheduled_for=data.scheduled_for,
        message_id=data.message_id,
    )
    return await _detail(db, session)


@router.get("/{session_id}", response_model=SessionDetailResponse)
async def get_session_endpoint(session_id: int, db: AsyncSession = Depends(get_db)):
    """Data for the roster card."""
    session = await get_session(db, session_id)
    return await _detail(db, session)


@router.patch("/{session_id}", response_model=SessionDetailResponse)
async def update_session_endpoint(
    session_id: int,
    changes: SessionUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Edit session details or store the chat message references. Host only."""
    _require_host(await get_session(db, session_id), user)
    session = await update_session(db, session_id, changes)
    return await _detail(db, session)


@router.post("/{session_id}/join", response_model=RosterResponse)
async def join_session_endpoint(
    session_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await roster_service.join_session(db, session_id, user.id, user.first_name, user.username)
    await db.commit()
    await invalidate_session_cache(session_id)
    return await _roster(db, await get_session(db, session_id))


@router.post("/{session_id}/leave", response_model=RosterResponse)
async def leave_session_endpoint(
    session_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await roster_service.leave_session(db, session_id, user.id)
    await db.commit()
    await invalidate_session_cache(session_id)
    return await _roster(db, await get_session(db, session_id))


@router.post("/{session_id}/settle", response_model=SettlementResponse)
async def settle_session_endpoint(
    session_id: int,
    costs: CostEntry,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Enter the final costs and bill everyone currently in the session.

    Tube price defaults to the session's. Player count defaults to the
    roster size, or to the number of players already billed once the
    session is settled, so that settling again with the same costs keeps
    the share and only bills players who joined since. A different share
    is rejected with 409.
    """
    session = await get_session(db, session_id)
    _require_host(session, user)

    tube_price = costs.tube_price if costs.tube_price is not None else session.tube_price
    player_count = costs.player_count
    if player_count is None and session.is_settled:
        player_count = len(await get_session_payments(db, session_id))
    if player_count is None:
        player_count = await roster_service.count_participants(db, session_id)
    bill = compute_bill(costs.court_fee, tube_price, costs.shuttles_used, player_count)

    result = await settle_session(
        db,
        session_id,
        per_person=bill.per_person,
        court_fee=bill.court_fee,
        tube_price=bill.tube_price,
        shuttles_used=bill.shuttles_used,
    )
    host = await get_user(db, result.session.host_id)
    await db.commit()
    await invalidate_session_cache(session_id)

    return SettlementResponse(
        session=SessionResponse.model_validate(result.session),
        host=UserResponse.model_validate(host),
        bill=BillBreakdownResponse.model_validate(bill),
        payments=[PaymentResponse.model_validate(p) for p in result.payments],
        created_count=len(result.created),
        reapplied=result.reapplied,
    )
