"""
Tests for bill arithmetic and the settlement engine.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy import update

from kakibadminton.db.base import utcnow
from kakibadminton.models.payment import STATUS_PAID, STATUS_PENDING
from kakibadminton.models.session import PlaySession, STATUS_SETTLED
from kakibadminton.services import roster_service
from kakibadminton.services.billing import compute_bill
from kakibadminton.services.settlement_service import settle_session, get_session_payments
from kakibadminton.core.exceptions import SessionAlreadySettledError, SessionNotFoundError


def test_compute_bill_shuttles_by_the_tube():
    """96 per tube of 12, 3 used -> 24; with 40 court fee over 3 players -> 21.33."""
    bill = compute_bill(40, 96, 3, 3)
    assert bill.shuttle_cost == Decimal("24.00")
    assert bill.total == Decimal("64.00")
    assert bill.per_person == Decimal("21.33")


def test_compute_bill_rounds_half_up():
    bill = compute_bill(Decimal("10.00"), 0, 0, 8)
    assert bill.per_person == Decimal("1.25")
    bill = compute_bill(Decimal("0.05"), 0, 0, 2)
    assert bill.per_person == Decimal("0.03")


def test_compute_bill_rejects_no_players():
    with pytest.raises(ValueError):
        compute_bill(40, 95, 2, 0)


@pytest.mark.asyncio
async def test_settlement_scenario(db_session, open_session, host, alice, bob):
    """Court 40, tube 96, 3 shuttles, 3 players: everyone owes 21.33, host already paid."""
    bill = compute_bill(40, 96, 3, await roster_service.count_participants(db_session, open_session.id))
    settled_at = datetime(2026, 10, 16, 21, 30, tzinfo=timezone.utc)

    result = await settle_session(
        db_session,
        open_session.id,
        per_person=bill.per_person,
        court_fee=bill.court_fee,
        tube_price=bill.tube_price,
        shuttles_used=3,
        now=settled_at,
    )

    by_user = {p.user_id: p for p in result.payments}
    assert set(by_user) == {host.id, alice.id, bob.id}
    assert by_user[host.id].status == STATUS_PAID
    assert by_user[alice.id].status == STATUS_PENDING
    assert by_user[bob.id].status == STATUS_PENDING
    assert all(p.amount == Decimal("21.33") for p in result.payments)

    session = result.session
    assert session.status == "settled"
    assert session.settled_at == settled_at
    assert session.payment_deadline == settled_at + timedelta(hours=24)
    assert session.court_fee == Decimal("40.00")
    assert session.tube_price == Decimal("96.00")
    assert session.shuttles_used == 3
    assert result.reapplied is False


@pytest.mark.asyncio
async def test_settlement_three_rows_at_thirty(db_session, settled_session, host, alice, bob):
    payments = await get_session_payments(db_session, settled_session.id)
    assert len(payments) == 3
    statuses = {p.user_id: (p.status, p.amount) for p in payments}
    assert statuses[host.id][0] == STATUS_PAID
    assert statuses[alice.id] == (STATUS_PENDING, Decimal("30.00"))
    assert statuses[bob.id] == (STATUS_PENDING, Decimal("30.00"))


@pytest.mark.asyncio
async def test_out_players_are_not_billed(db_session, open_session, bob):
    await roster_service.leave_session(db_session, open_session.id, bob.id)

    result = await settle_session(db_session, open_session.id, 20, 40, 95, 0)
    assert bob.id not in {p.user_id for p in result.payments}
    assert len(result.payments) == 2


@pytest.mark.asyncio
async def test_late_joiner_not_billed(db_session, settled_session):
    """Joining after settlement adds to the roster but creates no payment."""
    await roster_service.join_session(db_session, settled_session.id, 2001, "Late")

    payments = await get_session_payments(db_session, settled_session.id)
    assert 2001 not in {p.user_id for p in payments}
    assert await roster_service.is_participant(db_session, settled_session.id, 2001)


@pytest.mark.asyncio
async def test_leaving_after_settlement_keeps_obligation(db_session, settled_session, alice):
    await roster_service.leave_session(db_session, settled_session.id, alice.id)

    payments = await get_session_payments(db_session, settled_session.id)
    assert alice.id in {p.user_id for p in payments}


@pytest.mark.asyncio
async def test_resettle_same_amount_bills_new_players_only(db_session, settled_session, alice):
    """Re-applying the same share is idempotent and only adds newcomers."""
    original_deadline = settled_session.payment_deadline
    await roster_service.join_session(db_session, settled_session.id, 2001, "Late")

    result = await settle_session(db_session, settled_session.id, Decimal("30.00"), 60, 95, 4)

    assert result.reapplied is True
    assert [p.user_id for p in result.created] == [2001]
    assert len(result.payments) == 4
    assert result.session.payment_deadline == original_deadline


@pytest.mark.asyncio
async def test_resettle_different_amount_rejected(db_session, settled_session):
    with pytest.raises(SessionAlreadySettledError):
        await settle_session(db_session, settled_session.id, Decimal("25.00"), 50, 95, 4)

    payments = await get_session_payments(db_session, settled_session.id)
    assert {p.amount for p in payments} == {Decimal("30.00")}


@pytest.mark.asyncio
async def test_settle_unknown_session(db_session):
    with pytest.raises(SessionNotFoundError):
        await settle_session(db_session, 404, 10, 10, 95, 0)


@pytest.mark.asyncio
async def test_concurrent_settlement_loses_cleanly(db_session, open_session):
    """
    Another request settles the session after this one loaded it as open:
    the status flip matches no row and no obligations are written.
    """
    settled_elsewhere = utcnow()
    await db_session.execute(
        update(PlaySession)
        .where(PlaySession.id == open_session.id)
        .values(status=STATUS_SETTLED, settled_at=settled_elsewhere, payment_deadline=settled_elsewhere)
        .execution_options(synchronize_session=False)
    )
    assert open_session.is_settled is False

    with pytest.raises(SessionAlreadySettledError):
        await settle_session(db_session, open_session.id, Decimal("20.00"), 60, 95, 0)

    assert await get_session_payments(db_session, open_session.id) == []
