"""
Bill arithmetic for a badminton session.

Shuttlecocks are bought by the tube and used individually, so the shuttle
cost is the tube price divided by the tube size times the shuttles used.
The per-person share is rounded half-up to the cent; the host absorbs any
rounding difference since they collect the money.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union

from kakibadminton.core.config import get_settings

CENT = Decimal("0.01")

Number = Union[Decimal, int, float, str]


@dataclass(frozen=True)
class BillBreakdown:
    court_fee: Decimal
    tube_price: Decimal
    shuttles_used: int
    shuttle_cost: Decimal
    total: Decimal
    player_count: int
    per_person: Decimal


def to_money(value: Number) -> Decimal:
    """Convert to Decimal rounded to the cent. Floats go through str()."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def compute_bill(
    court_fee: Number,
    tube_price: Number,
    shuttles_used: int,
    player_count: int,
    shuttles_per_tube: Optional[int] = None,
) -> BillBreakdown:
    if player_count < 1:
        raise ValueError("player_count must be at least 1")
    if shuttles_used < 0:
        raise ValueError("shuttles_used cannot be negative")

    per_tube = shuttles_per_tube or get_settings().SHUTTLES_PER_TUBE
    court = Decimal(str(court_fee))
    tube = Decimal(str(tube_price))
    if court < 0 or tube < 0:
        raise ValueError("court_fee and tube_price cannot be negative")

    shuttle_cost = tube / per_tube * shuttles_used
    total = court + shuttle_cost

    return BillBreakdown(
        court_fee=to_money(court),
        tube_price=to_money(tube),
        shuttles_used=shuttles_used,
        shuttle_cost=to_money(shuttle_cost),
        total=to_money(total),
        player_count=player_count,
        per_person=to_money(total / player_count),
    )
