"""
Pydantic schemas for settlement, the payment ledger and proof uploads.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field

from kakibadminton.schemas.session import SessionResponse
from kakibadminton.schemas.user import UserResponse


class CostEntry(BaseModel):
    """What the host submits from the calculator."""

    court_fee: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    tube_price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    shuttles_used: int = Field(default=0, ge=0, le=24)
    # Defaults to the current roster size
    player_count: Optional[int] = Field(None, ge=1, le=20)


class BillBreakdownResponse(BaseModel):
    court_fee: Decimal
    tube_price: Decimal
    shuttles_used: int
    shuttle_cost: Decimal
    total: Decimal
    player_count: int
    per_person: Decimal

    model_config = {"from_attributes": True}


class PaymentResponse(BaseModel):
    session_id: int
    user_id: int
    amount: Decimal
    status: str
    paid_at: Optional[datetime]
    proof_file_id: Optional[str]
    reminder_sent: bool
    reminder_sent_at: Optional[datetime]

    model_config = {"from_attributes": True}


class SettlementResponse(BaseModel):
    session: SessionResponse
    # Who collects the money, with their payout QR for the bill card
    host: UserResponse
    bill: BillBreakdownResponse
    payments: list[PaymentResponse]
    created_count: int
    reapplied: bool


class PaymentStatusEntry(BaseModel):
    user_id: int
    first_name: str
    username: Optional[str]
    payment_status: str
    paid_at: Optional[datetime]
    amount: Optional[Decimal]

    model_config = {"from_attributes": True}


class PaymentStatusResponse(BaseModel):
    session_id: int
    paid_count: int
    total_count: int
    entries: list[PaymentStatusEntry]
    cached: bool = False


class UnpaidEntry(BaseModel):
    user_id: int
    first_name: str
    username: Optional[str]
    amount: Decimal

    model_config = {"from_attributes": True}


class ProofRequestResponse(BaseModel):
    session_id: int
    user_id: int
    requested_at: datetime
    expires_at: datetime

    model_config = {"from_attributes": True}


class ProofSubmit(BaseModel):
    file_id: str = Field(..., min_length=1, max_length=255)


class SweepResponse(BaseModel):
    found: int
    reminded: int
    failed: int
    purged_proof_requests: int
