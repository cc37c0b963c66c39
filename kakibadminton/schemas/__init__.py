from kakibadminton.schemas.user import UserResponse, PayoutQrUpdate
from kakibadminton.schemas.session import (
    SessionCreate, SessionUpdate, SessionResponse,
    ParticipantResponse, RosterResponse, SessionDetailResponse,
)
from kakibadminton.schemas.payment import (
    CostEntry, BillBreakdownResponse, PaymentResponse, SettlementResponse,
    PaymentStatusEntry, PaymentStatusResponse, UnpaidEntry,
    ProofRequestResponse, ProofSubmit, SweepResponse,
)

__all__ = [
    "UserResponse", "PayoutQrUpdate",
    "SessionCreate", "SessionUpdate", "SessionResponse",
    "ParticipantResponse", "RosterResponse", "SessionDetailResponse",
    "CostEntry", "BillBreakdownResponse", "PaymentResponse", "SettlementResponse",
    "PaymentStatusEntry", "PaymentStatusResponse", "UnpaidEntry",
    "ProofRequestResponse", "ProofSubmit", "SweepResponse",
]
