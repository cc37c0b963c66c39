"""
Session model: one billable badminton event.

Key design decisions:
- `status` moves open -> settled exactly once; only the settlement service
  writes it (together with settled_at and payment_deadline)
- Cost fields are snapshots of what the host entered at settlement
- `message_id` / `bill_message_id` are opaque chat references kept for the
  transport so it knows which messages to edit
- Index on (status, payment_deadline) serves the overdue sweep
"""

from sqlalchemy import Column, Integer, BigInteger, String, Numeric, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import relationship

from kakibadminton.db.base import Base, TimestampMixin, UTCDateTime

DEFAULT_TITLE = "Badminton Session"

STATUS_OPEN = "open"
STATUS_SETTLED = "settled"


class PlaySession(Base, TimestampMixin):
    __tablename__ = "sessions"

    id = Column(Integer, primary_key=True, index=True)
    group_id = Column(BigInteger, nullable=False, index=True)
    host_id = Column(BigInteger, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False, default=DEFAULT_TITLE)
    location = Column(String(255), nullable=True)
    scheduled_for = Column(String(255), nullable=True)

    court_fee = Column(Numeric(10, 2), nullable=False, default=0)
    tube_price = Column(Numeric(10, 2), nullable=False, default=95)
    shuttles_used = Column(Integer, nullable=False, default=0)

    status = Column(String(20), nullable=False, default=STATUS_OPEN)
    settled_at = Column(UTCDateTime(), nullable=True)
    payment_deadline = Column(UTCDateTime(), nullable=True)

    message_id = Column(BigInteger, nullable=True)
    bill_message_id = Column(BigInteger, nullable=True)

    # Relationships
    host = relationship("User", back_populates="hosted_sessions")
    participants = relationship("Participant", back_populates="session")
    payments = relationship("Payment", back_populates="session")

    __table_args__ = (
        CheckConstraint("status IN ('open', 'settled')", name="check_session_status"),
        CheckConstraint("court_fee >= 0", name="check_court_fee_non_negative"),
        CheckConstraint("tube_price >= 0", name="check_tube_price_non_negative"),
        CheckConstraint("shuttles_used >= 0", name="check_shuttles_used_non_negative"),
        Index("ix_sessions_status_deadline", "status", "payment_deadline"),
    )

    @property
    def is_settled(self) -> bool:
        return self.status == STATUS_SETTLED

    def __repr__(self) -> str:
        return f"<PlaySession(id={self.id}, host={self.host_id}, status={self.status})>"
