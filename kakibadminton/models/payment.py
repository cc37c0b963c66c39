"""
Payment obligation of one participant for one settled session.

Key design decisions:
- Unique constraint on (session_id, user_id): settlement inserts are
  insert-if-absent
- (session_id, user_id, amount) never change after creation; only status,
  paid_at, proof and reminder bookkeeping do
- reminder_sent makes the overdue sweep idempotent
"""

from sqlalchemy import Column, Integer, BigInteger, String, Boolean, Numeric, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship

from kakibadminton.db.base import Base, TimestampMixin, UTCDateTime

STATUS_PENDING = "pending"
STATUS_PAID = "paid"


class Payment(Base, TimestampMixin):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(Integer, ForeignKey("sessions.id"), nullable=False, index=True)
    user_id = Column(BigInteger, ForeignKey("users.id"), nullable=False, index=True)
    amount = Column(Numeric(10, 2), nullable=False)
    status = Column(String(20), nullable=False, default=STATUS_PENDING)
    paid_at = Column(UTCDateTime(), nullable=True)
    proof_file_id = Column(String(255), nullable=True)
    reminder_sent = Column(Boolean, nullable=False, default=False)
    reminder_sent_at = Column(UTCDateTime(), nullable=True)
    notes = Column(String(500), nullable=True)

    session = relationship("PlaySession", back_populates="payments")

    __table_args__ = (
        UniqueConstraint("session_id", "user_id", name="uq_session_payment"),
        CheckConstraint("amount >= 0", name="check_payment_amount_non_negative"),
        CheckConstraint("status IN ('pending', 'paid')", name="check_payment_status"),
    )

    def __repr__(self) -> str:
        return f"<Payment(session={self.session_id}, user={self.user_id}, amount={self.amount}, status={self.status})>"
