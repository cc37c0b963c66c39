"""
Roster membership of a user in a session.

Key design decisions:
- Unique constraint on (session_id, user_id): leaving and re-joining flips
  the same row instead of inserting a new one
- first_name/username are a snapshot taken at join time so the roster card
  renders without touching the users table
- Status 'out' rows are kept; they never count toward roster size
"""

from sqlalchemy import Column, Integer, BigInteger, String, ForeignKey, UniqueConstraint, CheckConstraint, Index
from sqlalchemy.orm import relationship

from kakibadminton.db.base import Base, UTCDateTime, utcnow

STATUS_IN = "in"
STATUS_OUT = "out"


class Participant(Base):
    __tablename__ = "session_participants"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(Integer, ForeignKey("sessions.id"), nullable=False)
    user_id = Column(BigInteger, ForeignKey("users.id"), nullable=False, index=True)
    first_name = Column(String(255), nullable=False)
    username = Column(String(64), nullable=True)
    status = Column(String(10), nullable=False, default=STATUS_IN)
    joined_at = Column(UTCDateTime(), nullable=False, default=utcnow)

    session = relationship("PlaySession", back_populates="participants")

    __table_args__ = (
        UniqueConstraint("session_id", "user_id", name="uq_session_participant"),
        CheckConstraint("status IN ('in', 'out')", name="check_participant_status"),
        # Roster listing: WHERE session_id = ? AND status = 'in' ORDER BY joined_at
        Index("ix_participants_session_status_joined", "session_id", "status", "joined_at"),
    )

    @property
    def display_name(self) -> str:
        return f"@{self.username}" if self.username else self.first_name

    def __repr__(self) -> str:
        return f"<Participant(session={self.session_id}, user={self.user_id}, status={self.status})>"
