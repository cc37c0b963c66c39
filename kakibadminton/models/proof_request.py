"""
A user's open request to upload payment proof.

Between "I'll send a screenshot" and the actual image upload the chat layer
needs to remember which session the next image belongs to. One open request
per user; it expires after PROOF_REQUEST_TTL_MINUTES.
"""

from sqlalchemy import Column, Integer, BigInteger, ForeignKey, UniqueConstraint

from kakibadminton.db.base import Base, UTCDateTime, utcnow


class ProofRequest(Base):
    __tablename__ = "proof_requests"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(BigInteger, ForeignKey("users.id"), nullable=False)
    session_id = Column(Integer, ForeignKey("sessions.id"), nullable=False)
    requested_at = Column(UTCDateTime(), nullable=False, default=utcnow)
    expires_at = Column(UTCDateTime(), nullable=False, index=True)

    __table_args__ = (
        UniqueConstraint("user_id", name="uq_proof_request_user"),
    )

    def is_expired(self, now) -> bool:
        return self.expires_at <= now

    def __repr__(self) -> str:
        return f"<ProofRequest(user={self.user_id}, session={self.session_id}, expires={self.expires_at})>"
