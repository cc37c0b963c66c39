"""
User model for the identity registry.

Ids come from the chat platform and are never generated here, so the
primary key has no autoincrement. Rows are never deleted.
"""

from sqlalchemy import Column, BigInteger, String
from sqlalchemy.orm import relationship

from kakibadminton.db.base import Base, TimestampMixin


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(BigInteger, primary_key=True, autoincrement=False)
    first_name = Column(String(255), nullable=False)
    username = Column(String(64), nullable=True)
    # Opaque chat-platform file reference of the user's payout QR image
    payment_qr_file_id = Column(String(255), nullable=True)

    hosted_sessions = relationship("PlaySession", back_populates="host")

    @property
    def display_name(self) -> str:
        return f"@{self.username}" if self.username else self.first_name

    def __repr__(self) -> str:
        return f"<User(id={self.id}, name={self.first_name})>"
