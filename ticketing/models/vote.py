"""
Vote model for undefined events.

The unique constraint on (event_id, user_id) is what enforces one vote per
user; the application treats a violation as "already voted".
"""

import uuid

from sqlalchemy import Column, String, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from ticketing.db.base import Base, TimestampMixin


class Vote(Base, TimestampMixin):
    __tablename__ = "event_votes"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    event_id = Column(String(36), ForeignKey("events.id"), nullable=False, index=True)
    user_id = Column(String(64), nullable=False, index=True)

    event = relationship("Event")

    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_event_vote_user"),
    )

    def __repr__(self) -> str:
        return f"<Vote(event={self.event_id}, user={self.user_id})>"
