"""
Ticket model: one row per unit of an enrollment's quantity.
"""

from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from ticketing.db.base import Base, TimestampMixin


class Ticket(Base, TimestampMixin):
    __tablename__ = "tickets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    enrollment_id = Column(Integer, ForeignKey("event_enrollments.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    code = Column(String(32), nullable=False, unique=True)
    tier_name = Column(String(50), nullable=False)

    enrollment = relationship("Enrollment", back_populates="tickets")

    __table_args__ = (
        UniqueConstraint("enrollment_id", "position", name="uq_ticket_enrollment_position"),
    )

    def __repr__(self) -> str:
        return f"<Ticket(code={self.code}, enrollment={self.enrollment_id})>"
