"""
Enrollment (booking) model: one user's ticket purchase for an event.

Key design decisions:
- Several enrollments per (user, event) are allowed; each checkout action
  creates exactly one. Retries of the same action carry the same
  idempotency key, and the unique constraint on (user_id, idempotency_key)
  turns a duplicate insert into a replay of the first enrollment.
- Only payment_status and amount_paid change after creation.
- Tickets are persisted with the enrollment so codes never change between
  views.
"""

from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship

from ticketing.db.base import Base, TimestampMixin

PAYMENT_STATUSES = ("unpaid", "paid", "refunded")


class Enrollment(Base, TimestampMixin):
    __tablename__ = "event_enrollments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(String(36), ForeignKey("events.id"), nullable=False, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    payment_status = Column(String(20), nullable=False, default="unpaid")
    amount_paid = Column(Numeric(10, 2), nullable=False, default=0)
    idempotency_key = Column(String(128), nullable=True)

    event = relationship("Event", lazy="joined")
    tickets = relationship(
        "Ticket",
        back_populates="enrollment",
        lazy="selectin",
        order_by="Ticket.position",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        UniqueConstraint("user_id", "idempotency_key", name="uq_enrollment_user_idempotency_key"),
        CheckConstraint("quantity >= 1", name="check_enrollment_quantity_positive"),
        CheckConstraint("amount_paid >= 0", name="check_enrollment_amount_paid_non_negative"),
        CheckConstraint(
            "payment_status IN ('unpaid', 'paid', 'refunded')",
            name="check_enrollment_payment_status",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<Enrollment(id={self.id}, user={self.user_id}, event={self.event_id}, "
            f"qty={self.quantity}, status={self.payment_status})>"
        )
