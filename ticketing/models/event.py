"""
Event model with capacity tracking.

Key design decisions:
- `reserved_count` is the store-maintained sum of non-refunded enrollment
  quantities. It only moves through conditional UPDATEs (see
  services/capacity.py), and the CHECK constraints below make overselling
  impossible even for a buggy caller.
- `voting_*` columns only matter for `undefined` events.
- Index on `(status, event_datetime)` serves the published listing.
"""

import uuid

from sqlalchemy import Column, Integer, String, DateTime, Numeric, Index, CheckConstraint

from ticketing.db.base import Base, TimestampMixin

EVENT_TYPES = ("defined", "undefined")
EVENT_STATUSES = ("draft", "published", "closed")
VOTING_STATUSES = ("open", "closed")


def new_event_id() -> str:
    return str(uuid.uuid4())


class Event(Base, TimestampMixin):
    __tablename__ = "events"

    id = Column(String(36), primary_key=True, default=new_event_id)
    created_by = Column(String(64), nullable=True)
    type = Column(String(20), nullable=False, default="defined")
    status = Column(String(20), nullable=False, default="draft")
    name = Column(String(255), nullable=False)
    description = Column(String(2000), nullable=True)
    location = Column(String(255), nullable=True)
    poster_url = Column(String(1024), nullable=True)
    capacity = Column(Integer, nullable=False)
    reserved_count = Column(Integer, nullable=False, default=0)
    event_datetime = Column(DateTime(timezone=True), nullable=False)
    ticket_price = Column(Numeric(10, 2), nullable=True)
    voting_start = Column(DateTime(timezone=True), nullable=True)
    voting_end = Column(DateTime(timezone=True), nullable=True)
    voting_status = Column(String(10), nullable=True)

    __table_args__ = (
        CheckConstraint("capacity >= 0", name="check_event_capacity_non_negative"),
        CheckConstraint("reserved_count >= 0", name="check_event_reserved_non_negative"),
        CheckConstraint("reserved_count <= capacity", name="check_event_reserved_lte_capacity"),
        CheckConstraint("ticket_price IS NULL OR ticket_price >= 0", name="check_event_price_non_negative"),
        CheckConstraint("type IN ('defined', 'undefined')", name="check_event_type"),
        CheckConstraint("status IN ('draft', 'published', 'closed')", name="check_event_status"),
        CheckConstraint(
            "voting_status IS NULL OR voting_status IN ('open', 'closed')",
            name="check_event_voting_status",
        ),
        Index("ix_events_status_datetime", "status", "event_datetime"),
    )

    @property
    def is_undefined(self) -> bool:
        return self.type == "undefined"

    @property
    def remaining(self) -> int:
        """Display-only remaining capacity."""
        return max(0, self.capacity - (self.reserved_count or 0))

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, name={self.name}, reserved={self.reserved_count}/{self.capacity})>"
