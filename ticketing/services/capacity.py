"""
Capacity reservation guard.

CONCURRENCY STRATEGY: conditional UPDATE on the event row
==========================================================

Problem:
  Two buyers ask for the last tickets at the same time. If both read the
  current reservations, both see enough room, and both insert an
  enrollment, the event is oversold.

Solution:
  Admission is a single statement that both checks and claims capacity:

    UPDATE events
       SET reserved_count = reserved_count + :qty
     WHERE id = :event_id AND reserved_count + :qty <= capacity

  rowcount == 1 means admitted, 0 means rejected. The UPDATE takes the row
  lock, so a concurrent admission for the same event waits and then
  re-evaluates the WHERE clause against the committed count. The caller
  inserts the enrollment in the same transaction, so the claim and the
  booking commit or roll back together.

  `reserved_count` always equals the sum of non-refunded enrollment
  quantities: it is only ever moved by `reserve` (checkout) and `release`
  (refund) inside the transaction that changes those enrollments. The
  CHECK constraint `reserved_count <= capacity` is the final safety net.

  `can_reserve` recomputes the sum from the enrollments themselves. It is
  advisory (availability display, pre-checkout hints); the decision that
  counts is `reserve`.
"""

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from ticketing.core.errors import NotFoundError
from ticketing.core.logging import get_logger
from ticketing.db.session import store_operation
from ticketing.models.event import Event
from ticketing.models.enrollment import Enrollment

logger = get_logger(__name__)


async def reserved_quantity(db: AsyncSession, event_id: str) -> int:
    """Sum of quantities over non-refunded enrollments of the event."""
    result = await db.execute(
        select(func.coalesce(func.sum(Enrollment.quantity), 0)).where(
            Enrollment.event_id == event_id,
            Enrollment.payment_status != "refunded",
        )
    )
    return int(result.scalar_one())


@store_operation("can_reserve")
async def can_reserve(db: AsyncSession, event_id: str, quantity: int) -> bool:
    if quantity < 1:
        return False
    result = await db.execute(select(Event.capacity).where(Event.id == event_id))
    capacity = result.scalar_one_or_none()
    if capacity is None:
        raise NotFoundError(f"Event {event_id} not found")
    already_reserved = await reserved_quantity(db, event_id)
    return already_reserved + quantity <= capacity


async def reserve(db: AsyncSession, event_id: str, quantity: int) -> bool:
    """Claim `quantity` units inside the caller's transaction."""
    result = await db.execute(
        update(Event)
        .where(
            Event.id == event_id,
            Event.reserved_count + quantity <= Event.capacity,
        )
        .values(reserved_count=Event.reserved_count + quantity)
        .execution_options(synchronize_session=False)
    )
    admitted = result.rowcount == 1
    if not admitted:
        logger.info("capacity_rejected", event_id=event_id, requested=quantity)
    return admitted


async def release(db: AsyncSession, event_id: str, quantity: int) -> None:
    """Give back `quantity` units inside the caller's transaction."""
    await db.execute(
        update(Event)
        .where(Event.id == event_id, Event.reserved_count >= quantity)
        .values(reserved_count=Event.reserved_count - quantity)
        .execution_options(synchronize_session=False)
    )
    logger.info("capacity_released", event_id=event_id, released=quantity)


async def remaining_capacity(db: AsyncSession, event_id: str) -> int:
    result = await db.execute(
        select(Event.capacity - Event.reserved_count).where(Event.id == event_id)
    )
    remaining = result.scalar_one_or_none()
    if remaining is None:
        raise NotFoundError(f"Event {event_id} not found")
    return max(0, int(remaining))
