"""
Enrollment lifecycle: checkout, reads, payment recording and refunds.

    created(unpaid) ──record_payment──▶ paid
          │                               │
          └────────────refund─────────────┴──▶ refunded

Checkout is one transaction: the capacity claim (services/capacity.py),
the enrollment row and its tickets commit together or not at all. A
rejected claim is an expected outcome and comes back as
INSUFFICIENT_CAPACITY with nothing written.

Retried checkouts that carry the same idempotency key return the first
enrollment instead of booking twice.
"""

from dataclasses import asdict, dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ticketing.core.config import get_settings
from ticketing.core.errors import ConflictError, NotFoundError, ValidationError
from ticketing.core.logging import get_logger
from ticketing.core.metrics import checkout_latency, record_checkout
from ticketing.core.security import CurrentUser
from ticketing.db.session import store_operation
from ticketing.models.enrollment import Enrollment
from ticketing.models.event import Event
from ticketing.schemas.enrollment import (
    EnrollmentResponse, TicketLineResponse, TicketResponse, TotalsResponse,
)
from ticketing.services import capacity
from ticketing.services.event_service import is_on_sale
from ticketing.services.pricing import (
    ZERO, TicketLine, Totals, amount_due, compute_totals, ticket_lines, tier_name_for, to_money,
)
from ticketing.services.tickets import issue_tickets, qr_payload

logger = get_logger(__name__)

CHECKOUT_ATTEMPTS = 2


class CheckoutStatus(str, Enum):
    CONFIRMED = "confirmed"
    REPLAYED = "replayed"
    INSUFFICIENT_CAPACITY = "insufficient_capacity"


@dataclass(frozen=True)
class CheckoutResult:
    status: CheckoutStatus
    enrollment: Optional[Enrollment] = None


@dataclass(frozen=True)
class BookingSummary:
    enrollment: Enrollment
    lines: list[TicketLine]
    totals: Totals
    amount_paid: Decimal
    amount_due: Decimal
    payment_status: str


def effective_payment_status(status: str, totals: Totals, amount_paid) -> str:
    """An unpaid booking whose positive total is fully covered counts as paid."""
    if status == "unpaid" and totals.total > 0 and to_money(amount_paid) >= totals.total:
        return "paid"
    return status


def booking_summary(enrollment: Enrollment) -> BookingSummary:
    lines = ticket_lines(enrollment.event, enrollment.quantity)
    totals = compute_totals(lines)
    paid = to_money(enrollment.amount_paid)
    status = effective_payment_status(enrollment.payment_status, totals, paid)
    due = amount_due(totals, paid) if status == "unpaid" else ZERO
    return BookingSummary(
        enrollment=enrollment,
        lines=lines,
        totals=totals,
        amount_paid=paid,
        amount_due=due,
        payment_status=status,
    )


def present_enrollment(enrollment: Enrollment) -> EnrollmentResponse:
    summary = booking_summary(enrollment)
    event = enrollment.event
    return EnrollmentResponse(
        id=enrollment.id,
        event_id=enrollment.event_id,
        user_id=enrollment.user_id,
        event_name=event.name,
        event_datetime=event.event_datetime,
        location=event.location,
        quantity=enrollment.quantity,
        payment_status=summary.payment_status,
        amount_paid=summary.amount_paid,
        amount_due=summary.amount_due,
        lines=[present_line(line) for line in summary.lines],
        totals=TotalsResponse(**asdict(summary.totals)),
        tickets=[
            TicketResponse(
                position=ticket.position,
                code=ticket.code,
                tier_name=ticket.tier_name,
                qr_payload=qr_payload(ticket.code),
            )
            for ticket in enrollment.tickets
        ],
        created_at=enrollment.created_at,
    )


def present_line(line: TicketLine) -> TicketLineResponse:
    return TicketLineResponse(
        tier_name=line.tier_name,
        unit_price=line.unit_price,
        quantity=line.quantity,
        line_total=line.line_total,
    )


async def _load_enrollment(
    db: AsyncSession,
    enrollment_id: int,
    user_id: Optional[str] = None,
) -> Enrollment:
    query = (
        select(Enrollment)
        .where(Enrollment.id == enrollment_id)
        .execution_options(populate_existing=True)
    )
    if user_id is not None:
        query = query.where(Enrollment.user_id == user_id)
    result = await db.execute(query)
    enrollment = result.scalar_one_or_none()
    if not enrollment:
        raise NotFoundError("Booking not found")
    return enrollment


async def _find_by_idempotency_key(db: AsyncSession, user_id: str, key: str) -> Optional[Enrollment]:
    result = await db.execute(
        select(Enrollment).where(
            Enrollment.user_id == user_id,
            Enrollment.idempotency_key == key,
        )
    )
    return result.scalar_one_or_none()


def _replay(existing: Enrollment, event_id: str, quantity: int) -> CheckoutResult:
    if existing.event_id != event_id or existing.quantity != quantity:
        raise ConflictError("Idempotency key was already used for a different checkout")
    record_checkout(CheckoutStatus.REPLAYED.value)
    logger.info("checkout_replayed", enrollment_id=existing.id, user_id=existing.user_id)
    return CheckoutResult(CheckoutStatus.REPLAYED, existing)


async def _event_on_sale(db: AsyncSession, event_id: str, now: Optional[datetime]) -> Event:
    result = await db.execute(select(Event).where(Event.id == event_id))
    event = result.scalar_one_or_none()
    if not event or event.status == "draft":
        raise NotFoundError(f"Event {event_id} not found")
    if not is_on_sale(event, now):
        record_checkout("not_on_sale")
        raise ConflictError("Tickets are not on sale for this event")
    return event


@store_operation("checkout")
async def checkout(
    db: AsyncSession,
    user: CurrentUser,
    event_id: str,
    quantity: int,
    idempotency_key: Optional[str] = None,
    now: Optional[datetime] = None,
) -> CheckoutResult:
    max_quantity = get_settings().MAX_TICKETS_PER_ORDER
    if quantity < 1 or quantity > max_quantity:
        raise ValidationError(f"Quantity must be between 1 and {max_quantity}")

    with checkout_latency.time():
        if idempotency_key:
            existing = await _find_by_idempotency_key(db, user.user_id, idempotency_key)
            if existing:
                return _replay(existing, event_id, quantity)

        for attempt in range(1, CHECKOUT_ATTEMPTS + 1):
            # Reloaded on every attempt, a rollback expires it
            event = await _event_on_sale(db, event_id, now)
            try:
                if not await capacity.reserve(db, event.id, quantity):
                    await db.rollback()
                    record_checkout(CheckoutStatus.INSUFFICIENT_CAPACITY.value)
                    logger.warning(
                        "checkout_rejected_capacity",
                        event_id=event_id,
                        user_id=user.user_id,
                        requested=quantity,
                    )
                    return CheckoutResult(CheckoutStatus.INSUFFICIENT_CAPACITY)

                enrollment = Enrollment(
                    event=event,
                    user_id=user.user_id,
                    quantity=quantity,
                    payment_status="unpaid",
                    amount_paid=ZERO,
                    idempotency_key=idempotency_key,
                    tickets=issue_tickets(quantity, tier_name_for(event)),
                )
                db.add(enrollment)
                await db.commit()
                break
            except IntegrityError:
                await db.rollback()
                if idempotency_key:
                    # A concurrent retry with the same key committed first
                    existing = await _find_by_idempotency_key(db, user.user_id, idempotency_key)
                    if existing:
                        return _replay(existing, event_id, quantity)
                if attempt == CHECKOUT_ATTEMPTS:
                    raise
                # Otherwise a ticket code already exists elsewhere; draw new codes
                logger.warning("ticket_code_collision", event_id=event_id, attempt=attempt)

    record_checkout(CheckoutStatus.CONFIRMED.value)
    logger.info(
        "enrollment_created",
        enrollment_id=enrollment.id,
        user_id=user.user_id,
        event_id=event_id,
        quantity=quantity,
    )
    return CheckoutResult(CheckoutStatus.CONFIRMED, enrollment)


@store_operation("get_enrollment")
async def get_enrollment(db: AsyncSession, enrollment_id: int, user_id: str) -> Enrollment:
    """A booking owned by `user_id`; someone else's booking is simply not found."""
    return await _load_enrollment(db, enrollment_id, user_id)


@store_operation("list_user_enrollments")
async def list_user_enrollments(db: AsyncSession, user_id: str) -> list[Enrollment]:
    result = await db.execute(
        select(Enrollment)
        .where(Enrollment.user_id == user_id)
        .order_by(Enrollment.created_at.desc(), Enrollment.id.desc())
    )
    return list(result.scalars().all())


@store_operation("list_event_enrollments")
async def list_event_enrollments(db: AsyncSession, event_id: str) -> list[Enrollment]:
    if await db.get(Event, event_id) is None:
        raise NotFoundError(f"Event {event_id} not found")
    result = await db.execute(
        select(Enrollment)
        .where(Enrollment.event_id == event_id)
        .order_by(Enrollment.created_at.desc(), Enrollment.id.desc())
    )
    return list(result.scalars().all())


@store_operation("record_payment")
async def record_payment(db: AsyncSession, enrollment_id: int, amount_paid) -> Enrollment:
    """Payment processor hook: store the amount received so far."""
    enrollment = await _load_enrollment(db, enrollment_id)
    if enrollment.payment_status == "refunded":
        raise ConflictError("Refunded bookings cannot take payments")

    amount = to_money(amount_paid)
    totals = compute_totals(ticket_lines(enrollment.event, enrollment.quantity))
    if amount > totals.total:
        raise ValidationError("Amount paid cannot exceed the booking total")
    if enrollment.payment_status == "paid" and amount < totals.total:
        raise ConflictError("Paid bookings cannot be moved back to unpaid")

    enrollment.amount_paid = amount
    enrollment.payment_status = "paid" if amount >= totals.total else "unpaid"
    await db.commit()

    logger.info(
        "payment_recorded",
        enrollment_id=enrollment_id,
        amount_paid=str(amount),
        status=enrollment.payment_status,
    )
    return enrollment


@store_operation("refund")
async def refund(db: AsyncSession, enrollment_id: int) -> Enrollment:
    """Mark a booking refunded and give its tickets back to the event."""
    enrollment = await _load_enrollment(db, enrollment_id)

    # Conditional on the current status so two refunds cannot both release
    result = await db.execute(
        update(Enrollment)
        .where(Enrollment.id == enrollment_id, Enrollment.payment_status != "refunded")
        .values(payment_status="refunded")
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        await db.rollback()
        raise ConflictError("Booking is already refunded")

    await capacity.release(db, enrollment.event_id, enrollment.quantity)
    await db.commit()

    logger.info(
        "enrollment_refunded",
        enrollment_id=enrollment_id,
        event_id=enrollment.event_id,
        released=enrollment.quantity,
    )
    return await _load_enrollment(db, enrollment_id)
