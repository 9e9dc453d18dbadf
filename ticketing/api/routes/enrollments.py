"""
Booking endpoints: checkout, the caller's bookings, and the organizer-side
payment and refund hooks.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Header, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ticketing.core.logging import get_logger
from ticketing.core.security import CurrentUser, get_current_user, require_organizer
from ticketing.db.session import get_db
from ticketing.schemas.enrollment import (
    CheckoutRequest, CheckoutResponse, EnrollmentResponse, PaymentRecord,
)
from ticketing.services.cache_service import invalidate_event_cache
from ticketing.services.enrollment_service import (
    CheckoutStatus, checkout, get_enrollment, list_user_enrollments, present_enrollment,
    record_payment, refund,
)

logger = get_logger(__name__)
router = APIRouter(prefix="/enrollments", tags=["Enrollments"])

IDEMPOTENCY_HEADER = "X-Idempotency-Key"


@router.post(
    "",
    response_model=CheckoutResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        200: {"model": CheckoutResponse, "description": "Replay of an earlier checkout"},
        409: {"model": CheckoutResponse, "description": "Not enough tickets left"},
    },
)
async def checkout_endpoint(
    request: CheckoutRequest,
    idempotency_key: Optional[str] = Header(None, alias=IDEMPOTENCY_HEADER, max_length=128),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Buy tickets for an event.

    The capacity claim and the booking commit together. Retrying with the
    same X-Idempotency-Key returns the original booking (200) instead of
    booking twice.
    """
    result = await checkout(db, user, request.event_id, request.quantity, idempotency_key)

    if result.status == CheckoutStatus.INSUFFICIENT_CAPACITY:
        body = CheckoutResponse(
            status=result.status.value,
            message="Not enough tickets available",
        )
        return JSONResponse(status_code=status.HTTP_409_CONFLICT, content=body.model_dump(mode="json"))

    body = CheckoutResponse(
        status=result.status.value,
        message="Booking confirmed" if result.status == CheckoutStatus.CONFIRMED else "Booking already exists",
        enrollment=present_enrollment(result.enrollment),
    )
    if result.status == CheckoutStatus.REPLAYED:
        return JSONResponse(status_code=status.HTTP_200_OK, content=body.model_dump(mode="json"))

    await invalidate_event_cache()
    return body


@router.get("", response_model=list[EnrollmentResponse])
async def list_my_enrollments(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """The caller's bookings, newest first."""
    enrollments = await list_user_enrollments(db, user.user_id)
    return [present_enrollment(enrollment) for enrollment in enrollments]


@router.get("/{enrollment_id}", response_model=EnrollmentResponse)
async def get_enrollment_endpoint(
    enrollment_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return present_enrollment(await get_enrollment(db, enrollment_id, user.user_id))


@router.post("/{enrollment_id}/payments", response_model=EnrollmentResponse)
async def record_payment_endpoint(
    enrollment_id: int,
    payment: PaymentRecord,
    organizer: CurrentUser = Depends(require_organizer),
    db: AsyncSession = Depends(get_db),
):
    """Payment processor callback: store the amount received so far."""
    enrollment = await record_payment(db, enrollment_id, payment.amount_paid)
    return present_enrollment(enrollment)


@router.post("/{enrollment_id}/refund", response_model=EnrollmentResponse)
async def refund_endpoint(
    enrollment_id: int,
    organizer: CurrentUser = Depends(require_organizer),
    db: AsyncSession = Depends(get_db),
):
    enrollment = await refund(db, enrollment_id)
    await invalidate_event_cache()
    return present_enrollment(enrollment)
