"""
PDF downloads: the public event sheet and the buyer's invoice.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from ticketing.core.config import get_settings
from ticketing.core.errors import ValidationError
from ticketing.core.logging import get_logger
from ticketing.core.metrics import record_document
from ticketing.core.security import CurrentUser, get_current_user
from ticketing.db.base import utcnow
from ticketing.db.session import get_db
from ticketing.documents import (
    build_event_sheet, build_invoice, event_sheet_data_for, event_sheet_filename,
    invoice_data_for, invoice_filename, render_pdf,
)
from ticketing.services.enrollment_service import booking_summary, get_enrollment
from ticketing.services.event_service import get_event
from ticketing.services.profile_service import customer_name, get_profile
from ticketing.services.voting import count_votes

logger = get_logger(__name__)
router = APIRouter(tags=["Documents"])


def pdf_response(content: bytes, filename: str) -> Response:
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/events/{event_id}/document", response_class=Response)
async def event_document_endpoint(event_id: str, db: AsyncSession = Depends(get_db)):
    settings = get_settings()
    event = await get_event(db, event_id)
    votes = await count_votes(db, event_id) if event.is_undefined else 0

    data = event_sheet_data_for(event, votes, settings.BRAND_NAME, utcnow())
    content = render_pdf(build_event_sheet(data), author=settings.BRAND_NAME)

    record_document("event_sheet")
    logger.info("event_document_rendered", event_id=event_id, size=len(content))
    return pdf_response(content, event_sheet_filename(data))


@router.get("/invoices/{booking_id}", response_class=Response)
async def invoice_endpoint(
    booking_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Invoice for one of the caller's bookings; other users' bookings are not found."""
    if booking_id <= 0:
        raise ValidationError("Invalid booking ID")

    settings = get_settings()
    enrollment = await get_enrollment(db, booking_id, user.user_id)
    profile = await get_profile(db, user.user_id)

    data = invoice_data_for(
        booking_summary(enrollment),
        customer_name=customer_name(user, profile),
        customer_email=user.email,
        brand_name=settings.BRAND_NAME,
        generated_at=utcnow(),
    )
    content = render_pdf(build_invoice(data), author=settings.BRAND_NAME)

    record_document("invoice")
    logger.info("invoice_rendered", booking_id=booking_id, user_id=user.user_id, size=len(content))
    return pdf_response(content, invoice_filename(data))
