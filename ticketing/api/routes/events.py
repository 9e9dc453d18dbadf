"""
Event endpoints. The published listing is cached in Redis; detail reads are
not, since buyers need real-time remaining capacity.
"""

from dataclasses import asdict

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ticketing.core.config import get_settings
from ticketing.core.errors import ConflictError, ValidationError
from ticketing.core.logging import get_logger
from ticketing.core.security import CurrentUser, require_organizer
from ticketing.db.session import get_db
from ticketing.schemas.enrollment import EnrollmentResponse, QuoteResponse, TotalsResponse
from ticketing.schemas.event import (
    AvailabilityResponse, EventCreate, EventListResponse, EventResponse, EventStatusUpdate,
    QuoteRequest,
)
from ticketing.services import capacity
from ticketing.services.cache_service import (
    get_cached_event_list, invalidate_event_cache, set_cached_event_list,
)
from ticketing.services.enrollment_service import (
    list_event_enrollments, present_enrollment, present_line,
)
from ticketing.services.event_service import (
    create_event, get_event, get_event_by_slug, list_published_events, present_event,
    update_event_status,
)
from ticketing.services.pricing import compute_totals, ticket_lines
from ticketing.services.voting import pricing_visible

logger = get_logger(__name__)
router = APIRouter(prefix="/events", tags=["Events"])


@router.get("", response_model=EventListResponse)
async def list_events_endpoint(db: AsyncSession = Depends(get_db)):
    """Published events ordered by date, served from cache when warm."""
    cached = await get_cached_event_list()
    if cached is not None:
        logger.info("events_list_cache_hit", count=len(cached))
        return EventListResponse(events=cached, total=len(cached), cached=True)

    events = [present_event(event) for event in await list_published_events(db)]
    await set_cached_event_list([event.model_dump(mode="json") for event in events])
    return EventListResponse(events=events, total=len(events), cached=False)


@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event_endpoint(
    event_data: EventCreate,
    organizer: CurrentUser = Depends(require_organizer),
    db: AsyncSession = Depends(get_db),
):
    """Create a draft event. Organizers only."""
    event = await create_event(db, event_data, organizer.user_id)
    await invalidate_event_cache()
    return present_event(event)


@router.get("/by-slug/{slug}", response_model=EventResponse)
async def get_event_by_slug_endpoint(slug: str, db: AsyncSession = Depends(get_db)):
    return present_event(await get_event_by_slug(db, slug))


@router.get("/{event_id}", response_model=EventResponse)
async def get_event_endpoint(event_id: str, db: AsyncSession = Depends(get_db)):
    return present_event(await get_event(db, event_id))


@router.patch("/{event_id}/status", response_model=EventResponse)
async def update_event_status_endpoint(
    event_id: str,
    update: EventStatusUpdate,
    organizer: CurrentUser = Depends(require_organizer),
    db: AsyncSession = Depends(get_db),
):
    event = await update_event_status(db, event_id, update.status)
    await invalidate_event_cache()
    return present_event(event)


@router.get("/{event_id}/enrollments", response_model=list[EnrollmentResponse])
async def list_event_enrollments_endpoint(
    event_id: str,
    organizer: CurrentUser = Depends(require_organizer),
    db: AsyncSession = Depends(get_db),
):
    """All bookings of an event, newest first. Organizers only."""
    enrollments = await list_event_enrollments(db, event_id)
    return [present_enrollment(enrollment) for enrollment in enrollments]


@router.get("/{event_id}/availability", response_model=AvailabilityResponse)
async def availability_endpoint(
    event_id: str,
    quantity: int = Query(1, ge=1),
    db: AsyncSession = Depends(get_db),
):
    """Advisory only; checkout makes the binding decision."""
    await get_event(db, event_id)
    return AvailabilityResponse(
        event_id=event_id,
        quantity=quantity,
        can_reserve=await capacity.can_reserve(db, event_id, quantity),
        remaining=await capacity.remaining_capacity(db, event_id),
    )


@router.post("/{event_id}/quote", response_model=QuoteResponse)
async def quote_endpoint(
    event_id: str,
    request: QuoteRequest,
    db: AsyncSession = Depends(get_db),
):
    """Price a purchase without reserving anything."""
    max_quantity = get_settings().MAX_TICKETS_PER_ORDER
    if request.quantity > max_quantity:
        raise ValidationError(f"Quantity must be between 1 and {max_quantity}")

    event = await get_event(db, event_id)
    if not pricing_visible(event):
        raise ConflictError("Pricing is not available until voting closes")

    lines = ticket_lines(event, request.quantity)
    return QuoteResponse(
        event_id=event.id,
        lines=[present_line(line) for line in lines],
        totals=TotalsResponse(**asdict(compute_totals(lines))),
    )
