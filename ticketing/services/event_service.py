"""
Event service: catalog reads, organizer writes and the display projection.
"""

import re
from dataclasses import asdict
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ticketing.core.errors import ConflictError, NotFoundError
from ticketing.core.logging import get_logger
from ticketing.db.base import as_utc, utcnow
from ticketing.db.session import store_operation
from ticketing.models.event import Event
from ticketing.schemas.event import EventCreate, EventResponse, TierResponse
from ticketing.services.pricing import price_from, ticket_tiers, to_money
from ticketing.services.voting import effective_voting_status, pricing_visible

logger = get_logger(__name__)

# Allowed lifecycle moves; anything else is a conflict
STATUS_TRANSITIONS = {
    "draft": {"published"},
    "published": {"closed"},
    "closed": set(),
}

CATEGORY_KEYWORDS = (
    ("Football", ("football", "soccer", "match")),
    ("Party", ("party", "celebration", "nightlife")),
    ("Concert", ("concert", "music", "festival")),
)
DEFAULT_CATEGORY = "Concert"


def event_slug(name: str) -> str:
    return re.sub(r"(^-|-$)", "", re.sub(r"[^a-z0-9]+", "-", name.lower()))


def event_category(name: str, description: Optional[str]) -> str:
    text = f"{name} {description or ''}".lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return category
    return DEFAULT_CATEGORY


def is_event_past(event: Event, now: Optional[datetime] = None) -> bool:
    """True once the event's calendar day is over."""
    now = as_utc(now) if now else utcnow()
    return as_utc(event.event_datetime).date() < now.date()


def is_on_sale(event: Event, now: Optional[datetime] = None) -> bool:
    return (
        event.status == "published"
        and not is_event_past(event, now)
        and pricing_visible(event, now)
    )


def present_event(event: Event, now: Optional[datetime] = None) -> EventResponse:
    """Project a stored event into what buyers see."""
    visible = pricing_visible(event, now)
    return EventResponse(
        id=event.id,
        type=event.type,
        status=event.status,
        name=event.name,
        slug=event_slug(event.name),
        category=event_category(event.name, event.description),
        description=event.description,
        location=event.location,
        poster_url=event.poster_url,
        capacity=event.capacity,
        remaining=event.remaining,
        event_datetime=event.event_datetime,
        ticket_price=to_money(event.ticket_price) if visible and event.ticket_price is not None else None,
        price_from=price_from(event, now),
        ticket_tiers=[TierResponse(**asdict(tier)) for tier in ticket_tiers(event, now)],
        voting_start=event.voting_start,
        voting_end=event.voting_end,
        voting_status=effective_voting_status(event, now) if event.is_undefined else None,
        on_sale=is_on_sale(event, now),
    )


@store_operation("create_event")
async def create_event(db: AsyncSession, event_data: EventCreate, organizer_id: str) -> Event:
    """Create a new draft event."""
    event = Event(
        created_by=organizer_id,
        type=event_data.type,
        status="draft",
        name=event_data.name,
        description=event_data.description,
        location=event_data.location,
        poster_url=event_data.poster_url,
        capacity=event_data.capacity,
        reserved_count=0,
        event_datetime=as_utc(event_data.event_datetime),
        ticket_price=event_data.ticket_price,
        voting_start=as_utc(event_data.voting_start),
        voting_end=as_utc(event_data.voting_end),
        voting_status=event_data.voting_status,
    )
    db.add(event)
    await db.commit()

    logger.info("event_created", event_id=event.id, name=event.name, capacity=event.capacity)
    return event


@store_operation("get_event")
async def get_event(db: AsyncSession, event_id: str, include_drafts: bool = False) -> Event:
    result = await db.execute(select(Event).where(Event.id == event_id))
    event = result.scalar_one_or_none()

    if not event or (event.status == "draft" and not include_drafts):
        raise NotFoundError(f"Event {event_id} not found")
    return event


@store_operation("list_published_events")
async def list_published_events(db: AsyncSession) -> list[Event]:
    result = await db.execute(
        select(Event)
        .where(Event.status == "published")
        .order_by(Event.event_datetime.asc())
    )
    return list(result.scalars().all())


async def get_event_by_slug(db: AsyncSession, slug: str) -> Event:
    for event in await list_published_events(db):
        if event_slug(event.name) == slug:
            return event
    raise NotFoundError(f"Event '{slug}' not found")


@store_operation("update_event_status")
async def update_event_status(db: AsyncSession, event_id: str, new_status: str) -> Event:
    result = await db.execute(select(Event).where(Event.id == event_id))
    event = result.scalar_one_or_none()
    if not event:
        raise NotFoundError(f"Event {event_id} not found")

    if new_status not in STATUS_TRANSITIONS[event.status]:
        raise ConflictError(f"Cannot move event from {event.status} to {new_status}")

    old_status = event.status
    event.status = new_status
    await db.commit()

    logger.info("event_status_changed", event_id=event_id, old=old_status, new=new_status)
    return event
