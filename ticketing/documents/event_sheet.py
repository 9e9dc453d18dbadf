"""
Printable event sheet: what the event is, when and where, and what tickets cost.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ticketing.documents.layout import (
    BRAND_GREEN, LEFT, MUTED, RIGHT,
    Document, LayoutBuilder, brand_header, footer, format_date, format_time,
)
from ticketing.models.event import Event
from ticketing.services.event_service import event_category
from ticketing.services.pricing import TierView, format_price, price_from, ticket_tiers
from ticketing.services.voting import effective_voting_status


@dataclass(frozen=True)
class EventSheetData:
    name: str
    description: Optional[str]
    event_datetime: datetime
    location: Optional[str]
    category: str
    tiers: tuple[TierView, ...]
    price_from: Optional[Decimal]
    is_undefined: bool
    voting_status: Optional[str]
    voting_start: Optional[datetime]
    voting_end: Optional[datetime]
    votes_count: int
    generated_at: datetime
    brand_name: str


def event_sheet_data_for(
    event: Event,
    votes_count: int,
    brand_name: str,
    generated_at: datetime,
) -> EventSheetData:
    return EventSheetData(
        name=event.name,
        description=event.description,
        event_datetime=event.event_datetime,
        location=event.location,
        category=event_category(event.name, event.description),
        tiers=tuple(ticket_tiers(event, generated_at)),
        price_from=price_from(event, generated_at),
        is_undefined=event.is_undefined,
        voting_status=effective_voting_status(event, generated_at),
        voting_start=event.voting_start,
        voting_end=event.voting_end,
        votes_count=votes_count,
        generated_at=generated_at,
        brand_name=brand_name,
    )


def event_sheet_filename(data: EventSheetData) -> str:
    return f"Event-{re.sub(r'[^a-z0-9]', '-', data.name, flags=re.IGNORECASE).lower()}.pdf"


def _voting_section(builder: LayoutBuilder, data: EventSheetData) -> None:
    builder.advance(10)
    builder.section("Price Voting")
    builder.field("Status:", (data.voting_status or "not started").capitalize(), LEFT, 45, bold_value=True)
    builder.field("Votes:", str(data.votes_count), 110, 135)
    if data.voting_start or data.voting_end:
        builder.advance(5)
        window = " - ".join(
            f"{format_date(moment)} {format_time(moment)}"
            for moment in (data.voting_start, data.voting_end)
            if moment is not None
        )
        builder.field("Window:", window, LEFT, 45, max_width=140)
    builder.advance(6)
    builder.paragraph(
        "The ticket price is decided by the community vote and is published once voting closes.",
        size=9, leading=4.5, color=MUTED,
    )


def build_event_sheet(data: EventSheetData) -> Document:
    builder = LayoutBuilder(title=f"Event Details - {data.name}")
    brand_header(
        builder,
        brand=data.brand_name,
        subtitle="Event Details",
        heading="EVENT DETAILS",
        meta=[(f"Generated: {format_date(data.generated_at)}", MUTED)],
    )

    for line in builder.wrap(data.name, RIGHT - LEFT, 18, bold=True):
        builder.text(LEFT, line, size=18, bold=True)
        builder.advance(8)
    builder.advance(4)

    if data.description:
        builder.text(LEFT, "Description", size=12, bold=True)
        builder.advance(7)
        builder.paragraph(data.description, size=10, leading=5)
        builder.advance(6)

    builder.section("Event Information")
    builder.field("Date:", format_date(data.event_datetime), LEFT, 35)
    builder.field("Time:", format_time(data.event_datetime), 110, 125)
    builder.advance(6)
    builder.field("Location:", data.location or "TBA", LEFT, 45, max_width=60)
    builder.field("Category:", data.category, 110, 145)
    builder.advance(12)

    builder.section("Ticket Information")
    builder.text(LEFT, "Ticket Type", color=MUTED, bold=True)
    builder.text(70, "Price", color=MUTED, bold=True)
    builder.text(130, "Capacity", color=MUTED, bold=True)
    builder.text(RIGHT, "Remaining", color=MUTED, bold=True, align="right")
    builder.advance(6)
    builder.rule()
    builder.advance(5)
    for tier in data.tiers:
        builder.ensure_space(6)
        builder.text(LEFT, tier.name, size=10)
        builder.text(70, "TBA" if tier.price is None else format_price(tier.price), size=10)
        builder.text(130, str(tier.capacity), size=10)
        builder.text(RIGHT, str(tier.remaining), size=10, align="right")
        builder.advance(6)

    if data.price_from is not None and data.price_from > 0:
        builder.advance(4)
        builder.rule(x1=130)
        builder.advance(6)
        builder.text(130, "Price From:", size=12, color=BRAND_GREEN, bold=True, align="right")
        builder.text(RIGHT, format_price(data.price_from), size=12, color=BRAND_GREEN, bold=True, align="right")

    if data.is_undefined:
        _voting_section(builder, data)

    footer(builder, [
        f"Thank you for your interest in {data.brand_name}!",
        "For booking and inquiries, please visit our events page.",
    ])
    return builder.build()
