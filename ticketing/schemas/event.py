"""
Pydantic schemas for event-related request/response validation.
"""

from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional
from pydantic import BaseModel, Field, model_validator

from ticketing.db.base import as_utc


class EventCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    location: Optional[str] = Field(None, max_length=255)
    poster_url: Optional[str] = Field(None, max_length=1024)
    type: Literal["defined", "undefined"] = "defined"
    capacity: int = Field(..., ge=0, le=1_000_000)
    event_datetime: datetime
    ticket_price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    voting_start: Optional[datetime] = None
    voting_end: Optional[datetime] = None
    voting_status: Optional[Literal["open", "closed"]] = None

    @model_validator(mode="after")
    def check_voting_window(self):
        if self.type == "defined" and (self.voting_start or self.voting_end or self.voting_status):
            raise ValueError("Voting settings only apply to undefined events")
        if self.voting_start and self.voting_end and as_utc(self.voting_end) < as_utc(self.voting_start):
            raise ValueError("voting_end must not be before voting_start")
        return self


class EventStatusUpdate(BaseModel):
    status: Literal["draft", "published", "closed"]


class TierResponse(BaseModel):
    name: str
    price: Optional[Decimal]
    capacity: int
    remaining: int


class EventResponse(BaseModel):
    id: str
    type: str
    status: str
    name: str
    slug: str
    category: str
    description: Optional[str]
    location: Optional[str]
    poster_url: Optional[str]
    capacity: int
    remaining: int
    event_datetime: datetime
    ticket_price: Optional[Decimal]
    price_from: Optional[Decimal]
    ticket_tiers: list[TierResponse]
    voting_start: Optional[datetime]
    voting_end: Optional[datetime]
    voting_status: Optional[str]
    on_sale: bool


class EventListResponse(BaseModel):
    events: list[EventResponse]
    total: int
    cached: bool = False


class AvailabilityResponse(BaseModel):
    event_id: str
    quantity: int
    can_reserve: bool
    remaining: int


class QuoteRequest(BaseModel):
    quantity: int = Field(..., ge=1)
