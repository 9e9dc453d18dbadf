"""
Pydantic schemas for checkout and booking responses.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field


class CheckoutRequest(BaseModel):
    event_id: str = Field(..., min_length=1, max_length=36)
    quantity: int = Field(..., ge=1)


class TicketLineResponse(BaseModel):
    tier_name: str
    unit_price: Decimal
    quantity: int
    line_total: Decimal


class TotalsResponse(BaseModel):
    subtotal: Decimal
    fees: Decimal
    total: Decimal


class QuoteResponse(BaseModel):
    event_id: str
    lines: list[TicketLineResponse]
    totals: TotalsResponse


class TicketResponse(BaseModel):
    position: int
    code: str
    tier_name: str
    qr_payload: str


class EnrollmentResponse(BaseModel):
    id: int
    event_id: str
    user_id: str
    event_name: str
    event_datetime: datetime
    location: Optional[str]
    quantity: int
    payment_status: str
    amount_paid: Decimal
    amount_due: Decimal
    lines: list[TicketLineResponse]
    totals: TotalsResponse
    tickets: list[TicketResponse]
    created_at: datetime


class CheckoutResponse(BaseModel):
    status: str  # confirmed, replayed, insufficient_capacity
    message: str
    enrollment: Optional[EnrollmentResponse] = None


class PaymentRecord(BaseModel):
    amount_paid: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
