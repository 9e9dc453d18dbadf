"""
Pricing and totals.

Every place that shows money (quotes, checkout, booking listings, invoices)
goes through `compute_totals`, so the numbers always agree. There is no
booking fee: `fees` is always zero and `total == subtotal`.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

from ticketing.core.config import get_settings
from ticketing.models.event import Event
from ticketing.services.voting import pricing_visible

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")
BOOKING_FEE = ZERO

REGULAR_TIER = "Regular"
FREE_TIER = "Free"


def to_money(value) -> Decimal:
    if value is None:
        return ZERO
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class TicketLine:
    tier_name: str
    unit_price: Decimal
    quantity: int

    @property
    def line_total(self) -> Decimal:
        return to_money(self.unit_price * self.quantity)


@dataclass(frozen=True)
class Totals:
    subtotal: Decimal
    fees: Decimal
    total: Decimal


@dataclass(frozen=True)
class TierView:
    """A ticket tier as shown to buyers. Price is None while hidden."""

    name: str
    price: Optional[Decimal]
    capacity: int
    remaining: int


def compute_totals(lines: Iterable[TicketLine]) -> Totals:
    subtotal = sum((to_money(line.unit_price) * line.quantity for line in lines), ZERO)
    subtotal = to_money(subtotal)
    fees = BOOKING_FEE
    return Totals(subtotal=subtotal, fees=fees, total=to_money(subtotal + fees))


def amount_due(totals: Totals, amount_paid) -> Decimal:
    return max(ZERO, to_money(totals.total - to_money(amount_paid)))


def format_price(amount) -> str:
    return f"{get_settings().CURRENCY_PREFIX} {to_money(amount):.2f}"


def tier_name_for(event: Event) -> str:
    return REGULAR_TIER if to_money(event.ticket_price) > 0 else FREE_TIER


def ticket_lines(event: Event, quantity: int) -> list[TicketLine]:
    """Lines for a purchase of `quantity` tickets. Events carry a single tier."""
    return [TicketLine(tier_name_for(event), to_money(event.ticket_price), quantity)]


def ticket_tiers(event: Event, now: Optional[datetime] = None) -> list[TierView]:
    if not pricing_visible(event, now):
        return [TierView("Pending vote", None, event.capacity, event.remaining)]
    price = to_money(event.ticket_price)
    return [TierView(tier_name_for(event), price, event.capacity, event.remaining)]


def price_from(event: Event, now: Optional[datetime] = None) -> Optional[Decimal]:
    if not pricing_visible(event, now):
        return None
    return to_money(event.ticket_price)
