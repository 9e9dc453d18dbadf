"""
Tests for totals, price formatting and the display tiers.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from conftest import make_event
from ticketing.services.pricing import (
    TicketLine, amount_due, compute_totals, format_price, price_from, ticket_lines, ticket_tiers,
)


def test_three_tickets_at_25():
    totals = compute_totals([TicketLine("Regular", Decimal("25.00"), 3)])
    assert totals.subtotal == Decimal("75.00")
    assert totals.fees == Decimal("0.00")
    assert totals.total == Decimal("75.00")


def test_totals_are_order_independent_and_repeatable():
    lines = [
        TicketLine("Regular", Decimal("25.00"), 3),
        TicketLine("VIP", Decimal("99.99"), 1),
        TicketLine("Free", Decimal("0"), 4),
    ]
    first = compute_totals(lines)
    assert compute_totals(list(reversed(lines))) == first
    assert compute_totals(lines) == first
    assert first.total == first.subtotal == Decimal("174.99")


def test_empty_order_is_zero():
    totals = compute_totals([])
    assert totals.total == Decimal("0.00")


def test_amount_due_never_negative():
    totals = compute_totals([TicketLine("Regular", Decimal("25.00"), 3)])
    assert amount_due(totals, Decimal("0")) == Decimal("75.00")
    assert amount_due(totals, Decimal("50.00")) == Decimal("25.00")
    assert amount_due(totals, Decimal("80.00")) == Decimal("0.00")


def test_format_price():
    assert format_price(Decimal("75")) == "Rs 75.00"
    assert format_price(None) == "Rs 0.00"


def test_tier_name_follows_price():
    assert ticket_lines(make_event(ticket_price=Decimal("25.00")), 2)[0].tier_name == "Regular"
    assert ticket_lines(make_event(ticket_price=None), 2)[0].tier_name == "Free"
    assert ticket_lines(make_event(ticket_price=Decimal("0")), 2)[0].tier_name == "Free"


def test_price_hidden_while_voting_open():
    now = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
    event = make_event(
        type="undefined",
        ticket_price=Decimal("40.00"),
        voting_start=now - timedelta(hours=1),
        voting_end=now + timedelta(hours=1),
    )
    tiers = ticket_tiers(event, now)
    assert tiers[0].price is None
    assert price_from(event, now) is None

    after = now + timedelta(hours=2)
    assert ticket_tiers(event, after)[0].price == Decimal("40.00")
    assert price_from(event, after) == Decimal("40.00")


def test_tier_reports_remaining():
    event = make_event(capacity=10, reserved_count=4)
    tier = ticket_tiers(event)[0]
    assert (tier.name, tier.capacity, tier.remaining) == ("Regular", 10, 6)
