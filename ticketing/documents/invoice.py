"""
Booking invoice.

Inputs are resolved by the caller; building touches neither the network nor
the store. The totals block prints exactly the `Totals` it is given, and the
payment block depends on the effective payment status:

  unpaid with something due  -> amount paid + amount due (red)
  paid                       -> amount paid (green)
  refunded / nothing due     -> no payment block
"""

import re
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ticketing.documents.layout import (
    BRAND_GREEN, LEFT, MUTED, PAID, RIGHT, STATUS_COLORS, UNPAID,
    Document, LayoutBuilder, brand_header, footer, format_date, format_time, truncate,
)
from ticketing.services.enrollment_service import BookingSummary
from ticketing.services.pricing import TicketLine, Totals, format_price

QR_SIZE = 22.0


@dataclass(frozen=True)
class InvoiceData:
    booking_id: int
    booking_date: datetime
    customer_name: str
    customer_email: str
    event_name: str
    event_datetime: datetime
    event_location: Optional[str]
    event_description: Optional[str]
    lines: tuple[TicketLine, ...]
    totals: Totals
    payment_status: str
    amount_paid: Decimal
    amount_due: Decimal
    ticket_codes: tuple[str, ...]
    generated_at: datetime
    brand_name: str


def invoice_data_for(
    summary: BookingSummary,
    customer_name: str,
    customer_email: str,
    brand_name: str,
    generated_at: datetime,
) -> InvoiceData:
    enrollment = summary.enrollment
    event = enrollment.event
    return InvoiceData(
        booking_id=enrollment.id,
        booking_date=enrollment.created_at,
        customer_name=customer_name,
        customer_email=customer_email or "N/A",
        event_name=event.name,
        event_datetime=event.event_datetime,
        event_location=event.location,
        event_description=event.description,
        lines=tuple(summary.lines),
        totals=summary.totals,
        payment_status=summary.payment_status,
        amount_paid=summary.amount_paid,
        amount_due=summary.amount_due,
        ticket_codes=tuple(ticket.code for ticket in enrollment.tickets),
        generated_at=generated_at,
        brand_name=brand_name,
    )


def invoice_filename(data: InvoiceData) -> str:
    slug = re.sub(r"[^a-z0-9]", "-", data.event_name, flags=re.IGNORECASE).lower()
    date_part = re.sub(r"[^a-z0-9]", "-", format_date(data.booking_date), flags=re.IGNORECASE)
    return f"Invoice-{slug}-{date_part}.pdf"


def _customer_section(builder: LayoutBuilder, data: InvoiceData) -> None:
    builder.section("Customer Information")
    builder.field("Name:", data.customer_name, LEFT, 35, max_width=70)
    builder.field("Email:", data.customer_email, 110, 130, max_width=60)
    builder.advance(5)
    builder.field("Booking Date:", format_date(data.booking_date), LEFT, 50)
    builder.field("Booking No.:", f"#{data.booking_id}", 110, 135)
    builder.advance(12)


def _event_section(builder: LayoutBuilder, data: InvoiceData) -> None:
    builder.section("Event Details")
    builder.field("Event Name:", data.event_name, LEFT, 45, max_width=62)
    builder.field("Time:", format_time(data.event_datetime), 110, 125)
    builder.advance(5)
    builder.field("Date:", format_date(data.event_datetime), LEFT, 35)
    builder.field("Location:", data.event_location or "TBA", 110, 135, max_width=55)
    if data.event_description:
        builder.advance(5)
        builder.text(LEFT, "Description:", color=MUTED)
        builder.advance(4)
        builder.paragraph(truncate(data.event_description, 200), size=8, leading=4)
    else:
        builder.advance(5)
    builder.advance(7)


def _ticket_table(builder: LayoutBuilder, data: InvoiceData) -> None:
    builder.section("Ticket Details")
    builder.text(LEFT, "Ticket Type", color=MUTED, bold=True)
    builder.text(70, "Quantity", color=MUTED, bold=True, align="center")
    builder.text(130, "Unit Price", color=MUTED, bold=True, align="right")
    builder.text(RIGHT, "Total", color=MUTED, bold=True, align="right")
    builder.advance(6)
    builder.rule()
    builder.advance(5)

    for line in data.lines:
        builder.ensure_space(6)
        builder.text(LEFT, line.tier_name, size=10)
        builder.text(70, str(line.quantity), size=10, align="center")
        builder.text(130, format_price(line.unit_price), size=10, align="right")
        builder.text(RIGHT, format_price(line.line_total), size=10, align="right")
        builder.advance(6)
    builder.advance(6)


def _totals_section(builder: LayoutBuilder, data: InvoiceData) -> None:
    builder.ensure_space(45)
    builder.rule(width=1)
    builder.advance(5)
    builder.text(130, "Subtotal:", size=10, align="right")
    builder.text(RIGHT, format_price(data.totals.subtotal), size=10, align="right")
    builder.advance(5)
    builder.text(130, "Booking Fee:", size=10, align="right")
    builder.text(RIGHT, format_price(data.totals.fees), size=10, align="right")
    builder.advance(6)
    builder.rule(x1=130)
    builder.advance(6)
    builder.text(130, "Total Amount:", size=14, color=BRAND_GREEN, bold=True, align="right")
    builder.text(RIGHT, format_price(data.totals.total), size=14, color=BRAND_GREEN, bold=True, align="right")

    if data.payment_status == "unpaid" and data.amount_due > 0:
        builder.advance(6)
        builder.rule(x1=130)
        builder.advance(5)
        builder.text(130, "Amount Paid:", size=10, color=UNPAID, bold=True, align="right")
        builder.text(RIGHT, format_price(data.amount_paid), size=10, color=UNPAID, bold=True, align="right")
        builder.advance(5)
        builder.text(130, "Amount Due:", size=12, color=UNPAID, bold=True, align="right")
        builder.text(RIGHT, format_price(data.amount_due), size=12, color=UNPAID, bold=True, align="right")
    elif data.payment_status == "paid":
        builder.advance(6)
        builder.rule(x1=130)
        builder.advance(5)
        builder.text(130, "Amount Paid:", size=10, color=PAID, bold=True, align="right")
        builder.text(RIGHT, format_price(data.amount_paid), size=10, color=PAID, bold=True, align="right")


def _tickets_section(builder: LayoutBuilder, data: InvoiceData) -> None:
    if data.payment_status == "refunded" or not data.ticket_codes:
        return
    builder.advance(12)
    builder.section("Your Tickets")
    count = len(data.ticket_codes)
    for position, code in enumerate(data.ticket_codes, start=1):
        builder.ensure_space(QR_SIZE + 6)
        builder.qr(LEFT, code, QR_SIZE)
        builder.text(LEFT + QR_SIZE + 6, code, size=11, bold=True, y=builder.y + 9)
        builder.text(LEFT + QR_SIZE + 6, f"Ticket {position} of {count}", color=MUTED, y=builder.y + 15)
        builder.advance(QR_SIZE + 6)


def build_invoice(data: InvoiceData) -> Document:
    builder = LayoutBuilder(title=f"Invoice #{data.booking_id} - {data.event_name}")
    brand_header(
        builder,
        brand=data.brand_name,
        subtitle="Event Ticket Invoice",
        heading="INVOICE",
        meta=[
            (f"Date: {format_date(data.booking_date)}", MUTED),
            (f"Status: {data.payment_status.upper()}", STATUS_COLORS.get(data.payment_status, MUTED)),
        ],
    )
    _customer_section(builder, data)
    _event_section(builder, data)
    _ticket_table(builder, data)
    _totals_section(builder, data)
    _tickets_section(builder, data)
    footer(builder, [
        f"Thank you for your booking with {data.brand_name}!",
        "This is an automated invoice. For any queries, please contact support.",
        f"Generated {format_date(data.generated_at)} {format_time(data.generated_at)} UTC",
    ])
    return builder.build()
