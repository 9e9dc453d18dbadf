"""
Tests for invoice and event sheet assembly and the PDF download endpoints.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from httpx import AsyncClient

from conftest import make_event
from ticketing.documents import (
    build_event_sheet, build_invoice, event_sheet_data_for, event_sheet_filename,
    invoice_data_for, invoice_filename, render_pdf,
)
from ticketing.models.enrollment import Enrollment
from ticketing.services.enrollment_service import booking_summary
from ticketing.services.tickets import issue_tickets

GENERATED_AT = datetime(2026, 10, 19, 10, 30, tzinfo=timezone.utc)
BOOKED_AT = datetime(2026, 10, 18, 9, 0, tzinfo=timezone.utc)


def make_enrollment(quantity=3, payment_status="unpaid", amount_paid=Decimal("0"), **event_fields):
    event = make_event(
        id="evt-1",
        event_datetime=datetime(2026, 12, 5, 19, 30, tzinfo=timezone.utc),
        **event_fields,
    )
    tickets = issue_tickets(quantity, "Regular")
    # Fixed codes so documents compare equal across builds
    for index, ticket in enumerate(tickets, start=1):
        ticket.code = f"TKT-CODE{index:03d}"
    return Enrollment(
        id=42,
        event=event,
        user_id="user-buyer",
        quantity=quantity,
        payment_status=payment_status,
        amount_paid=amount_paid,
        tickets=tickets,
        created_at=BOOKED_AT,
    )


def invoice_for(enrollment):
    return invoice_data_for(
        booking_summary(enrollment),
        customer_name="Asha Perera",
        customer_email="buyer@example.com",
        brand_name="Digital Factory Events",
        generated_at=GENERATED_AT,
    )


def test_invoice_shows_amount_due_when_unpaid():
    document = build_invoice(invoice_for(make_enrollment()))
    texts = document.texts()

    assert "INVOICE" in texts
    assert "Status: UNPAID" in texts
    assert "Subtotal:" in texts
    assert texts.count("Rs 75.00") >= 2
    assert "Booking Fee:" in texts and "Rs 0.00" in texts
    assert "Amount Due:" in texts
    assert "Your Tickets" in texts
    assert "TKT-CODE001" in texts


def test_fully_paid_unpaid_booking_reads_as_paid():
    data = invoice_for(make_enrollment(amount_paid=Decimal("75.00")))
    assert data.payment_status == "paid"

    texts = build_invoice(data).texts()
    assert "Status: PAID" in texts
    assert "Amount Paid:" in texts
    assert "Amount Due:" not in texts


def test_refunded_invoice_has_no_tickets_or_payment_block():
    texts = build_invoice(invoice_for(make_enrollment(payment_status="refunded"))).texts()
    assert "Status: REFUNDED" in texts
    assert "Your Tickets" not in texts
    assert "Amount Due:" not in texts
    assert "Amount Paid:" not in texts


def test_free_booking_has_no_payment_block():
    texts = build_invoice(invoice_for(make_enrollment(ticket_price=None))).texts()
    assert "Free" in texts
    assert "Amount Due:" not in texts


def test_invoice_assembly_is_deterministic():
    data = invoice_for(make_enrollment())
    assert build_invoice(data) == build_invoice(data)
    first = render_pdf(build_invoice(data), author="Digital Factory Events")
    second = render_pdf(build_invoice(data), author="Digital Factory Events")
    assert first.startswith(b"%PDF")
    assert first == second


def test_long_ticket_lists_break_pages():
    document = build_invoice(invoice_for(make_enrollment(quantity=20, capacity=20)))
    assert document.page_count > 1
    codes = [text for text in document.texts() if text.startswith("TKT-")]
    assert len(codes) == 20


def test_invoice_filename():
    data = invoice_for(make_enrollment())
    assert invoice_filename(data) == "Invoice-summer-concert-18-October-2026.pdf"


def test_event_sheet_for_defined_event():
    event = make_event(capacity=100, reserved_count=40)
    data = event_sheet_data_for(event, votes_count=0, brand_name="Digital Factory Events", generated_at=GENERATED_AT)
    texts = build_event_sheet(data).texts()

    assert "EVENT DETAILS" in texts
    assert "Summer Concert" in texts
    assert "Event Information" in texts
    assert "Concert" in texts
    assert "Regular" in texts and "100" in texts and "60" in texts
    assert "Price From:" in texts
    assert "Price Voting" not in texts
    assert event_sheet_filename(data) == "Event-summer-concert.pdf"


def test_event_sheet_while_voting_hides_price():
    event = make_event(
        type="undefined",
        ticket_price=Decimal("40.00"),
        voting_start=GENERATED_AT - timedelta(days=1),
        voting_end=GENERATED_AT + timedelta(days=1),
    )
    data = event_sheet_data_for(event, votes_count=7, brand_name="Digital Factory Events", generated_at=GENERATED_AT)
    texts = build_event_sheet(data).texts()

    assert "TBA" in texts
    assert "Price From:" not in texts
    assert "Price Voting" in texts
    assert "Open" in texts
    assert "7" in texts


def test_event_sheet_is_deterministic():
    event = make_event()
    data = event_sheet_data_for(event, 0, "Digital Factory Events", GENERATED_AT)
    assert render_pdf(build_event_sheet(data)) == render_pdf(build_event_sheet(data))


@pytest.mark.asyncio
async def test_event_document_endpoint(client: AsyncClient, published_event):
    response = await client.get(f"/api/v1/events/{published_event.id}/document")
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.headers["content-disposition"] == 'attachment; filename="Event-summer-concert.pdf"'
    assert response.content.startswith(b"%PDF")


@pytest.mark.asyncio
async def test_event_document_not_found(client: AsyncClient, draft_event):
    assert (await client.get(f"/api/v1/events/{draft_event.id}/document")).status_code == 404
    assert (await client.get("/api/v1/events/missing/document")).status_code == 404


@pytest.mark.asyncio
async def test_invoice_endpoint(client: AsyncClient, auth_headers, other_headers, published_event):
    checkout = await client.post(
        "/api/v1/enrollments",
        json={"event_id": published_event.id, "quantity": 3},
        headers=auth_headers,
    )
    booking_id = checkout.json()["enrollment"]["id"]

    response = await client.get(f"/api/v1/invoices/{booking_id}", headers=auth_headers)
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.headers["content-disposition"].startswith('attachment; filename="Invoice-summer-concert-')
    assert response.content.startswith(b"%PDF")

    assert (await client.get(f"/api/v1/invoices/{booking_id}")).status_code == 401
    assert (await client.get(f"/api/v1/invoices/{booking_id}", headers=other_headers)).status_code == 404


@pytest.mark.asyncio
async def test_invoice_endpoint_rejects_bad_ids(client: AsyncClient, auth_headers):
    assert (await client.get("/api/v1/invoices/0", headers=auth_headers)).status_code == 400
    assert (await client.get("/api/v1/invoices/-5", headers=auth_headers)).status_code == 400
    assert (await client.get("/api/v1/invoices/abc", headers=auth_headers)).status_code == 400
    assert (await client.get("/api/v1/invoices/999", headers=auth_headers)).status_code == 404
