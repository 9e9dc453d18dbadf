"""
Tests for checkout, booking reads, payment recording and refunds.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from httpx import AsyncClient

from conftest import make_event
from ticketing.services import enrollment_service
from ticketing.services.tickets import issue_tickets


async def buy(client: AsyncClient, headers: dict, event_id: str, quantity: int, key: str = None):
    if key:
        headers = {**headers, "X-Idempotency-Key": key}
    return await client.post(
        "/api/v1/enrollments",
        json={"event_id": event_id, "quantity": quantity},
        headers=headers,
    )


@pytest.mark.asyncio
async def test_checkout(client: AsyncClient, auth_headers, published_event):
    response = await buy(client, auth_headers, published_event.id, 3)
    assert response.status_code == 201

    data = response.json()
    assert data["status"] == "confirmed"
    enrollment = data["enrollment"]
    assert enrollment["quantity"] == 3
    assert enrollment["payment_status"] == "unpaid"
    assert Decimal(enrollment["totals"]["subtotal"]) == Decimal("75.00")
    assert Decimal(enrollment["totals"]["fees"]) == Decimal("0")
    assert Decimal(enrollment["totals"]["total"]) == Decimal("75.00")
    assert Decimal(enrollment["amount_due"]) == Decimal("75.00")
    assert len(enrollment["tickets"]) == 3
    assert enrollment["tickets"][0]["qr_payload"] == enrollment["tickets"][0]["code"]

    event_response = await client.get(f"/api/v1/events/{published_event.id}")
    assert event_response.json()["remaining"] == 7


@pytest.mark.asyncio
async def test_checkout_unauthenticated(client: AsyncClient, published_event):
    response = await client.post(
        "/api/v1/enrollments",
        json={"event_id": published_event.id, "quantity": 1},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_checkout_over_capacity(client: AsyncClient, auth_headers, published_event):
    assert (await buy(client, auth_headers, published_event.id, 10)).status_code == 201

    response = await buy(client, auth_headers, published_event.id, 1)
    assert response.status_code == 409
    assert response.json()["status"] == "insufficient_capacity"
    assert response.json()["enrollment"] is None


@pytest.mark.asyncio
async def test_checkout_quantity_limits(client: AsyncClient, auth_headers, published_event):
    assert (await buy(client, auth_headers, published_event.id, 0)).status_code == 400
    response = await buy(client, auth_headers, published_event.id, 21)
    assert response.status_code == 400
    assert "between 1 and 20" in response.json()["error"]


@pytest.mark.asyncio
async def test_checkout_unknown_and_draft_events(client: AsyncClient, auth_headers, draft_event):
    assert (await buy(client, auth_headers, "no-such-event", 1)).status_code == 404
    assert (await buy(client, auth_headers, draft_event.id, 1)).status_code == 404


@pytest.mark.asyncio
async def test_checkout_not_on_sale_while_voting(client: AsyncClient, auth_headers, voting_event):
    response = await buy(client, auth_headers, voting_event.id, 1)
    assert response.status_code == 409
    assert response.json()["error"] == "Tickets are not on sale for this event"


@pytest.mark.asyncio
async def test_checkout_past_event(client: AsyncClient, auth_headers, db_session):
    event = make_event(event_datetime=datetime.now(timezone.utc) - timedelta(days=3))
    db_session.add(event)
    await db_session.commit()

    response = await buy(client, auth_headers, event.id, 1)
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_idempotent_retry_returns_same_booking(client: AsyncClient, auth_headers, published_event):
    first = await buy(client, auth_headers, published_event.id, 2, key="order-123")
    assert first.status_code == 201

    retry = await buy(client, auth_headers, published_event.id, 2, key="order-123")
    assert retry.status_code == 200
    assert retry.json()["status"] == "replayed"
    assert retry.json()["enrollment"]["id"] == first.json()["enrollment"]["id"]
    assert retry.json()["enrollment"]["tickets"] == first.json()["enrollment"]["tickets"]

    mine = await client.get("/api/v1/enrollments", headers=auth_headers)
    assert len(mine.json()) == 1

    event_response = await client.get(f"/api/v1/events/{published_event.id}")
    assert event_response.json()["remaining"] == 8


@pytest.mark.asyncio
async def test_idempotency_key_reuse_for_other_order(client: AsyncClient, auth_headers, published_event):
    await buy(client, auth_headers, published_event.id, 2, key="order-456")
    response = await buy(client, auth_headers, published_event.id, 5, key="order-456")
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_same_key_different_users(client: AsyncClient, auth_headers, other_headers, published_event):
    first = await buy(client, auth_headers, published_event.id, 1, key="shared")
    second = await buy(client, other_headers, published_event.id, 1, key="shared")
    assert first.status_code == 201
    assert second.status_code == 201
    assert first.json()["enrollment"]["id"] != second.json()["enrollment"]["id"]


def issue_with_taken_code(taken_code: str, collide_times: int):
    calls = []

    def issue(quantity, tier_name):
        calls.append(quantity)
        tickets = issue_tickets(quantity, tier_name)
        if len(calls) <= collide_times:
            tickets[0].code = taken_code
        return tickets

    return issue, calls


@pytest.mark.asyncio
async def test_ticket_code_collision_draws_new_codes(
    client: AsyncClient, auth_headers, other_headers, published_event, monkeypatch
):
    event_id = published_event.id
    first = (await buy(client, auth_headers, event_id, 1)).json()["enrollment"]
    taken = first["tickets"][0]["code"]

    issue, calls = issue_with_taken_code(taken, collide_times=1)
    monkeypatch.setattr(enrollment_service, "issue_tickets", issue)

    response = await buy(client, other_headers, event_id, 2)
    assert response.status_code == 201
    assert len(calls) == 2
    codes = [t["code"] for t in response.json()["enrollment"]["tickets"]]
    assert taken not in codes

    event_response = await client.get(f"/api/v1/events/{event_id}")
    assert event_response.json()["remaining"] == 7


@pytest.mark.asyncio
async def test_repeated_code_collision_books_nothing(
    client: AsyncClient, auth_headers, other_headers, published_event, monkeypatch
):
    event_id = published_event.id
    first = (await buy(client, auth_headers, event_id, 1)).json()["enrollment"]

    issue, calls = issue_with_taken_code(first["tickets"][0]["code"], collide_times=2)
    monkeypatch.setattr(enrollment_service, "issue_tickets", issue)

    response = await buy(client, other_headers, event_id, 2)
    assert response.status_code == 500
    assert "error" in response.json()
    assert len(calls) == 2

    assert (await client.get("/api/v1/enrollments", headers=other_headers)).json() == []
    event_response = await client.get(f"/api/v1/events/{event_id}")
    assert event_response.json()["remaining"] == 9


@pytest.mark.asyncio
async def test_list_and_get_my_bookings(client: AsyncClient, auth_headers, other_headers, published_event):
    first = (await buy(client, auth_headers, published_event.id, 1)).json()["enrollment"]
    second = (await buy(client, auth_headers, published_event.id, 2)).json()["enrollment"]

    mine = await client.get("/api/v1/enrollments", headers=auth_headers)
    assert mine.status_code == 200
    assert {b["id"] for b in mine.json()} == {first["id"], second["id"]}

    detail = await client.get(f"/api/v1/enrollments/{second['id']}", headers=auth_headers)
    assert detail.status_code == 200
    assert [t["code"] for t in detail.json()["tickets"]] == [t["code"] for t in second["tickets"]]

    theirs = await client.get(f"/api/v1/enrollments/{second['id']}", headers=other_headers)
    assert theirs.status_code == 404
    assert theirs.json()["error"] == "Booking not found"

    assert (await client.get("/api/v1/enrollments", headers=other_headers)).json() == []


@pytest.mark.asyncio
async def test_payment_recording(client: AsyncClient, auth_headers, organizer_headers, published_event):
    booking = (await buy(client, auth_headers, published_event.id, 3)).json()["enrollment"]
    url = f"/api/v1/enrollments/{booking['id']}/payments"

    partial = await client.post(url, json={"amount_paid": "50.00"}, headers=organizer_headers)
    assert partial.status_code == 200
    assert partial.json()["payment_status"] == "unpaid"
    assert Decimal(partial.json()["amount_due"]) == Decimal("25.00")

    full = await client.post(url, json={"amount_paid": "75.00"}, headers=organizer_headers)
    assert full.json()["payment_status"] == "paid"
    assert Decimal(full.json()["amount_due"]) == Decimal("0")

    too_much = await client.post(url, json={"amount_paid": "80.00"}, headers=organizer_headers)
    assert too_much.status_code == 400


@pytest.mark.asyncio
async def test_paid_booking_stays_paid(client: AsyncClient, auth_headers, organizer_headers, published_event):
    booking = (await buy(client, auth_headers, published_event.id, 3)).json()["enrollment"]
    url = f"/api/v1/enrollments/{booking['id']}/payments"

    full = await client.post(url, json={"amount_paid": "75.00"}, headers=organizer_headers)
    assert full.json()["payment_status"] == "paid"

    smaller = await client.post(url, json={"amount_paid": "10.00"}, headers=organizer_headers)
    assert smaller.status_code == 409

    detail = await client.get(f"/api/v1/enrollments/{booking['id']}", headers=auth_headers)
    assert detail.json()["payment_status"] == "paid"
    assert Decimal(detail.json()["amount_paid"]) == Decimal("75.00")

    again = await client.post(url, json={"amount_paid": "75.00"}, headers=organizer_headers)
    assert again.status_code == 200
    assert again.json()["payment_status"] == "paid"


@pytest.mark.asyncio
async def test_payment_requires_organizer(client: AsyncClient, auth_headers, published_event):
    booking = (await buy(client, auth_headers, published_event.id, 1)).json()["enrollment"]
    response = await client.post(
        f"/api/v1/enrollments/{booking['id']}/payments",
        json={"amount_paid": "25.00"},
        headers=auth_headers,
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_refund(client: AsyncClient, auth_headers, organizer_headers, published_event):
    booking = (await buy(client, auth_headers, published_event.id, 4)).json()["enrollment"]
    url = f"/api/v1/enrollments/{booking['id']}/refund"

    response = await client.post(url, headers=organizer_headers)
    assert response.status_code == 200
    assert response.json()["payment_status"] == "refunded"
    assert Decimal(response.json()["amount_due"]) == Decimal("0")

    event_response = await client.get(f"/api/v1/events/{published_event.id}")
    assert event_response.json()["remaining"] == 10

    again = await client.post(url, headers=organizer_headers)
    assert again.status_code == 409

    payment = await client.post(
        f"/api/v1/enrollments/{booking['id']}/payments",
        json={"amount_paid": "10.00"},
        headers=organizer_headers,
    )
    assert payment.status_code == 409


@pytest.mark.asyncio
async def test_event_enrollments_for_organizer(client: AsyncClient, auth_headers, organizer_headers, published_event):
    await buy(client, auth_headers, published_event.id, 2)
    response = await client.get(
        f"/api/v1/events/{published_event.id}/enrollments", headers=organizer_headers
    )
    assert response.status_code == 200
    assert [b["quantity"] for b in response.json()] == [2]

    denied = await client.get(f"/api/v1/events/{published_event.id}/enrollments", headers=auth_headers)
    assert denied.status_code == 403
