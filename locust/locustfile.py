"""
Locust Load Test Suite

Run scenarios:
  locust -f locustfile.py --tags concurrency  # Oversell check on a 10-ticket event
  locust -f locustfile.py --tags throughput   # Cached listing and detail reads
  locust -f locustfile.py --tags edge         # Bad input handling
  locust -f locustfile.py                     # All tests

Tokens are minted with the shared SECRET_KEY, so run with the same
environment as the API. LOAD_ORGANIZER_ID must name a profile with the
`admin` role; it creates and publishes the concurrency event.
"""

import os
import random
import uuid
from datetime import datetime, timezone, timedelta

from locust import HttpUser, task, between, tag, events

from ticketing.core.security import create_access_token

ORGANIZER_ID = os.environ.get("LOAD_ORGANIZER_ID", "load-organizer")
CONCURRENCY_CAPACITY = 10

# Shared state
EVENT_IDS = []
CONCURRENCY_EVENT_ID = None


def auth_headers(user_id: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id, email=f'{user_id}@load.test')}"}


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    """Create and publish the event every ConcurrencyUser fights over."""
    global CONCURRENCY_EVENT_ID
    if not environment.host:
        return

    from locust.clients import HttpSession

    session = HttpSession(base_url=environment.host, request_event=environment.events.request, user=None)
    headers = auth_headers(ORGANIZER_ID)
    resp = session.post(
        "/api/v1/events",
        json={
            "name": f"Concurrency Test {uuid.uuid4().hex[:6]}",
            "capacity": CONCURRENCY_CAPACITY,
            "event_datetime": (datetime.now(timezone.utc) + timedelta(days=30)).isoformat(),
            "ticket_price": "25.00",
        },
        headers=headers,
    )
    if resp.status_code != 201:
        print(f"SETUP FAILED: could not create event ({resp.status_code}); is {ORGANIZER_ID} an admin?")
        return

    event_id = resp.json()["id"]
    session.patch(f"/api/v1/events/{event_id}/status", json={"status": "published"}, headers=headers)
    CONCURRENCY_EVENT_ID = event_id
    print(f"\nCreated event {event_id} with {CONCURRENCY_CAPACITY} tickets\n")


class ConcurrencyUser(HttpUser):
    """
    Concurrency: many buyers, 10 tickets.

    Run: locust -f locustfile.py --tags concurrency -u 100 -r 50 --run-time 30s

    After the run, verify:
      SELECT SUM(quantity) FROM event_enrollments
      WHERE event_id = '<id>' AND payment_status <> 'refunded';
    Must be <= 10.
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        self.headers = auth_headers(f"load-{uuid.uuid4().hex[:10]}")

    @tag("concurrency")
    @task
    def buy_limited_tickets(self):
        if not CONCURRENCY_EVENT_ID:
            return

        headers = {**self.headers, "X-Idempotency-Key": uuid.uuid4().hex}
        with self.client.post(
            "/api/v1/enrollments",
            json={"event_id": CONCURRENCY_EVENT_ID, "quantity": 1},
            headers=headers,
            catch_response=True,
        ) as resp:
            if resp.status_code in (201, 409):
                resp.success()  # 409: sold out
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ThroughputUser(HttpUser):
    """
    Throughput: cache effectiveness on the published listing.

    Run with Redis, then again with REDIS_ENABLED=false, and compare
    requests/sec and P95/P99 latency.
    """
    wait_time = between(0.1, 0.5)

    @tag("throughput", "read")
    @task(10)
    def list_events_cached(self):
        resp = self.client.get("/api/v1/events", name="/api/v1/events [cached]")
        if resp.status_code == 200:
            for event in resp.json().get("events", []):
                if event["id"] not in EVENT_IDS:
                    EVENT_IDS.append(event["id"])

    @tag("throughput", "read")
    @task(3)
    def get_event_detail(self):
        if EVENT_IDS:
            self.client.get(f"/api/v1/events/{random.choice(EVENT_IDS)}", name="/api/v1/events/{id}")

    @tag("throughput")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    Edge cases: the API must answer bad input with proper error codes.

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s
    """
    wait_time = between(0.5, 1.5)

    def on_start(self):
        self.headers = auth_headers(f"edge-{uuid.uuid4().hex[:10]}")

    def expect(self, expected, method, url, **kwargs):
        with self.client.request(method, url, catch_response=True, **kwargs) as resp:
            if resp.status_code in expected:
                resp.success()
            else:
                resp.failure(f"Expected {expected}, got {resp.status_code}")

    @tag("edge")
    @task
    def unknown_event(self):
        self.expect((404,), "POST", "/api/v1/enrollments",
                    json={"event_id": "no-such-event", "quantity": 1}, headers=self.headers)

    @tag("edge")
    @task
    def zero_quantity(self):
        self.expect((400,), "POST", "/api/v1/enrollments",
                    json={"event_id": "no-such-event", "quantity": 0}, headers=self.headers)

    @tag("edge")
    @task
    def huge_quantity(self):
        self.expect((400,), "POST", "/api/v1/enrollments",
                    json={"event_id": "no-such-event", "quantity": 999999}, headers=self.headers)

    @tag("edge")
    @task
    def malformed_json(self):
        self.expect((400,), "POST", "/api/v1/enrollments", data="not json at all", headers=self.headers)

    @tag("edge")
    @task
    def missing_auth(self):
        self.expect((401,), "POST", "/api/v1/enrollments", json={"event_id": "x", "quantity": 1})

    @tag("edge")
    @task
    def bad_invoice_id(self):
        self.expect((400,), "GET", "/api/v1/invoices/0", headers=self.headers)
