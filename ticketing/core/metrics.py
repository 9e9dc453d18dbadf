"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at the /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Checkout metrics
checkout_attempts = Counter(
    'checkout_attempts_total',
    'Total checkout attempts',
    ['outcome']  # confirmed, replayed, insufficient_capacity, not_on_sale, error
)

checkout_latency = Histogram(
    'checkout_latency_seconds',
    'Checkout request latency',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5]
)

# Voting metrics
vote_attempts = Counter(
    'vote_attempts_total',
    'Total vote attempts',
    ['outcome']  # recorded, already_voted, ineligible
)

# Document metrics
documents_rendered = Counter(
    'documents_rendered_total',
    'PDF documents rendered',
    ['kind']  # invoice, event_sheet
)

# Store metrics
store_operations = Counter(
    'store_operations_total',
    'Store operations by name and result',
    ['operation', 'result']  # ok, timeout, error
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)


def metrics_endpoint() -> Response:
    """Prometheus scrape endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_checkout(outcome: str):
    checkout_attempts.labels(outcome=outcome).inc()


def record_vote(outcome: str):
    vote_attempts.labels(outcome=outcome).inc()


def record_document(kind: str):
    documents_rendered.labels(kind=kind).inc()


def record_store_operation(operation: str, result: str):
    store_operations.labels(operation=operation, result=result).inc()


def record_cache_operation(operation: str, hit: bool):
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
