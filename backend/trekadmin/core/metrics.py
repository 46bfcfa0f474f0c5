"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Aggregate writes (create/update of a trek with its nested children)
trek_writes = Counter(
    'trek_writes_total',
    'Trek aggregate write attempts',
    ['operation', 'result']  # create/update, success/duplicate/invalid/conflict/error
)

trek_write_latency = Histogram(
    'trek_write_latency_seconds',
    'Trek aggregate write latency',
    ['operation'],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5]
)

# Batch lifecycle
batch_transitions = Counter(
    'batch_transitions_total',
    'Batch status transitions',
    ['transition']  # stop, resume, complete, deactivate, delete
)

sweep_runs = Counter(
    'sweep_runs_total',
    'Completion sweep executions',
    ['result']  # success, error
)

bookings_completed = Counter(
    'bookings_completed_total',
    'Bookings moved to completed',
    ['source']  # sweep, batch
)

# Real-time fan-out
notifications = Counter(
    'notifications_total',
    'Admin notification publish attempts',
    ['result']  # published, dropped, failed
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint, mounted at /metrics by the app."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_trek_write(operation: str, result: str):
    trek_writes.labels(operation=operation, result=result).inc()


def record_batch_transition(transition: str, count: int = 1):
    batch_transitions.labels(transition=transition).inc(count)


def record_bookings_completed(source: str, count: int):
    if count:
        bookings_completed.labels(source=source).inc(count)


def record_notification(result: str):
    notifications.labels(result=result).inc()


def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
