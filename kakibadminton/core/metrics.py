"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at the /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Session lifecycle
sessions_created = Counter(
    'sessions_created_total',
    'Sessions opened by hosts'
)

roster_changes = Counter(
    'roster_changes_total',
    'Roster membership changes',
    ['action']  # join, leave
)

settlements = Counter(
    'settlements_total',
    'Settlement attempts',
    ['result']  # settled, reapplied, rejected
)

payments_created = Counter(
    'payments_created_total',
    'Payment obligations created at settlement',
    ['status']  # pending, paid (host)
)

payments_marked_paid = Counter(
    'payments_marked_paid_total',
    'Payments marked as paid',
    ['source']  # claim, proof
)

# Overdue sweep
reminders = Counter(
    'payment_reminders_total',
    'Overdue payment reminders',
    ['result']  # sent, failed
)

sweep_latency = Histogram(
    'overdue_sweep_latency_seconds',
    'Overdue sweep duration',
    buckets=[0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0]
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_session_created():
    sessions_created.inc()


def record_roster_change(action: str):
    """Record roster change. Action: join, leave"""
    roster_changes.labels(action=action).inc()


def record_settlement(result: str):
    """Record settlement outcome. Result: settled, reapplied, rejected"""
    settlements.labels(result=result).inc()


def record_payment_created(status: str):
    payments_created.labels(status=status).inc()


def record_payment_paid(source: str):
    """Record a payment flipped to paid. Source: claim, proof"""
    payments_marked_paid.labels(source=source).inc()


def record_reminder(sent: bool):
    result = "sent" if sent else "failed"
    reminders.labels(result=result).inc()


def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
