"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# RSVP metrics
rsvp_attempts = Counter(
    'rsvp_attempts_total',
    'Total RSVP attempts',
    ['outcome']  # created, rejected, conflict, error
)

rsvp_latency = Histogram(
    'rsvp_latency_seconds',
    'RSVP creation latency',
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5]
)

rsvp_cancellations = Counter(
    'rsvp_cancellations_total',
    'RSVPs cancelled by attendees'
)

capacity_retries = Counter(
    'rsvp_capacity_retries_total',
    'Capacity re-checks caused by a concurrent RSVP on the same event'
)

# Application metrics
application_submissions = Counter(
    'application_submissions_total',
    'Gig application submissions',
    ['outcome']  # submitted, rejected
)

application_transitions = Counter(
    'application_status_transitions_total',
    'Application status changes made by gig creators',
    ['from_status', 'to_status']
)

# Side effects
notification_failures = Counter(
    'notification_failures_total',
    'Notifications dropped because the insert failed',
    ['type']
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)


def metrics_endpoint() -> Response:
    """Prometheus metrics exposition."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_rsvp_attempt(outcome: str):
    """Outcome: created, rejected, conflict, error"""
    rsvp_attempts.labels(outcome=outcome).inc()


def record_application_submission(submitted: bool):
    application_submissions.labels(outcome="submitted" if submitted else "rejected").inc()


def record_transition(from_status: str, to_status: str):
    application_transitions.labels(from_status=from_status, to_status=to_status).inc()


def record_notification_failure(notification_type: str):
    notification_failures.labels(type=notification_type).inc()


def record_cache_operation(operation: str, hit: bool):
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
