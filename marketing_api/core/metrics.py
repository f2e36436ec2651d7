"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Admission metrics
admission_requests = Counter(
    'admission_requests_total',
    'Total admission decisions',
    ['pipeline', 'result']  # pipeline: waitlist, contact; result: admitted or failure code
)

admission_latency = Histogram(
    'admission_latency_seconds',
    'Admission pipeline latency',
    ['pipeline'],
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

# Database metrics
db_operations = Counter(
    'db_operations_total',
    'Total database operations',
    ['operation']  # read, write
)

# Throttle metrics
throttle_rejections = Counter(
    'throttle_rejections_total',
    'Requests rejected by the fixed-window request throttle',
    ['scope']  # general, signup
)

redis_connection_errors = Counter(
    'redis_connection_errors_total',
    'Redis connection errors'
)

# Notification metrics
welcome_emails = Counter(
    'welcome_emails_total',
    'Welcome emails by outcome',
    ['result']  # sent, skipped, unsupported
)


def metrics_endpoint() -> Response:
    """
    Prometheus metrics endpoint.

    Usage:
        @app.get("/metrics")
        def metrics():
            return metrics_endpoint()
    """
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_admission(pipeline: str, result: str):
    """Record admission decision. Result: admitted or a failure code."""
    admission_requests.labels(pipeline=pipeline, result=result).inc()


def record_db_operation(operation: str):
    """Record database operation. Operation: read, write"""
    db_operations.labels(operation=operation).inc()


def record_throttle_rejection(scope: str):
    throttle_rejections.labels(scope=scope).inc()


def record_welcome_email(result: str):
    welcome_emails.labels(result=result).inc()
