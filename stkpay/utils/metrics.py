"""
Prometheus metrics for observability
"""

import re
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from prometheus_client.core import CollectorRegistry

# Create a custom registry to avoid conflicts
metrics_registry = CollectorRegistry()

# HTTP request metrics
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["path", "method", "status"],
    registry=metrics_registry,
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["path", "method"],
    registry=metrics_registry,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# Payment metrics
payment_initiations_total = Counter(
    "payment_initiations_total",
    "Total push-payment initiations",
    ["outcome"],  # accepted, rejected, gateway_unavailable, invalid, store_error
    registry=metrics_registry,
)

# Webhook metrics
gateway_webhooks_received_total = Counter(
    "gateway_webhooks_received_total",
    "Total gateway webhook requests received",
    registry=metrics_registry,
)

gateway_webhooks_processed_total = Counter(
    "gateway_webhooks_processed_total",
    "Total gateway webhook requests processed",
    ["outcome"],  # updated, already_terminal, not_found, ignored_malformed, ignored_unknown_event, error
    registry=metrics_registry,
)


def record_http_request(
    path: str,
    method: str,
    status_code: int,
    duration_seconds: float,
) -> None:
    """
    Record HTTP request metrics.

    Args:
        path: Request path (normalized)
        method: HTTP method
        status_code: Response status code
        duration_seconds: Request duration in seconds
    """
    normalized_path = _normalize_path(path)

    http_requests_total.labels(
        path=normalized_path,
        method=method.upper(),
        status=str(status_code),
    ).inc()

    http_request_duration_seconds.labels(
        path=normalized_path,
        method=method.upper(),
    ).observe(duration_seconds)


def record_payment_initiation(outcome: str) -> None:
    payment_initiations_total.labels(outcome=outcome).inc()


def record_webhook_received() -> None:
    """Record webhook received"""
    gateway_webhooks_received_total.inc()


def record_webhook_processed(outcome: str) -> None:
    gateway_webhooks_processed_total.labels(outcome=outcome).inc()


def _normalize_path(path: str) -> str:
    """
    Normalize path for metrics (transaction ids become a placeholder).

    Examples:
        /api/pay -> /api/pay
        /api/status/TXN123 -> /api/status/{id}
    """
    return re.sub(r'^(.*/status)/[^/]+$', r'\1/{id}', path)


def get_metrics_output() -> bytes:
    """Get Prometheus metrics output"""
    return generate_latest(metrics_registry)
