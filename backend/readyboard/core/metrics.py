"""Prometheus metrics for the ready board.

Tracks HTTP traffic and the outcome of every notification channel.
"""

from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    Info,
    CollectorRegistry,
    generate_latest,
    CONTENT_TYPE_LATEST,
    multiprocess,
)
import os

# Create a custom registry for our metrics
REGISTRY = CollectorRegistry()

# Check if running in multiprocess mode (e.g., with gunicorn)
if "prometheus_multiproc_dir" in os.environ:
    multiprocess.MultiProcessCollector(REGISTRY)


# ============================================
# Application Info
# ============================================
APP_INFO = Info(
    "readyboard_app",
    "Application information",
    registry=REGISTRY,
)


# ============================================
# HTTP Request Metrics
# ============================================
HTTP_REQUESTS_TOTAL = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
    registry=REGISTRY,
)

HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
    registry=REGISTRY,
)

HTTP_REQUESTS_IN_PROGRESS = Gauge(
    "http_requests_in_progress",
    "Number of HTTP requests currently in progress",
    ["method", "endpoint"],
    registry=REGISTRY,
)


# ============================================
# Notification Channel Metrics
# ============================================
SMS_ATTEMPTS_TOTAL = Counter(
    "sms_attempts_total",
    "SMS gateway attempts by delivery mode and outcome",
    ["mode", "outcome"],
    registry=REGISTRY,
)

PUSH_DELIVERIES_TOTAL = Counter(
    "push_deliveries_total",
    "Push deliveries by audience and outcome",
    ["audience", "outcome"],
    registry=REGISTRY,
)

PUSH_SUBSCRIPTIONS_PRUNED_TOTAL = Counter(
    "push_subscriptions_pruned_total",
    "Push subscriptions removed after the push service reported them gone",
    registry=REGISTRY,
)

PUSH_FANOUT_DURATION_SECONDS = Histogram(
    "push_fanout_duration_seconds",
    "Duration of one push fan-out across an audience",
    ["audience"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
    registry=REGISTRY,
)

READY_ALERTS_TOTAL = Counter(
    "ready_alerts_total",
    "Mark-ready orchestrations by SMS outcome",
    ["sms_outcome"],
    registry=REGISTRY,
)

DETECTOR_SIGNALS_TOTAL = Counter(
    "detector_signals_total",
    "Signals emitted by the board change detector",
    ["kind"],
    registry=REGISTRY,
)


def get_metrics() -> bytes:
    """Generate latest metrics in Prometheus format."""
    return generate_latest(REGISTRY)


def get_content_type() -> str:
    """Get the content type for Prometheus metrics."""
    return CONTENT_TYPE_LATEST


def set_app_info(version: str, environment: str) -> None:
    """Set application info metrics.

    Args:
        version: Application version
        environment: Deployment environment
    """
    APP_INFO.info({
        "version": version,
        "environment": environment,
    })
