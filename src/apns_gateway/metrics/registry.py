"""Prometheus metrics registry for gateway traffic."""

import threading
from typing import Final

from prometheus_client import (  # type: ignore[import-untyped]
    Counter,
    Gauge,
    Histogram,
    start_http_server,
)

# Notification metrics
apns_notifications_sent_total: Final = Counter(  # type: ignore[assignment]
    "apns_notifications_sent_total",
    "Total notification frames written to the gateway",
    ["mode"],
)

apns_error_responses_total: Final = Counter(  # type: ignore[assignment]
    "apns_error_responses_total",
    "Total error responses received from the gateway",
    ["status"],
)

apns_notifications_resent_total: Final = Counter(  # type: ignore[assignment]
    "apns_notifications_resent_total",
    "Total notifications resent after an error response",
)

apns_unmatched_error_responses_total: Final = Counter(  # type: ignore[assignment]
    "apns_unmatched_error_responses_total",
    "Error responses whose identifier matched nothing in the batch",
)

apns_batch_send_seconds: Final = Histogram(  # type: ignore[assignment]
    "apns_batch_send_seconds",
    "Batch send duration in seconds, including the error-response wait",
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 7.5, 10.0, 30.0),
)

# Connection metrics
apns_sessions_opened_total: Final = Counter(  # type: ignore[assignment]
    "apns_sessions_opened_total",
    "Total TLS session open attempts",
    ["endpoint", "outcome"],
)

apns_connection_retries_total: Final = Counter(  # type: ignore[assignment]
    "apns_connection_retries_total",
    "Total retries after connect or I/O failures",
    ["endpoint", "reason"],
)

apns_session_cache_size: Final = Gauge(  # type: ignore[assignment]
    "apns_session_cache_size",
    "Current number of cached sessions",
)

# Feedback metrics
apns_feedback_tuples_total: Final = Counter(  # type: ignore[assignment]
    "apns_feedback_tuples_total",
    "Total stale-token tuples read from the feedback service",
)

_server_state = {"started": False}
_server_lock = threading.Lock()


def start_metrics_server(port: int = 9400) -> None:
    """Start Prometheus HTTP metrics server (idempotent)."""
    with _server_lock:
        if not _server_state["started"]:
            start_http_server(port)  # type: ignore[no-untyped-call]
            _server_state["started"] = True


def record_notifications_sent(mode: str, count: int = 1) -> None:
    """Record frames written ("single" or "batch")."""
    apns_notifications_sent_total.labels(mode=mode).inc(count)  # type: ignore[no-untyped-call]


def record_error_response(status: int) -> None:
    """Record an error response from the gateway."""
    apns_error_responses_total.labels(status=str(status)).inc()  # type: ignore[no-untyped-call]


def record_resend(count: int) -> None:
    """Record notifications queued for resend."""
    apns_notifications_resent_total.inc(count)  # type: ignore[no-untyped-call]


def record_unmatched_error_response() -> None:
    """Record an error response that matched no buffered notification."""
    apns_unmatched_error_responses_total.inc()  # type: ignore[no-untyped-call]


def record_batch_duration(duration_seconds: float) -> None:
    """Record how long one batch send took."""
    apns_batch_send_seconds.observe(duration_seconds)  # type: ignore[no-untyped-call]


def record_session_opened(endpoint: str, outcome: str) -> None:
    """Record a session open attempt ("success" or "failure")."""
    apns_sessions_opened_total.labels(endpoint=endpoint, outcome=outcome).inc()  # type: ignore[no-untyped-call]


def record_connection_retry(endpoint: str, reason: str) -> None:
    """Record a retry; reason is the exception class name."""
    apns_connection_retries_total.labels(endpoint=endpoint, reason=reason).inc()  # type: ignore[no-untyped-call]


def record_session_cache_size(size: int) -> None:
    """Record the number of cached sessions."""
    apns_session_cache_size.set(size)  # type: ignore[no-untyped-call]


def record_feedback_tuples(count: int) -> None:
    """Record tuples drained from the feedback service."""
    apns_feedback_tuples_total.inc(count)  # type: ignore[no-untyped-call]
