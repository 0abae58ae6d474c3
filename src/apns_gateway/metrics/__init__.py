"""Metrics module."""

from .registry import (
    record_batch_duration,
    record_connection_retry,
    record_error_response,
    record_feedback_tuples,
    record_notifications_sent,
    record_resend,
    record_session_cache_size,
    record_session_opened,
    record_unmatched_error_response,
    start_metrics_server,
)

__all__ = [
    "record_batch_duration",
    "record_connection_retry",
    "record_error_response",
    "record_feedback_tuples",
    "record_notifications_sent",
    "record_resend",
    "record_session_cache_size",
    "record_session_opened",
    "record_unmatched_error_response",
    "start_metrics_server",
]
