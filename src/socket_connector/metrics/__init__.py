"""Metrics module."""

from .registry import (
    record_attempt,
    record_attempt_state,
    record_bytes_received,
    record_bytes_sent,
    record_outcome,
    record_request_duration,
    record_retry,
    record_transport_error,
    start_metrics_server,
)

__all__ = [
    "record_attempt",
    "record_attempt_state",
    "record_bytes_received",
    "record_bytes_sent",
    "record_outcome",
    "record_request_duration",
    "record_retry",
    "record_transport_error",
    "start_metrics_server",
]
