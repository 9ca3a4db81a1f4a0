"""Prometheus metrics registry for socket-connector requests."""

import threading
from typing import Final

from prometheus_client import (  # type: ignore[import-untyped]
    Counter,
    Gauge,
    Histogram,
    start_http_server,
)

ATTEMPT_STATES: Final = (
    "idle",
    "connecting",
    "open",
    "retry_wait",
    "succeeded",
    "failed",
    "timed_out",
)

socket_connector_attempts_total: Final = Counter(  # type: ignore[assignment]
    "socket_connector_attempts_total",
    "Total connection attempts opened",
    ["endpoint"],
)

socket_connector_retries_total: Final = Counter(  # type: ignore[assignment]
    "socket_connector_retries_total",
    "Total retries scheduled after a transport error",
    ["endpoint"],
)

socket_connector_outcomes_total: Final = Counter(  # type: ignore[assignment]
    "socket_connector_outcomes_total",
    "Total logical request outcomes",
    ["endpoint", "outcome"],
)

socket_connector_transport_errors_total: Final = Counter(  # type: ignore[assignment]
    "socket_connector_transport_errors_total",
    "Total transport errors observed (retried or not)",
    ["endpoint", "code"],
)

socket_connector_bytes_sent_total: Final = Counter(  # type: ignore[assignment]
    "socket_connector_bytes_sent_total",
    "Total payload bytes handed to the transport",
    ["endpoint"],
)

socket_connector_bytes_received_total: Final = Counter(  # type: ignore[assignment]
    "socket_connector_bytes_received_total",
    "Total response bytes read from the transport",
    ["endpoint"],
)

socket_connector_request_duration_seconds: Final = Histogram(  # type: ignore[assignment]
    "socket_connector_request_duration_seconds",
    "Logical request duration in seconds, start to outcome",
    ["endpoint"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 3.0, 6.0, 10.0, 30.0),
)

socket_connector_attempt_state: Final = Gauge(  # type: ignore[assignment]
    "socket_connector_attempt_state",
    "Current attempt state (one-hot)",
    ["endpoint", "state"],
)

_server_state = {"started": False}
_server_lock = threading.Lock()


def start_metrics_server(port: int = 9400) -> None:
    """Start Prometheus HTTP metrics server (idempotent)."""
    with _server_lock:
        if not _server_state["started"]:
            start_http_server(port)  # type: ignore[no-untyped-call]
            _server_state["started"] = True


def record_attempt(endpoint: str) -> None:
    """Record a connection attempt."""
    socket_connector_attempts_total.labels(endpoint=endpoint).inc()  # type: ignore[no-untyped-call]


def record_retry(endpoint: str) -> None:
    """Record a scheduled retry."""
    socket_connector_retries_total.labels(endpoint=endpoint).inc()  # type: ignore[no-untyped-call]


def record_outcome(endpoint: str, outcome: str) -> None:
    """Record the outcome delivered for a logical request."""
    socket_connector_outcomes_total.labels(endpoint=endpoint, outcome=outcome).inc()  # type: ignore[no-untyped-call]


def record_transport_error(endpoint: str, code: int) -> None:
    """Record a transport error by code."""
    socket_connector_transport_errors_total.labels(endpoint=endpoint, code=str(code)).inc()  # type: ignore[no-untyped-call]


def record_bytes_sent(endpoint: str, count: int) -> None:
    socket_connector_bytes_sent_total.labels(endpoint=endpoint).inc(count)  # type: ignore[no-untyped-call]


def record_bytes_received(endpoint: str, count: int) -> None:
    socket_connector_bytes_received_total.labels(endpoint=endpoint).inc(count)  # type: ignore[no-untyped-call]


def record_request_duration(endpoint: str, duration_seconds: float) -> None:
    """Record how long a logical request took."""
    socket_connector_request_duration_seconds.labels(endpoint=endpoint).observe(duration_seconds)  # type: ignore[no-untyped-call]


def record_attempt_state(endpoint: str, state: str) -> None:
    """Record attempt state change."""
    # Set gauge to 1 for current state, 0 for all others
    for s in ATTEMPT_STATES:
        value = 1 if s == state else 0
        socket_connector_attempt_state.labels(endpoint=endpoint, state=s).set(value)  # type: ignore[no-untyped-call]
