"""Transport package - socket transport, timeout guard, retry policy and the attempt manager.

Public API:
- ConnectionAttemptManager / send_request
- AttemptConfig, ManagerSettings
- Outcome variants (Success, Error, Timeout)
- Observer helpers (ConnectionObserver, OutcomeObserver)
"""

from socket_connector.transport.connection_manager import (
    ConnectionAttemptManager,
    decode_response,
    send_request,
)
from socket_connector.transport.exceptions import (
    RequestInProgressError,
    ResponseDecodeError,
    SocketConnectorError,
    TransportError,
)
from socket_connector.transport.observer import ConnectionObserver, OutcomeObserver, OutcomeSink
from socket_connector.transport.retry_policy import RetryDecision, RetryPolicy
from socket_connector.transport.socket_abstraction import SocketTransport, create_socket_transport
from socket_connector.transport.timeout_guard import TimeoutGuard
from socket_connector.transport.types import (
    AttemptConfig,
    AttemptState,
    Error,
    ManagerSettings,
    Outcome,
    Success,
    Timeout,
    TransportEvent,
    TransportEventKind,
)

__all__ = [
    # Manager
    "ConnectionAttemptManager",
    "send_request",
    "decode_response",
    # Components
    "SocketTransport",
    "create_socket_transport",
    "TimeoutGuard",
    "RetryPolicy",
    "RetryDecision",
    # Dataclasses
    "AttemptConfig",
    "AttemptState",
    "ManagerSettings",
    "TransportEvent",
    "TransportEventKind",
    # Outcomes
    "Outcome",
    "Success",
    "Error",
    "Timeout",
    # Observers
    "ConnectionObserver",
    "OutcomeObserver",
    "OutcomeSink",
    # Exceptions
    "SocketConnectorError",
    "TransportError",
    "ResponseDecodeError",
    "RequestInProgressError",
]
