"""Core dataclasses for the socket-connector transport layer.

Request configuration, manager settings, transport events and the tagged
Outcome variant delivered once per logical request.
"""

from __future__ import annotations

import codecs
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from socket_connector.const import (
    DEFAULT_MAX_READ_SIZE,
    DEFAULT_MAX_WRITE_SIZE,
    DEFAULT_RETRY_DELAY_SECONDS,
    DEFAULT_TIMEOUT_SECONDS,
    STATUS_OK,
    STATUS_TIMEOUT,
)

_MAX_PORT = 65535


@dataclass(frozen=True)
class AttemptConfig:
    """Parameters of one logical request.

    Attributes:
        host: Target host name or address
        port: Target TCP port (0-65535)
        payload: Bytes written once per attempt (may be empty)
        max_retries: Re-attempts allowed after connection errors

    """

    host: str
    port: int
    payload: bytes = b""
    max_retries: int = 0

    def __post_init__(self) -> None:
        if not self.host:
            msg = "host must not be empty"
            raise ValueError(msg)
        if isinstance(self.port, bool) or not isinstance(self.port, int) or not 0 <= self.port <= _MAX_PORT:
            msg = f"port must be an integer in 0-{_MAX_PORT}, got {self.port!r}"
            raise ValueError(msg)
        if not isinstance(self.payload, (bytes, bytearray, memoryview)):
            msg = f"payload must be bytes, got {type(self.payload).__name__}"
            raise TypeError(msg)
        if isinstance(self.max_retries, bool) or not isinstance(self.max_retries, int) or self.max_retries < 0:
            msg = f"max_retries must be a non-negative integer, got {self.max_retries!r}"
            raise ValueError(msg)
        object.__setattr__(self, "payload", bytes(self.payload))

    @property
    def endpoint(self) -> str:
        return f"{self.host}:{self.port}"


@dataclass(frozen=True)
class ManagerSettings:
    """Tunables of the ConnectionAttemptManager.

    Attributes:
        timeout_seconds: Inactivity guard interval
        retry_delay_seconds: Delay before re-opening after a retryable error
        response_encoding: Codec used to decode the response (None keeps bytes only)
        strict_decoding: Surface decode failures as errors instead of empty-text successes
        max_read_size: Bytes requested per socket read
        max_write_size: Largest chunk handed to the socket per write

    """

    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    retry_delay_seconds: float = DEFAULT_RETRY_DELAY_SECONDS
    response_encoding: str | None = None
    strict_decoding: bool = True
    max_read_size: int = DEFAULT_MAX_READ_SIZE
    max_write_size: int = DEFAULT_MAX_WRITE_SIZE

    def __post_init__(self) -> None:
        if self.timeout_seconds <= 0:
            msg = f"timeout_seconds must be positive, got {self.timeout_seconds}"
            raise ValueError(msg)
        if self.retry_delay_seconds < 0:
            msg = f"retry_delay_seconds must not be negative, got {self.retry_delay_seconds}"
            raise ValueError(msg)
        if self.max_read_size <= 0 or self.max_write_size <= 0:
            msg = "max_read_size and max_write_size must be positive"
            raise ValueError(msg)
        if self.response_encoding is not None:
            try:
                codecs.lookup(self.response_encoding)
            except LookupError as e:
                msg = f"Unknown response encoding: {self.response_encoding!r}"
                raise ValueError(msg) from e

    @classmethod
    def from_env(cls) -> ManagerSettings:
        """Build settings from the SOCKET_CONNECTOR_* environment variables."""
        from socket_connector.const import (  # noqa: PLC0415
            SOCKET_CONNECTOR_ENCODING,
            SOCKET_CONNECTOR_READ_SIZE,
            SOCKET_CONNECTOR_RETRY_DELAY,
            SOCKET_CONNECTOR_STRICT_DECODING,
            SOCKET_CONNECTOR_TIMEOUT,
        )

        return cls(
            timeout_seconds=SOCKET_CONNECTOR_TIMEOUT,
            retry_delay_seconds=SOCKET_CONNECTOR_RETRY_DELAY,
            response_encoding=SOCKET_CONNECTOR_ENCODING,
            strict_decoding=SOCKET_CONNECTOR_STRICT_DECODING,
            max_read_size=SOCKET_CONNECTOR_READ_SIZE,
        )


class AttemptState(Enum):
    """Lifecycle state of the manager's current logical request."""

    IDLE = "idle"
    CONNECTING = "connecting"
    OPEN = "open"
    RETRY_WAIT = "retry_wait"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"

    @property
    def is_terminal(self) -> bool:
        return self in (AttemptState.SUCCEEDED, AttemptState.FAILED, AttemptState.TIMED_OUT)


class TransportEventKind(Enum):
    """Notifications a transport emits for its attempt."""

    OPENED = "opened"
    WRITABLE = "writable"
    READABLE = "readable"
    END = "end"
    ERROR = "error"


@dataclass(frozen=True)
class TransportEvent:
    """One notification from a transport.

    ``code`` and ``message`` are only meaningful for ERROR events.
    """

    kind: TransportEventKind
    code: int = 0
    message: str = ""


EventHandler = Callable[[TransportEvent], None]


class Transport(Protocol):
    """Byte-stream transport driven by the manager."""

    def open(self) -> None: ...

    def write(self, data: bytes) -> int: ...

    def read_available(self) -> bytes: ...

    def close(self) -> None: ...


class TransportFactory(Protocol):
    def __call__(
        self,
        host: str,
        port: int,
        on_event: EventHandler,
        settings: ManagerSettings,
    ) -> Transport: ...


class ResponseBuffer:
    """Accumulates response bytes for one attempt, in arrival order."""

    def __init__(self) -> None:
        self._chunks = bytearray()

    def append(self, data: bytes) -> None:
        self._chunks.extend(data)

    def clear(self) -> None:
        self._chunks.clear()

    def getvalue(self) -> bytes:
        return bytes(self._chunks)

    def __len__(self) -> int:
        return len(self._chunks)


@dataclass(frozen=True)
class Success:
    """Peer closed the stream; ``data`` is everything it sent."""

    data: bytes
    text: str | None = None

    @property
    def status_code(self) -> int:
        return STATUS_OK

    @property
    def status_message(self) -> str:
        return "OK"


@dataclass(frozen=True)
class Error:
    """Final (non-retried) failure with the captured code and message."""

    code: int
    message: str

    @property
    def status_code(self) -> int:
        return self.code

    @property
    def status_message(self) -> str:
        return self.message


@dataclass(frozen=True)
class Timeout:
    """No transport activity within the guard interval."""

    @property
    def status_code(self) -> int:
        return STATUS_TIMEOUT

    @property
    def status_message(self) -> str:
        return "TimeOut"


Outcome = Success | Error | Timeout
