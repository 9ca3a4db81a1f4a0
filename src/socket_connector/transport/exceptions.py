"""Exception types for the socket-connector transport layer.

Transport failures never escape the ConnectionAttemptManager; these types are
used to carry code/reason pairs between the transport, the decoder and the
manager, and to reject misuse of the manager itself.
"""

from __future__ import annotations

from socket_connector.const import STATUS_GENERIC_ERROR


class SocketConnectorError(Exception):
    """Base exception for all socket-connector errors."""


class TransportError(SocketConnectorError):
    """Socket-level failure (refused, reset, unreachable, name resolution...).

    Attributes:
        reason: Human-readable failure description
        code: OS errno when available, otherwise STATUS_GENERIC_ERROR

    """

    def __init__(self, reason: str, code: int = STATUS_GENERIC_ERROR) -> None:
        self.reason: str = reason
        self.code: int = code
        super().__init__(f"Transport error {code}: {reason}")

    @classmethod
    def from_os_error(cls, error: OSError) -> TransportError:
        """Capture code and message from an OSError (incl. socket.gaierror)."""
        code = error.errno if isinstance(error.errno, int) else STATUS_GENERIC_ERROR
        reason = error.strerror or str(error) or type(error).__name__
        return cls(reason, code)

    @classmethod
    def from_exception(cls, error: Exception) -> TransportError:
        """Capture any connect/IO failure; non-OSError values carry no errno.

        Resolution can fail without an OSError, e.g. a host name the IDNA
        codec rejects raises UnicodeError and an embedded NUL raises ValueError.
        """
        if isinstance(error, OSError):
            return cls.from_os_error(error)
        return cls(str(error) or type(error).__name__)


class ResponseDecodeError(SocketConnectorError):
    """Response bytes cannot be decoded with the configured encoding.

    Attributes:
        reason: Specific failure reason
        encoding: Codec that was used
        data_preview: First 16 bytes of the response

    """

    def __init__(self, reason: str, encoding: str, data: bytes = b"") -> None:
        self.reason: str = reason
        self.encoding: str = encoding
        # Only keep a prefix so large responses don't end up in tracebacks
        self.data_preview: bytes = data[:16] if data else b""
        super().__init__(f"Response decode failed ({encoding}): {reason}")


class RequestInProgressError(SocketConnectorError):
    """start() called while a previous logical request has no outcome yet.

    Attributes:
        state: Attempt state when the call was rejected

    """

    def __init__(self, state: str) -> None:
        self.state: str = state
        super().__init__(f"A request is already in progress (state: {state})")
