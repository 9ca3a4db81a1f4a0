"""Connection attempt lifecycle: open, write, read to end-of-stream, retry or time out.

This module implements the ConnectionAttemptManager, the state machine that
drives one logical request across one or more socket attempts and reports
exactly one Outcome to the caller's observer.
"""

from __future__ import annotations

import asyncio
import contextvars
import functools
import logging

from socket_connector.const import STATUS_DECODE_ERROR
from socket_connector.correlation import new_request_context
from socket_connector.metrics import registry
from socket_connector.transport.exceptions import (
    RequestInProgressError,
    ResponseDecodeError,
    TransportError,
)
from socket_connector.transport.observer import (
    ConnectionObserver,
    OutcomeObserver,
    OutcomeSink,
    dispatch_outcome,
)
from socket_connector.transport.retry_policy import RetryPolicy
from socket_connector.transport.socket_abstraction import create_socket_transport
from socket_connector.transport.timeout_guard import TimeoutGuard
from socket_connector.transport.types import (
    AttemptConfig,
    AttemptState,
    Error,
    ManagerSettings,
    Outcome,
    ResponseBuffer,
    Success,
    Timeout,
    Transport,
    TransportEvent,
    TransportEventKind,
    TransportFactory,
)

logger = logging.getLogger(__name__)


def decode_response(data: bytes, encoding: str) -> str:
    """Decode response bytes, raising ResponseDecodeError on failure."""
    try:
        return data.decode(encoding)
    except UnicodeDecodeError as e:
        raise ResponseDecodeError(e.reason, encoding, data) from e


class ConnectionAttemptManager:
    """Drives one logical request at a time over a byte-stream transport.

    **Events**: the transport reports OPENED, WRITABLE, READABLE, END and
    ERROR in any order. Each event disarms the timeout guard, is handled, and
    re-arms the guard while the attempt is still live, so the guard measures
    inactivity rather than total duration.

    **Outcomes**: END delivers Success with every byte read during the
    attempt. ERROR either schedules a re-attempt after the retry delay (while
    retries remain) or delivers Error. A guard fire delivers Timeout and is
    never retried. Exactly one outcome is delivered per ``start()``.

    **Single context**: all work runs on one event loop. Every transport is
    bound to an attempt number; events carrying a number other than the live
    attempt are dropped, so nothing from a closed attempt leaks into its retry.
    """

    def __init__(
        self,
        settings: ManagerSettings | None = None,
        *,
        loop: asyncio.AbstractEventLoop | None = None,
        transport_factory: TransportFactory | None = None,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        """Initialize the manager.

        Args:
            settings: Timeouts, retry delay and decoding options
            loop: Event loop to run on (default: the running loop at start())
            transport_factory: Builds the transport for each attempt
                (default: SocketTransport over asyncio streams)
            retry_policy: Retry decision (default: fixed delay from settings)

        """
        self.settings: ManagerSettings = settings or ManagerSettings()
        self.retry_policy: RetryPolicy = retry_policy or RetryPolicy(self.settings.retry_delay_seconds)
        self.state: AttemptState = AttemptState.IDLE
        self.retries_remaining: int = 0
        self.attempts_made: int = 0
        self.correlation_id: str | None = None

        self._loop: asyncio.AbstractEventLoop | None = loop
        self._transport_factory: TransportFactory | None = transport_factory
        self._config: AttemptConfig | None = None
        self._observer: ConnectionObserver | OutcomeSink | None = None
        self._context: contextvars.Context | None = None
        self._guard: TimeoutGuard | None = None
        self._transport: Transport | None = None
        self._pending_open: asyncio.Handle | None = None
        self._buffer: ResponseBuffer = ResponseBuffer()
        self._write_offset: int = 0
        self._live_attempt: int = 0  # 0 while no attempt is open
        self._started_at: float = 0.0

    @property
    def in_progress(self) -> bool:
        return self._observer is not None

    @property
    def endpoint(self) -> str:
        return self._config.endpoint if self._config else "unknown"

    def start(self, config: AttemptConfig, observer: ConnectionObserver | OutcomeSink) -> None:
        """Begin a logical request; the outcome arrives later through ``observer``.

        Raises:
            RequestInProgressError: If the previous request has no outcome yet
            RuntimeError: If no loop was given and none is running

        """
        if self.in_progress:
            raise RequestInProgressError(self.state.value)

        loop = self._loop or asyncio.get_running_loop()
        self._context, self.correlation_id = new_request_context()
        self._config = config
        self._observer = observer
        self.retries_remaining = config.max_retries
        self.attempts_made = 0
        self._started_at = loop.time()
        self._guard = TimeoutGuard(loop, self._on_timeout, self.settings.timeout_seconds, context=self._context)
        self._set_state(AttemptState.CONNECTING)

        self._context.run(
            logger.info,
            "Starting request to %s (%d payload bytes, max_retries=%d)",
            config.endpoint,
            len(config.payload),
            config.max_retries,
            extra={"endpoint": config.endpoint, "max_retries": config.max_retries},
        )
        # Deferred so that no outcome can ever be delivered from inside start()
        self._pending_open = loop.call_soon(self._open_attempt, context=self._context)

    def abort(self) -> None:
        """Drop the current request without notifying the observer."""
        if not self.in_progress:
            return
        logger.info("Aborting request to %s", self.endpoint, extra={"endpoint": self.endpoint})
        self._cancel_pending_open()
        self._close_attempt()
        self._observer = None
        self._set_state(AttemptState.IDLE)

    def _open_attempt(self) -> None:
        self._pending_open = None
        if not self.in_progress or self._config is None or self._guard is None:
            return

        self.attempts_made += 1
        attempt = self.attempts_made
        self._live_attempt = attempt
        self._buffer.clear()
        self._write_offset = 0
        self._set_state(AttemptState.CONNECTING)
        registry.record_attempt(self.endpoint)
        logger.debug(
            "Opening attempt %d to %s",
            attempt,
            self.endpoint,
            extra={"endpoint": self.endpoint, "attempt": attempt, "retries_remaining": self.retries_remaining},
        )

        self._guard.arm()
        try:
            self._transport = self._create_transport(attempt)
            self._transport.open()
        except TransportError as e:
            self._handle_error(e.code, e.reason)
        except OSError as e:
            captured = TransportError.from_os_error(e)
            self._handle_error(captured.code, captured.reason)

    def _create_transport(self, attempt: int) -> Transport:
        assert self._config is not None
        on_event = functools.partial(self._on_transport_event, attempt)
        if self._transport_factory is not None:
            return self._transport_factory(self._config.host, self._config.port, on_event, self.settings)
        return create_socket_transport(
            self._config.host,
            self._config.port,
            on_event,
            self.settings,
            loop=self._loop,
            context=self._context,
        )

    def _close_attempt(self) -> None:
        """Release transport and guard; safe to call repeatedly."""
        self._live_attempt = 0
        if self._guard is not None:
            self._guard.disarm()
        transport, self._transport = self._transport, None
        if transport is not None:
            transport.close()

    def _on_transport_event(self, attempt: int, event: TransportEvent) -> None:
        if attempt != self._live_attempt or not self.in_progress:
            logger.debug(
                "Dropping %s event from stale attempt %d",
                event.kind.value,
                attempt,
                extra={"attempt": attempt, "live_attempt": self._live_attempt},
            )
            return

        assert self._guard is not None
        self._guard.disarm()

        match event.kind:
            case TransportEventKind.OPENED:
                self._set_state(AttemptState.OPEN)
            case TransportEventKind.WRITABLE:
                self._handle_writable()
            case TransportEventKind.READABLE:
                self._handle_readable()
            case TransportEventKind.END:
                self._handle_end()
            case TransportEventKind.ERROR:
                self._handle_error(event.code, event.message)

        if attempt == self._live_attempt and self.in_progress:
            self._guard.arm()

    def _handle_writable(self) -> None:
        assert self._config is not None and self._transport is not None
        if self.state is AttemptState.CONNECTING:
            self._set_state(AttemptState.OPEN)

        payload = self._config.payload
        if self._write_offset >= len(payload):
            return
        try:
            written = self._transport.write(payload[self._write_offset :])
        except TransportError as e:
            self._handle_error(e.code, e.reason)
            return
        self._write_offset += written
        registry.record_bytes_sent(self.endpoint, written)
        if self._write_offset >= len(payload):
            logger.debug(
                "Payload fully written (%d bytes)",
                len(payload),
                extra={"endpoint": self.endpoint, "bytes": len(payload)},
            )

    def _handle_readable(self) -> None:
        assert self._transport is not None
        data = self._transport.read_available()
        if data:
            self._buffer.append(data)
            registry.record_bytes_received(self.endpoint, len(data))

    def _handle_end(self) -> None:
        assert self._transport is not None
        # Pick up anything the transport buffered without a READABLE yet
        self._handle_readable()
        data = self._buffer.getvalue()
        self._close_attempt()
        self._finish(self._build_success(data))

    def _build_success(self, data: bytes) -> Outcome:
        encoding = self.settings.response_encoding
        if encoding is None:
            return Success(data)
        try:
            return Success(data, decode_response(data, encoding))
        except ResponseDecodeError as e:
            if self.settings.strict_decoding:
                logger.warning(
                    "Response from %s is not valid %s",
                    self.endpoint,
                    encoding,
                    extra={"endpoint": self.endpoint, "error": e.reason, "preview": e.data_preview.hex()},
                )
                return Error(STATUS_DECODE_ERROR, str(e))
            logger.warning(
                "Response from %s is not valid %s, reporting empty text",
                self.endpoint,
                encoding,
                extra={"endpoint": self.endpoint, "error": e.reason},
            )
            return Success(data, "")

    def _handle_error(self, code: int, message: str) -> None:
        self._close_attempt()
        registry.record_transport_error(self.endpoint, code)

        if self.retry_policy.is_retryable(self.retries_remaining):
            decision = self.retry_policy.apply(self.retries_remaining)
            self.retries_remaining = decision.retries_remaining
            self._set_state(AttemptState.RETRY_WAIT)
            registry.record_retry(self.endpoint)
            logger.warning(
                "Attempt %d to %s failed (%d: %s), retrying in %.1fs (%d retries left)",
                self.attempts_made,
                self.endpoint,
                code,
                message,
                decision.delay_seconds,
                decision.retries_remaining,
                extra={"endpoint": self.endpoint, "code": code, "retries_remaining": decision.retries_remaining},
            )
            loop = self._loop or asyncio.get_running_loop()
            self._pending_open = loop.call_later(decision.delay_seconds, self._open_attempt, context=self._context)
            return

        logger.error(
            "Request to %s failed after %d attempt(s): %d %s",
            self.endpoint,
            self.attempts_made,
            code,
            message,
            extra={"endpoint": self.endpoint, "code": code, "attempts": self.attempts_made},
        )
        self._finish(Error(code, message))

    def _on_timeout(self) -> None:
        if not self.in_progress or self._live_attempt == 0:
            return
        logger.warning(
            "No activity from %s for %.1fs, giving up",
            self.endpoint,
            self.settings.timeout_seconds,
            extra={"endpoint": self.endpoint, "attempt": self._live_attempt},
        )
        self._close_attempt()
        self._finish(Timeout())

    def _finish(self, outcome: Outcome) -> None:
        observer, self._observer = self._observer, None
        if observer is None:
            return
        self._cancel_pending_open()
        self._close_attempt()

        if isinstance(outcome, Success):
            self._set_state(AttemptState.SUCCEEDED)
            label = "success"
        elif isinstance(outcome, Timeout):
            self._set_state(AttemptState.TIMED_OUT)
            label = "timeout"
        else:
            self._set_state(AttemptState.FAILED)
            label = "error"

        loop = self._loop or asyncio.get_running_loop()
        registry.record_outcome(self.endpoint, label)
        registry.record_request_duration(self.endpoint, loop.time() - self._started_at)
        logger.info(
            "Request to %s finished: %s (%d %s)",
            self.endpoint,
            label,
            outcome.status_code,
            outcome.status_message,
            extra={"endpoint": self.endpoint, "outcome": label, "attempts": self.attempts_made},
        )

        try:
            dispatch_outcome(observer, outcome)
        except Exception:
            # Observer failures must not bubble into the transport's task
            logger.exception("Observer raised while handling %s outcome", label)

    def _cancel_pending_open(self) -> None:
        if self._pending_open is not None:
            self._pending_open.cancel()
            self._pending_open = None

    def _set_state(self, state: AttemptState) -> None:
        if state is self.state:
            return
        self.state = state
        if self._config is not None:
            registry.record_attempt_state(self.endpoint, state.value)

    def __repr__(self) -> str:
        return f"ConnectionAttemptManager({self.endpoint}, {self.state.value})"


async def send_request(
    host: str,
    port: int,
    payload: bytes = b"",
    max_retries: int = 0,
    *,
    settings: ManagerSettings | None = None,
    transport_factory: TransportFactory | None = None,
) -> Outcome:
    """Run one logical request to completion and return its Outcome.

    Cancelling the awaiting task aborts the request and closes its socket.
    """
    loop = asyncio.get_running_loop()
    manager = ConnectionAttemptManager(settings, loop=loop, transport_factory=transport_factory)
    observer = OutcomeObserver(loop)
    manager.start(AttemptConfig(host, port, payload, max_retries), observer)
    try:
        return await observer.wait()
    finally:
        if not observer.done:
            manager.abort()
