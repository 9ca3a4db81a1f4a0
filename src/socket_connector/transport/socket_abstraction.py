"""Asyncio TCP socket transport emitting readiness and termination events."""

from __future__ import annotations

import asyncio
import contextvars
import logging
import time

from socket_connector.const import DEFAULT_MAX_READ_SIZE, DEFAULT_MAX_WRITE_SIZE
from socket_connector.transport.exceptions import TransportError
from socket_connector.transport.types import (
    EventHandler,
    ManagerSettings,
    TransportEvent,
    TransportEventKind,
)

logger = logging.getLogger(__name__)

# IDNA rejections surface as UnicodeError, a ValueError subclass
_IO_ERRORS = (OSError, ValueError)


class SocketTransport:
    """Event-driven wrapper over an asyncio stream pair.

    Nothing here blocks the caller: ``open()`` starts a pump task which
    connects, then reports OPENED and WRITABLE, and afterwards READABLE for
    every chunk, END when the peer closes, or ERROR on socket failure.
    Events are delivered synchronously to ``on_event`` on the loop, in the
    order they happen. Once ``close()`` has been called no further events are
    delivered.
    """

    def __init__(
        self,
        host: str,
        port: int,
        on_event: EventHandler,
        *,
        loop: asyncio.AbstractEventLoop | None = None,
        max_read_size: int = DEFAULT_MAX_READ_SIZE,
        max_write_size: int = DEFAULT_MAX_WRITE_SIZE,
        context: contextvars.Context | None = None,
    ):
        """
        Initialize transport parameters.

        Args:
            host: Target host
            port: Target port
            on_event: Callback receiving TransportEvent notifications
            loop: Event loop to run on (default: the running loop at open())
            max_read_size: Maximum bytes to read in one operation
            max_write_size: Maximum bytes accepted by one write() call
            context: contextvars.Context the pump tasks run in
        """
        self.host = host
        self.port = port
        self.max_read_size = max_read_size
        self.max_write_size = max_write_size
        self.reader: asyncio.StreamReader | None = None
        self.writer: asyncio.StreamWriter | None = None
        self._on_event = on_event
        self._loop = loop
        self._context = context
        self._inbound = bytearray()
        self._pump_task: asyncio.Task[None] | None = None
        self._drain_task: asyncio.Task[None] | None = None
        self._closed = False

    def open(self) -> None:
        """Start connecting in the background."""
        if self._closed:
            msg = "transport already closed"
            raise TransportError(msg)
        if self._pump_task is not None:
            msg = "transport already opened"
            raise TransportError(msg)
        loop = self._loop or asyncio.get_running_loop()
        self._pump_task = loop.create_task(
            self._pump(),
            name=f"socket-transport-{self.host}:{self.port}",
            context=self._context,
        )

    async def _pump(self) -> None:
        start_time = time.perf_counter()
        logger.info(
            "Connecting to %s:%d",
            self.host,
            self.port,
            extra={"host": self.host, "port": self.port},
        )
        try:
            self.reader, self.writer = await asyncio.open_connection(self.host, self.port)
        except _IO_ERRORS as e:
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            logger.warning(
                "Connection to %s:%d failed after %.1fms: %s",
                self.host,
                self.port,
                elapsed_ms,
                e,
                extra={"host": self.host, "port": self.port, "elapsed_ms": elapsed_ms, "error": str(e)},
            )
            self._emit_error(e)
            return

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            "Connected to %s:%d in %.1fms",
            self.host,
            self.port,
            elapsed_ms,
            extra={"host": self.host, "port": self.port, "elapsed_ms": elapsed_ms},
        )
        self._emit(TransportEvent(TransportEventKind.OPENED))
        self._emit(TransportEvent(TransportEventKind.WRITABLE))

        try:
            while not self._closed:
                data = await self.reader.read(self.max_read_size)
                if not data:
                    logger.debug(
                        "End of stream from %s:%d",
                        self.host,
                        self.port,
                        extra={"host": self.host, "port": self.port},
                    )
                    self._emit(TransportEvent(TransportEventKind.END))
                    return
                logger.debug(
                    "Received %d bytes from %s:%d",
                    len(data),
                    self.host,
                    self.port,
                    extra={"bytes": len(data), "host": self.host, "port": self.port},
                )
                self._inbound.extend(data)
                self._emit(TransportEvent(TransportEventKind.READABLE))
        except _IO_ERRORS as e:
            logger.warning(
                "Receive from %s:%d failed: %s",
                self.host,
                self.port,
                e,
                extra={"host": self.host, "port": self.port, "error": str(e)},
            )
            self._emit_error(e)

    def write(self, data: bytes) -> int:
        """Queue up to ``max_write_size`` bytes; WRITABLE follows once they drain.

        Returns:
            Number of bytes accepted (0 when not connected or closed)

        Raises:
            TransportError: If the socket rejects the write
        """
        if self._closed or self.writer is None:
            logger.error(
                "Cannot send: not connected",
                extra={"host": self.host, "port": self.port},
            )
            return 0
        if self._drain_task is not None and not self._drain_task.done():
            # previous chunk still draining; caller retries on the next WRITABLE
            return 0

        chunk = bytes(data[: self.max_write_size])
        if not chunk:
            return 0
        try:
            self.writer.write(chunk)
        except _IO_ERRORS as e:
            raise TransportError.from_exception(e) from e

        logger.debug(
            "Sending %d bytes to %s:%d",
            len(chunk),
            self.host,
            self.port,
            extra={"bytes": len(chunk), "host": self.host, "port": self.port},
        )
        loop = self._loop or asyncio.get_running_loop()
        self._drain_task = loop.create_task(
            self._drain(),
            name=f"socket-transport-drain-{self.host}:{self.port}",
            context=self._context,
        )
        return len(chunk)

    async def _drain(self) -> None:
        if self.writer is None:
            return
        try:
            await self.writer.drain()
        except _IO_ERRORS as e:
            logger.warning(
                "Send to %s:%d failed: %s",
                self.host,
                self.port,
                e,
                extra={"host": self.host, "port": self.port, "error": str(e)},
            )
            self._emit_error(e)
            return
        self._drain_task = None
        self._emit(TransportEvent(TransportEventKind.WRITABLE))

    def read_available(self) -> bytes:
        """Return and clear everything received since the last call."""
        data = bytes(self._inbound)
        self._inbound.clear()
        return data

    def close(self) -> None:
        """Release the socket and stop delivering events (idempotent)."""
        if self._closed:
            return
        self._closed = True
        for task in (self._pump_task, self._drain_task):
            if task is not None and not task.done():
                task.cancel()
        if self.writer is not None:
            logger.debug(
                "Closing connection to %s:%d",
                self.host,
                self.port,
                extra={"host": self.host, "port": self.port},
            )
            try:
                self.writer.close()
            except (OSError, RuntimeError) as e:
                logger.warning(
                    "Error closing connection: %s",
                    e,
                    extra={
                        "host": self.host,
                        "port": self.port,
                        "error": str(e),
                        "error_type": type(e).__name__,
                    },
                )
        self.writer = None
        self.reader = None
        self._inbound.clear()

    @property
    def is_closed(self) -> bool:
        return self._closed

    def _emit(self, event: TransportEvent) -> None:
        if self._closed:
            return
        self._on_event(event)

    def _emit_error(self, error: Exception) -> None:
        captured = TransportError.from_exception(error)
        self._emit(TransportEvent(TransportEventKind.ERROR, code=captured.code, message=captured.reason))

    def __repr__(self) -> str:
        if self._closed:
            status = "closed"
        elif self.writer is not None:
            status = "connected"
        else:
            status = "pending"
        return f"SocketTransport({self.host}:{self.port}, {status})"


def create_socket_transport(
    host: str,
    port: int,
    on_event: EventHandler,
    settings: ManagerSettings,
    *,
    loop: asyncio.AbstractEventLoop | None = None,
    context: contextvars.Context | None = None,
) -> SocketTransport:
    """Default transport factory used by the ConnectionAttemptManager."""
    return SocketTransport(
        host,
        port,
        on_event,
        loop=loop,
        max_read_size=settings.max_read_size,
        max_write_size=settings.max_write_size,
        context=context,
    )
