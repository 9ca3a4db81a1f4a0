"""One-shot inactivity timer bound to an event loop."""

from __future__ import annotations

import asyncio
import contextvars
import logging
from collections.abc import Callable

from socket_connector.const import DEFAULT_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


class TimeoutGuard:
    """Fires ``on_timeout`` once if not re-armed or disarmed within ``timeout_seconds``.

    ``arm()`` replaces any pending fire, so calling it on every observed event
    makes the guard measure time since the last activity.
    """

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        on_timeout: Callable[[], None],
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        context: contextvars.Context | None = None,
    ) -> None:
        if timeout_seconds <= 0:
            msg = f"timeout_seconds must be positive, got {timeout_seconds}"
            raise ValueError(msg)
        self._loop = loop
        self._on_timeout = on_timeout
        self.timeout_seconds = timeout_seconds
        self._context = context
        self._handle: asyncio.TimerHandle | None = None

    @property
    def armed(self) -> bool:
        return self._handle is not None

    def arm(self) -> None:
        """Cancel any pending fire and schedule a new one."""
        self.disarm()
        self._handle = self._loop.call_later(self.timeout_seconds, self._fire, context=self._context)

    def disarm(self) -> None:
        """Cancel a pending fire without rescheduling."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        if self._handle is None:
            return
        self._handle = None
        logger.debug("Timeout guard fired after %.2fs of inactivity", self.timeout_seconds)
        self._on_timeout()

    def __repr__(self) -> str:
        status = "armed" if self.armed else "idle"
        return f"TimeoutGuard({self.timeout_seconds}s, {status})"
