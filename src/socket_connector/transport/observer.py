"""Observer interfaces receiving the single terminal outcome of a request."""

from __future__ import annotations

import asyncio
from typing import Protocol, runtime_checkable

from socket_connector.transport.types import Error, Outcome, Success, Timeout


class ConnectionObserver(Protocol):
    """Receives exactly one of the three callbacks per logical request."""

    def on_success(self, data: bytes) -> None: ...

    def on_error(self, code: int, message: str) -> None: ...

    def on_timeout(self) -> None: ...


@runtime_checkable
class OutcomeSink(Protocol):
    """Observer that wants the whole Outcome value (including decoded text)."""

    def on_outcome(self, outcome: Outcome) -> None: ...


def dispatch_outcome(observer: ConnectionObserver | OutcomeSink, outcome: Outcome) -> None:
    """Invoke the observer callback matching ``outcome``."""
    if isinstance(observer, OutcomeSink):
        observer.on_outcome(outcome)
    elif isinstance(outcome, Success):
        observer.on_success(outcome.data)
    elif isinstance(outcome, Error):
        observer.on_error(outcome.code, outcome.message)
    elif isinstance(outcome, Timeout):
        observer.on_timeout()
    else:
        msg = f"Unknown outcome type: {type(outcome).__name__}"
        raise TypeError(msg)


class OutcomeObserver:
    """Single-shot observer resolving an asyncio future with the Outcome.

    Also implements the three-callback interface so it can be handed to
    anything expecting a ConnectionObserver.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._future: asyncio.Future[Outcome] = (loop or asyncio.get_running_loop()).create_future()

    @property
    def done(self) -> bool:
        return self._future.done()

    def on_outcome(self, outcome: Outcome) -> None:
        if not self._future.done():
            self._future.set_result(outcome)

    def on_success(self, data: bytes) -> None:
        self.on_outcome(Success(data))

    def on_error(self, code: int, message: str) -> None:
        self.on_outcome(Error(code, message))

    def on_timeout(self) -> None:
        self.on_outcome(Timeout())

    async def wait(self) -> Outcome:
        """Wait for the outcome."""
        return await self._future
