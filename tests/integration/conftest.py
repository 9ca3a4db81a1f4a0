"""Fixtures for integration tests."""

import asyncio
import logging
import socket
from collections.abc import AsyncGenerator
from enum import Enum

import pytest
import pytest_asyncio

from socket_connector.transport.types import ManagerSettings

logger = logging.getLogger(__name__)


class ResponseMode(Enum):
    """Response mode for mock TCP server."""

    REPLY = "reply"  # Read one request, answer, close
    CHUNKED = "chunked"  # Answer in several delayed writes, then close
    GREETING = "greeting"  # Send the reply without reading, then close
    CLOSE_IMMEDIATELY = "close_immediately"  # Accept then close with no data
    SILENT = "silent"  # Accept and never answer


class MockTCPServer:
    """Mock TCP server for integration testing."""

    def __init__(
        self,
        response_mode: ResponseMode = ResponseMode.REPLY,
        reply: bytes = b"PONG",
        chunk_delay: float = 0.02,
        host: str = "127.0.0.1",
        port: int = 0,
    ):
        """Initialize mock TCP server.

        Args:
            response_mode: How the server should respond
            reply: Bytes sent back to the client
            chunk_delay: Pause between writes in CHUNKED mode
            host: Host to bind to
            port: Port to bind to (0 = OS assigns)

        """
        self.response_mode = response_mode
        self.reply = reply
        self.chunk_delay = chunk_delay
        self.host = host
        self.port = port
        self.server: asyncio.Server | None = None
        self.received: list[bytes] = []
        self.connection_count = 0
        self._writers: set[asyncio.StreamWriter] = set()

    async def start(self) -> None:
        """Start the mock TCP server."""
        self.server = await asyncio.start_server(self._handle_client, self.host, self.port)
        # Get the actual port assigned
        if self.port == 0:
            self.port = self.server.sockets[0].getsockname()[1]
        logger.info("Mock TCP server started on %s:%d", self.host, self.port)

    async def stop(self) -> None:
        """Stop the mock TCP server and drop open client connections."""
        if self.server:
            self.server.close()
            for writer in list(self._writers):
                writer.close()
            await self.server.wait_closed()
            logger.info("Mock TCP server stopped")

    async def _handle_client(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self.connection_count += 1
        self._writers.add(writer)
        try:
            match self.response_mode:
                case ResponseMode.REPLY:
                    self.received.append(await reader.read(4096))
                    writer.write(self.reply)
                case ResponseMode.CHUNKED:
                    self.received.append(await reader.read(4096))
                    for i in range(0, len(self.reply), 2):
                        writer.write(self.reply[i : i + 2])
                        await writer.drain()
                        await asyncio.sleep(self.chunk_delay)
                case ResponseMode.GREETING:
                    writer.write(self.reply)
                case ResponseMode.CLOSE_IMMEDIATELY:
                    pass
                case ResponseMode.SILENT:
                    # returns once the client gives up and closes
                    self.received.append(await reader.read(4096))
                    await reader.read()
            await writer.drain()
        except (ConnectionError, OSError) as e:
            logger.info("Client connection ended: %s", e)
        finally:
            self._writers.discard(writer)
            writer.close()


def unused_port() -> int:
    """Return a localhost port with nothing listening on it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest_asyncio.fixture
async def mock_tcp_server() -> AsyncGenerator[MockTCPServer]:
    """Mock server that answers PONG and closes."""
    server = MockTCPServer()
    await server.start()
    yield server
    await server.stop()


@pytest_asyncio.fixture
async def start_server() -> AsyncGenerator:
    """Factory starting servers in any mode; all are stopped after the test."""
    servers: list[MockTCPServer] = []

    async def _start(mode: ResponseMode, reply: bytes = b"PONG", port: int = 0) -> MockTCPServer:
        server = MockTCPServer(mode, reply, port=port)
        await server.start()
        servers.append(server)
        return server

    yield _start
    for server in servers:
        await server.stop()


@pytest.fixture
def fast_settings() -> ManagerSettings:
    return ManagerSettings(timeout_seconds=1.0, retry_delay_seconds=0.05)
