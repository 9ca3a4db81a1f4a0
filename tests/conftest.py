"""
Shared fixtures for socket-connector tests.

Fixtures wrap the in-memory doubles from tests.helpers.fakes.
"""

from __future__ import annotations

import pytest

from socket_connector.transport.types import ManagerSettings
from tests.helpers.fakes import FakeTransportFactory, RecordingObserver

# Fast timers so state machine tests finish quickly
FAST_RETRY_DELAY = 0.01
LONG_TIMEOUT = 2.0
SHORT_TIMEOUT = 0.05


@pytest.fixture
def factory() -> FakeTransportFactory:
    return FakeTransportFactory()


@pytest.fixture
def observer() -> RecordingObserver:
    return RecordingObserver()


@pytest.fixture
def settings() -> ManagerSettings:
    """Settings with a long guard and a near-instant retry delay."""
    return ManagerSettings(timeout_seconds=LONG_TIMEOUT, retry_delay_seconds=FAST_RETRY_DELAY)


@pytest.fixture
def fast_timeout_settings() -> ManagerSettings:
    return ManagerSettings(timeout_seconds=SHORT_TIMEOUT, retry_delay_seconds=FAST_RETRY_DELAY)
