"""Unit tests for transport dataclasses and outcome variants."""

from __future__ import annotations

import pytest

from socket_connector.const import STATUS_OK, STATUS_TIMEOUT
from socket_connector.transport.types import (
    AttemptConfig,
    AttemptState,
    Error,
    ManagerSettings,
    ResponseBuffer,
    Success,
    Timeout,
)


class TestAttemptConfig:
    """Tests for AttemptConfig validation."""

    def test_defaults(self):
        config = AttemptConfig("localhost", 80)
        assert config.payload == b""
        assert config.max_retries == 0
        assert config.endpoint == "localhost:80"

    def test_bytearray_payload_is_frozen_to_bytes(self):
        payload = bytearray(b"PING")
        config = AttemptConfig("localhost", 80, payload)
        payload.extend(b"!!")
        assert config.payload == b"PING"
        assert isinstance(config.payload, bytes)

    @pytest.mark.parametrize("port", [-1, 65536, True, "80"])
    def test_invalid_port(self, port):
        with pytest.raises(ValueError, match="port"):
            AttemptConfig("localhost", port)

    @pytest.mark.parametrize("port", [0, 65535])
    def test_port_bounds_accepted(self, port):
        assert AttemptConfig("localhost", port).port == port

    def test_empty_host(self):
        with pytest.raises(ValueError, match="host"):
            AttemptConfig("", 80)

    def test_text_payload_rejected(self):
        with pytest.raises(TypeError, match="payload"):
            AttemptConfig("localhost", 80, "PING")  # type: ignore[arg-type]

    @pytest.mark.parametrize("retries", [-1, 1.5])
    def test_invalid_retries(self, retries):
        with pytest.raises(ValueError, match="max_retries"):
            AttemptConfig("localhost", 80, b"", retries)


class TestManagerSettings:
    """Tests for ManagerSettings validation and env loading."""

    def test_defaults(self):
        settings = ManagerSettings()
        assert settings.timeout_seconds == 3.0
        assert settings.retry_delay_seconds == 3.0
        assert settings.response_encoding is None
        assert settings.strict_decoding is True

    def test_non_positive_timeout(self):
        with pytest.raises(ValueError, match="timeout_seconds"):
            ManagerSettings(timeout_seconds=0)

    def test_negative_retry_delay(self):
        with pytest.raises(ValueError, match="retry_delay_seconds"):
            ManagerSettings(retry_delay_seconds=-0.1)

    def test_zero_retry_delay_allowed(self):
        assert ManagerSettings(retry_delay_seconds=0).retry_delay_seconds == 0

    def test_unknown_encoding(self):
        with pytest.raises(ValueError, match="encoding"):
            ManagerSettings(response_encoding="no-such-codec")

    def test_non_positive_sizes(self):
        with pytest.raises(ValueError, match="max_read_size"):
            ManagerSettings(max_read_size=0)

    def test_from_env_uses_const_values(self, monkeypatch):
        monkeypatch.setattr("socket_connector.const.SOCKET_CONNECTOR_TIMEOUT", 7.5)
        monkeypatch.setattr("socket_connector.const.SOCKET_CONNECTOR_ENCODING", "shift_jis")
        monkeypatch.setattr("socket_connector.const.SOCKET_CONNECTOR_STRICT_DECODING", False)

        settings = ManagerSettings.from_env()

        assert settings.timeout_seconds == 7.5
        assert settings.response_encoding == "shift_jis"
        assert settings.strict_decoding is False


class TestAttemptState:
    """Tests for AttemptState."""

    @pytest.mark.parametrize(
        ("state", "terminal"),
        [
            (AttemptState.IDLE, False),
            (AttemptState.CONNECTING, False),
            (AttemptState.OPEN, False),
            (AttemptState.RETRY_WAIT, False),
            (AttemptState.SUCCEEDED, True),
            (AttemptState.FAILED, True),
            (AttemptState.TIMED_OUT, True),
        ],
    )
    def test_is_terminal(self, state, terminal):
        assert state.is_terminal is terminal


class TestResponseBuffer:
    """Tests for ResponseBuffer."""

    def test_append_preserves_order(self):
        buf = ResponseBuffer()
        buf.append(b"AB")
        buf.append(b"")
        buf.append(b"CD")
        assert buf.getvalue() == b"ABCD"
        assert len(buf) == 4

    def test_clear(self):
        buf = ResponseBuffer()
        buf.append(b"stale")
        buf.clear()
        assert buf.getvalue() == b""
        assert len(buf) == 0


class TestOutcomes:
    """Tests for the Outcome variants' status mapping."""

    def test_success_status(self):
        outcome = Success(b"PONG")
        assert outcome.status_code == STATUS_OK == 0
        assert outcome.status_message == "OK"
        assert outcome.text is None

    def test_error_status(self):
        outcome = Error(111, "Connection refused")
        assert outcome.status_code == 111
        assert outcome.status_message == "Connection refused"

    def test_timeout_status(self):
        outcome = Timeout()
        assert outcome.status_code == STATUS_TIMEOUT == -2
        assert outcome.status_message == "TimeOut"

    def test_outcomes_are_values(self):
        assert Success(b"x", "x") == Success(b"x", "x")
        assert Timeout() == Timeout()
        assert Error(1, "a") != Error(2, "a")
