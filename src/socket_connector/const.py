import os

from socket_connector import __version__

__all__ = [
    "DEFAULT_MAX_READ_SIZE",
    "DEFAULT_MAX_WRITE_SIZE",
    "DEFAULT_RETRY_DELAY_SECONDS",
    "DEFAULT_TIMEOUT_SECONDS",
    "SOCKET_CONNECTOR_DEBUG",
    "SOCKET_CONNECTOR_ENCODING",
    "SOCKET_CONNECTOR_LOG_FORMAT",
    "SOCKET_CONNECTOR_LOG_HUMAN_OUTPUT",
    "SOCKET_CONNECTOR_LOG_JSON_FILE",
    "SOCKET_CONNECTOR_MAX_RETRIES",
    "SOCKET_CONNECTOR_METRICS_PORT",
    "SOCKET_CONNECTOR_READ_SIZE",
    "SOCKET_CONNECTOR_RETRY_DELAY",
    "SOCKET_CONNECTOR_STRICT_DECODING",
    "SOCKET_CONNECTOR_TIMEOUT",
    "SOCKET_CONNECTOR_VERSION",
    "STATUS_DECODE_ERROR",
    "STATUS_GENERIC_ERROR",
    "STATUS_OK",
    "STATUS_TIMEOUT",
    "YES_ANSWER",
]

YES_ANSWER = ("true", "1", "yes", "y", "t", 1, "on", "o")
SOCKET_CONNECTOR_VERSION: str = __version__

# Status codes reported alongside outcomes
STATUS_OK: int = 0
STATUS_GENERIC_ERROR: int = -1  # transport error without an errno
STATUS_TIMEOUT: int = -2
STATUS_DECODE_ERROR: int = -3

DEFAULT_TIMEOUT_SECONDS: float = 3.0
DEFAULT_RETRY_DELAY_SECONDS: float = 3.0
DEFAULT_MAX_READ_SIZE: int = 1024
DEFAULT_MAX_WRITE_SIZE: int = 65536


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


SOCKET_CONNECTOR_TIMEOUT: float = _float_env("SOCKET_CONNECTOR_TIMEOUT", DEFAULT_TIMEOUT_SECONDS)
SOCKET_CONNECTOR_RETRY_DELAY: float = _float_env("SOCKET_CONNECTOR_RETRY_DELAY", DEFAULT_RETRY_DELAY_SECONDS)
SOCKET_CONNECTOR_MAX_RETRIES: int = _int_env("SOCKET_CONNECTOR_MAX_RETRIES", 0)
SOCKET_CONNECTOR_READ_SIZE: int = _int_env("SOCKET_CONNECTOR_READ_SIZE", DEFAULT_MAX_READ_SIZE)
_encoding = os.environ.get("SOCKET_CONNECTOR_ENCODING")
SOCKET_CONNECTOR_ENCODING: str | None = _encoding if _encoding else None
SOCKET_CONNECTOR_STRICT_DECODING: bool = (
    os.environ.get("SOCKET_CONNECTOR_STRICT_DECODING", "true").casefold() in YES_ANSWER
)

SOCKET_CONNECTOR_DEBUG: bool = os.environ.get("SOCKET_CONNECTOR_DEBUG", "0").casefold() in YES_ANSWER

# Logging Configuration
SOCKET_CONNECTOR_LOG_FORMAT: str = os.environ.get("SOCKET_CONNECTOR_LOG_FORMAT", "human")  # "json", "human", or "both"
_json_file = os.environ.get("SOCKET_CONNECTOR_LOG_JSON_FILE")
SOCKET_CONNECTOR_LOG_JSON_FILE: str | None = _json_file if _json_file else None
SOCKET_CONNECTOR_LOG_HUMAN_OUTPUT: str = os.environ.get(
    "SOCKET_CONNECTOR_LOG_HUMAN_OUTPUT", "stderr"
)  # "stdout", "stderr", or file path

# Metrics (0 disables the HTTP exporter)
SOCKET_CONNECTOR_METRICS_PORT: int = _int_env("SOCKET_CONNECTOR_METRICS_PORT", 0)
