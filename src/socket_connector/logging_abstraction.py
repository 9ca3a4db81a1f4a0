"""Logging setup for socket-connector.

Provides dual-format logging (JSON + human-readable) with the request
correlation ID attached to every record.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import override

from socket_connector.correlation import get_correlation_id

__all__ = [
    "ConnectorLogger",
    "HumanReadableFormatter",
    "JSONFormatter",
    "configure_logging",
    "get_logger",
]

# Attributes every LogRecord carries; anything else came in through ``extra=``
_RESERVED_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime", "correlation_id"}


def _record_context(record: logging.LogRecord) -> dict[str, object]:
    return {k: v for k, v in vars(record).items() if k not in _RESERVED_RECORD_ATTRS}


class JSONFormatter(logging.Formatter):
    """Formatter that outputs structured JSON logs."""

    @override
    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, object] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
            "correlation_id": get_correlation_id(),
        }

        context = _record_context(record)
        if context:
            log_data["context"] = context

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            log_data["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(log_data, default=str)


class HumanReadableFormatter(logging.Formatter):
    """Formatter that outputs human-readable logs with correlation IDs."""

    def __init__(self, show_context: bool = True) -> None:
        # Format: timestamp level [module:line] correlation_id > message
        super().__init__(
            fmt="%(asctime)s.%(msecs)03d %(levelname)s [%(module)s:%(lineno)d] %(correlation_id)s > %(message)s",
            datefmt="%m/%d/%y %H:%M:%S",
        )
        self.show_context = show_context

    @override
    def format(self, record: logging.LogRecord) -> str:
        correlation_id = get_correlation_id()
        record.correlation_id = f"[{correlation_id[:8]}]" if correlation_id else "[--------]"

        formatted = super().format(record)

        if self.show_context:
            context = _record_context(record)
            if context:
                context_str = " | ".join(f"{k}={v}" for k, v in context.items())
                formatted = f"{formatted} | {context_str}"

        return formatted


class ConnectorLogger:
    """Thin wrapper over a stdlib logger that owns its handler setup.

    Library modules log through ``logging.getLogger(__name__)``; the CLI builds
    one ConnectorLogger for the package root so that those records end up in
    the configured JSON and/or human-readable outputs.
    """

    def __init__(
        self,
        name: str,
        log_format: str = "human",
        json_file: str | Path | None = None,
        human_output: str | None = "stderr",
        level: int = logging.INFO,
    ) -> None:
        """Initialize ConnectorLogger.

        Args:
            name: Logger name (typically module or package name)
            log_format: Output format - "json", "human", or "both"
            json_file: Path for JSON output file (None to disable file output)
            human_output: "stdout", "stderr", or file path for human-readable output
            level: Initial log level

        """
        if log_format not in ("json", "human", "both"):
            msg = f"Unknown log format: {log_format!r}"
            raise ValueError(msg)

        self.name: str = name
        self.logger: logging.Logger = logging.getLogger(name)
        self.log_format: str = log_format
        self.logger.setLevel(level)

        # Don't add handlers if already configured (avoid duplicates)
        if not self.logger.handlers:
            self._configure_handlers(json_file, human_output)

    def _configure_handlers(
        self,
        json_file: str | Path | None,
        human_output: str | None,
    ) -> None:
        handler_level = self.logger.level

        if self.log_format in ("json", "both"):
            if json_file:
                try:
                    json_path = Path(json_file)
                    json_path.parent.mkdir(parents=True, exist_ok=True)
                    json_handler: logging.Handler = logging.FileHandler(json_path, mode="a")
                except OSError as e:
                    print(f"Warning: Failed to create JSON log file {json_file}: {e}", file=sys.stderr)
                    json_handler = logging.StreamHandler(sys.stderr)
            else:
                # json-only without a file still has to go somewhere
                json_handler = logging.StreamHandler(sys.stderr)
            json_handler.setFormatter(JSONFormatter())
            json_handler.setLevel(handler_level)
            self.logger.addHandler(json_handler)

        if self.log_format in ("human", "both"):
            normalized_output = human_output or "stderr"
            if normalized_output == "stdout":
                human_handler: logging.Handler = logging.StreamHandler(sys.stdout)
            elif normalized_output == "stderr":
                human_handler = logging.StreamHandler(sys.stderr)
            else:
                try:
                    human_path = Path(normalized_output)
                    human_path.parent.mkdir(parents=True, exist_ok=True)
                    human_handler = logging.FileHandler(human_path, mode="a")
                except OSError as e:
                    print(f"Warning: Failed to create human log file {human_output}: {e}", file=sys.stderr)
                    human_handler = logging.StreamHandler(sys.stderr)

            human_handler.setFormatter(HumanReadableFormatter())
            human_handler.setLevel(handler_level)
            self.logger.addHandler(human_handler)

    def _log(self, level: int, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self.logger.log(level, msg, *args, extra=dict(extra) if extra else None, stacklevel=3)

    def debug(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self._log(logging.DEBUG, msg, *args, extra=extra)

    def info(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self._log(logging.INFO, msg, *args, extra=extra)

    def set_level(self, level: int) -> None:
        """Set logging level on the logger and all of its handlers."""
        self.logger.setLevel(level)
        for handler in self.logger.handlers:
            handler.setLevel(level)

    @property
    def handlers(self) -> list[logging.Handler]:
        return self.logger.handlers


def get_logger(
    name: str,
    log_format: str | None = None,
    json_file: str | Path | None = None,
    human_output: str | None = None,
) -> ConnectorLogger:
    """Get or create a ConnectorLogger, defaulting to the environment settings.

    Args:
        name: Logger name
        log_format: Override default format ("json", "human", or "both")
        json_file: Override default JSON output file
        human_output: Override default human-readable output

    Returns:
        ConnectorLogger instance

    """
    # Import here so importing this module never forces env parsing order
    from socket_connector.const import (  # noqa: PLC0415
        SOCKET_CONNECTOR_DEBUG,
        SOCKET_CONNECTOR_LOG_FORMAT,
        SOCKET_CONNECTOR_LOG_HUMAN_OUTPUT,
        SOCKET_CONNECTOR_LOG_JSON_FILE,
    )

    return ConnectorLogger(
        name=name,
        log_format=log_format or SOCKET_CONNECTOR_LOG_FORMAT,
        json_file=json_file or SOCKET_CONNECTOR_LOG_JSON_FILE,
        human_output=human_output or SOCKET_CONNECTOR_LOG_HUMAN_OUTPUT,
        level=logging.DEBUG if SOCKET_CONNECTOR_DEBUG else logging.INFO,
    )


def configure_logging(debug: bool = False) -> ConnectorLogger:
    """Attach the configured handlers to the package root logger."""
    root = get_logger("socket_connector")
    if debug:
        root.set_level(logging.DEBUG)
    return root
