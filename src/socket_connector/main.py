"""Command line entry point: send one request and print the response.

Exit codes: 0 on success, 1 on error, 2 on timeout, 130 when interrupted.
"""

from __future__ import annotations

import argparse
import codecs
import sys
from collections.abc import Sequence

import uvloop

from socket_connector.const import (
    SOCKET_CONNECTOR_DEBUG,
    SOCKET_CONNECTOR_ENCODING,
    SOCKET_CONNECTOR_MAX_RETRIES,
    SOCKET_CONNECTOR_METRICS_PORT,
    SOCKET_CONNECTOR_READ_SIZE,
    SOCKET_CONNECTOR_RETRY_DELAY,
    SOCKET_CONNECTOR_STRICT_DECODING,
    SOCKET_CONNECTOR_TIMEOUT,
    SOCKET_CONNECTOR_VERSION,
)
from socket_connector.logging_abstraction import configure_logging
from socket_connector.metrics import start_metrics_server
from socket_connector.transport import (
    Error,
    ManagerSettings,
    Outcome,
    Success,
    Timeout,
    send_request,
)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_TIMEOUT = 2
EXIT_INTERRUPTED = 130


def _codec(value: str) -> str:
    try:
        return codecs.lookup(value).name
    except LookupError as e:
        msg = f"unknown encoding: {value}"
        raise argparse.ArgumentTypeError(msg) from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="socket-connector",
        description="Send one request over TCP and print the response the peer sends before closing.",
    )
    parser.add_argument("host", help="Target host")
    parser.add_argument("port", type=int, help="Target TCP port")
    parser.add_argument("payload", nargs="?", default="", help="Request text (default: empty, send nothing)")
    parser.add_argument(
        "-r",
        "--retries",
        type=int,
        default=SOCKET_CONNECTOR_MAX_RETRIES,
        help="Re-attempts after a connection error (default: %(default)s)",
    )
    parser.add_argument(
        "-t",
        "--timeout",
        type=float,
        default=SOCKET_CONNECTOR_TIMEOUT,
        help="Seconds of inactivity before giving up (default: %(default)s)",
    )
    parser.add_argument(
        "--retry-delay",
        type=float,
        default=SOCKET_CONNECTOR_RETRY_DELAY,
        help="Seconds to wait before a retry (default: %(default)s)",
    )
    parser.add_argument(
        "-e",
        "--encoding",
        type=_codec,
        default=SOCKET_CONNECTOR_ENCODING,
        help="Decode the response with this codec, e.g. shift_jis (default: print raw bytes)",
    )
    parser.add_argument(
        "--request-encoding",
        type=_codec,
        default="ascii",
        help="Codec used to encode the payload text (default: %(default)s)",
    )
    parser.add_argument(
        "--lenient-decoding",
        action="store_true",
        default=not SOCKET_CONNECTOR_STRICT_DECODING,
        help="Report undecodable responses as empty success instead of an error",
    )
    parser.add_argument(
        "--metrics-port",
        type=int,
        default=SOCKET_CONNECTOR_METRICS_PORT,
        help="Expose Prometheus metrics on this port (0 disables)",
    )
    parser.add_argument(
        "-D",
        "--debug",
        action="store_true",
        default=SOCKET_CONNECTOR_DEBUG,
        help="Enable debug logging",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {SOCKET_CONNECTOR_VERSION}")
    return parser


def report_outcome(outcome: Outcome) -> int:
    """Print an outcome for a terminal user and return the process exit code."""
    if isinstance(outcome, Success):
        sys.stdout.flush()
        if outcome.text is not None:
            # text may not fit the terminal codec, e.g. shift_jis text on an ASCII locale
            sys.stdout.buffer.write(outcome.text.encode(sys.stdout.encoding or "utf-8", "replace"))
        else:
            sys.stdout.buffer.write(outcome.data)
        sys.stdout.buffer.flush()
        return EXIT_OK
    if isinstance(outcome, Timeout):
        print(f"timeout ({outcome.status_code}): {outcome.status_message}", file=sys.stderr)
        return EXIT_TIMEOUT
    if isinstance(outcome, Error):
        print(f"error ({outcome.code}): {outcome.message}", file=sys.stderr)
        return EXIT_ERROR
    msg = f"Unknown outcome type: {type(outcome).__name__}"
    raise TypeError(msg)


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for the socket-connector command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logger = configure_logging(debug=args.debug)
    if args.debug:
        logger.debug("Debug mode enabled")

    try:
        payload = args.payload.encode(args.request_encoding)
    except UnicodeEncodeError as e:
        parser.error(f"payload cannot be encoded as {args.request_encoding}: {e.reason}")

    if not 0 <= args.port <= 65535:
        parser.error(f"port must be in 0-65535, got {args.port}")
    if args.retries < 0:
        parser.error(f"retries must not be negative, got {args.retries}")

    try:
        settings = ManagerSettings(
            timeout_seconds=args.timeout,
            retry_delay_seconds=args.retry_delay,
            response_encoding=args.encoding,
            strict_decoding=not args.lenient_decoding,
            max_read_size=SOCKET_CONNECTOR_READ_SIZE,
        )
    except ValueError as e:
        parser.error(str(e))

    if args.metrics_port:
        start_metrics_server(args.metrics_port)
        logger.info("Metrics exposed", extra={"metrics_port": args.metrics_port})

    try:
        outcome = uvloop.run(send_request(args.host, args.port, payload, args.retries, settings=settings))
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received, aborting request")
        return EXIT_INTERRUPTED

    return report_outcome(outcome)
