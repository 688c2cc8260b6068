#!/usr/bin/env python3
"""
CLI for the watch supervisor process.

Reads newline-delimited JSON commands on stdin and writes responses and
file events to stdout. Logs go to stderr.

Usage:
    python -m src.cli
    python -m src.cli --debounce-ms 100 --ignore "*.swp" --log-file watchmux.log
"""

import argparse
import logging
import signal
import sys
from pathlib import Path
from typing import List, Optional

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.watchmux import Supervisor, SupervisorConfig


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

logger = logging.getLogger("watchmux")


def setup_logging(level: str, log_file: Optional[Path] = None) -> None:
    """Send log records to stderr, and to a file if one is given."""
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT)

    handlers: List[logging.Handler] = []

    # stdout carries the protocol, never log records
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    handlers.append(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in handlers:
        root_logger.addHandler(handler)


class GracefulShutdown:
    """Turn SIGTERM into SystemExit so the supervisor closes cleanly."""

    def __init__(self):
        signal.signal(signal.SIGTERM, self._handler)

    def _handler(self, signum, frame):
        logger.info("Received shutdown signal, stopping...")
        raise SystemExit(0)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Multiplex filesystem watches over a JSON line protocol on stdin/stdout",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands (one per line on stdin):
  {"type":"watch","id":1,"root":"/path/to/folder"}
  {"type":"unwatch","id":1}

Output (one per line on stdout):
  {"type":"ok","id":1}
  {"type":"error","id":1,"description":"..."}
  {"action":"created","watchId":1,"path":"/path/to/folder/file"}
        """,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--debounce-ms", type=int, default=300, help="Debounce time in ms")
    parser.add_argument(
        "--ignore",
        action="append",
        default=[],
        metavar="PATTERN",
        help="Glob pattern for paths that never produce events (repeatable)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level for stderr output",
    )
    parser.add_argument("--log-file", type=Path, help="Also append logs to this file")
    return parser


def config_from_args(args: argparse.Namespace) -> SupervisorConfig:
    return SupervisorConfig(
        debounce_ms=args.debounce_ms,
        ignore_patterns=list(args.ignore),
        log_level="DEBUG" if args.verbose else args.log_level,
        log_file=args.log_file,
    )


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = config_from_args(args)
    except ValueError as e:
        parser.error(str(e))

    setup_logging(config.log_level, config.log_file)
    GracefulShutdown()

    # The protocol is UTF-8 regardless of locale; input lines are
    # decoded one at a time from the raw stdin buffer
    sys.stdout.reconfigure(encoding="utf-8")

    logger.info("Starting watch supervisor...")

    try:
        with Supervisor(config=config) as supervisor:
            supervisor.serve(sys.stdin.buffer)
    except KeyboardInterrupt:
        logger.info("Interrupted")
    except BrokenPipeError:
        logger.error("Output stream closed, exiting")
        return 1

    logger.info("Supervisor stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
