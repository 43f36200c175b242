#!/usr/bin/env python3
"""Command-line entry point: fetch every configured target and cache it to disk."""

from __future__ import annotations

import argparse
import sys
from typing import NoReturn

from fetchncache.__version__ import __version__
from fetchncache.config import load_config
from fetchncache.driver import RunOptions, run_targets
from fetchncache.exceptions import ConfigError, LoggingSetupError
from fetchncache.formatting import FORMAT_ORIGINAL, JSON_FORMATS
from fetchncache.logging_config import add_logging_args, configure_logging, reset_logging

EXIT_OK = 0
EXIT_STARTUP_FAILURE = 1


class _ArgumentParser(argparse.ArgumentParser):
    """Argument errors are startup failures and exit with status 1."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(EXIT_STARTUP_FAILURE, f"{self.prog}: error: {message}\n")


def _non_negative_seconds(value: str) -> float:
    try:
        seconds = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number of seconds: {value!r}") from None
    if seconds < 0:
        raise argparse.ArgumentTypeError("delay must be non-negative")
    return seconds


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="fetchncache",
        description="Fetch HTTP targets listed in a YAML config and cache them to files.",
    )
    parser.add_argument("--config", required=True, help="Path to YAML config file.")
    parser.add_argument("-v", dest="verbose", action="store_true", help="Enable verbose mode.")
    parser.add_argument(
        "--json-format",
        default=FORMAT_ORIGINAL,
        choices=JSON_FORMATS,
        help="JSON formatting for .json paths (default: original).",
    )
    parser.add_argument(
        "--latest",
        action="store_true",
        help="Also write a rolling 'latest' copy of each downloaded file.",
    )
    parser.add_argument(
        "-d",
        "--delay",
        type=_non_negative_seconds,
        default=0.0,
        help="Delay in seconds between targets (default: 0).",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"fetchncache version {__version__}",
    )
    add_logging_args(parser)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as exc:
        print(f"Error loading config: {exc}", file=sys.stderr)
        return EXIT_STARTUP_FAILURE

    try:
        log = configure_logging(verbose=args.verbose, log_file=config.log_file, fmt=args.log_format)
    except LoggingSetupError as exc:
        print(f"Error setting up loggers: {exc}", file=sys.stderr)
        return EXIT_STARTUP_FAILURE

    try:
        log.info("Reading config file: path=%s", args.config)
        options = RunOptions(json_format=args.json_format, latest=args.latest, delay=args.delay)
        summary = run_targets(config, options)
        if summary.ok:
            log.info("Application finished successfully!")
        else:
            log.warning(
                "Finished with failures: %d of %d targets failed",
                summary.failed,
                len(summary.outcomes),
            )
    finally:
        reset_logging()
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
