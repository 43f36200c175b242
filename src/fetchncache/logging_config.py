from __future__ import annotations

import contextvars
import json
import logging
import sys
import time
from pathlib import Path
from typing import Any

from fetchncache.exceptions import LoggingSetupError

LOGGER_NAME = "fetchncache"

_installed_handlers: list[logging.Handler] = []

# Context variables for structured logging
_log_context: contextvars.ContextVar[dict[str, Any] | None] = contextvars.ContextVar(
    "log_context", default=None
)


def get_log_context() -> dict[str, Any]:
    """Get the current logging context."""
    ctx = _log_context.get()
    return ctx.copy() if ctx else {}


def set_log_context(**kwargs: Any) -> None:
    """Set the current logging context (replaces existing)."""
    _log_context.set(dict(kwargs))


def clear_log_context() -> None:
    """Clear the current logging context."""
    _log_context.set({})


class LogContext:
    """Context manager for temporary log context."""

    def __init__(self, **kwargs: Any):
        self.kwargs = kwargs
        self.token: contextvars.Token | None = None

    def __enter__(self) -> LogContext:
        current = get_log_context()
        current.update(self.kwargs)
        self.token = _log_context.set(current)
        return self

    def __exit__(self, *args: Any) -> None:
        if self.token is not None:
            _log_context.reset(self.token)


class TextFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
        self.converter = time.gmtime

    def format(self, record: logging.LogRecord) -> str:
        formatted = super().format(record)
        context = get_log_context()
        if context:
            fields = " ".join(f"{key}={value}" for key, value in context.items())
            formatted = f"{formatted} | {fields}"
        return formatted


class JsonFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__()
        self.converter = time.gmtime

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%SZ"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = get_log_context()
        if context:
            payload["context"] = context

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _make_formatter(fmt: str) -> logging.Formatter:
    return JsonFormatter() if fmt.lower() == "json" else TextFormatter()


def configure_logging(
    *,
    verbose: bool = False,
    log_file: str | Path | None = None,
    fmt: str = "text",
) -> logging.Logger:
    """Install the two log sinks on the ``fetchncache`` logger.

    - warnings and errors go to ``log_file`` (appended) or, without one, stderr
    - with ``verbose``, everything from DEBUG up also goes to stdout

    Calling it again replaces the sinks installed by the previous call.

    Raises:
        LoggingSetupError: the log file or its directory can't be created
    """
    reset_logging()
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.propagate = False

    if log_file:
        log_path = Path(log_file)
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler: logging.Handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
        except OSError as exc:
            raise LoggingSetupError(
                f"opening log file {log_path}: {exc}",
                context={"path": str(log_path)},
            ) from exc
    else:
        file_handler = logging.StreamHandler(sys.stderr)
    file_handler.setLevel(logging.WARNING)
    file_handler.setFormatter(_make_formatter(fmt))
    _install(logger, file_handler)

    if verbose:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.DEBUG)
        console_handler.setFormatter(_make_formatter(fmt))
        _install(logger, console_handler)

    return logger


def _install(logger: logging.Logger, handler: logging.Handler) -> None:
    logger.addHandler(handler)
    _installed_handlers.append(handler)


def reset_logging() -> None:
    """Remove and close the sinks installed by ``configure_logging``."""
    logger = logging.getLogger(LOGGER_NAME)
    while _installed_handlers:
        handler = _installed_handlers.pop()
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


def add_logging_args(parser: Any) -> None:
    parser.add_argument(
        "--log-format",
        default="text",
        choices=["text", "json"],
        help="Logging format (default: text)",
    )
