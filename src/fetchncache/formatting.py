"""
JSON Formatter - optional reformatting of JSON response bodies.

Modes:
- original   - write the body untouched
- pretty     - 2-space indentation
- minimized  - no extraneous whitespace
- both       - minimized at the target path, pretty at ``<name>.pp.json``

Only paths ending in ``.json`` (any case) are reformatted. A body that does not
parse is written as received; the problem is reported as a warning.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from fetchncache.paths import derive_latest_path, pretty_json_path
from fetchncache.utils.io import write_bytes

logger = logging.getLogger(__name__)

FORMAT_ORIGINAL = "original"
FORMAT_PRETTY = "pretty"
FORMAT_MINIMIZED = "minimized"
FORMAT_BOTH = "both"
JSON_FORMATS = (FORMAT_ORIGINAL, FORMAT_PRETTY, FORMAT_MINIMIZED, FORMAT_BOTH)


@dataclass
class FormatOutcome:
    """Bytes to write at the target path, plus what happened on the way."""

    data: bytes
    description: str = ""
    warnings: list[str] = field(default_factory=list)
    written: list[str] = field(default_factory=list)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-standard JSON constant: {name}")


def loads_strict(body: bytes) -> Any:
    """Parse ``body`` as standard JSON; NaN and Infinity are rejected."""
    return json.loads(body, parse_constant=_reject_constant)


def dumps_pretty(value: Any) -> bytes:
    return json.dumps(
        value, indent=2, sort_keys=True, ensure_ascii=False, allow_nan=False
    ).encode("utf-8")


def dumps_minimized(value: Any) -> bytes:
    return json.dumps(
        value, separators=(",", ":"), sort_keys=True, ensure_ascii=False, allow_nan=False
    ).encode("utf-8")


def applies_to(target_path: str, mode: str) -> bool:
    return mode != FORMAT_ORIGINAL and target_path.lower().endswith(".json")


def format_json(
    body: bytes,
    mode: str,
    target_path: str,
    *,
    latest: bool = False,
    writer: Callable[[str, bytes], Any] = write_bytes,
    log: logging.Logger | None = None,
) -> FormatOutcome:
    """Reformat ``body`` for ``target_path`` according to ``mode``.

    With ``both``, the pretty form is written here (and mirrored to
    ``latest.pp.json`` when ``latest`` is set); failures of those extra writes
    are returned as warnings and never affect the primary bytes.
    """
    log = log or logger
    if mode not in JSON_FORMATS:
        raise ValueError(f"unknown JSON format: {mode} (expected one of {', '.join(JSON_FORMATS)})")
    if not applies_to(target_path, mode):
        return FormatOutcome(data=body)

    # Overflowing numbers such as 1e400 parse to inf and only fail on output.
    try:
        value = loads_strict(body)
        minimized = dumps_minimized(value)
        pretty = dumps_pretty(value)
    except (ValueError, RecursionError) as exc:
        log.warning("Could not parse JSON, writing original content: path=%s error=%s", target_path, exc)
        return FormatOutcome(data=body, warnings=[f"json_parse_failed: {exc}"])

    if mode == FORMAT_PRETTY:
        return FormatOutcome(data=pretty, description="pretty-printed")
    if mode == FORMAT_MINIMIZED:
        return FormatOutcome(data=minimized, description="minimized")

    outcome = FormatOutcome(data=minimized, description="minimized")
    pretty_path = pretty_json_path(target_path)
    extra_paths = [pretty_path]
    if latest:
        extra_paths.append(derive_latest_path(pretty_path))
    for path in extra_paths:
        try:
            writer(path, pretty)
        except OSError as exc:
            log.warning("Could not write pretty JSON file: path=%s error=%s", path, exc)
            outcome.warnings.append(f"pretty_write_failed: {path}: {exc}")
            continue
        outcome.written.append(path)
        log.info("Wrote pretty-printed version: path=%s", path)
    if pretty_path in outcome.written:
        outcome.description = "minimized (with pretty version)"
    return outcome


__all__ = [
    "FORMAT_BOTH",
    "FORMAT_MINIMIZED",
    "FORMAT_ORIGINAL",
    "FORMAT_PRETTY",
    "FormatOutcome",
    "JSON_FORMATS",
    "dumps_minimized",
    "dumps_pretty",
    "format_json",
    "loads_strict",
]
