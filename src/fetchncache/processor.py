"""
Target Processor - one target from path resolution to the latest copy.

Stages run in order and any fatal failure ends the target with an Err result:

    resolve_path -> fetch -> format -> write -> write_latest (optional)

Formatting problems and a failed latest copy are only warnings; the target
still counts as succeeded once its main file is written.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from fetchncache.config import Target
from fetchncache.exceptions import HeaderError, PathResolutionError
from fetchncache.fetch import FetchClient
from fetchncache.formatting import FORMAT_ORIGINAL, format_json
from fetchncache.headers import parse_headers
from fetchncache.paths import derive_latest_path, resolve_path
from fetchncache.result import Err, Ok, TargetOutcome
from fetchncache.utils.io import write_bytes

logger = logging.getLogger(__name__)

STAGE_RESOLVE = "resolve_path"
STAGE_FETCH = "fetch"
STAGE_FORMAT = "format"
STAGE_WRITE = "write"
STAGE_LATEST = "write_latest"
STAGE_DONE = "done"


def process_target(
    target: Target,
    *,
    client: FetchClient,
    json_format: str = FORMAT_ORIGINAL,
    latest: bool = False,
    now: datetime | None = None,
    writer: Callable[[str, bytes], Any] = write_bytes,
    log: logging.Logger | None = None,
) -> TargetOutcome:
    """Fetch one target and write it to its resolved path."""
    log = log or logger
    context: dict[str, Any] = {"name": target.name, "url": target.url}

    try:
        resolved = resolve_path(target.path, now)
    except PathResolutionError as exc:
        return Err(
            "path_resolution_failed",
            f"resolving path: {exc.message}",
            stage=STAGE_RESOLVE,
            reason=exc.code,
            **context,
        )
    context["path"] = resolved
    log.info("Processing target: name=%s url=%s path=%s", target.name, target.url, resolved)

    try:
        headers = parse_headers(target.headers)
    except HeaderError as exc:
        return Err("fetch_failed", f"parsing headers: {exc.message}", stage=STAGE_FETCH, **context)
    if headers:
        log.info("Set custom headers: count=%d", len(headers))

    fetched = client.fetch(target.url, headers)
    if not fetched.is_ok:
        return Err(
            fetched.error or "fetch_failed",
            fetched.message,
            stage=STAGE_FETCH,
            status_code=fetched.get("status_code"),
            **context,
        )
    body = fetched.value or b""
    log.info("Successfully fetched data: bytes=%d", len(body))

    formatted = format_json(body, json_format, resolved, latest=latest, writer=writer, log=log)
    warnings = list(formatted.warnings)
    if formatted.description:
        log.info("Formatted JSON: format=%s", formatted.description)

    try:
        writer(resolved, formatted.data)
    except OSError as exc:
        return Err(
            "write_failed",
            f"writing file: {exc}",
            stage=STAGE_WRITE,
            warnings=warnings,
            **context,
        )
    log.info("Successfully wrote file: path=%s", resolved)

    if latest:
        latest_path = derive_latest_path(resolved)
        try:
            writer(latest_path, formatted.data)
        except OSError as exc:
            log.warning("Failed to write latest file: path=%s error=%s", latest_path, exc)
            warnings.append(f"latest_write_failed: {latest_path}: {exc}")
        else:
            context["latest_path"] = latest_path
            log.info("Successfully wrote latest file: path=%s", latest_path)

    return Ok(resolved, stage=STAGE_DONE, warnings=warnings, **context)


__all__ = ["process_target"]
