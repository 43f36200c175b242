"""
Run Driver - processes every configured target in order.

Targets run one at a time. A failed target is logged and recorded, never
raised, so the remaining targets still run. With a positive delay the driver
sleeps between targets, but not after the last one.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from fetchncache.config import RunConfig
from fetchncache.fetch import FetchClient
from fetchncache.formatting import FORMAT_ORIGINAL, JSON_FORMATS
from fetchncache.logging_config import LogContext
from fetchncache.processor import process_target
from fetchncache.result import Err, TargetOutcome

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunOptions:
    json_format: str = FORMAT_ORIGINAL
    latest: bool = False
    delay: float = 0.0

    def __post_init__(self) -> None:
        if self.json_format not in JSON_FORMATS:
            raise ValueError(f"json_format must be one of: {', '.join(JSON_FORMATS)}")
        if self.delay < 0:
            raise ValueError("delay must be non-negative")


@dataclass
class RunSummary:
    outcomes: list[TargetOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.is_ok)

    @property
    def failed(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.is_err)

    @property
    def ok(self) -> bool:
        return self.failed == 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": len(self.outcomes),
            "succeeded": self.succeeded,
            "failed": self.failed,
            "targets": [outcome.to_dict() for outcome in self.outcomes],
        }


def run_targets(
    config: RunConfig,
    options: RunOptions | None = None,
    *,
    client: FetchClient | None = None,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], datetime] | None = None,
    log: logging.Logger | None = None,
) -> RunSummary:
    """Process ``config.targets`` sequentially and return their outcomes.

    ``sleep`` and ``clock`` are injectable so tests never wait in real time;
    ``clock`` (when given) supplies the timestamp for each target's path.
    """
    options = options or RunOptions()
    run_log = log or logger
    summary = RunSummary()
    owns_client = client is None
    client = client or FetchClient(log=log)
    total = len(config.targets)

    run_log.info("Found targets to process: count=%d", total)
    try:
        for index, target in enumerate(config.targets, start=1):
            with LogContext(target=target.name, url=target.url):
                run_log.info("Processing target %d/%d", index, total)
                try:
                    outcome = process_target(
                        target,
                        client=client,
                        json_format=options.json_format,
                        latest=options.latest,
                        now=clock() if clock else None,
                        log=log,
                    )
                except Exception as exc:
                    run_log.exception("Unexpected error while processing target: name=%s", target.name)
                    outcome = Err(
                        "target_failed",
                        f"{type(exc).__name__}: {exc}",
                        stage="unexpected",
                        name=target.name,
                        url=target.url,
                    )
                summary.outcomes.append(outcome)
                if outcome.is_err:
                    run_log.error(
                        "Failed to process target: name=%s url=%s path=%s error=%s",
                        target.name,
                        target.url,
                        outcome.get("path", "<unresolved>"),
                        outcome.message,
                    )

            if options.delay > 0 and index < total:
                run_log.info("Waiting before next target: delay_seconds=%s", options.delay)
                sleep(options.delay)
    finally:
        if owns_client:
            client.close()

    run_log.info(
        "Run finished: succeeded=%d failed=%d total=%d",
        summary.succeeded,
        summary.failed,
        total,
    )
    return summary


__all__ = ["RunOptions", "RunSummary", "run_targets"]
