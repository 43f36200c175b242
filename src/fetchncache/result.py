"""
fetchncache/result.py

Outcome values passed between the fetch client, the target processor and the
run driver.

Configuration mistakes and invalid path/pattern/header definitions raise
exceptions (``fetchncache.exceptions``) before any target runs. Everything that
can go wrong while a target is being processed (network trouble, a non-200
status, a failed write) is returned as an ``Err`` instead, so one bad target
never stops the run.

    outcome = client.fetch(url, headers)
    if outcome.is_err:
        log.error("Fetch failed: %s", outcome.message)
    body = outcome.value

Serialized form (``to_dict``), as used by ``RunSummary.to_dict``:
    {"status": "ok", "value": "cache/data.json", "stage": "done", ...}
    {"status": "error", "error": "unexpected_status", "message": "...", "status_code": 404, ...}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

T = TypeVar("T")

STATUS_OK = "ok"
STATUS_ERROR = "error"


@dataclass
class Result(Generic[T]):
    """Success carrying ``value``, or failure carrying an ``error`` code.

    ``extras`` holds the details callers log or report: url, status_code,
    path, stage, warnings.
    """

    status: str
    value: T | None = None
    error: str | None = None
    message: str | None = None
    extras: dict[str, Any] = field(default_factory=dict)

    @property
    def is_ok(self) -> bool:
        return self.status == STATUS_OK

    @property
    def is_err(self) -> bool:
        return self.status == STATUS_ERROR

    @property
    def warnings(self) -> list[str]:
        return list(self.extras.get("warnings") or [])

    def get(self, key: str, default: Any = None) -> Any:
        return self.extras.get(key, default)

    def to_dict(self) -> dict[str, Any]:
        # Response bodies stay out of summaries; only their size is kept in extras.
        d: dict[str, Any] = {"status": self.status}
        if self.is_ok and self.value is not None and not isinstance(self.value, bytes):
            d["value"] = self.value
        if self.is_err:
            d["error"] = self.error
            if self.message:
                d["message"] = self.message
        d.update(self.extras)
        return d


def Ok(value: T = None, **extras: Any) -> Result[T]:  # noqa: N802 - intentional PascalCase
    return Result(status=STATUS_OK, value=value, extras=extras)


def Err(error: str, message: str | None = None, **extras: Any) -> Result[Any]:  # noqa: N802
    return Result(status=STATUS_ERROR, error=error, message=message, extras=extras)


FetchOutcome = Result[bytes]  # value: response body
TargetOutcome = Result[str]  # value: resolved output path
