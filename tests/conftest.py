"""
Shared pytest fixtures for fetchncache tests.

Provides common helpers for:
- Config YAML files
- Fixed timestamps
- Deterministic sleep/clock recording
- Fake fetch clients
"""

from __future__ import annotations

import sys
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest
import yaml

SRC_ROOT = Path(__file__).resolve().parents[1] / "src"
if SRC_ROOT.is_dir():
    sys.path.insert(0, str(SRC_ROOT))

REPO_ROOT = Path(__file__).resolve().parents[1]

from fetchncache.logging_config import clear_log_context, reset_logging  # noqa: E402
from fetchncache.result import Err, Ok  # noqa: E402


class SleepRecorder:
    """A fake sleep that records calls instead of waiting."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class FakeClient:
    """Stand-in for FetchClient returning canned outcomes per URL."""

    def __init__(self, responses: dict[str, Any] | None = None) -> None:
        self.responses = responses or {}
        self.calls: list[tuple[str, dict[str, str]]] = []

    def fetch(self, url: str, headers: Any = None):
        self.calls.append((url, dict(headers or {})))
        response = self.responses.get(url, 404)
        if isinstance(response, bytes):
            return Ok(response, url=url, status_code=200)
        if response == "network":
            return Err("fetch_failed", "fetching URL: connection refused", url=url, cause="ConnectionError")
        return Err("unexpected_status", f"received status {response}", url=url, status_code=response)

    def close(self) -> None:
        pass


@pytest.fixture(autouse=True)
def _isolated_logging() -> Any:
    yield
    reset_logging()
    clear_log_context()


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def fake_client_factory() -> Callable[..., FakeClient]:
    return FakeClient


@pytest.fixture
def write_config(tmp_path: Path) -> Callable[[dict[str, Any]], Path]:
    """Write a config dict as YAML and return its path."""

    def _write(data: dict[str, Any], name: str = "config.yaml") -> Path:
        path = tmp_path / name
        path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
        return path

    return _write
