from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from fetchncache.exceptions import LoggingSetupError
from fetchncache.logging_config import (
    JsonFormatter,
    LogContext,
    TextFormatter,
    configure_logging,
    get_log_context,
    set_log_context,
)


def _record(msg: str, *args: object, level: int = logging.INFO) -> logging.LogRecord:
    return logging.LogRecord(
        name="fetchncache.test",
        level=level,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=args,
        exc_info=None,
    )


def test_text_formatter_appends_context() -> None:
    with LogContext(target="weather", url="https://example.com"):
        output = TextFormatter().format(_record("Fetched %d bytes", 12))
    assert "| INFO | fetchncache.test | Fetched 12 bytes" in output
    assert output.endswith("| target=weather url=https://example.com")


def test_json_formatter_includes_context() -> None:
    set_log_context(target="weather")
    payload = json.loads(JsonFormatter().format(_record("hello %s", "world")))
    assert payload["message"] == "hello world"
    assert payload["level"] == "INFO"
    assert payload["context"] == {"target": "weather"}
    assert payload["timestamp"].endswith("Z")


def test_log_context_restored_on_exit() -> None:
    set_log_context(run="r1")
    with LogContext(target="a"):
        assert get_log_context() == {"run": "r1", "target": "a"}
    assert get_log_context() == {"run": "r1"}


def test_file_sink_receives_warnings_only(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "fetch.log"
    log = configure_logging(log_file=log_file)
    log.info("quiet info")
    log.warning("loud warning")
    logging.getLogger("fetchncache.processor").error("child error")
    for handler in log.handlers:
        handler.flush()
    text = log_file.read_text(encoding="utf-8")
    assert "quiet info" not in text
    assert "loud warning" in text
    assert "child error" in text


def test_file_sink_appends(tmp_path: Path) -> None:
    log_file = tmp_path / "fetch.log"
    log_file.write_text("previous run\n", encoding="utf-8")
    configure_logging(log_file=log_file).warning("second run")
    configure_logging(log_file=log_file)  # replaces the previous handlers
    assert log_file.read_text(encoding="utf-8").startswith("previous run\n")
    assert "second run" in log_file.read_text(encoding="utf-8")


def test_verbose_console_sink(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    log = configure_logging(verbose=True, log_file=tmp_path / "fetch.log")
    log.debug("debug detail")
    log.info("info detail")
    out = capsys.readouterr().out
    assert "debug detail" in out
    assert "info detail" in out


def test_quiet_console_without_verbose(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    log = configure_logging(log_file=tmp_path / "fetch.log")
    log.info("info detail")
    assert capsys.readouterr().out == ""


def test_stderr_sink_without_log_file(capsys: pytest.CaptureFixture[str]) -> None:
    log = configure_logging()
    log.warning("to stderr")
    captured = capsys.readouterr()
    assert "to stderr" in captured.err
    assert captured.out == ""


def test_json_format(tmp_path: Path) -> None:
    log_file = tmp_path / "fetch.log"
    configure_logging(log_file=log_file, fmt="json").error("boom")
    line = log_file.read_text(encoding="utf-8").strip().splitlines()[-1]
    assert json.loads(line)["message"] == "boom"


def test_unopenable_log_file(tmp_path: Path) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("", encoding="utf-8")
    with pytest.raises(LoggingSetupError) as excinfo:
        configure_logging(log_file=blocker / "fetch.log")
    assert excinfo.value.code == "logging_setup_error"
