"""End-to-end tests for the fetchncache command line."""

from __future__ import annotations

import functools
import os
import subprocess
import sys
from pathlib import Path

import pytest

from fetchncache.__version__ import __version__
from fetchncache.cli import main
from fetchncache.driver import run_targets

pytest.importorskip("pytest_httpserver")

from pytest_httpserver import HTTPServer  # noqa: E402

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = REPO_ROOT / "src"


class TestArguments:
    def test_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as excinfo:
            main(["--version"])
        assert excinfo.value.code == 0
        assert capsys.readouterr().out.strip() == f"fetchncache version {__version__}"

    def test_config_required(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as excinfo:
            main([])
        assert excinfo.value.code == 1
        assert "--config" in capsys.readouterr().err

    @pytest.mark.parametrize(
        "extra",
        [["-d", "-1"], ["--delay", "soon"], ["--json-format", "fancy"]],
    )
    def test_invalid_flag_values_exit_1(self, tmp_path: Path, extra: list[str]) -> None:
        with pytest.raises(SystemExit) as excinfo:
            main(["--config", str(tmp_path / "c.yaml"), *extra])
        assert excinfo.value.code == 1

    def test_missing_config_file(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["--config", str(tmp_path / "missing.yaml")]) == 1
        assert "Error loading config" in capsys.readouterr().err

    def test_invalid_config(self, write_config, capsys: pytest.CaptureFixture[str]) -> None:
        path = write_config({"targets": [{"url": "https://example.com", "path": "", "name": "x"}]})
        assert main(["--config", str(path)]) == 1
        assert "target 1" in capsys.readouterr().err

    def test_module_help_exits_cleanly(self) -> None:
        env = dict(os.environ, PYTHONPATH=str(SRC_ROOT))
        result = subprocess.run(
            [sys.executable, "-m", "fetchncache", "--help"],
            capture_output=True,
            text=True,
            cwd=REPO_ROOT,
            env=env,
        )
        assert result.returncode == 0
        assert "--json-format" in result.stdout


class TestRun:
    def test_both_format_and_failed_target(
        self, tmp_path: Path, httpserver: HTTPServer, write_config
    ) -> None:
        httpserver.expect_request("/missing").respond_with_data("nope", status=404)
        httpserver.expect_request("/a").respond_with_data('{"b":1,"a":2}', content_type="application/json")
        log_file = tmp_path / "logs" / "fetch.log"
        config = write_config(
            {
                "logfile": str(log_file),
                "targets": [
                    {"name": "missing", "url": httpserver.url_for("/missing"), "path": str(tmp_path / "out" / "m.json")},
                    {"name": "a", "url": httpserver.url_for("/a"), "path": str(tmp_path / "out" / "a.json")},
                ],
            }
        )

        assert main(["--config", str(config), "--json-format", "both"]) == 0

        assert not (tmp_path / "out" / "m.json").exists()
        assert (tmp_path / "out" / "a.json").read_text(encoding="utf-8") == '{"a":2,"b":1}'
        assert (tmp_path / "out" / "a.pp.json").read_text(encoding="utf-8") == '{\n  "a": 2,\n  "b": 1\n}'
        log_text = log_file.read_text(encoding="utf-8")
        assert "Failed to process target" in log_text
        assert "received status 404" in log_text

    def test_latest_copy(self, tmp_path: Path, httpserver: HTTPServer, write_config) -> None:
        httpserver.expect_request("/data").respond_with_data('{"x": [1, 2]}')
        out = tmp_path / "out" / "data-20250101.json"
        config = write_config({"targets": [{"name": "d", "url": httpserver.url_for("/data"), "path": str(out)}]})

        assert main(["--config", str(config), "--latest"]) == 0

        assert (tmp_path / "out" / "latest.json").read_bytes() == out.read_bytes() == b'{"x": [1, 2]}'

    def test_templated_path_and_headers(self, tmp_path: Path, httpserver: HTTPServer, write_config) -> None:
        httpserver.expect_request("/feed", headers={"X-Api-Key": "k1"}).respond_with_data("feed body")
        config = write_config(
            {
                "targets": [
                    {
                        "name": "feed",
                        "url": httpserver.url_for("/feed"),
                        "path": [{"string": str(tmp_path / "feed-{pattern}.txt"), "pattern": "DateOnly-UTC-slug"}],
                        "headers": ["X-Api-Key: k1"],
                    }
                ]
            }
        )

        assert main(["--config", str(config)]) == 0

        written = list(tmp_path.glob("feed-*.txt"))
        assert len(written) == 1
        assert written[0].read_text(encoding="utf-8") == "feed body"

    def test_verbose_logs_progress(
        self, tmp_path: Path, httpserver: HTTPServer, write_config, capsys: pytest.CaptureFixture[str]
    ) -> None:
        httpserver.expect_request("/v").respond_with_data("v")
        config = write_config(
            {"targets": [{"name": "v", "url": httpserver.url_for("/v"), "path": str(tmp_path / "v.txt")}]}
        )

        assert main(["--config", str(config), "-v"]) == 0

        out = capsys.readouterr().out
        assert "Successfully wrote file" in out
        assert "Application finished successfully!" in out

    def test_delay_between_targets(
        self, tmp_path: Path, httpserver: HTTPServer, write_config, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        slept: list[float] = []
        monkeypatch.setattr("fetchncache.cli.run_targets", functools.partial(run_targets, sleep=slept.append))
        httpserver.expect_request("/x").respond_with_data("x")
        config = write_config(
            {
                "targets": [
                    {"name": str(i), "url": httpserver.url_for("/x"), "path": str(tmp_path / f"{i}.txt")}
                    for i in range(3)
                ]
            }
        )

        assert main(["--config", str(config), "-d", "0.5"]) == 0

        assert slept == [0.5, 0.5]
