from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from edgeperf import cli
from edgeperf.capture.runner import run_measurement
from edgeperf.storage import Storage, read_results_csv
from fakes import FakeBrowser, RunScript, site_script


@pytest.fixture
def fake_runs(monkeypatch: pytest.MonkeyPatch) -> list[RunScript]:
    scripts: list[RunScript] = []

    async def _run(config: Any, progress: Any = None) -> Any:
        return await run_measurement(config, launcher=FakeBrowser(scripts).launch, progress=progress)

    monkeypatch.setattr(cli, "run_measurement", _run)
    return scripts


def _args(tmp_path: Path, runs: int, *extra: str) -> list[str]:
    return [
        "--url",
        "https://example.com/",
        "--runs",
        str(runs),
        "--output",
        str(tmp_path / "results.csv"),
        "--timeout",
        "0.5",
        "--idle-window",
        "0.01",
        *extra,
    ]


def test_main_writes_csv_and_summary(
    tmp_path: Path, fake_runs: list[RunScript], capsys: pytest.CaptureFixture[str]
) -> None:
    fake_runs.extend([site_script(), site_script()])
    db = tmp_path / "runs.duckdb"
    assert cli.main(_args(tmp_path, 2, "--db", str(db))) == 0

    out = capsys.readouterr().out
    assert "Run 1/2" in out
    assert "Run 2/2" in out
    assert "CF Cache Hit Rate:" in out
    assert len(read_results_csv(tmp_path / "results.csv")) == 8
    assert len(Storage(db).list_measurements()) == 1


def test_main_fails_when_every_run_fails(
    tmp_path: Path, fake_runs: list[RunScript], capsys: pytest.CaptureFixture[str]
) -> None:
    fake_runs.append(RunScript(hang=True))
    assert cli.main(_args(tmp_path, 1)) == 1
    assert "No successful test runs to save" in capsys.readouterr().out
    assert not (tmp_path / "results.csv").exists()


def test_main_rejects_bad_input(tmp_path: Path) -> None:
    with pytest.raises(SystemExit):
        cli.main(_args(tmp_path, 1, "--profile", "5g"))
    with pytest.raises(SystemExit):
        cli.main(["--url", "ftp://example.com", "--runs", "1"])
    with pytest.raises(SystemExit):
        cli.main(_args(tmp_path, 0))


def test_visualize_writes_charts(tmp_path: Path, fake_runs: list[RunScript]) -> None:
    fake_runs.append(site_script())
    assert cli.main(_args(tmp_path, 1)) == 0
    charts = tmp_path / "charts"
    args = ["--input", str(tmp_path / "results.csv"), "--output", str(charts), "--type", "cache", "--format", "html"]
    assert cli.visualize(args) == 0
    assert [p.name for p in charts.iterdir()] == ["results_cache.html"]


def test_visualize_missing_input(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.visualize(["--input", str(tmp_path / "nope.csv")]) == 1
    assert "Input file not found" in capsys.readouterr().err
