"""Unit tests for run-spec CLI execution."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

import pytest

from cli.main import main
from core.types import IngestOptions
from store.warehouse_sdk import WardClient
from tests.fixture_paths import fixture_path


class _FakeWarehouse:
    def __init__(self, captured: dict[str, object]) -> None:
        self._captured = captured

    def reports(
        self,
        report_names: Sequence[str] = (),
        version_id: str | None = None,
        group: str | None = None,
    ) -> list:
        self._captured["report_names"] = tuple(report_names)
        return []

    def export_reports(
        self,
        output_dir: str,
        report_names: Sequence[str] = (),
        version_id: str | None = None,
        file_format: str = "csv",
    ) -> str:
        self._captured["export_format"] = file_format
        return f"{output_dir}/reports_manifest.json"


def test_cli_run_spec_executes_ingest_report_and_export_steps(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Run-spec command should route each step to SDK operations."""
    captured: dict[str, object] = {}

    def _fake_ingest(self: WardClient, options: IngestOptions) -> str:
        captured["ingest_warehouse"] = options.warehouse_name
        captured["ingest_source"] = options.source_uri
        return "demo-v1"

    def _fake_warehouse(self: WardClient, warehouse_name: str) -> _FakeWarehouse:
        captured["warehouse"] = warehouse_name
        return _FakeWarehouse(captured)

    monkeypatch.setattr(WardClient, "ingest", _fake_ingest)
    monkeypatch.setattr(WardClient, "warehouse", _fake_warehouse)
    exit_code = main(
        [
            "--data-root",
            str(tmp_path),
            "run-spec",
            str(fixture_path("run_spec/valid_pipeline.yaml")),
        ]
    )
    output = capsys.readouterr().out.strip().splitlines()

    assert (
        exit_code == 0
        and output == ["demo-v1", "outputs/reports/reports_manifest.json"]
        and captured
        == {
            "ingest_warehouse": "demo",
            "ingest_source": "tests/fixtures/admissions.csv",
            "warehouse": "demo",
            "report_names": ("summary_stats",),
            "export_format": "jsonl",
        }
    )


def test_cli_run_spec_missing_warehouse_exits_with_error(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Run-spec should fail when a warehouse-dependent step has no warehouse."""
    exit_code = main(
        [
            "--data-root",
            str(tmp_path),
            "run-spec",
            str(fixture_path("run_spec/missing_warehouse.yaml")),
        ]
    )

    assert exit_code == 1 and "requires warehouse" in capsys.readouterr().err


def test_cli_run_spec_runs_real_pipeline(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """A run-spec with a data root default should ingest and report end to end."""
    spec_path = tmp_path / "pipeline.yaml"
    spec_path.write_text(
        "version: 1\n"
        "defaults:\n"
        f"  data_root: {(tmp_path / 'data').as_posix()}\n"
        "  warehouse: spec-demo\n"
        "steps:\n"
        "  - command: ingest\n"
        f"    source: {fixture_path('admissions.csv').as_posix()}\n"
        "  - command: versions\n"
        "  - command: report\n"
        "    group: utilization\n",
        encoding="utf-8",
    )

    exit_code = main(["run-spec", str(spec_path)])
    output = capsys.readouterr().out

    assert (
        exit_code == 0
        and output.count("== ") == 4
        and (tmp_path / "data" / "warehouses" / "spec-demo" / "catalog.json").exists()
    )
