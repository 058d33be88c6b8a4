"""Unit tests for the warehouse SDK."""

from __future__ import annotations

from dataclasses import replace
import json
from pathlib import Path

import pytest

from core.errors import WardReportError
from core.types import IngestOptions
from store.warehouse_sdk import WardClient
from tests.fixture_paths import fixture_path


def _ingested_client(ward_config) -> tuple[WardClient, str]:
    client = WardClient(ward_config)
    version_id = client.ingest(
        IngestOptions(warehouse_name="admissions", source_uri=str(fixture_path("admissions.csv")))
    )
    return client, version_id


def test_warehouse_report_runs_against_latest_version(ward_config) -> None:
    """Named reports should run on the latest persisted version."""
    client, _ = _ingested_client(ward_config)

    table = client.warehouse("admissions").report("visitor_type_distribution")

    assert table.column("patient_count") == [5, 3, 2]


def test_warehouse_reports_by_group(ward_config) -> None:
    """Group selection should run only that group's reports."""
    client, version_id = _ingested_client(ward_config)

    tables = client.warehouse("admissions").reports(group="overview", version_id=version_id)

    assert [table.name for table in tables] == ["summary_stats", "dimension_counts"]


def test_warehouse_report_unknown_name_raises_error(ward_config) -> None:
    """Unknown report names should raise a report error."""
    client, _ = _ingested_client(ward_config)

    with pytest.raises(WardReportError):
        client.warehouse("admissions").report("lifetime_value")


def test_warehouse_rejected_rows_lists_dropped_rows(ward_config) -> None:
    """Rejected rows should be available per version through the SDK."""
    client, version_id = _ingested_client(ward_config)

    rejected = client.warehouse("admissions").rejected_rows(version_id)

    assert sorted(row.reason for row in rejected) == [
        "discharge_before_admission",
        "invalid_date",
        "missing_doctor",
    ]


def test_warehouse_export_reports_writes_full_battery(ward_config, tmp_path: Path) -> None:
    """Export without names should write every report."""
    client, version_id = _ingested_client(ward_config)

    manifest_path = client.warehouse("admissions").export_reports(str(tmp_path / "out"))
    payload = json.loads(Path(manifest_path).read_text(encoding="utf-8"))

    assert payload["version_id"] == version_id and payload["report_count"] == 19


def test_report_options_follow_client_config(ward_config) -> None:
    """Statistical settings from config should reach the reports."""
    config = replace(ward_config, stddev_mode="population", outlier_threshold=1.0)
    client, _ = _ingested_client(config)

    table = client.warehouse("admissions").report("outlier_summary_by_condition")
    asthma = [row for row in table.rows if row["condition_name"] == "Asthma"][0]

    assert asthma["high_outliers"] == 1 and asthma["low_outliers"] == 1


def test_with_data_root_clones_client(ward_config, tmp_path: Path) -> None:
    """Data-root override should keep the other config values."""
    config = replace(ward_config, stddev_mode="population")

    clone = WardClient(config).with_data_root(str(tmp_path / "other"))

    assert clone.config.data_root == (tmp_path / "other").resolve()
    assert clone.config.stddev_mode == "population"
