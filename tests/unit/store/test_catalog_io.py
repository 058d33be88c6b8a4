"""Unit tests for catalog and manifest persistence."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from core.errors import WardStoreError
from core.types import WarehouseManifest
from store.catalog_io import (
    build_version_id,
    manifest_from_dict,
    manifest_to_dict,
    read_catalog_file,
    update_catalog,
)


def _manifest(version_id: str) -> WarehouseManifest:
    return WarehouseManifest(
        warehouse_name="admissions",
        version_id=version_id,
        created_at=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
        source_uri="admissions.csv",
        input_count=20,
        fact_count=17,
        dimension_counts={"patients": 11},
        rejected_by_reason={"missing_doctor": 1},
    )


def test_manifest_dict_round_trip() -> None:
    """Manifest serialization should preserve every field."""
    manifest = _manifest("admissions-v1")

    assert manifest_from_dict(manifest_to_dict(manifest)) == manifest


def test_update_catalog_appends_and_tracks_latest(tmp_path: Path) -> None:
    """Catalog should keep every version and point latest at the newest."""
    catalog_path = tmp_path / "catalog.json"

    update_catalog(catalog_path, _manifest("admissions-v1"))
    update_catalog(catalog_path, _manifest("admissions-v2"))
    catalog = read_catalog_file(catalog_path)

    assert catalog["latest_version"] == "admissions-v2" and len(catalog["versions"]) == 2


def test_read_catalog_file_rejects_invalid_payload(tmp_path: Path) -> None:
    """Catalog without a versions list should raise a store error."""
    catalog_path = tmp_path / "catalog.json"
    catalog_path.write_text('{"latest_version": null}\n', encoding="utf-8")

    with pytest.raises(WardStoreError, match="versions list"):
        read_catalog_file(catalog_path)


def test_build_version_id_prefixes_warehouse_name(admissions_schema) -> None:
    """Version ids should carry the warehouse name and a content digest."""
    first = build_version_id("admissions", admissions_schema)
    second = build_version_id("admissions", admissions_schema)

    assert first.startswith("admissions-") and first.split("-")[-1] == second.split("-")[-1]
