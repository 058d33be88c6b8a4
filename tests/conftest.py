"""Pytest configuration for repository test runs."""

from __future__ import annotations

import sys
from dataclasses import replace
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent


def pytest_sessionstart() -> None:
    """Add src directory to sys.path for test imports."""
    src_path = PROJECT_ROOT / "src"
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))


@pytest.fixture
def admissions_schema():
    """Star schema normalized from the admissions CSV fixture."""
    from ingest.input_reader import read_source_rows
    from ingest.row_parser import parse_source_rows
    from transforms.normalization import build_star_schema

    read_result = read_source_rows(str(PROJECT_ROOT / "tests" / "fixtures" / "admissions.csv"))
    return build_star_schema(parse_source_rows(read_result.rows).rows).schema


@pytest.fixture
def ward_config(tmp_path, monkeypatch):
    """Config rooted in a temporary directory with default statistics."""
    from core.config import WardConfig

    monkeypatch.delenv("WARD_STDDEV_MODE", raising=False)
    monkeypatch.delenv("WARD_OUTLIER_THRESHOLD", raising=False)
    return replace(WardConfig.from_env(), data_root=tmp_path / "ward-data")
