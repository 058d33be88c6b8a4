"""Unit tests for core config parsing."""

from __future__ import annotations

import pytest

from core.config import WardConfig
from core.errors import WardConfigError


def test_from_env_reads_data_root(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should resolve data root from environment."""
    monkeypatch.setenv("WARD_DATA_ROOT", "./.tmp-ward")

    config = WardConfig.from_env()

    assert config.data_root.name == ".tmp-ward" and config.data_root.is_absolute()


def test_from_env_defaults_to_sample_stddev(monkeypatch: pytest.MonkeyPatch) -> None:
    """Unset statistics variables should fall back to sample stddev and z > 2."""
    monkeypatch.delenv("WARD_STDDEV_MODE", raising=False)
    monkeypatch.delenv("WARD_OUTLIER_THRESHOLD", raising=False)

    config = WardConfig.from_env()

    assert config.stddev_mode == "sample" and config.outlier_threshold == 2.0


def test_from_env_normalizes_stddev_mode(monkeypatch: pytest.MonkeyPatch) -> None:
    """Stddev mode should be case-insensitive."""
    monkeypatch.setenv("WARD_STDDEV_MODE", " Population ")

    assert WardConfig.from_env().stddev_mode == "population"


def test_from_env_raises_for_unknown_stddev_mode(monkeypatch: pytest.MonkeyPatch) -> None:
    """Unsupported stddev modes should be rejected."""
    monkeypatch.setenv("WARD_STDDEV_MODE", "median")

    with pytest.raises(WardConfigError, match="WARD_STDDEV_MODE"):
        WardConfig.from_env()


@pytest.mark.parametrize("raw_value", ["not-a-number", "0", "-1.5"])
def test_from_env_raises_for_invalid_threshold(
    monkeypatch: pytest.MonkeyPatch,
    raw_value: str,
) -> None:
    """Outlier threshold must be a positive number."""
    monkeypatch.setenv("WARD_OUTLIER_THRESHOLD", raw_value)

    with pytest.raises(WardConfigError, match="WARD_OUTLIER_THRESHOLD"):
        WardConfig.from_env()
