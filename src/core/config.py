"""Runtime configuration model for Ward.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from core.constants import (
    DEFAULT_DATA_ROOT,
    DEFAULT_OUTLIER_THRESHOLD,
    DEFAULT_STDDEV_MODE,
    SUPPORTED_STDDEV_MODES,
)
from core.errors import WardConfigError


@dataclass(frozen=True)
class WardConfig:
    """Validated runtime configuration.

    Attributes:
        data_root: Local root directory for warehouse snapshots.
        stddev_mode: Standard deviation convention, ``sample`` or ``population``.
        outlier_threshold: Absolute z-score above which a bill is an outlier.
    """

    data_root: Path
    stddev_mode: str = DEFAULT_STDDEV_MODE
    outlier_threshold: float = DEFAULT_OUTLIER_THRESHOLD

    @classmethod
    def from_env(cls) -> "WardConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            WardConfigError: If environment values are invalid.
        """
        data_root_value = os.getenv("WARD_DATA_ROOT", str(DEFAULT_DATA_ROOT))
        stddev_mode = _parse_stddev_mode(os.getenv("WARD_STDDEV_MODE", DEFAULT_STDDEV_MODE))
        outlier_threshold = _parse_outlier_threshold(
            os.getenv("WARD_OUTLIER_THRESHOLD", str(DEFAULT_OUTLIER_THRESHOLD))
        )
        return cls(
            data_root=Path(data_root_value).expanduser().resolve(),
            stddev_mode=stddev_mode,
            outlier_threshold=outlier_threshold,
        )


def _parse_stddev_mode(raw_value: str) -> str:
    """Parse the standard deviation mode environment value.

    Args:
        raw_value: Raw string from environment.

    Returns:
        Normalized stddev mode.

    Raises:
        WardConfigError: If value is not a supported mode.
    """
    normalized_value = raw_value.strip().lower()
    if normalized_value in SUPPORTED_STDDEV_MODES:
        return normalized_value
    supported = ", ".join(SUPPORTED_STDDEV_MODES)
    raise WardConfigError(
        f"Invalid WARD_STDDEV_MODE value: expected one of {supported}, got '{raw_value}'. "
        "Set WARD_STDDEV_MODE to a supported mode."
    )


def _parse_outlier_threshold(raw_value: str) -> float:
    """Parse the outlier threshold environment value.

    Args:
        raw_value: Raw string from environment.

    Returns:
        Parsed positive threshold.

    Raises:
        WardConfigError: If value is not a positive number.
    """
    try:
        threshold = float(raw_value)
    except ValueError as error:
        raise WardConfigError(
            "Invalid WARD_OUTLIER_THRESHOLD value: "
            f"expected number, got '{raw_value}'. "
            "Set WARD_OUTLIER_THRESHOLD to a positive numeric value."
        ) from error
    if threshold <= 0:
        raise WardConfigError(
            f"Invalid WARD_OUTLIER_THRESHOLD value {threshold}: expected value > 0."
        )
    return threshold
