"""Type-safe field parsing helpers for run-spec execution.

This module centralizes primitive parsing so run-spec executors can stay
concise and produce consistent validation errors across CLI and SDK flows.
"""

from __future__ import annotations

from typing import Mapping

from core.constants import DEFAULT_EXPORT_FORMAT, SUPPORTED_EXPORT_FORMATS
from core.errors import WardRunSpecError


def required_string(args: Mapping[str, object], field_name: str) -> str:
    """Read a required string field from a run-spec step."""
    value = optional_string(args, field_name)
    if value is None:
        raise WardRunSpecError(f"Run-spec step is missing required field '{field_name}'.")
    return value


def optional_string(args: Mapping[str, object], field_name: str) -> str | None:
    """Read an optional string field from a run-spec step."""
    value = args.get(field_name)
    if value is None:
        return None
    if isinstance(value, str):
        stripped = value.strip()
        return stripped if stripped else None
    raise WardRunSpecError(f"Run-spec field '{field_name}' must be a string when provided.")


def string_list(args: Mapping[str, object], field_name: str) -> tuple[str, ...]:
    """Read a string or list of strings, empty when absent.

    A single string is accepted as shorthand for a one-item list.
    """
    value = args.get(field_name)
    if value is None:
        return ()
    if isinstance(value, str):
        return (value.strip(),) if value.strip() else ()
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return tuple(item.strip() for item in value if item.strip())
    raise WardRunSpecError(
        f"Run-spec field '{field_name}' must be a string or a list of strings."
    )


def parse_export_format(args: Mapping[str, object]) -> str:
    """Parse optional export file format from step arguments."""
    value = optional_string(args, "format")
    if value is None:
        return DEFAULT_EXPORT_FORMAT
    if value in SUPPORTED_EXPORT_FORMATS:
        return value
    supported_rows = ", ".join(SUPPORTED_EXPORT_FORMATS)
    raise WardRunSpecError(f"Invalid format '{value}'. Use one of: {supported_rows}.")
