"""Source table readers for ingestion.

This module loads raw admission rows from local CSV or JSONL files.
It normalizes headers into source rows for the row parser. Rows that
cannot be split into columns are rejected and the file read continues.
"""

from __future__ import annotations

from dataclasses import dataclass
import json
from pathlib import Path
from typing import Any

import pyarrow as pa
import pyarrow.csv as pacsv

from core.constants import RAW_COLUMNS, SUPPORTED_INPUT_EXTENSIONS
from core.errors import WardIngestError
from core.types import RejectedRow, SourceRow

MALFORMED_ROW_REASON = "malformed_row"


@dataclass(frozen=True)
class SourceReadResult:
    """Reader output.

    Attributes:
        rows: Source rows in file and line order.
        rejected_rows: Lines that could not be read as one admission row.
    """

    rows: tuple[SourceRow, ...]
    rejected_rows: tuple[RejectedRow, ...]

    @property
    def input_count(self) -> int:
        """Count every data line seen, readable or not."""
        return len(self.rows) + len(self.rejected_rows)


class _JsonlLineError(ValueError):
    """Raised for one JSONL line that is not a JSON object."""


def read_source_rows(source_uri: str) -> SourceReadResult:
    """Load source rows from a local file or directory.

    Args:
        source_uri: Local CSV/JSONL file or a directory of them.

    Returns:
        Ordered source rows plus malformed lines.

    Raises:
        WardIngestError: If source cannot be read.
    """
    source_path = Path(source_uri).expanduser()
    if not source_path.exists():
        raise WardIngestError(
            f"Failed to read source at {source_path}: path does not exist. "
            "Provide an existing file or directory."
        )
    if source_path.is_file():
        return _read_file_rows(source_path)
    rows: list[SourceRow] = []
    rejected_rows: list[RejectedRow] = []
    for file_path in sorted(source_path.rglob("*")):
        if file_path.is_file() and _is_supported_file(file_path):
            file_result = _read_file_rows(file_path)
            rows.extend(file_result.rows)
            rejected_rows.extend(file_result.rejected_rows)
    if not rows and not rejected_rows:
        raise WardIngestError(
            f"No readable admission files found under {source_path}. "
            f"Supported extensions: {SUPPORTED_INPUT_EXTENSIONS}."
        )
    return SourceReadResult(rows=tuple(rows), rejected_rows=tuple(rejected_rows))


def normalize_column_name(column_name: str) -> str:
    """Normalize a header so ``Blood Type`` matches ``blood_type``."""
    return "_".join(column_name.strip().lower().split())


def _read_file_rows(file_path: Path) -> SourceReadResult:
    """Read rows from a single file based on its extension.

    Args:
        file_path: Path to CSV or JSONL file.

    Returns:
        Source rows and malformed lines of the file.

    Raises:
        WardIngestError: If the extension is unsupported.
    """
    suffix = file_path.suffix.lower()
    if suffix == ".csv":
        return _read_csv_rows(file_path)
    if suffix == ".jsonl":
        return _read_jsonl_rows(file_path)
    raise WardIngestError(
        f"Unsupported source file {file_path}. "
        f"Supported extensions: {SUPPORTED_INPUT_EXTENSIONS}."
    )


def _read_csv_rows(file_path: Path) -> SourceReadResult:
    """Read every CSV column as a nullable string.

    Rows with the wrong number of cells are skipped by pyarrow and
    recorded as rejections with their physical line number.

    Args:
        file_path: Path to CSV file with a header row.

    Returns:
        Source rows with line-numbered source URIs plus malformed rows.

    Raises:
        WardIngestError: If the CSV cannot be parsed or lacks columns.
    """
    rejected_rows: list[RejectedRow] = []
    skipped_lines: set[int] = set()

    def _reject_invalid_row(invalid_row: Any) -> str:
        line_number = invalid_row.number
        if line_number is not None:
            skipped_lines.add(line_number)
        rejected_rows.append(
            RejectedRow(
                source_uri=f"{file_path}:{line_number if line_number is not None else '?'}",
                reason=MALFORMED_ROW_REASON,
                detail=(
                    f"expected {invalid_row.expected_columns} columns, "
                    f"got {invalid_row.actual_columns}"
                ),
            )
        )
        return "skip"

    read_options = pacsv.ReadOptions(use_threads=False)
    try:
        header_names = pacsv.open_csv(
            str(file_path),
            read_options=read_options,
            parse_options=pacsv.ParseOptions(invalid_row_handler=lambda _row: "skip"),
        ).schema.names
        convert_options = pacsv.ConvertOptions(
            column_types={name: pa.string() for name in header_names},
            strings_can_be_null=True,
            null_values=[""],
        )
        table = pacsv.read_csv(
            str(file_path),
            read_options=read_options,
            parse_options=pacsv.ParseOptions(invalid_row_handler=_reject_invalid_row),
            convert_options=convert_options,
        )
    except (pa.ArrowInvalid, OSError) as error:
        raise WardIngestError(
            f"Failed to parse CSV source at {file_path}: {error}. "
            "Fix the file encoding or delimiter and retry ingest."
        ) from error
    column_map = _build_column_map(file_path, table.column_names)
    rows: list[SourceRow] = []
    line_number = 2
    for payload in table.to_pylist():
        while line_number in skipped_lines:
            line_number += 1
        values = {column_map[name]: payload[name] for name in column_map}
        rows.append(SourceRow(source_uri=f"{file_path}:{line_number}", values=values))
        line_number += 1
    return SourceReadResult(rows=tuple(rows), rejected_rows=tuple(rejected_rows))


def _read_jsonl_rows(file_path: Path) -> SourceReadResult:
    """Read one admission object per JSONL line.

    Args:
        file_path: Path to JSONL file.

    Returns:
        Source rows extracted from JSON lines plus malformed lines.
    """
    rows: list[SourceRow] = []
    rejected_rows: list[RejectedRow] = []
    for line_number, line in enumerate(file_path.read_text(encoding="utf-8").splitlines(), 1):
        if not line.strip():
            continue
        source_uri = f"{file_path}:{line_number}"
        try:
            payload = _parse_jsonl_line(line)
        except _JsonlLineError as error:
            rejected_rows.append(
                RejectedRow(source_uri=source_uri, reason=MALFORMED_ROW_REASON, detail=str(error))
            )
            continue
        normalized_payload = {normalize_column_name(key): value for key, value in payload.items()}
        values = {
            column: _as_optional_text(normalized_payload.get(column)) for column in RAW_COLUMNS
        }
        rows.append(SourceRow(source_uri=source_uri, values=values))
    return SourceReadResult(rows=tuple(rows), rejected_rows=tuple(rejected_rows))


def _parse_jsonl_line(line: str) -> dict[str, Any]:
    """Parse and validate a JSONL row.

    Args:
        line: Raw JSON text line.

    Returns:
        Parsed JSON object.

    Raises:
        _JsonlLineError: If line is not a JSON object.
    """
    try:
        payload = json.loads(line)
    except json.JSONDecodeError as error:
        raise _JsonlLineError(f"invalid JSON: {error.msg}") from error
    if not isinstance(payload, dict):
        raise _JsonlLineError("expected a JSON object per line")
    return payload


def _build_column_map(file_path: Path, column_names: list[str]) -> dict[str, str]:
    """Map raw header names onto canonical column names.

    Args:
        file_path: Source path for error context.
        column_names: Header names as they appear in the file.

    Returns:
        Raw header name to canonical column name for known columns.

    Raises:
        WardIngestError: If any canonical column is missing.
    """
    column_map = {
        name: normalize_column_name(name)
        for name in column_names
        if normalize_column_name(name) in RAW_COLUMNS
    }
    missing_columns = sorted(set(RAW_COLUMNS) - set(column_map.values()))
    if missing_columns:
        raise WardIngestError(
            f"CSV source at {file_path} is missing columns: {', '.join(missing_columns)}. "
            "Add the missing header columns and retry ingest."
        )
    return column_map


def _as_optional_text(value: object) -> str | None:
    """Render a JSON scalar as text, keeping nulls."""
    if value is None:
        return None
    return str(value)


def _is_supported_file(file_path: Path) -> bool:
    """Return whether a local file extension is supported."""
    return file_path.suffix.lower() in SUPPORTED_INPUT_EXTENSIONS
