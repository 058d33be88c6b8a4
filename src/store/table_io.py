"""Parquet persistence helpers for star schema tables.

This module converts dimension and fact tables to Apache Arrow tables
and writes them as Parquet files inside a snapshot version directory.
Rejected rows are mirrored to JSONL for lightweight inspection.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import pyarrow as pa
import pyarrow.parquet as pq

from core.constants import FACT_TABLE_NAME, REJECTS_FILE_NAME, TABLE_FILE_SUFFIX
from core.errors import WardStoreError
from core.schema_layout import DIMENSION_SPECS, FACT_COLUMNS, DimensionSpec
from core.types import AdmissionFact, DimensionTable, RejectedRow, StarSchema

FACT_ARROW_SCHEMA = pa.schema(
    [
        ("admission_id", pa.int64()),
        ("patient_id", pa.int64()),
        ("doctor_id", pa.int64()),
        ("hospital_id", pa.int64()),
        ("insurance_id", pa.int64()),
        ("condition_id", pa.int64()),
        ("medication_id", pa.int64()),
        ("patient_age", pa.int64()),
        ("admission_date", pa.date32()),
        ("discharge_date", pa.date32()),
        ("admission_type", pa.string()),
        ("room_number", pa.int64()),
        ("billing_amount", pa.decimal128(38, 2)),
        ("test_results", pa.string()),
        ("length_of_stay", pa.int64()),
    ]
)


def write_schema_tables(version_dir: Path, schema: StarSchema) -> dict[str, int]:
    """Persist every dimension and the fact table as Parquet.

    Args:
        version_dir: Snapshot version directory.
        schema: Normalized star schema.

    Returns:
        Persisted table name to row count.

    Raises:
        WardStoreError: If a table cannot be converted or written.
    """
    row_counts: dict[str, int] = {}
    for spec in DIMENSION_SPECS:
        dimension = schema.dimension(spec.name)
        _write_table(
            version_dir,
            spec.table_name,
            lambda spec=spec, dimension=dimension: dimension_to_arrow(spec, dimension),
        )
        row_counts[spec.table_name] = len(dimension)
    _write_table(version_dir, FACT_TABLE_NAME, lambda: facts_to_arrow(list(schema.facts)))
    row_counts[FACT_TABLE_NAME] = len(schema.facts)
    return row_counts


def read_schema_tables(version_dir: Path) -> StarSchema:
    """Load a star schema from a snapshot version directory.

    Args:
        version_dir: Snapshot version directory.

    Returns:
        Star schema with dimensions and facts in persisted order.

    Raises:
        WardStoreError: If any table file is missing or unreadable.
    """
    dimensions = {
        spec.name: dimension_from_rows(spec, _read_table_rows(version_dir, spec.table_name))
        for spec in DIMENSION_SPECS
    }
    facts = tuple(
        _fact_from_row(row) for row in _read_table_rows(version_dir, FACT_TABLE_NAME)
    )
    return StarSchema(dimensions=dimensions, facts=facts)


def dimension_to_arrow(spec: DimensionSpec, dimension: DimensionTable) -> pa.Table:
    """Convert one dimension into an Arrow table ordered by surrogate id."""
    ordered_items = sorted(dimension.ids.items(), key=lambda item: item[1])
    columns: dict[str, list[Any]] = {spec.id_column: [item[1] for item in ordered_items]}
    for key_index, column_name in enumerate(spec.key_columns):
        columns[column_name] = [item[0][key_index] for item in ordered_items]
    arrow_schema = pa.schema(
        [(spec.id_column, pa.int64())]
        + [(column_name, pa.string()) for column_name in spec.key_columns]
    )
    return pa.Table.from_pydict(columns, schema=arrow_schema)


def dimension_from_rows(spec: DimensionSpec, rows: list[dict[str, Any]]) -> DimensionTable:
    """Rebuild a dimension table from persisted rows."""
    ordered_rows = sorted(rows, key=lambda row: int(row[spec.id_column]))
    ids = {
        tuple(row[column_name] for column_name in spec.key_columns): int(row[spec.id_column])
        for row in ordered_rows
    }
    return DimensionTable(
        name=spec.name,
        table_name=spec.table_name,
        id_column=spec.id_column,
        key_columns=spec.key_columns,
        ids=ids,
    )


def facts_to_arrow(facts: list[AdmissionFact]) -> pa.Table:
    """Convert admission facts into an Arrow table."""
    columns: dict[str, list[Any]] = {column_name: [] for column_name in FACT_COLUMNS}
    for fact in facts:
        for column_name in FACT_COLUMNS:
            columns[column_name].append(getattr(fact, column_name))
    return pa.Table.from_pydict(columns, schema=FACT_ARROW_SCHEMA)


def write_rejected_rows(version_dir: Path, rejected_rows: list[RejectedRow]) -> None:
    """Write rejected rows to a JSONL mirror file.

    Args:
        version_dir: Snapshot version directory.
        rejected_rows: Rows dropped during parse and normalization.

    Raises:
        WardStoreError: If write fails.
    """
    rejects_path = version_dir / REJECTS_FILE_NAME
    lines = [
        json.dumps(
            {"source_uri": row.source_uri, "reason": row.reason, "detail": row.detail},
            sort_keys=True,
        )
        for row in rejected_rows
    ]
    try:
        rejects_path.write_text("".join(line + "\n" for line in lines), encoding="utf-8")
    except OSError as error:
        raise WardStoreError(
            f"Failed to persist rejected rows at {rejects_path}: {error}. "
            "Check write permissions and available disk space."
        ) from error


def read_rejected_rows(version_dir: Path) -> list[RejectedRow]:
    """Read rejected rows from a snapshot version directory.

    Args:
        version_dir: Snapshot version directory.

    Returns:
        Rejected rows in persisted order, empty when no file exists.

    Raises:
        WardStoreError: If a JSONL line is invalid.
    """
    rejects_path = version_dir / REJECTS_FILE_NAME
    if not rejects_path.exists():
        return []
    rejected_rows: list[RejectedRow] = []
    for line_number, line in enumerate(rejects_path.read_text(encoding="utf-8").splitlines(), 1):
        if not line.strip():
            continue
        try:
            payload = json.loads(line)
        except json.JSONDecodeError as error:
            raise WardStoreError(
                f"Failed to parse rejected rows at {rejects_path}:{line_number}: "
                f"{error.msg}. Recreate the warehouse snapshot."
            ) from error
        rejected_rows.append(
            RejectedRow(
                source_uri=str(payload.get("source_uri", "")),
                reason=str(payload.get("reason", "")),
                detail=str(payload.get("detail", "")),
            )
        )
    return rejected_rows


def _write_table(
    version_dir: Path,
    table_name: str,
    build_table: Callable[[], pa.Table],
) -> None:
    table_path = version_dir / f"{table_name}{TABLE_FILE_SUFFIX}"
    try:
        pq.write_table(build_table(), str(table_path))
    except (pa.ArrowException, OSError) as error:
        raise WardStoreError(
            f"Failed to write table {table_name} at {table_path}: {error}. "
            "Check write permissions and available disk space."
        ) from error


def _read_table_rows(version_dir: Path, table_name: str) -> list[dict[str, Any]]:
    table_path = version_dir / f"{table_name}{TABLE_FILE_SUFFIX}"
    if not table_path.exists():
        raise WardStoreError(
            f"Failed to load snapshot at {version_dir}: missing {table_path.name}. "
            "Recreate the warehouse snapshot."
        )
    try:
        return pq.read_table(str(table_path)).to_pylist()
    except (pa.ArrowException, OSError) as error:
        raise WardStoreError(
            f"Failed to read table {table_name} at {table_path}: {error}. "
            "Recreate the warehouse snapshot."
        ) from error


def _fact_from_row(row: dict[str, Any]) -> AdmissionFact:
    return AdmissionFact(
        admission_id=int(row["admission_id"]),
        patient_id=int(row["patient_id"]),
        doctor_id=int(row["doctor_id"]),
        hospital_id=int(row["hospital_id"]),
        insurance_id=int(row["insurance_id"]),
        condition_id=int(row["condition_id"]),
        medication_id=int(row["medication_id"]),
        patient_age=row["patient_age"],
        admission_date=row["admission_date"],
        discharge_date=row["discharge_date"],
        admission_type=row["admission_type"],
        room_number=row["room_number"],
        billing_amount=row["billing_amount"],
        test_results=row["test_results"],
    )
