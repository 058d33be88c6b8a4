"""Star schema normalization transform.

This module deduplicates raw admission rows into dimension tables and
re-keys the fact collection through natural-key joins. Surrogate ids
are assigned in first-seen order, so the same input always yields the
same mapping.

A row whose dimension field is absent does not populate that dimension.
A row missing any natural-key component, or whose key does not resolve,
is dropped from the fact output and reported as a rejected row.
"""

from __future__ import annotations

from collections import Counter
from typing import Iterable, Mapping

from core.logging_config import get_logger
from core.schema_layout import DIMENSION_SPECS, DimensionSpec
from core.types import (
    AdmissionFact,
    DimensionTable,
    NaturalKey,
    NormalizationResult,
    RawAdmissionRow,
    RejectedRow,
    StarSchema,
)

_LOGGER = get_logger(__name__)


class ReferenceGapError(LookupError):
    """Raised when a row cannot be joined to one of its dimensions."""

    def __init__(self, reason: str, detail: str) -> None:
        super().__init__(detail)
        self.reason = reason
        self.detail = detail


def build_star_schema(rows: Iterable[RawAdmissionRow]) -> NormalizationResult:
    """Normalize raw rows into six dimensions and one fact collection.

    Args:
        rows: Parsed admission rows in input order.

    Returns:
        Star schema plus rows dropped from the fact output.
    """
    row_list = list(rows)
    dimensions = {spec.name: build_dimension(spec, row_list) for spec in DIMENSION_SPECS}
    facts: list[AdmissionFact] = []
    rejected_rows: list[RejectedRow] = []
    for row in row_list:
        try:
            surrogate_ids = resolve_references(row, dimensions)
        except ReferenceGapError as error:
            rejected_rows.append(
                RejectedRow(source_uri=row.source_uri, reason=error.reason, detail=error.detail)
            )
            continue
        facts.append(_build_fact(len(facts) + 1, row, surrogate_ids))
    schema = StarSchema(dimensions=dimensions, facts=tuple(facts))
    _log_schema_built(schema, len(row_list), rejected_rows)
    return NormalizationResult(schema=schema, rejected_rows=tuple(rejected_rows))


def build_dimension(spec: DimensionSpec, rows: Iterable[RawAdmissionRow]) -> DimensionTable:
    """Build one deduplicated dimension from distinct natural keys.

    Args:
        spec: Dimension layout.
        rows: Parsed admission rows in input order.

    Returns:
        Dimension table with ids assigned in first-seen order.
    """
    ids: dict[NaturalKey, int] = {}
    for row in rows:
        if any(getattr(row, field_name) is None for field_name in spec.population_fields):
            continue
        key = natural_key(spec, row)
        if key not in ids:
            ids[key] = len(ids) + 1
    return DimensionTable(
        name=spec.name,
        table_name=spec.table_name,
        id_column=spec.id_column,
        key_columns=spec.key_columns,
        ids=ids,
    )


def natural_key(spec: DimensionSpec, row: RawAdmissionRow) -> NaturalKey:
    """Extract a dimension's natural key from a raw row."""
    return tuple(getattr(row, field_name) for field_name in spec.source_fields)


def resolve_references(
    row: RawAdmissionRow,
    dimensions: Mapping[str, DimensionTable],
) -> dict[str, int]:
    """Join one row to every dimension.

    Args:
        row: Parsed admission row.
        dimensions: Dimension tables by name.

    Returns:
        Fact foreign-key column to surrogate id.

    Raises:
        ReferenceGapError: If a key component is missing or does not resolve.
    """
    surrogate_ids: dict[str, int] = {}
    for spec in DIMENSION_SPECS:
        for field_name in spec.source_fields:
            if getattr(row, field_name) is None:
                raise ReferenceGapError(
                    f"missing_{field_name}",
                    f"{field_name} is empty, so the row cannot join {spec.table_name}",
                )
        surrogate_id = dimensions[spec.name].lookup(natural_key(spec, row))
        if surrogate_id is None:
            raise ReferenceGapError(
                f"unresolved_{spec.name}",
                f"natural key {natural_key(spec, row)} is absent from {spec.table_name}",
            )
        surrogate_ids[spec.id_column] = surrogate_id
    return surrogate_ids


def _build_fact(
    admission_id: int,
    row: RawAdmissionRow,
    surrogate_ids: Mapping[str, int],
) -> AdmissionFact:
    return AdmissionFact(
        admission_id=admission_id,
        patient_id=surrogate_ids["patient_id"],
        doctor_id=surrogate_ids["doctor_id"],
        hospital_id=surrogate_ids["hospital_id"],
        insurance_id=surrogate_ids["insurance_id"],
        condition_id=surrogate_ids["condition_id"],
        medication_id=surrogate_ids["medication_id"],
        patient_age=row.age,
        admission_date=row.date_of_admission,
        discharge_date=row.discharge_date,
        admission_type=row.admission_type,
        room_number=row.room_number,
        billing_amount=row.billing_amount,
        test_results=row.test_results,
    )


def _log_schema_built(
    schema: StarSchema,
    input_count: int,
    rejected_rows: list[RejectedRow],
) -> None:
    """Log normalization completion with per-table counts."""
    _LOGGER.info(
        "star_schema_built",
        input_count=input_count,
        fact_count=len(schema.facts),
        dimension_counts={name: len(table) for name, table in schema.dimensions.items()},
        rejected_by_reason=dict(Counter(row.reason for row in rejected_rows)),
    )
