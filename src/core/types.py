"""Shared typed models.

This module defines immutable data models used by ingest, normalization,
store, and reporting layers to keep interfaces explicit and stable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from functools import cached_property
from typing import Mapping

from core.constants import DEFAULT_EXPORT_FORMAT, DEFAULT_OUTLIER_THRESHOLD, DEFAULT_STDDEV_MODE

NaturalKey = tuple[str | None, ...]


@dataclass(frozen=True)
class SourceRow:
    """Raw tabular row before parsing.

    Attributes:
        source_uri: Origin file and line, e.g. ``admissions.csv:12``.
        values: Column name to raw string value, ``None`` when absent.
    """

    source_uri: str
    values: Mapping[str, str | None]


@dataclass(frozen=True)
class RawAdmissionRow:
    """Parsed flat admission row with all descriptive fields inlined.

    Attributes:
        source_uri: Origin file and line.
        name: Patient name.
        age: Patient age at admission.
        gender: Patient gender.
        blood_type: Patient blood type.
        medical_condition: Diagnosed condition.
        date_of_admission: Admission calendar date.
        doctor: Attending doctor name.
        hospital: Hospital name.
        insurance_provider: Insurance provider name.
        billing_amount: Billed amount with 2 fractional digits.
        room_number: Assigned room number.
        admission_type: Emergency, Elective, or Urgent.
        discharge_date: Discharge calendar date.
        medication: Prescribed medication.
        test_results: Normal, Abnormal, or Inconclusive.
    """

    source_uri: str
    name: str | None
    age: int | None
    gender: str | None
    blood_type: str | None
    medical_condition: str | None
    date_of_admission: date
    doctor: str | None
    hospital: str | None
    insurance_provider: str | None
    billing_amount: Decimal | None
    room_number: int | None
    admission_type: str | None
    discharge_date: date
    medication: str | None
    test_results: str | None


@dataclass(frozen=True)
class RejectedRow:
    """One input row excluded from the fact output.

    Attributes:
        source_uri: Origin file and line.
        reason: Stable reason code, e.g. ``invalid_date`` or ``missing_doctor``.
        detail: Human-readable explanation.
    """

    source_uri: str
    reason: str
    detail: str


@dataclass(frozen=True)
class DimensionTable:
    """Deduplicated natural-key lookup with surrogate ids.

    Attributes:
        name: Dimension name, e.g. ``patients``.
        table_name: Persisted table name, e.g. ``dim_patients``.
        id_column: Surrogate id column name.
        key_columns: Natural-key column names in key order.
        ids: Natural key to surrogate id, in first-seen order.
    """

    name: str
    table_name: str
    id_column: str
    key_columns: tuple[str, ...]
    ids: Mapping[NaturalKey, int]

    def lookup(self, key: NaturalKey) -> int | None:
        """Return the surrogate id for a natural key, if present."""
        return self.ids.get(key)

    def key_for(self, surrogate_id: int) -> NaturalKey:
        """Return the natural key owning a surrogate id.

        Raises:
            KeyError: If the id does not belong to this dimension.
        """
        return self._keys_by_id[surrogate_id]

    def label(self, surrogate_id: int) -> str | None:
        """Return the first key column value for display."""
        return self.key_for(surrogate_id)[0]

    @cached_property
    def _keys_by_id(self) -> dict[int, NaturalKey]:
        return {surrogate_id: key for key, surrogate_id in self.ids.items()}

    def __len__(self) -> int:
        return len(self.ids)


@dataclass(frozen=True)
class AdmissionFact:
    """One admission re-keyed onto dimension surrogate ids.

    Attributes:
        admission_id: Surrogate fact id in fact order.
        patient_id: Patient dimension id.
        doctor_id: Doctor dimension id.
        hospital_id: Hospital dimension id.
        insurance_id: Insurance dimension id.
        condition_id: Condition dimension id.
        medication_id: Medication dimension id.
        patient_age: Patient age at admission.
        admission_date: Admission date.
        discharge_date: Discharge date.
        admission_type: Emergency, Elective, or Urgent.
        room_number: Assigned room number.
        billing_amount: Billed amount.
        test_results: Normal, Abnormal, or Inconclusive.
    """

    admission_id: int
    patient_id: int
    doctor_id: int
    hospital_id: int
    insurance_id: int
    condition_id: int
    medication_id: int
    patient_age: int | None
    admission_date: date
    discharge_date: date
    admission_type: str | None
    room_number: int | None
    billing_amount: Decimal | None
    test_results: str | None

    @property
    def length_of_stay(self) -> int:
        """Return discharge minus admission date in days."""
        return (self.discharge_date - self.admission_date).days


@dataclass(frozen=True)
class StarSchema:
    """Normalized warehouse: six dimensions and one fact collection.

    Attributes:
        dimensions: Dimension name to dimension table.
        facts: Admission facts in input order.
    """

    dimensions: Mapping[str, DimensionTable]
    facts: tuple[AdmissionFact, ...]

    def dimension(self, name: str) -> DimensionTable:
        """Return one dimension table by name."""
        return self.dimensions[name]


@dataclass(frozen=True)
class NormalizationResult:
    """Normalizer output.

    Attributes:
        schema: Normalized star schema.
        rejected_rows: Rows dropped from the fact output and why.
    """

    schema: StarSchema
    rejected_rows: tuple[RejectedRow, ...]


@dataclass(frozen=True)
class WarehouseManifest:
    """Immutable warehouse snapshot metadata.

    Attributes:
        warehouse_name: Logical warehouse identifier.
        version_id: Immutable snapshot id.
        created_at: UTC creation timestamp.
        source_uri: Input the snapshot was built from.
        input_count: Number of source rows read.
        fact_count: Number of admission facts persisted.
        dimension_counts: Row count per dimension name.
        rejected_by_reason: Rejected row count per reason code.
    """

    warehouse_name: str
    version_id: str
    created_at: datetime
    source_uri: str
    input_count: int
    fact_count: int
    dimension_counts: Mapping[str, int] = field(default_factory=dict)
    rejected_by_reason: Mapping[str, int] = field(default_factory=dict)

    @property
    def rejected_count(self) -> int:
        """Return total rejected rows across all reasons."""
        return sum(self.rejected_by_reason.values())


@dataclass(frozen=True)
class IngestOptions:
    """Ingest command options.

    Attributes:
        warehouse_name: Warehouse name to create or add a version to.
        source_uri: Input CSV/JSONL file or directory.
    """

    warehouse_name: str
    source_uri: str


@dataclass(frozen=True)
class SnapshotWriteRequest:
    """Request payload for warehouse snapshot persistence.

    Attributes:
        warehouse_name: Logical warehouse identifier.
        source_uri: Input the schema was built from.
        input_count: Number of source rows read.
        schema: Normalized star schema to persist.
        rejected_rows: Rows dropped during parse and normalization.
    """

    warehouse_name: str
    source_uri: str
    input_count: int
    schema: StarSchema
    rejected_rows: tuple[RejectedRow, ...] = ()


@dataclass(frozen=True)
class ReportOptions:
    """Statistical settings shared by reporting queries.

    Attributes:
        stddev_mode: ``sample`` or ``population`` standard deviation.
        outlier_threshold: Absolute z-score above which a bill is an outlier.
    """

    stddev_mode: str = DEFAULT_STDDEV_MODE
    outlier_threshold: float = DEFAULT_OUTLIER_THRESHOLD


@dataclass(frozen=True)
class ReportTable:
    """Tabular report output.

    Attributes:
        name: Registry name of the report.
        title: Analytical question the report answers.
        columns: Ordered column names.
        rows: Ordered rows keyed by column name.
    """

    name: str
    title: str
    columns: tuple[str, ...]
    rows: tuple[Mapping[str, object], ...]

    def column(self, column_name: str) -> list[object]:
        """Return all values for one column in row order."""
        return [row.get(column_name) for row in self.rows]


@dataclass(frozen=True)
class ReportExportRequest:
    """Request payload for report file export.

    Attributes:
        warehouse_name: Warehouse identifier.
        output_dir: Local output directory.
        report_names: Reports to export; every report when empty.
        version_id: Optional version id; latest if omitted.
        file_format: ``csv`` or ``jsonl``.
    """

    warehouse_name: str
    output_dir: str
    report_names: tuple[str, ...] = ()
    version_id: str | None = None
    file_format: str = DEFAULT_EXPORT_FORMAT
