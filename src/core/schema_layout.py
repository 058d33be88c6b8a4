"""Star schema layout definitions.

This module declares how raw admission fields map onto dimension
tables and the fact table, shared by normalization and the store.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class DimensionSpec:
    """Declarative layout of one dimension table.

    Attributes:
        name: Dimension name used in code and manifests.
        table_name: Persisted table name.
        id_column: Surrogate id column, also the fact foreign key.
        key_columns: Natural-key column names in the dimension table.
        source_fields: Raw row fields feeding each key column.
        population_fields: Fields that must be present for a row to
            contribute a dimension member.
    """

    name: str
    table_name: str
    id_column: str
    key_columns: tuple[str, ...]
    source_fields: tuple[str, ...]
    population_fields: tuple[str, ...]


DIMENSION_SPECS: tuple[DimensionSpec, ...] = (
    DimensionSpec(
        name="patients",
        table_name="dim_patients",
        id_column="patient_id",
        key_columns=("name", "gender", "blood_type"),
        source_fields=("name", "gender", "blood_type"),
        population_fields=("name",),
    ),
    DimensionSpec(
        name="doctors",
        table_name="dim_doctors",
        id_column="doctor_id",
        key_columns=("doctor_name",),
        source_fields=("doctor",),
        population_fields=("doctor",),
    ),
    DimensionSpec(
        name="hospitals",
        table_name="dim_hospitals",
        id_column="hospital_id",
        key_columns=("hospital_name",),
        source_fields=("hospital",),
        population_fields=("hospital",),
    ),
    DimensionSpec(
        name="insurance",
        table_name="dim_insurance",
        id_column="insurance_id",
        key_columns=("provider_name",),
        source_fields=("insurance_provider",),
        population_fields=("insurance_provider",),
    ),
    DimensionSpec(
        name="conditions",
        table_name="dim_conditions",
        id_column="condition_id",
        key_columns=("condition_name",),
        source_fields=("medical_condition",),
        population_fields=("medical_condition",),
    ),
    DimensionSpec(
        name="medications",
        table_name="dim_medications",
        id_column="medication_id",
        key_columns=("medication_name",),
        source_fields=("medication",),
        population_fields=("medication",),
    ),
)

FACT_COLUMNS = (
    "admission_id",
    "patient_id",
    "doctor_id",
    "hospital_id",
    "insurance_id",
    "condition_id",
    "medication_id",
    "patient_age",
    "admission_date",
    "discharge_date",
    "admission_type",
    "room_number",
    "billing_amount",
    "test_results",
    "length_of_stay",
)
