"""Unit tests for star schema normalization."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from core.types import RawAdmissionRow
from transforms.normalization import build_star_schema


def _raw_row(**overrides: object) -> RawAdmissionRow:
    values: dict[str, object] = {
        "source_uri": "admissions.csv:2",
        "name": "Jane Doe",
        "age": 30,
        "gender": "Female",
        "blood_type": "A+",
        "medical_condition": "Asthma",
        "date_of_admission": date(2023, 1, 10),
        "doctor": "Dr. Smith",
        "hospital": "General Hospital",
        "insurance_provider": "Aetna",
        "billing_amount": Decimal("100.00"),
        "room_number": 101,
        "admission_type": "Emergency",
        "discharge_date": date(2023, 1, 15),
        "medication": "Albuterol",
        "test_results": "Normal",
    }
    values.update(overrides)
    return RawAdmissionRow(**values)  # type: ignore[arg-type]


def test_build_star_schema_deduplicates_natural_keys() -> None:
    """Repeated descriptive values should map onto one dimension row."""
    result = build_star_schema(
        [
            _raw_row(),
            _raw_row(
                doctor="Dr. Lee",
                date_of_admission=date(2023, 2, 1),
                discharge_date=date(2023, 2, 2),
            ),
            _raw_row(name="John Smith", gender="Male", blood_type="O+"),
        ]
    )
    schema = result.schema

    assert (
        len(schema.dimension("patients")) == 2
        and len(schema.dimension("doctors")) == 2
        and len(schema.dimension("hospitals")) == 1
        and [fact.patient_id for fact in schema.facts] == [1, 1, 2]
        and [fact.doctor_id for fact in schema.facts] == [1, 2, 1]
    )


def test_build_star_schema_assigns_ids_in_first_seen_order() -> None:
    """Surrogate ids should follow input order, not sorted order."""
    result = build_star_schema(
        [_raw_row(medication="Zoloft"), _raw_row(medication="Aspirin"), _raw_row()]
    )
    medications = result.schema.dimension("medications")

    assert list(medications.ids) == [("Zoloft",), ("Aspirin",), ("Albuterol",)]


def test_build_star_schema_patient_key_includes_gender_and_blood_type() -> None:
    """Same name with different blood type should be a distinct patient."""
    result = build_star_schema([_raw_row(), _raw_row(blood_type="B-")])

    assert len(result.schema.dimension("patients")) == 2


def test_build_star_schema_drops_row_missing_doctor() -> None:
    """A row without doctor should be absent from dim_doctors and the facts."""
    result = build_star_schema([_raw_row(), _raw_row(doctor=None, name="John Smith")])
    schema = result.schema

    assert (
        len(schema.facts) == 1
        and len(schema.dimension("doctors")) == 1
        and result.rejected_rows[0].reason == "missing_doctor"
        and len(schema.dimension("patients")) == 2
    )


def test_build_star_schema_keeps_fact_with_null_room() -> None:
    """Optional fact attributes should stay null instead of dropping the row."""
    result = build_star_schema([_raw_row(room_number=None, billing_amount=None, age=None)])
    fact = result.schema.facts[0]

    assert (
        fact.room_number is None
        and fact.billing_amount is None
        and fact.patient_age is None
        and result.rejected_rows == ()
    )


def test_build_star_schema_is_deterministic() -> None:
    """Normalizing the same rows twice should yield identical mappings and facts."""
    rows = [_raw_row(), _raw_row(name="John Smith"), _raw_row(insurance_provider="Cigna")]

    first = build_star_schema(rows).schema
    second = build_star_schema(rows).schema

    assert first.facts == second.facts and all(
        dict(first.dimension(name).ids) == dict(second.dimension(name).ids)
        for name in first.dimensions
    )


def test_build_star_schema_fixture_counts(admissions_schema) -> None:
    """The admissions fixture should normalize into the expected table sizes."""
    counts = {name: len(table) for name, table in admissions_schema.dimensions.items()}

    assert counts == {
        "patients": 11,
        "doctors": 3,
        "hospitals": 2,
        "insurance": 4,
        "conditions": 4,
        "medications": 7,
    } and len(admissions_schema.facts) == 17


def test_length_of_stay_is_day_difference() -> None:
    """Length of stay should be discharge minus admission in days."""
    result = build_star_schema([_raw_row()])

    assert result.schema.facts[0].length_of_stay == 5
