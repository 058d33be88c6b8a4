"""Unit tests for typed admission row parsing."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from core.types import SourceRow
from ingest.row_parser import RowParseError, parse_source_row, parse_source_rows


def _source_row(**overrides: str | None) -> SourceRow:
    values: dict[str, str | None] = {
        "name": "Jane Doe",
        "age": "30",
        "gender": "Female",
        "blood_type": "A+",
        "medical_condition": "Asthma",
        "date_of_admission": "2023-01-10",
        "doctor": "Dr. Smith",
        "hospital": "General Hospital",
        "insurance_provider": "Aetna",
        "billing_amount": "100.005",
        "room_number": "101",
        "admission_type": "emergency",
        "discharge_date": "2023-01-15",
        "medication": "Albuterol",
        "test_results": "NORMAL",
    }
    values.update(overrides)
    return SourceRow(source_uri="admissions.csv:2", values=values)


def test_parse_source_row_types_every_field() -> None:
    """Well-formed rows should parse into typed values."""
    row = parse_source_row(_source_row(name="  Jane Doe  "))

    assert (
        row.name == "Jane Doe"
        and row.age == 30
        and row.date_of_admission == date(2023, 1, 10)
        and row.discharge_date == date(2023, 1, 15)
        and row.room_number == 101
    )


def test_parse_source_row_rounds_billing_half_up() -> None:
    """Billing amounts should be quantized to cents, rounding half up."""
    row = parse_source_row(_source_row())

    assert row.billing_amount == Decimal("100.01")


def test_parse_source_row_canonicalizes_enum_case() -> None:
    """Admission type and test results should match case-insensitively."""
    row = parse_source_row(_source_row())

    assert row.admission_type == "Emergency" and row.test_results == "Normal"


def test_parse_source_row_keeps_optional_fields_null() -> None:
    """Blank optional fields should parse as None."""
    row = parse_source_row(_source_row(room_number="", billing_amount=None, doctor="   "))

    assert row.room_number is None and row.billing_amount is None and row.doctor is None


@pytest.mark.parametrize(
    ("overrides", "reason"),
    [
        ({"date_of_admission": "2023-13-01"}, "invalid_date"),
        ({"discharge_date": None}, "missing_date"),
        ({"discharge_date": "2023-01-01"}, "discharge_before_admission"),
        ({"billing_amount": "12,50"}, "invalid_amount"),
        ({"billing_amount": "NaN"}, "invalid_amount"),
        ({"billing_amount": "1e30"}, "invalid_amount"),
        ({"age": "-4"}, "invalid_age"),
        ({"room_number": "1A"}, "invalid_room_number"),
        ({"admission_type": "Walk-in"}, "invalid_admission_type"),
        ({"test_results": "Pending"}, "invalid_test_results"),
    ],
)
def test_parse_source_row_rejects_malformed_fields(
    overrides: dict[str, str | None],
    reason: str,
) -> None:
    """Malformed fields should raise with a stable reason code."""
    with pytest.raises(RowParseError) as error_info:
        parse_source_row(_source_row(**overrides))

    assert error_info.value.reason == reason


def test_parse_source_rows_collects_rejects_and_continues() -> None:
    """A malformed row should be recorded without aborting the batch."""
    result = parse_source_rows(
        [
            _source_row(),
            _source_row(date_of_admission="yesterday"),
            _source_row(name="John Smith"),
        ]
    )

    assert (
        [row.name for row in result.rows] == ["Jane Doe", "John Smith"]
        and len(result.rejected_rows) == 1
        and result.rejected_rows[0].reason == "invalid_date"
        and result.rejected_rows[0].source_uri == "admissions.csv:2"
    )


def test_parse_source_rows_rejects_oversized_amount_and_continues() -> None:
    """An amount too long for two-place currency should reject only its row."""
    result = parse_source_rows(
        [
            _source_row(),
            _source_row(billing_amount="1e30"),
            _source_row(billing_amount="12345678901.005"),
        ]
    )

    assert (
        len(result.rows) == 2
        and result.rows[1].billing_amount == Decimal("12345678901.01")
        and [row.reason for row in result.rejected_rows] == ["invalid_amount"]
    )
