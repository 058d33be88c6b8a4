"""Typed parsing of raw admission rows.

This module converts string-valued source rows into typed admission rows.
Malformed rows are rejected with a reason code and the batch continues.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable, Mapping

from core.constants import ADMISSION_TYPES, CURRENCY_PLACES, TEST_RESULTS
from core.logging_config import get_logger
from core.types import RawAdmissionRow, RejectedRow, SourceRow

_LOGGER = get_logger(__name__)
_CURRENCY_QUANTUM = Decimal(1).scaleb(-CURRENCY_PLACES)


@dataclass(frozen=True)
class ParseResult:
    """Row parser output.

    Attributes:
        rows: Well-formed rows in input order.
        rejected_rows: Malformed rows with reason codes.
    """

    rows: tuple[RawAdmissionRow, ...]
    rejected_rows: tuple[RejectedRow, ...]


class RowParseError(ValueError):
    """Raised for one malformed field; carries a stable reason code."""

    def __init__(self, reason: str, detail: str) -> None:
        super().__init__(detail)
        self.reason = reason
        self.detail = detail


def parse_source_rows(source_rows: Iterable[SourceRow]) -> ParseResult:
    """Parse source rows, skipping and recording malformed ones.

    Args:
        source_rows: Raw string-valued rows in input order.

    Returns:
        Parsed rows plus rejected rows.
    """
    rows: list[RawAdmissionRow] = []
    rejected_rows: list[RejectedRow] = []
    for source_row in source_rows:
        try:
            rows.append(parse_source_row(source_row))
        except RowParseError as error:
            rejected_rows.append(
                RejectedRow(
                    source_uri=source_row.source_uri,
                    reason=error.reason,
                    detail=error.detail,
                )
            )
    _LOGGER.info("rows_parsed", parsed_count=len(rows), rejected_count=len(rejected_rows))
    return ParseResult(rows=tuple(rows), rejected_rows=tuple(rejected_rows))


def parse_source_row(source_row: SourceRow) -> RawAdmissionRow:
    """Parse one source row into a typed admission row.

    Args:
        source_row: Raw string-valued row.

    Returns:
        Typed admission row.

    Raises:
        RowParseError: If any field is malformed.
    """
    values = source_row.values
    admission_date = _parse_date(values, "date_of_admission")
    discharge_date = _parse_date(values, "discharge_date")
    if discharge_date < admission_date:
        raise RowParseError(
            "discharge_before_admission",
            f"discharge_date {discharge_date} precedes date_of_admission {admission_date}",
        )
    return RawAdmissionRow(
        source_uri=source_row.source_uri,
        name=_clean_text(values.get("name")),
        age=_parse_non_negative_int(values, "age"),
        gender=_clean_text(values.get("gender")),
        blood_type=_clean_text(values.get("blood_type")),
        medical_condition=_clean_text(values.get("medical_condition")),
        date_of_admission=admission_date,
        doctor=_clean_text(values.get("doctor")),
        hospital=_clean_text(values.get("hospital")),
        insurance_provider=_clean_text(values.get("insurance_provider")),
        billing_amount=_parse_amount(values, "billing_amount"),
        room_number=_parse_non_negative_int(values, "room_number"),
        admission_type=_parse_choice(values, "admission_type", ADMISSION_TYPES),
        discharge_date=discharge_date,
        medication=_clean_text(values.get("medication")),
        test_results=_parse_choice(values, "test_results", TEST_RESULTS),
    )


def _clean_text(raw_value: str | None) -> str | None:
    """Trim whitespace and map blank strings to null."""
    if raw_value is None:
        return None
    cleaned = raw_value.strip()
    return cleaned if cleaned else None


def _parse_date(values: Mapping[str, str | None], field_name: str) -> date:
    text = _clean_text(values.get(field_name))
    if text is None:
        raise RowParseError("missing_date", f"{field_name} is empty")
    try:
        return date.fromisoformat(text)
    except ValueError as error:
        raise RowParseError(
            "invalid_date", f"{field_name} '{text}' is not a YYYY-MM-DD date"
        ) from error


def _parse_amount(values: Mapping[str, str | None], field_name: str) -> Decimal | None:
    text = _clean_text(values.get(field_name))
    if text is None:
        return None
    try:
        amount = Decimal(text)
    except InvalidOperation as error:
        raise RowParseError("invalid_amount", f"{field_name} '{text}' is not numeric") from error
    if not amount.is_finite():
        raise RowParseError("invalid_amount", f"{field_name} '{text}' is not a finite number")
    try:
        return amount.quantize(_CURRENCY_QUANTUM, rounding=ROUND_HALF_UP)
    except InvalidOperation as error:
        raise RowParseError(
            "invalid_amount", f"{field_name} '{text}' has too many digits to store"
        ) from error


def _parse_non_negative_int(values: Mapping[str, str | None], field_name: str) -> int | None:
    text = _clean_text(values.get(field_name))
    if text is None:
        return None
    try:
        parsed = int(text)
    except ValueError as error:
        raise RowParseError(
            f"invalid_{field_name}", f"{field_name} '{text}' is not an integer"
        ) from error
    if parsed < 0:
        raise RowParseError(f"invalid_{field_name}", f"{field_name} {parsed} is negative")
    return parsed


def _parse_choice(
    values: Mapping[str, str | None],
    field_name: str,
    choices: tuple[str, ...],
) -> str | None:
    text = _clean_text(values.get(field_name))
    if text is None:
        return None
    for choice in choices:
        if choice.lower() == text.lower():
            return choice
    raise RowParseError(
        f"invalid_{field_name}",
        f"{field_name} '{text}' is not one of {', '.join(choices)}",
    )
