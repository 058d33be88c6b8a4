"""Unit tests for seasonality and readmission reports."""

from __future__ import annotations

from decimal import Decimal

from core.types import ReportOptions
from reports.utilization import (
    condition_repeat_rate,
    repeat_visitors,
    seasonal_admissions,
    visitor_type_distribution,
)


def test_seasonal_admissions_ranks_busiest_months(admissions_schema) -> None:
    """Months should be listed in calendar order with competition ranks."""
    table = seasonal_admissions(admissions_schema, ReportOptions())

    assert [
        (row["month_name"], row["admission_count"], row["busiest_rank"]) for row in table.rows
    ] == [
        ("January", 4, 1),
        ("February", 3, 2),
        ("March", 2, 4),
        ("June", 3, 2),
        ("July", 2, 4),
        ("September", 1, 7),
        ("November", 2, 4),
    ]


def test_repeat_visitors_lists_patients_with_multiple_admissions(admissions_schema) -> None:
    """Repeat visitors should be ordered by visit count, then patient id."""
    table = repeat_visitors(admissions_schema, ReportOptions())

    assert [(row["name"], row["visit_count"]) for row in table.rows] == [
        ("Jane Doe", 3),
        ("John Smith", 3),
        ("Maria Garcia", 2),
        ("Luis Torres", 2),
        ("Priya Nair", 2),
    ]


def test_visitor_type_distribution_sums_to_hundred(admissions_schema) -> None:
    """Visitor-type shares should cover every admitted patient."""
    table = visitor_type_distribution(admissions_schema, ReportOptions())

    assert [
        (row["visitor_type"], row["patient_count"], row["pct_of_patients"]) for row in table.rows
    ] == [
        ("One-time", 5, Decimal("50.00")),
        ("2 visits", 3, Decimal("30.00")),
        ("3+ visits", 2, Decimal("20.00")),
    ] and sum(table.column("pct_of_patients")) == Decimal("100.00")


def test_condition_repeat_rate_orders_by_rate(admissions_schema) -> None:
    """Conditions should be ordered by share of repeat patients."""
    table = condition_repeat_rate(admissions_schema, ReportOptions())

    assert [(row["condition_name"], row["repeat_patient_pct"]) for row in table.rows] == [
        ("Asthma", Decimal("100.00")),
        ("Hypertension", Decimal("75.00")),
        ("Diabetes", Decimal("50.00")),
        ("Arthritis", Decimal("33.33")),
    ]
