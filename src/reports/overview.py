"""Warehouse overview reports."""

from __future__ import annotations

from core.constants import FACT_TABLE_NAME, LENGTH_OF_STAY_PLACES
from core.schema_layout import DIMENSION_SPECS
from core.types import ReportOptions, ReportTable, StarSchema
from reports.aggregation import billing_amounts, build_table, currency, mean, quantize


def summary_stats(schema: StarSchema, options: ReportOptions) -> ReportTable:
    """Summarize admission volume, billing, and the admission date range.

    Args:
        schema: Normalized star schema.
        options: Report settings; unused by this report.

    Returns:
        One-row table.
    """
    facts = schema.facts
    admission_dates = [fact.admission_date for fact in facts]
    row = {
        "total_admissions": len(facts),
        "unique_patients": len({fact.patient_id for fact in facts}),
        "hospitals": len({fact.hospital_id for fact in facts}),
        "doctors": len({fact.doctor_id for fact in facts}),
        "avg_billing": currency(mean(billing_amounts(facts))),
        "avg_length_of_stay": quantize(
            mean([fact.length_of_stay for fact in facts]), LENGTH_OF_STAY_PLACES
        ),
        "earliest_admission": min(admission_dates) if admission_dates else None,
        "latest_admission": max(admission_dates) if admission_dates else None,
    }
    return build_table(
        "summary_stats",
        "Headline admission, billing, and stay statistics",
        (
            "total_admissions",
            "unique_patients",
            "hospitals",
            "doctors",
            "avg_billing",
            "avg_length_of_stay",
            "earliest_admission",
            "latest_admission",
        ),
        [row],
    )


def dimension_counts(schema: StarSchema, options: ReportOptions) -> ReportTable:
    """Count rows in each dimension table and the fact table."""
    rows = [
        {"table_name": spec.table_name, "row_count": len(schema.dimension(spec.name))}
        for spec in DIMENSION_SPECS
    ]
    rows.append({"table_name": FACT_TABLE_NAME, "row_count": len(schema.facts)})
    return build_table(
        "dimension_counts",
        "Row counts per warehouse table",
        ("table_name", "row_count"),
        rows,
    )
