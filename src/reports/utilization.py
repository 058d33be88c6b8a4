"""Seasonality and readmission reports.

Visit counts are admissions per patient surrogate id, so the same
person recorded with a different gender or blood type counts as a
separate patient.
"""

from __future__ import annotations

import calendar
from collections import Counter

from core.constants import VISITOR_TYPES
from core.types import ReportOptions, ReportTable, StarSchema
from reports.aggregation import (
    build_table,
    competition_rank,
    descending,
    group_by,
    percentage,
    visitor_type_for,
)


def seasonal_admissions(schema: StarSchema, options: ReportOptions) -> ReportTable:
    """Count admissions per calendar month across all years."""
    month_counts = Counter(fact.admission_date.month for fact in schema.facts)
    total = sum(month_counts.values())
    busiest_first = sorted(month_counts, key=lambda month: (-month_counts[month], month))
    ranks = dict(
        zip(busiest_first, competition_rank([month_counts[month] for month in busiest_first]))
    )
    rows = [
        {
            "month_num": month,
            "month_name": calendar.month_name[month],
            "admission_count": month_counts[month],
            "pct_of_total": percentage(month_counts[month], total),
            "busiest_rank": ranks[month],
        }
        for month in sorted(month_counts)
    ]
    return build_table(
        "seasonal_admissions",
        "Seasonal admission volume by calendar month",
        ("month_num", "month_name", "admission_count", "pct_of_total", "busiest_rank"),
        rows,
    )


def repeat_visitors(schema: StarSchema, options: ReportOptions) -> ReportTable:
    """List patients admitted more than once, most frequent first."""
    patients = schema.dimension("patients")
    visit_counts = _visit_counts(schema)
    repeat_ids = sorted(
        (patient_id for patient_id, count in visit_counts.items() if count > 1),
        key=lambda patient_id: (-visit_counts[patient_id], patient_id),
    )
    rows = []
    for patient_id in repeat_ids:
        name, gender, _ = patients.key_for(patient_id)
        rows.append(
            {
                "patient_id": patient_id,
                "name": name,
                "gender": gender,
                "visit_count": visit_counts[patient_id],
            }
        )
    return build_table(
        "repeat_visitors",
        "Patients with more than one admission",
        ("patient_id", "name", "gender", "visit_count"),
        rows,
    )


def visitor_type_distribution(schema: StarSchema, options: ReportOptions) -> ReportTable:
    """Bucket patients into one-time, two-visit, and frequent visitors."""
    type_counts = Counter(visitor_type_for(count) for count in _visit_counts(schema).values())
    total = sum(type_counts.values())
    ordered = sorted(
        type_counts, key=lambda label: (-type_counts[label], VISITOR_TYPES.index(label))
    )
    rows = [
        {
            "visitor_type": label,
            "patient_count": type_counts[label],
            "pct_of_patients": percentage(type_counts[label], total),
        }
        for label in ordered
    ]
    return build_table(
        "visitor_type_distribution",
        "Repeat versus one-time visitors",
        ("visitor_type", "patient_count", "pct_of_patients"),
        rows,
    )


def condition_repeat_rate(schema: StarSchema, options: ReportOptions) -> ReportTable:
    """Share of each condition's patients who were admitted more than once overall."""
    conditions = schema.dimension("conditions")
    visit_counts = _visit_counts(schema)
    rows = []
    by_condition = group_by(schema.facts, lambda fact: conditions.label(fact.condition_id))
    for condition_name, facts in by_condition.items():
        patient_ids = {fact.patient_id for fact in facts}
        repeat_count = sum(1 for patient_id in patient_ids if visit_counts[patient_id] > 1)
        rows.append(
            {
                "condition_name": condition_name,
                "total_admissions": len(facts),
                "unique_patients": len(patient_ids),
                "repeat_patients": repeat_count,
                "repeat_patient_pct": percentage(repeat_count, len(patient_ids)),
            }
        )
    rows.sort(key=lambda row: (descending(row["repeat_patient_pct"]), row["condition_name"]))
    return build_table(
        "condition_repeat_rate",
        "Repeat patient rate per medical condition",
        (
            "condition_name",
            "total_admissions",
            "unique_patients",
            "repeat_patients",
            "repeat_patient_pct",
        ),
        rows,
    )


def _visit_counts(schema: StarSchema) -> Counter[int]:
    return Counter(fact.patient_id for fact in schema.facts)
