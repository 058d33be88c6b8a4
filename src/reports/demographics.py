"""Patient population reports.

Age buckets follow the fixed ``AGE_GROUPS`` boundaries. Facts without a
known age fall outside every bucket and are left out of both counts
and percentage denominators.
"""

from __future__ import annotations

from typing import Sequence

from core.constants import AGE_GROUPS
from core.types import AdmissionFact, ReportOptions, ReportTable, StarSchema
from reports.aggregation import (
    age_group_for,
    build_table,
    group_by,
    nulls_last,
    percentage,
)

_AGE_GROUP_ORDER = {label: index for index, (label, _, _) in enumerate(AGE_GROUPS)}
_MALE = "Male"
_FEMALE = "Female"


def admissions_by_age_group(schema: StarSchema, options: ReportOptions) -> ReportTable:
    """Count admissions per age group with their share of all bucketed admissions."""
    rows = _age_group_rows(schema.facts, "admission_count")
    return build_table(
        "admissions_by_age_group",
        "Share of admissions per age group",
        ("age_group", "admission_count", "percentage"),
        rows,
    )


def patients_by_age_group(schema: StarSchema, options: ReportOptions) -> ReportTable:
    """Bucket each patient once, by their age at first admission.

    A patient's first admission is the one with the earliest admission
    date; same-day ties go to the earlier fact.
    """
    first_visits = [
        min(patient_facts, key=lambda fact: (fact.admission_date, fact.admission_id))
        for patient_facts in group_by(schema.facts, lambda fact: fact.patient_id).values()
    ]
    rows = _age_group_rows(first_visits, "patient_count")
    return build_table(
        "patients_by_age_group",
        "Share of unique patients per age group at first visit",
        ("age_group", "patient_count", "percentage"),
        rows,
    )


def blood_type_by_gender(schema: StarSchema, options: ReportOptions) -> ReportTable:
    """Count distinct admitted patients per blood type split by gender.

    Each gender's percentage is taken over that gender's total across
    all blood types, so each percentage column sums to 100.
    """
    patients = schema.dimension("patients")
    admitted_ids = sorted({fact.patient_id for fact in schema.facts})
    admitted_keys = [patients.key_for(patient_id) for patient_id in admitted_ids]
    by_blood_type = group_by(admitted_keys, lambda key: key[2])
    counts = {
        blood_type: (
            sum(1 for key in keys if key[1] == _MALE),
            sum(1 for key in keys if key[1] == _FEMALE),
        )
        for blood_type, keys in by_blood_type.items()
    }
    male_total = sum(male for male, _ in counts.values())
    female_total = sum(female for _, female in counts.values())
    rows = [
        {
            "blood_type": blood_type,
            "male_count": male,
            "female_count": female,
            "male_pct": percentage(male, male_total),
            "female_pct": percentage(female, female_total),
        }
        for blood_type, (male, female) in sorted(
            counts.items(), key=lambda item: nulls_last(item[0])
        )
    ]
    return build_table(
        "blood_type_by_gender",
        "Blood type distribution by gender",
        ("blood_type", "male_count", "female_count", "male_pct", "female_pct"),
        rows,
    )


def admission_type_by_age_group(schema: StarSchema, options: ReportOptions) -> ReportTable:
    """Split each age group's admissions by admission type."""
    bucketed = [fact for fact in schema.facts if age_group_for(fact.patient_age) is not None]
    by_age_group = group_by(bucketed, lambda fact: age_group_for(fact.patient_age))
    rows: list[dict[str, object]] = []
    for age_group, group_facts in by_age_group.items():
        by_type = group_by(group_facts, lambda fact: fact.admission_type)
        for admission_type, type_facts in by_type.items():
            rows.append(
                {
                    "age_group": age_group,
                    "admission_type": admission_type,
                    "admission_count": len(type_facts),
                    "pct_of_admissions": percentage(len(type_facts), len(group_facts)),
                }
            )
    rows.sort(
        key=lambda row: (
            _AGE_GROUP_ORDER[row["age_group"]],
            -row["admission_count"],
            nulls_last(row["admission_type"]),
        )
    )
    return build_table(
        "admission_type_by_age_group",
        "Admission type mix within each age group",
        ("age_group", "admission_type", "admission_count", "pct_of_admissions"),
        rows,
    )


def _age_group_rows(
    facts: Sequence[AdmissionFact],
    count_column: str,
) -> list[dict[str, object]]:
    """Count facts per age group ordered by count, then bucket order."""
    by_group = group_by(
        (fact for fact in facts if age_group_for(fact.patient_age) is not None),
        lambda fact: age_group_for(fact.patient_age),
    )
    bucketed_total = sum(len(group_facts) for group_facts in by_group.values())
    ordered = sorted(
        by_group.items(),
        key=lambda item: (-len(item[1]), _AGE_GROUP_ORDER[item[0]]),
    )
    return [
        {
            "age_group": age_group,
            count_column: len(group_facts),
            "percentage": percentage(len(group_facts), bucketed_total),
        }
        for age_group, group_facts in ordered
    ]
