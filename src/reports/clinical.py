"""Clinical outcome reports."""

from __future__ import annotations

from decimal import Decimal

from core.constants import LENGTH_OF_STAY_PLACES, TEST_RESULTS
from core.types import AdmissionFact, ReportOptions, ReportTable, StarSchema
from reports.aggregation import (
    billing_amounts,
    build_table,
    competition_rank,
    currency,
    descending,
    group_by,
    mean,
    nulls_last,
    percentage,
    quantize,
)


def medication_by_condition(schema: StarSchema, options: ReportOptions) -> ReportTable:
    """Rank medications per condition by prescriptions and normal outcomes.

    Both ranks use competition ranking within the condition: equal
    values share a rank and the next rank is skipped.
    """
    conditions = schema.dimension("conditions")
    medications = schema.dimension("medications")
    by_pair = group_by(
        schema.facts,
        lambda fact: (
            conditions.label(fact.condition_id),
            medications.label(fact.medication_id),
        ),
    )
    rows_by_condition: dict[str, list[dict[str, object]]] = {}
    for (condition_name, medication_name), facts in by_pair.items():
        outcome_counts = _outcome_counts(facts)
        rows_by_condition.setdefault(condition_name, []).append(
            {
                "condition_name": condition_name,
                "medication_name": medication_name,
                "prescription_count": len(facts),
                "normal_outcomes": outcome_counts["Normal"],
                "abnormal_outcomes": outcome_counts["Abnormal"],
                "inconclusive_outcomes": outcome_counts["Inconclusive"],
                "normal_outcome_pct": percentage(outcome_counts["Normal"], len(facts)),
                "_normal_ratio": Decimal(outcome_counts["Normal"]) / len(facts),
            }
        )
    rows: list[dict[str, object]] = []
    for condition_name in sorted(rows_by_condition):
        condition_rows = rows_by_condition[condition_name]
        _assign_rank(condition_rows, "prescription_count", "most_prescribed_rank")
        _assign_rank(condition_rows, "_normal_ratio", "best_outcome_rank")
        condition_rows.sort(
            key=lambda row: (-row["prescription_count"], row["medication_name"])
        )
        rows.extend(condition_rows)
    return build_table(
        "medication_by_condition",
        "Most prescribed and best performing medication per condition",
        (
            "condition_name",
            "medication_name",
            "prescription_count",
            "normal_outcomes",
            "abnormal_outcomes",
            "inconclusive_outcomes",
            "normal_outcome_pct",
            "most_prescribed_rank",
            "best_outcome_rank",
        ),
        rows,
    )


def length_of_stay_by_condition(schema: StarSchema, options: ReportOptions) -> ReportTable:
    """Summarize length of stay per condition and admission type."""
    conditions = schema.dimension("conditions")
    by_pair = group_by(
        schema.facts,
        lambda fact: (conditions.label(fact.condition_id), fact.admission_type),
    )
    rows = []
    for (condition_name, admission_type), facts in sorted(
        by_pair.items(), key=lambda item: (item[0][0], nulls_last(item[0][1]))
    ):
        stays = [fact.length_of_stay for fact in facts]
        rows.append(
            {
                "condition_name": condition_name,
                "admission_type": admission_type,
                "admission_count": len(facts),
                "avg_los": quantize(mean(stays), LENGTH_OF_STAY_PLACES),
                "min_los": min(stays),
                "max_los": max(stays),
            }
        )
    return build_table(
        "length_of_stay_by_condition",
        "Length of stay per condition and admission type",
        ("condition_name", "admission_type", "admission_count", "avg_los", "min_los", "max_los"),
        rows,
    )


def outcomes_by_admission_type(schema: StarSchema, options: ReportOptions) -> ReportTable:
    """Compare test outcomes, stay, and billing across admission types."""
    rows = []
    by_type = group_by(schema.facts, lambda fact: fact.admission_type)
    for admission_type, facts in sorted(by_type.items(), key=lambda item: nulls_last(item[0])):
        outcome_counts = _outcome_counts(facts)
        rows.append(
            {
                "admission_type": admission_type,
                "total_admissions": len(facts),
                "normal_count": outcome_counts["Normal"],
                "abnormal_count": outcome_counts["Abnormal"],
                "inconclusive_count": outcome_counts["Inconclusive"],
                "normal_pct": percentage(outcome_counts["Normal"], len(facts)),
                "abnormal_pct": percentage(outcome_counts["Abnormal"], len(facts)),
                "inconclusive_pct": percentage(outcome_counts["Inconclusive"], len(facts)),
                "avg_los": quantize(
                    mean([fact.length_of_stay for fact in facts]), LENGTH_OF_STAY_PLACES
                ),
                "avg_billing": currency(mean(billing_amounts(facts))),
            }
        )
    return build_table(
        "outcomes_by_admission_type",
        "Test outcomes by admission type",
        (
            "admission_type",
            "total_admissions",
            "normal_count",
            "abnormal_count",
            "inconclusive_count",
            "normal_pct",
            "abnormal_pct",
            "inconclusive_pct",
            "avg_los",
            "avg_billing",
        ),
        rows,
    )


def _outcome_counts(facts: list[AdmissionFact]) -> dict[str, int]:
    """Count facts per test result; null results count toward none."""
    return {
        result: sum(1 for fact in facts if fact.test_results == result) for result in TEST_RESULTS
    }


def _assign_rank(rows: list[dict[str, object]], value_column: str, rank_column: str) -> None:
    """Write competition ranks by descending value into ``rank_column``."""
    rows.sort(key=lambda row: (descending(row[value_column]), row["medication_name"]))
    ranks = competition_rank([row[value_column] for row in rows])
    for row, rank in zip(rows, ranks):
        row[rank_column] = rank
