"""Billing and revenue reports.

Billing aggregates skip null amounts the way SQL aggregates do, while
admission counts include every fact in the group. Outlier detection
scores each bill against its condition's mean and standard deviation.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from decimal import Decimal

from core.constants import HIGH_OUTLIER_FLAG, LOW_OUTLIER_FLAG, NORMAL_FLAG
from core.types import AdmissionFact, ReportOptions, ReportTable, StarSchema
from reports.aggregation import (
    billing_amounts,
    build_table,
    competition_rank,
    currency,
    descending,
    group_by,
    mean,
    percentage,
    quantize,
    standard_deviation,
)

_Z_SCORE_PLACES = 2


@dataclass(frozen=True)
class BillingScore:
    """Z-score of one admission's bill within its condition.

    Attributes:
        fact: Scored admission.
        condition_name: Condition label.
        condition_avg: Mean billing amount for the condition.
        z_score: Unrounded z-score, ``None`` when undefined.
        outlier_flag: High Outlier, Low Outlier, or Normal.
    """

    fact: AdmissionFact
    condition_name: str | None
    condition_avg: Decimal | None
    z_score: Decimal | None
    outlier_flag: str


def billing_by_condition(schema: StarSchema, options: ReportOptions) -> ReportTable:
    """Aggregate billing per condition, highest average first."""
    rows = []
    for condition_name, facts in _group_by_condition(schema).items():
        amounts = billing_amounts(facts)
        rows.append(
            {
                "condition_name": condition_name,
                "admission_count": len(facts),
                "avg_billing_amount": currency(mean(amounts)),
                "min_billing_amount": min(amounts) if amounts else None,
                "max_billing_amount": max(amounts) if amounts else None,
                "total_billing_amount": _total(amounts),
                "_avg": mean(amounts),
            }
        )
    rows.sort(key=lambda row: (descending(row["_avg"]), row["condition_name"]))
    return build_table(
        "billing_by_condition",
        "Average billing per medical condition",
        (
            "condition_name",
            "admission_count",
            "avg_billing_amount",
            "min_billing_amount",
            "max_billing_amount",
            "total_billing_amount",
        ),
        rows,
    )


def insurance_rank_by_condition(schema: StarSchema, options: ReportOptions) -> ReportTable:
    """Rank insurance providers by average bill within each condition."""
    insurance = schema.dimension("insurance")
    rows: list[dict[str, object]] = []
    for condition_name, condition_facts in sorted(
        _group_by_condition(schema).items(), key=lambda item: item[0]
    ):
        by_provider = group_by(condition_facts, lambda fact: insurance.label(fact.insurance_id))
        provider_rows = sorted(
            (
                {
                    "condition_name": condition_name,
                    "provider_name": provider_name,
                    "admission_count": len(facts),
                    "avg_billing_amount": currency(mean(billing_amounts(facts))),
                    "_avg": mean(billing_amounts(facts)),
                }
                for provider_name, facts in by_provider.items()
            ),
            key=lambda row: (descending(row["_avg"]), row["provider_name"]),
        )
        ranks = competition_rank([row["_avg"] for row in provider_rows])
        for row, rank in zip(provider_rows, ranks):
            row["rank_within_condition"] = rank
        rows.extend(provider_rows)
    return build_table(
        "insurance_rank_by_condition",
        "Insurance providers ranked by average bill within each condition",
        (
            "condition_name",
            "provider_name",
            "admission_count",
            "avg_billing_amount",
            "rank_within_condition",
        ),
        rows,
    )


def monthly_revenue_trend(schema: StarSchema, options: ReportOptions) -> ReportTable:
    """Report revenue per calendar month with year-over-year change.

    The comparison month is the same month exactly one year earlier. When
    that month has no admissions or zero revenue, the change is null.
    """
    by_month = group_by(
        schema.facts,
        lambda fact: (fact.admission_date.year, fact.admission_date.month),
    )
    totals = {period: _total(billing_amounts(facts)) for period, facts in by_month.items()}
    rows = []
    for (year, month), facts in sorted(by_month.items()):
        total = totals[(year, month)]
        prior_total = totals.get((year - 1, month))
        rows.append(
            {
                "year": year,
                "month_num": month,
                "month_name": calendar.month_name[month],
                "admission_count": len(facts),
                "total_revenue": total,
                "avg_revenue_per_admission": currency(mean(billing_amounts(facts))),
                "same_month_last_year": prior_total,
                "yoy_pct_change": _percent_change(total, prior_total),
            }
        )
    return build_table(
        "monthly_revenue_trend",
        "Monthly revenue with year-over-year change",
        (
            "year",
            "month_num",
            "month_name",
            "admission_count",
            "total_revenue",
            "avg_revenue_per_admission",
            "same_month_last_year",
            "yoy_pct_change",
        ),
        rows,
    )


def billing_variance_by_condition(schema: StarSchema, options: ReportOptions) -> ReportTable:
    """Measure billing spread per condition, most variable first."""
    rows = []
    for condition_name, facts in _group_by_condition(schema).items():
        amounts = billing_amounts(facts)
        average = mean(amounts)
        std_dev = standard_deviation(amounts, options.stddev_mode)
        rows.append(
            {
                "condition_name": condition_name,
                "admission_count": len(facts),
                "avg_billing": currency(average),
                "min_billing": min(amounts) if amounts else None,
                "max_billing": max(amounts) if amounts else None,
                "billing_range": max(amounts) - min(amounts) if amounts else None,
                "std_dev": currency(std_dev),
                "coefficient_of_variation": _coefficient_of_variation(std_dev, average),
                "_std_dev": std_dev,
            }
        )
    rows.sort(key=lambda row: (descending(row["_std_dev"]), row["condition_name"]))
    return build_table(
        "billing_variance_by_condition",
        "Billing variance per medical condition",
        (
            "condition_name",
            "admission_count",
            "avg_billing",
            "min_billing",
            "max_billing",
            "billing_range",
            "std_dev",
            "coefficient_of_variation",
        ),
        rows,
    )


def score_billing(schema: StarSchema, options: ReportOptions) -> list[BillingScore]:
    """Score every admission's bill against its condition distribution.

    Args:
        schema: Normalized star schema.
        options: Standard deviation mode and outlier threshold.

    Returns:
        One score per fact, in fact order. Facts with an undefined
        z-score are flagged Normal.
    """
    threshold = Decimal(str(options.outlier_threshold))
    conditions = schema.dimension("conditions")
    statistics_by_condition = {
        condition_id: (
            mean(billing_amounts(facts)),
            standard_deviation(billing_amounts(facts), options.stddev_mode),
        )
        for condition_id, facts in group_by(schema.facts, lambda fact: fact.condition_id).items()
    }
    scores = []
    for fact in schema.facts:
        condition_avg, condition_stddev = statistics_by_condition[fact.condition_id]
        z_score = _z_score(fact.billing_amount, condition_avg, condition_stddev)
        scores.append(
            BillingScore(
                fact=fact,
                condition_name=conditions.label(fact.condition_id),
                condition_avg=condition_avg,
                z_score=z_score,
                outlier_flag=_outlier_flag(z_score, threshold),
            )
        )
    return scores


def billing_outliers(schema: StarSchema, options: ReportOptions) -> ReportTable:
    """List admissions whose bill lies beyond the outlier threshold."""
    outliers = [
        score for score in score_billing(schema, options) if score.outlier_flag != NORMAL_FLAG
    ]
    outliers.sort(key=lambda score: (-abs(score.z_score), score.fact.admission_id))
    rows = [
        {
            "admission_id": score.fact.admission_id,
            "patient_id": score.fact.patient_id,
            "condition_name": score.condition_name,
            "admission_date": score.fact.admission_date,
            "billing_amount": score.fact.billing_amount,
            "condition_avg": currency(score.condition_avg),
            "z_score": quantize(score.z_score, _Z_SCORE_PLACES),
            "outlier_flag": score.outlier_flag,
        }
        for score in outliers
    ]
    return build_table(
        "billing_outliers",
        "Individual bills flagged as outliers within their condition",
        (
            "admission_id",
            "patient_id",
            "condition_name",
            "admission_date",
            "billing_amount",
            "condition_avg",
            "z_score",
            "outlier_flag",
        ),
        rows,
    )


def outlier_summary_by_condition(schema: StarSchema, options: ReportOptions) -> ReportTable:
    """Count high and low billing outliers per condition."""
    by_condition = group_by(score_billing(schema, options), lambda score: score.condition_name)
    rows = []
    for condition_name, scores in by_condition.items():
        high = sum(1 for score in scores if score.outlier_flag == HIGH_OUTLIER_FLAG)
        low = sum(1 for score in scores if score.outlier_flag == LOW_OUTLIER_FLAG)
        rows.append(
            {
                "condition_name": condition_name,
                "total_admissions": len(scores),
                "high_outliers": high,
                "low_outliers": low,
                "outlier_pct": percentage(high + low, len(scores)),
            }
        )
    rows.sort(key=lambda row: (descending(row["outlier_pct"]), row["condition_name"]))
    return build_table(
        "outlier_summary_by_condition",
        "Share of outlier bills per medical condition",
        ("condition_name", "total_admissions", "high_outliers", "low_outliers", "outlier_pct"),
        rows,
    )


def _group_by_condition(schema: StarSchema) -> dict[str, list[AdmissionFact]]:
    conditions = schema.dimension("conditions")
    return group_by(schema.facts, lambda fact: conditions.label(fact.condition_id))


def _z_score(
    amount: Decimal | None,
    condition_avg: Decimal | None,
    condition_stddev: Decimal | None,
) -> Decimal | None:
    if amount is None or condition_avg is None or not condition_stddev:
        return None
    return (amount - condition_avg) / condition_stddev


def _outlier_flag(z_score: Decimal | None, threshold: Decimal) -> str:
    if z_score is None:
        return NORMAL_FLAG
    if z_score > threshold:
        return HIGH_OUTLIER_FLAG
    if z_score < -threshold:
        return LOW_OUTLIER_FLAG
    return NORMAL_FLAG


def _total(amounts: list[Decimal]) -> Decimal | None:
    return sum(amounts, Decimal(0)) if amounts else None


def _percent_change(current: Decimal | None, prior: Decimal | None) -> Decimal | None:
    if current is None or prior is None:
        return None
    return percentage(current - prior, prior)


def _coefficient_of_variation(std_dev: Decimal | None, average: Decimal | None) -> Decimal | None:
    if std_dev is None or average is None:
        return None
    return percentage(std_dev, average)
