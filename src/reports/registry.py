"""Report registry.

This module maps stable report names onto report functions and groups
so callers can run one report, one group, or the full battery.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence

from core.errors import WardReportError
from core.types import ReportOptions, ReportTable, StarSchema
from reports import clinical, demographics, financial, overview, utilization

ReportFunction = Callable[[StarSchema, ReportOptions], ReportTable]


@dataclass(frozen=True)
class ReportDefinition:
    """Registered report.

    Attributes:
        name: Stable report name used by CLI, SDK, and export files.
        group: Report group name.
        run: Pure report function.
    """

    name: str
    group: str
    run: ReportFunction


REPORT_DEFINITIONS: tuple[ReportDefinition, ...] = (
    ReportDefinition("summary_stats", "overview", overview.summary_stats),
    ReportDefinition("dimension_counts", "overview", overview.dimension_counts),
    ReportDefinition(
        "admissions_by_age_group", "demographics", demographics.admissions_by_age_group
    ),
    ReportDefinition("patients_by_age_group", "demographics", demographics.patients_by_age_group),
    ReportDefinition("blood_type_by_gender", "demographics", demographics.blood_type_by_gender),
    ReportDefinition(
        "admission_type_by_age_group", "demographics", demographics.admission_type_by_age_group
    ),
    ReportDefinition("billing_by_condition", "financial", financial.billing_by_condition),
    ReportDefinition(
        "insurance_rank_by_condition", "financial", financial.insurance_rank_by_condition
    ),
    ReportDefinition("monthly_revenue_trend", "financial", financial.monthly_revenue_trend),
    ReportDefinition(
        "billing_variance_by_condition", "financial", financial.billing_variance_by_condition
    ),
    ReportDefinition("billing_outliers", "financial", financial.billing_outliers),
    ReportDefinition(
        "outlier_summary_by_condition", "financial", financial.outlier_summary_by_condition
    ),
    ReportDefinition("medication_by_condition", "clinical", clinical.medication_by_condition),
    ReportDefinition(
        "length_of_stay_by_condition", "clinical", clinical.length_of_stay_by_condition
    ),
    ReportDefinition("outcomes_by_admission_type", "clinical", clinical.outcomes_by_admission_type),
    ReportDefinition("seasonal_admissions", "utilization", utilization.seasonal_admissions),
    ReportDefinition("repeat_visitors", "utilization", utilization.repeat_visitors),
    ReportDefinition(
        "visitor_type_distribution", "utilization", utilization.visitor_type_distribution
    ),
    ReportDefinition("condition_repeat_rate", "utilization", utilization.condition_repeat_rate),
)


def supported_report_names() -> tuple[str, ...]:
    """Return every registered report name in battery order."""
    return tuple(definition.name for definition in REPORT_DEFINITIONS)


def supported_report_groups() -> tuple[str, ...]:
    """Return every report group name in first-registered order."""
    return tuple(dict.fromkeys(definition.group for definition in REPORT_DEFINITIONS))


def resolve_report_names(
    report_names: Sequence[str] = (),
    group: str | None = None,
) -> tuple[str, ...]:
    """Resolve a report selection into ordered report names.

    Args:
        report_names: Explicit report names.
        group: Optional group whose reports are appended.

    Returns:
        Selected names in request order, every report when nothing is selected.

    Raises:
        WardReportError: If a name or group is unknown.
    """
    selected = [get_report_definition(name).name for name in report_names]
    if group is not None:
        if group not in supported_report_groups():
            raise WardReportError(
                f"Unknown report group '{group}'. "
                f"Supported groups: {', '.join(supported_report_groups())}."
            )
        selected.extend(
            definition.name for definition in REPORT_DEFINITIONS if definition.group == group
        )
    if not selected:
        return supported_report_names()
    return tuple(dict.fromkeys(selected))


def get_report_definition(name: str) -> ReportDefinition:
    """Look up one report by name.

    Raises:
        WardReportError: If no report has that name.
    """
    for definition in REPORT_DEFINITIONS:
        if definition.name == name:
            return definition
    raise WardReportError(
        f"Unknown report '{name}'. Run `ward report --list` to see supported reports."
    )


def run_report(name: str, schema: StarSchema, options: ReportOptions) -> ReportTable:
    """Run one registered report against a star schema."""
    return get_report_definition(name).run(schema, options)


def run_reports(
    names: Sequence[str],
    schema: StarSchema,
    options: ReportOptions,
) -> list[ReportTable]:
    """Run several reports in order against the same schema."""
    return [run_report(name, schema, options) for name in names]
