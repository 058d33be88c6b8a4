"""Verification check implementations for Ward."""

from __future__ import annotations

import json
import tempfile
from collections import Counter
from decimal import Decimal
from pathlib import Path
from typing import Callable

from core.constants import REPORTS_MANIFEST_FILE_NAME
from core.errors import WardVerificationError
from core.schema_layout import DIMENSION_SPECS
from core.types import IngestOptions, ReportOptions, StarSchema
from core.verification_types import VerificationMode, VerificationRuntime
from ingest.input_reader import read_source_rows
from ingest.row_parser import parse_source_rows
from reports.demographics import admissions_by_age_group
from reports.financial import billing_outliers, outlier_summary_by_condition
from reports.registry import supported_report_names
from reports.utilization import visitor_type_distribution
from store.warehouse_sdk import WardClient
from transforms.normalization import build_star_schema

CheckCallable = Callable[[VerificationRuntime], str]
CheckRow = tuple[str, str, CheckCallable]

_PERCENT_SUM_TOLERANCE = Decimal("0.02")


def build_runtime(client: WardClient, source_path: str) -> VerificationRuntime:
    """Build runtime state used by verification checks."""
    resolved_source = _resolve_source_path(source_path)
    data_root = Path(tempfile.mkdtemp(prefix="ward-verify-")).resolve()
    export_output_dir = data_root / "outputs" / "reports"
    run_spec_path = _write_runtime_run_spec(data_root, resolved_source, export_output_dir)
    return VerificationRuntime(
        client=client.with_data_root(str(data_root)),
        data_root=data_root,
        source_path=resolved_source,
        warehouse_name="verify_admissions",
        run_spec_path=run_spec_path,
        export_output_dir=export_output_dir,
        report_options=ReportOptions(
            stddev_mode=client.config.stddev_mode,
            outlier_threshold=client.config.outlier_threshold,
        ),
    )


def build_checks(mode: VerificationMode) -> tuple[CheckRow, ...]:
    """Build ordered check list for one verification mode."""
    checks: list[CheckRow] = [
        ("V001", "Ingest + Versions", check_ingest_versions),
        ("V002", "Referential Integrity", check_referential_integrity),
        ("V003", "Age Group Coverage", check_age_group_coverage),
        ("V004", "Outlier Partition", check_outlier_partition),
        ("V005", "Visitor Share Total", check_visitor_share_total),
    ]
    if mode == "full":
        checks.append(("V006", "Normalization Idempotence", check_normalization_idempotence))
        checks.append(("V007", "Run-Spec Report Export", check_run_spec_report_export))
    return tuple(checks)


def check_ingest_versions(runtime: VerificationRuntime) -> str:
    """Verify ingest creates a loadable latest version."""
    version_id = runtime.client.ingest(
        IngestOptions(
            warehouse_name=runtime.warehouse_name,
            source_uri=str(runtime.source_path),
        )
    )
    warehouse = runtime.client.warehouse(runtime.warehouse_name)
    versions = warehouse.list_versions()
    if not versions or versions[-1].version_id != version_id:
        raise WardVerificationError(
            f"Latest version does not match ingested version {version_id}."
        )
    manifest, schema = warehouse.load_schema(version_id)
    if len(schema.facts) != manifest.fact_count:
        raise WardVerificationError(
            f"Loaded {len(schema.facts)} facts but manifest records {manifest.fact_count}."
        )
    runtime.version_id = version_id
    runtime.schema = schema
    return (
        f"version_id={version_id} fact_count={manifest.fact_count} "
        f"rejected_count={manifest.rejected_count}"
    )


def check_referential_integrity(runtime: VerificationRuntime) -> str:
    """Verify every fact key resolves and no stay is negative."""
    schema = _require_schema(runtime)
    known_ids = {
        spec.id_column: set(schema.dimension(spec.name).ids.values()) for spec in DIMENSION_SPECS
    }
    for fact in schema.facts:
        for id_column, valid_ids in known_ids.items():
            surrogate_id = getattr(fact, id_column)
            if surrogate_id not in valid_ids:
                raise WardVerificationError(
                    f"Fact {fact.admission_id} references missing {id_column}={surrogate_id}."
                )
        if fact.length_of_stay < 0:
            raise WardVerificationError(
                f"Fact {fact.admission_id} has negative length of stay {fact.length_of_stay}."
            )
    return f"facts_checked={len(schema.facts)}"


def check_age_group_coverage(runtime: VerificationRuntime) -> str:
    """Verify age-group counts cover every admission with a known age."""
    schema = _require_schema(runtime)
    table = admissions_by_age_group(schema, runtime.report_options)
    bucketed = sum(int(count) for count in table.column("admission_count"))
    with_age = sum(1 for fact in schema.facts if fact.patient_age is not None)
    if bucketed != with_age:
        raise WardVerificationError(
            f"Age groups cover {bucketed} admissions, expected {with_age}."
        )
    return f"bucketed={bucketed} groups={len(table.rows)}"


def check_outlier_partition(runtime: VerificationRuntime) -> str:
    """Verify outlier flags partition each condition's admissions."""
    schema = _require_schema(runtime)
    summary = outlier_summary_by_condition(schema, runtime.report_options)
    conditions = schema.dimension("conditions")
    expected_totals = Counter(conditions.label(fact.condition_id) for fact in schema.facts)
    summary_totals = Counter(
        {row["condition_name"]: row["total_admissions"] for row in summary.rows}
    )
    if summary_totals != expected_totals:
        raise WardVerificationError(
            "Outlier summary totals do not match admissions per condition."
        )
    flagged = sum(int(row["high_outliers"]) + int(row["low_outliers"]) for row in summary.rows)
    listed = len(billing_outliers(schema, runtime.report_options).rows)
    if flagged != listed:
        raise WardVerificationError(
            f"Outlier summary flags {flagged} bills but the outlier list has {listed}."
        )
    return f"conditions={len(summary.rows)} outliers={listed}"


def check_visitor_share_total(runtime: VerificationRuntime) -> str:
    """Verify visitor-type shares sum to 100 within rounding."""
    schema = _require_schema(runtime)
    table = visitor_type_distribution(schema, runtime.report_options)
    shares = [share for share in table.column("pct_of_patients") if share is not None]
    total = sum((Decimal(str(share)) for share in shares), Decimal(0))
    if shares and abs(total - Decimal(100)) > _PERCENT_SUM_TOLERANCE:
        raise WardVerificationError(f"Visitor-type shares sum to {total}, expected 100.")
    return f"share_total={total}"


def check_normalization_idempotence(runtime: VerificationRuntime) -> str:
    """Verify normalizing the same source again yields the persisted schema."""
    persisted = _require_schema(runtime)
    parse_result = parse_source_rows(read_source_rows(str(runtime.source_path)).rows)
    first = build_star_schema(parse_result.rows).schema
    second = build_star_schema(parse_result.rows).schema
    if not _same_schema(first, second):
        raise WardVerificationError("Two normalization passes produced different schemas.")
    if not _same_schema(first, persisted):
        raise WardVerificationError("Persisted snapshot differs from a fresh normalization.")
    return f"fact_count={len(first.facts)}"


def check_run_spec_report_export(runtime: VerificationRuntime) -> str:
    """Verify run-spec drives the full report battery and export."""
    output_lines = runtime.client.run_spec(str(runtime.run_spec_path))
    report_count = len(supported_report_names())
    if len(output_lines) < report_count + 1:
        raise WardVerificationError(
            f"Run-spec returned {len(output_lines)} output lines, expected at least "
            f"{report_count + 1}."
        )
    manifest_path = Path(output_lines[-1])
    if manifest_path.name != REPORTS_MANIFEST_FILE_NAME or not manifest_path.exists():
        raise WardVerificationError(f"Reports manifest missing at {manifest_path}.")
    payload = json.loads(manifest_path.read_text(encoding="utf-8"))
    if int(payload["report_count"]) != report_count:
        raise WardVerificationError(
            f"Exported {payload['report_count']} reports, expected {report_count}."
        )
    return f"reports={report_count} manifest={manifest_path}"


def _require_schema(runtime: VerificationRuntime) -> StarSchema:
    if runtime.schema is None:
        raise WardVerificationError("Ingested schema missing; run the ingest check first.")
    return runtime.schema


def _same_schema(left: StarSchema, right: StarSchema) -> bool:
    if left.facts != right.facts:
        return False
    return all(
        dict(left.dimension(spec.name).ids) == dict(right.dimension(spec.name).ids)
        for spec in DIMENSION_SPECS
    )


def _resolve_source_path(source_path: str) -> Path:
    source = Path(source_path).expanduser()
    if not source.is_absolute():
        source = Path.cwd() / source
    source = source.resolve()
    if not source.exists():
        raise WardVerificationError(
            f"Verification source path does not exist at {source}. "
            "Provide --source with an existing file or directory."
        )
    return source


def _write_runtime_run_spec(data_root: Path, source_path: Path, export_dir: Path) -> Path:
    spec_path = data_root / "verification_run_spec.yaml"
    yaml_body = (
        "version: 1\n"
        "defaults:\n"
        f"  data_root: {data_root.as_posix()}\n"
        "  warehouse: verify_spec\n"
        "steps:\n"
        "  - command: ingest\n"
        f"    source: {source_path.as_posix()}\n"
        "  - command: versions\n"
        "  - command: report\n"
        "  - command: export-reports\n"
        f"    output_dir: {export_dir.as_posix()}\n"
    )
    spec_path.write_text(yaml_body, encoding="utf-8")
    return spec_path
