"""Verification workflow orchestration and report formatting.

A verification run ingests a known source into a throwaway data root,
checks reporting invariants against it, and cleans up unless a check
failed or artifacts were requested.
"""

from __future__ import annotations

import json
import shutil
import time
from pathlib import Path
from typing import Sequence

from core.logging_config import get_logger
from core.verification_checks import CheckCallable, CheckRow, build_checks, build_runtime
from core.verification_types import (
    VerificationCheckResult,
    VerificationMode,
    VerificationOptions,
    VerificationReport,
    VerificationRuntime,
    VerificationStatus,
)
from store.warehouse_sdk import WardClient

__all__ = [
    "VerificationCheckResult",
    "VerificationMode",
    "VerificationOptions",
    "VerificationReport",
    "run_verification",
    "render_verification_report",
    "save_verification_report",
]

_LOGGER = get_logger(__name__)
VERIFICATION_REPORT_FILE_NAME = "verification_report.json"


def run_verification(client: WardClient, options: VerificationOptions) -> VerificationReport:
    """Run verification checks against a temporary warehouse.

    Args:
        client: Client whose config supplies report options.
        options: Mode, source, and artifact handling flags.

    Returns:
        Report with one result per executed check.
    """
    runtime = build_runtime(client, options.source_path)
    _LOGGER.info(
        "verification_started",
        mode=options.mode,
        data_root=str(runtime.data_root),
        source=str(runtime.source_path),
    )
    results = _run_checks(runtime, build_checks(options.mode), options.fail_fast)
    artifacts_kept = options.keep_artifacts or _has_failures(results)
    if not artifacts_kept:
        shutil.rmtree(runtime.data_root, ignore_errors=True)
    report = VerificationReport(
        mode=options.mode,
        runtime_data_root=str(runtime.data_root),
        artifacts_kept=artifacts_kept,
        checks=tuple(results),
    )
    _LOGGER.info(
        "verification_completed",
        passed=report.passed_count,
        failed=report.failed_count,
        artifacts_kept=artifacts_kept,
    )
    return report


def _run_checks(
    runtime: VerificationRuntime,
    checks: Sequence[CheckRow],
    fail_fast: bool,
) -> list[VerificationCheckResult]:
    results: list[VerificationCheckResult] = []
    for check_id, title, check_fn in checks:
        started_at = time.monotonic()
        status, details = _run_single_check(check_id, check_fn, runtime)
        results.append(
            VerificationCheckResult(
                check_id=check_id,
                title=title,
                status=status,
                details=details,
                duration_seconds=round(time.monotonic() - started_at, 3),
            )
        )
        if status == "failed" and fail_fast:
            _LOGGER.warning("verification_stopped_early", check_id=check_id)
            break
    return results


def _run_single_check(
    check_id: str,
    check_fn: CheckCallable,
    runtime: VerificationRuntime,
) -> tuple[VerificationStatus, str]:
    try:
        details = str(check_fn(runtime))
    except Exception as error:
        _LOGGER.warning("verification_check_failed", check_id=check_id, error=str(error))
        return "failed", str(error)
    _LOGGER.info("verification_check_passed", check_id=check_id)
    return "passed", details


def _has_failures(results: Sequence[VerificationCheckResult]) -> bool:
    return any(row.status == "failed" for row in results)


def render_verification_report(report: VerificationReport) -> str:
    """Render report into stable multi-line text for CLI output."""
    lines = [
        f"mode={report.mode}",
        f"runtime_data_root={report.runtime_data_root}",
        f"artifacts_kept={str(report.artifacts_kept).lower()}",
    ]
    lines.extend(
        f"[{row.status.upper()}] {row.check_id} {row.title} "
        f"({row.duration_seconds:.3f}s) :: {row.details}"
        for row in report.checks
    )
    lines.append(f"passed={report.passed_count} failed={report.failed_count}")
    return "\n".join(lines)


def save_verification_report(report: VerificationReport) -> Path:
    """Persist report JSON into the runtime data root for debugging."""
    report_path = Path(report.runtime_data_root) / VERIFICATION_REPORT_FILE_NAME
    report_path.parent.mkdir(parents=True, exist_ok=True)
    payload = {
        "mode": report.mode,
        "runtime_data_root": report.runtime_data_root,
        "artifacts_kept": report.artifacts_kept,
        "passed": report.passed_count,
        "failed": report.failed_count,
        "checks": [
            {
                "check_id": row.check_id,
                "title": row.title,
                "status": row.status,
                "details": row.details,
                "duration_seconds": row.duration_seconds,
            }
            for row in report.checks
        ],
    }
    report_path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
    return report_path
