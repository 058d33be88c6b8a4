"""Unit tests for verify CLI command wiring."""

from __future__ import annotations

from pathlib import Path

import pytest

from cli.main import main
from core.verification import VerificationCheckResult, VerificationReport


def _build_report(failed_count: int) -> VerificationReport:
    status = "failed" if failed_count > 0 else "passed"
    return VerificationReport(
        mode="quick",
        runtime_data_root="/tmp/ward-verify",
        artifacts_kept=failed_count > 0,
        checks=(
            VerificationCheckResult(
                check_id="V001",
                title="Ingest + Versions",
                status=status,
                details="facts=17",
                duration_seconds=0.01,
            ),
        ),
    )


def test_cli_verify_returns_zero_when_all_checks_pass(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Verify command should exit zero on a fully passing report."""
    monkeypatch.setattr(
        "cli.verify_command.run_verification",
        lambda client, options: _build_report(failed_count=0),
    )
    monkeypatch.setattr(
        "cli.verify_command.save_verification_report",
        lambda report: "/tmp/ward-verify/verification_report.json",
    )

    exit_code = main(["--data-root", str(tmp_path), "verify"])
    output = capsys.readouterr().out

    assert (
        exit_code == 0
        and "passed=1 failed=0" in output
        and "report_path=/tmp/ward-verify/verification_report.json" in output
    )


def test_cli_verify_returns_one_when_any_check_fails(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Verify command should exit one when the report has failed checks."""
    monkeypatch.setattr(
        "cli.verify_command.run_verification",
        lambda client, options: _build_report(failed_count=1),
    )
    monkeypatch.setattr(
        "cli.verify_command.save_verification_report",
        lambda report: "/tmp/ward-verify/verification_report.json",
    )

    exit_code = main(["--data-root", str(tmp_path), "verify"])
    _ = capsys.readouterr()

    assert exit_code == 1


def test_cli_verify_passes_mode_and_flags_to_runner(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """CLI flags should map onto verification options."""
    captured = {}

    def _fake_run(client, options):
        captured["options"] = options
        return _build_report(failed_count=0)

    monkeypatch.setattr("cli.verify_command.run_verification", _fake_run)
    monkeypatch.setattr(
        "cli.verify_command.save_verification_report",
        lambda report: "/tmp/ward-verify/verification_report.json",
    )

    main(
        [
            "--data-root",
            str(tmp_path),
            "verify",
            "--mode",
            "full",
            "--keep-artifacts",
            "--fail-fast",
            "--source",
            "data/admissions.csv",
        ]
    )
    _ = capsys.readouterr()
    options = captured["options"]

    assert (
        options.mode == "full"
        and options.keep_artifacts
        and options.fail_fast
        and options.source_path == "data/admissions.csv"
    )


def test_cli_verify_handles_input_validation_failures_without_traceback(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Verify command should print a friendly error for invalid source paths."""
    exit_code = main(
        ["--data-root", str(tmp_path), "verify", "--source", "/tmp/ward-verify-missing-source"]
    )
    output = capsys.readouterr().out.strip()

    assert exit_code == 1 and output.startswith("verification_error=")
