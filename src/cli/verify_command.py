"""Verification command wiring for Ward CLI."""

from __future__ import annotations

import argparse
from typing import Any, cast

from core.errors import WardVerificationError
from core.verification import (
    VerificationMode,
    VerificationOptions,
    render_verification_report,
    run_verification,
    save_verification_report,
)
from store.warehouse_sdk import WardClient

DEFAULT_VERIFY_SOURCE = "tests/fixtures/admissions.csv"


def add_verify_command(subparsers: Any) -> None:
    """Register verify subcommand."""
    parser = subparsers.add_parser(
        "verify",
        help="Ingest a known source into a temporary root and check report invariants",
    )
    parser.add_argument(
        "--mode",
        choices=("quick", "full"),
        default="quick",
        help="Verification mode; full adds idempotence and export checks",
    )
    parser.add_argument(
        "--source",
        default=DEFAULT_VERIFY_SOURCE,
        help="Admissions source used for ingest checks",
    )
    parser.add_argument(
        "--keep-artifacts",
        action="store_true",
        help="Keep the temporary data root even when all checks pass",
    )
    parser.add_argument(
        "--fail-fast",
        action="store_true",
        help="Stop after the first failed check",
    )


def run_verify_command(client: WardClient, args: argparse.Namespace) -> int:
    """Execute verification workflow and print the check report."""
    options = VerificationOptions(
        mode=cast(VerificationMode, args.mode),
        source_path=args.source,
        keep_artifacts=args.keep_artifacts,
        fail_fast=args.fail_fast,
    )
    try:
        report = run_verification(client, options)
    except WardVerificationError as error:
        print(f"verification_error={error}")
        return 1
    report_path = save_verification_report(report)
    print(render_verification_report(report))
    print(f"report_path={report_path}")
    return 0 if report.failed_count == 0 else 1
