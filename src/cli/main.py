"""Ward CLI entry points.

This module exposes ingest, version, and reporting commands for the
admissions warehouse. It maps argparse commands onto SDK calls.
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Sequence

from cli.run_spec_command import add_run_spec_command, run_run_spec_command
from cli.verify_command import add_verify_command, run_verify_command
from core.config import WardConfig
from core.constants import DEFAULT_EXPORT_FORMAT, SUPPORTED_EXPORT_FORMATS
from core.errors import WardError
from core.run_spec_execution import format_version_row
from core.types import IngestOptions
from reports.registry import REPORT_DEFINITIONS, supported_report_groups
from reports.rendering import render_report_tables
from store.warehouse_sdk import WardClient


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="ward", description="Ward admissions warehouse CLI")
    parser.add_argument("--data-root", help="Override WARD_DATA_ROOT for this command")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_ingest_command(subparsers)
    _add_versions_command(subparsers)
    _add_report_command(subparsers)
    _add_export_reports_command(subparsers)
    add_run_spec_command(subparsers)
    add_verify_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the Ward CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command == "report" and args.list:
        return _run_report_list_command()
    if args.command == "report" and not args.warehouse:
        parser.error("report requires --warehouse unless --list is given")
    try:
        client = _build_client(args.data_root)
        return _dispatch(client, args)
    except WardError as error:
        print(f"error: {error}", file=sys.stderr)
        return 1


def _dispatch(client: WardClient, args: argparse.Namespace) -> int:
    if args.command == "ingest":
        return _run_ingest_command(client, args)
    if args.command == "versions":
        return _run_versions_command(client, args)
    if args.command == "report":
        return _run_report_command(client, args)
    if args.command == "export-reports":
        return _run_export_reports_command(client, args)
    if args.command == "run-spec":
        return run_run_spec_command(client, args)
    if args.command == "verify":
        return run_verify_command(client, args)
    print(f"error: unsupported command {args.command}", file=sys.stderr)
    return 2


def _build_client(data_root: str | None) -> WardClient:
    """Build SDK client with optional data-root override.

    Args:
        data_root: Optional override path.

    Returns:
        Configured SDK client.
    """
    config = WardConfig.from_env()
    if data_root:
        config = replace(config, data_root=Path(data_root).expanduser().resolve())
    return WardClient(config)


def _run_ingest_command(client: WardClient, args: argparse.Namespace) -> int:
    """Handle ingest command by printing the created version id."""
    options = IngestOptions(warehouse_name=args.warehouse, source_uri=args.source)
    print(client.ingest(options))
    return 0


def _run_versions_command(client: WardClient, args: argparse.Namespace) -> int:
    """Handle versions command.

    Prints one tab-separated row per version: id, fact count, rejected
    count, and creation time.
    """
    for manifest in client.warehouse(args.warehouse).list_versions():
        print(format_version_row(manifest))
    return 0


def _run_report_list_command() -> int:
    for definition in REPORT_DEFINITIONS:
        print(f"{definition.name}\t{definition.group}")
    return 0


def _run_report_command(client: WardClient, args: argparse.Namespace) -> int:
    """Handle report command by rendering each selected report."""
    tables = client.warehouse(args.warehouse).reports(
        report_names=args.names or (),
        version_id=args.version_id,
        group=args.group,
    )
    print(render_report_tables(tables))
    return 0


def _run_export_reports_command(client: WardClient, args: argparse.Namespace) -> int:
    """Handle export-reports command by printing the reports manifest path."""
    manifest_path = client.warehouse(args.warehouse).export_reports(
        output_dir=args.output_dir,
        report_names=args.names or (),
        version_id=args.version_id,
        file_format=args.format,
    )
    print(manifest_path)
    return 0


def _add_ingest_command(subparsers: Any) -> None:
    """Register ingest subcommand."""
    parser = subparsers.add_parser("ingest", help="Ingest an admissions CSV/JSONL source")
    parser.add_argument("source", help="Source file or directory of .csv/.jsonl files")
    parser.add_argument("--warehouse", required=True, help="Warehouse name")


def _add_versions_command(subparsers: Any) -> None:
    """Register versions subcommand."""
    parser = subparsers.add_parser("versions", help="List warehouse versions")
    parser.add_argument("--warehouse", required=True, help="Warehouse name")


def _add_report_command(subparsers: Any) -> None:
    """Register report subcommand."""
    parser = subparsers.add_parser("report", help="Run reporting queries on a version")
    parser.add_argument("--warehouse", help="Warehouse name")
    selection = parser.add_mutually_exclusive_group()
    selection.add_argument(
        "--name",
        dest="names",
        action="append",
        help="Report name, repeatable; every report when omitted",
    )
    selection.add_argument("--group", choices=supported_report_groups(), help="Report group")
    parser.add_argument("--version-id", help="Optional specific version id")
    parser.add_argument("--list", action="store_true", help="List report names and exit")


def _add_export_reports_command(subparsers: Any) -> None:
    """Register export-reports subcommand."""
    parser = subparsers.add_parser(
        "export-reports",
        help="Write report tables to files with a reports manifest",
    )
    parser.add_argument("--warehouse", required=True, help="Warehouse name")
    parser.add_argument("--output-dir", required=True, help="Local output directory")
    parser.add_argument(
        "--name",
        dest="names",
        action="append",
        help="Report name, repeatable; every report when omitted",
    )
    parser.add_argument("--version-id", help="Optional specific version id")
    parser.add_argument(
        "--format",
        default=DEFAULT_EXPORT_FORMAT,
        choices=SUPPORTED_EXPORT_FORMATS,
        help="Export file format",
    )
