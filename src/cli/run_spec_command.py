"""Run-spec CLI command wiring.

This module registers the run-spec subcommand and delegates execution to
the run-spec engine shared with ``WardClient.run_spec``.
"""

from __future__ import annotations

import argparse
from typing import Any

from core.run_spec_execution import execute_run_spec_file
from store.warehouse_sdk import WardClient


def add_run_spec_command(subparsers: Any) -> None:
    """Register run-spec subcommand."""
    parser = subparsers.add_parser(
        "run-spec",
        help="Run a declarative YAML ingest and reporting spec",
    )
    parser.add_argument("spec_file", help="Path to YAML run-spec file")


def run_run_spec_command(client: WardClient, args: argparse.Namespace) -> int:
    """Execute every step and print step output in order."""
    for line in execute_run_spec_file(client, args.spec_file):
        print(line)
    return 0
