"""Shared run-spec execution engine for CLI and SDK workflows.

This module maps validated run-spec steps to client operations so different
entry points can execute one declarative pipeline path without drift.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, Sequence

from core.errors import WardRunSpecError
from core.run_spec import RunSpec, RunSpecStep, load_run_spec
from core.run_spec_fields import (
    optional_string,
    parse_export_format,
    required_string,
    string_list,
)
from core.types import IngestOptions, ReportTable, WarehouseManifest
from reports.rendering import render_report_table


class RunSpecWarehouseHandle(Protocol):
    """Warehouse operations required by run-spec step execution."""

    def list_versions(self) -> list[WarehouseManifest]: ...

    def reports(
        self,
        report_names: Sequence[str] = (),
        version_id: str | None = None,
        group: str | None = None,
    ) -> list[ReportTable]: ...

    def export_reports(
        self,
        output_dir: str,
        report_names: Sequence[str] = (),
        version_id: str | None = None,
        file_format: str = "csv",
    ) -> str: ...


class RunSpecClient(Protocol):
    """Client API contract required by run-spec execution."""

    def with_data_root(self, data_root: str) -> Any: ...

    def ingest(self, options: IngestOptions) -> str: ...

    def warehouse(self, warehouse_name: str) -> Any: ...


@dataclass(frozen=True)
class RunSpecExecutionContext:
    """In-memory context used to execute run-spec steps."""

    client: RunSpecClient
    default_warehouse_name: str | None


def execute_run_spec_file(client: RunSpecClient, spec_file: str) -> tuple[str, ...]:
    """Load and execute a run-spec file, returning printable output lines."""
    spec = load_run_spec(spec_file)
    return execute_run_spec(client, spec)


def execute_run_spec(client: RunSpecClient, spec: RunSpec) -> tuple[str, ...]:
    """Execute a parsed run-spec object and return output lines."""
    execution_client = (
        client.with_data_root(spec.defaults.data_root) if spec.defaults.data_root else client
    )
    context = RunSpecExecutionContext(
        client=execution_client,
        default_warehouse_name=spec.defaults.warehouse_name,
    )
    output_lines: list[str] = []
    for step in spec.steps:
        output_lines.extend(_execute_step(context, step))
    return tuple(output_lines)


def format_version_row(manifest: WarehouseManifest) -> str:
    """Format one manifest as a tab-separated versions line."""
    return (
        f"{manifest.version_id}\t{manifest.fact_count}\t"
        f"{manifest.rejected_count}\t{manifest.created_at.isoformat()}"
    )


def _execute_step(context: RunSpecExecutionContext, step: RunSpecStep) -> tuple[str, ...]:
    if step.command == "ingest":
        return (_execute_ingest_step(context, step),)
    if step.command == "versions":
        return _execute_versions_step(context, step)
    if step.command == "report":
        return _execute_report_step(context, step)
    if step.command == "export-reports":
        return (_execute_export_reports_step(context, step),)
    raise WardRunSpecError(f"Unsupported run-spec command '{step.command}'.")


def _execute_ingest_step(context: RunSpecExecutionContext, step: RunSpecStep) -> str:
    options = IngestOptions(
        warehouse_name=_resolve_warehouse_name(context, step),
        source_uri=required_string(step.args, "source"),
    )
    return context.client.ingest(options)


def _execute_versions_step(
    context: RunSpecExecutionContext,
    step: RunSpecStep,
) -> tuple[str, ...]:
    warehouse: RunSpecWarehouseHandle = context.client.warehouse(
        _resolve_warehouse_name(context, step)
    )
    return tuple(format_version_row(manifest) for manifest in warehouse.list_versions())


def _execute_report_step(
    context: RunSpecExecutionContext,
    step: RunSpecStep,
) -> tuple[str, ...]:
    warehouse: RunSpecWarehouseHandle = context.client.warehouse(
        _resolve_warehouse_name(context, step)
    )
    tables = warehouse.reports(
        report_names=string_list(step.args, "names"),
        version_id=optional_string(step.args, "version_id"),
        group=optional_string(step.args, "group"),
    )
    return tuple(render_report_table(table) for table in tables)


def _execute_export_reports_step(context: RunSpecExecutionContext, step: RunSpecStep) -> str:
    warehouse: RunSpecWarehouseHandle = context.client.warehouse(
        _resolve_warehouse_name(context, step)
    )
    return warehouse.export_reports(
        output_dir=required_string(step.args, "output_dir"),
        report_names=string_list(step.args, "names"),
        version_id=optional_string(step.args, "version_id"),
        file_format=parse_export_format(step.args),
    )


def _resolve_warehouse_name(context: RunSpecExecutionContext, step: RunSpecStep) -> str:
    warehouse_name = optional_string(step.args, "warehouse")
    if warehouse_name:
        return warehouse_name
    if context.default_warehouse_name:
        return context.default_warehouse_name
    raise WardRunSpecError(
        f"Run-spec command '{step.command}' requires warehouse. "
        "Set 'warehouse' on the step or in top-level defaults."
    )
