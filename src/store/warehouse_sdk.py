"""Python SDK for warehouse operations.

This module exposes high-level APIs for ingest, version inspection,
reporting, and report export backed by the warehouse store.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Sequence

from core.config import WardConfig
from core.constants import DEFAULT_EXPORT_FORMAT
from core.run_spec_execution import execute_run_spec_file
from core.types import (
    IngestOptions,
    RejectedRow,
    ReportExportRequest,
    ReportOptions,
    ReportTable,
    StarSchema,
    WarehouseManifest,
)
from ingest.pipeline import ingest_warehouse
from reports.registry import resolve_report_names, run_report, run_reports
from store.report_export import export_report_files
from store.warehouse_store import WarehouseStore


class WardClient:
    """Primary SDK entry point for warehouse workflows."""

    def __init__(self, config: WardConfig | None = None) -> None:
        """Create SDK client.

        Args:
            config: Optional runtime configuration.
        """
        self._config = config or WardConfig.from_env()
        self._store = WarehouseStore(self._config)

    @property
    def config(self) -> WardConfig:
        """Return the runtime configuration backing this client."""
        return self._config

    def ingest(self, options: IngestOptions) -> str:
        """Ingest a source file or directory into a versioned warehouse.

        Args:
            options: Ingest options.

        Returns:
            Created version id.

        Raises:
            WardIngestError: If ingest pipeline fails.
            WardStoreError: If snapshot persistence fails.
        """
        return ingest_warehouse(options, self._config)

    def warehouse(self, warehouse_name: str) -> "Warehouse":
        """Get warehouse handle by name.

        Args:
            warehouse_name: Warehouse identifier.

        Returns:
            Warehouse handle.
        """
        report_options = ReportOptions(
            stddev_mode=self._config.stddev_mode,
            outlier_threshold=self._config.outlier_threshold,
        )
        return Warehouse(warehouse_name, self._store, report_options)

    def with_data_root(self, data_root: str) -> "WardClient":
        """Clone the client with a different local data root.

        Args:
            data_root: New data root path.

        Returns:
            New SDK client instance.
        """
        resolved_root = Path(data_root).expanduser().resolve()
        updated_config = replace(self._config, data_root=resolved_root)
        return WardClient(updated_config)

    def run_spec(self, spec_file: str) -> tuple[str, ...]:
        """Execute a YAML run-spec through the shared execution engine.

        Args:
            spec_file: Path to YAML run-spec file.

        Returns:
            Ordered command output lines.
        """
        return execute_run_spec_file(self, spec_file)


class Warehouse:
    """SDK warehouse handle for versioned star schemas."""

    def __init__(
        self,
        warehouse_name: str,
        store: WarehouseStore,
        report_options: ReportOptions,
    ) -> None:
        """Create warehouse handle.

        Args:
            warehouse_name: Warehouse identifier.
            store: Warehouse store backend.
            report_options: Statistical settings for reports.
        """
        self._warehouse_name = warehouse_name
        self._store = store
        self._report_options = report_options

    @property
    def name(self) -> str:
        """Return warehouse identifier."""
        return self._warehouse_name

    def list_versions(self) -> list[WarehouseManifest]:
        """List all warehouse versions, oldest first."""
        return self._store.list_versions(self._warehouse_name)

    def load_schema(
        self,
        version_id: str | None = None,
    ) -> tuple[WarehouseManifest, StarSchema]:
        """Load the star schema for latest or target version.

        Args:
            version_id: Optional specific snapshot id.

        Returns:
            Pair of manifest and star schema.
        """
        return self._store.load_schema(self._warehouse_name, version_id)

    def rejected_rows(self, version_id: str | None = None) -> list[RejectedRow]:
        """Return rows excluded from the fact table of a version."""
        return self._store.load_rejected_rows(self._warehouse_name, version_id)

    def report(self, report_name: str, version_id: str | None = None) -> ReportTable:
        """Run one named report against a version.

        Args:
            report_name: Registered report name.
            version_id: Optional specific snapshot id.

        Returns:
            Report output table.

        Raises:
            WardReportError: If the report name is unknown.
        """
        _, schema = self.load_schema(version_id)
        return run_report(report_name, schema, self._report_options)

    def reports(
        self,
        report_names: Sequence[str] = (),
        version_id: str | None = None,
        group: str | None = None,
    ) -> list[ReportTable]:
        """Run several reports against one loaded version.

        Args:
            report_names: Report names; every report when empty and no group.
            version_id: Optional specific snapshot id.
            group: Optional report group to include.

        Returns:
            Report outputs in selection order.
        """
        names = resolve_report_names(report_names, group)
        _, schema = self.load_schema(version_id)
        return run_reports(names, schema, self._report_options)

    def export_reports(
        self,
        output_dir: str,
        report_names: Sequence[str] = (),
        version_id: str | None = None,
        file_format: str = DEFAULT_EXPORT_FORMAT,
    ) -> str:
        """Export reports as files plus a reports manifest.

        Args:
            output_dir: Local output directory.
            report_names: Report names; every report when empty.
            version_id: Optional version id, latest when omitted.
            file_format: ``csv`` or ``jsonl``.

        Returns:
            Path to generated reports manifest.
        """
        request = ReportExportRequest(
            warehouse_name=self._warehouse_name,
            output_dir=output_dir,
            report_names=tuple(report_names),
            version_id=version_id,
            file_format=file_format,
        )
        manifest, schema = self.load_schema(request.version_id)
        names = resolve_report_names(request.report_names)
        tables = run_reports(names, schema, self._report_options)
        manifest_path = export_report_files(request, manifest, tables)
        return str(manifest_path)
