"""Report export helpers for warehouse snapshots.

This module writes report tables to CSV or JSONL files, one per report.
It writes a manifest listing every file for downstream dashboards.
"""

from __future__ import annotations

from datetime import datetime, timezone
import json
from pathlib import Path

import pyarrow as pa
import pyarrow.csv as pacsv

from core.constants import REPORTS_MANIFEST_FILE_NAME, SUPPORTED_EXPORT_FORMATS
from core.errors import WardStoreError
from core.logging_config import get_logger
from core.types import ReportExportRequest, ReportTable, WarehouseManifest
from reports.rendering import format_cell, json_cell

_LOGGER = get_logger(__name__)


def export_report_files(
    request: ReportExportRequest,
    manifest: WarehouseManifest,
    tables: list[ReportTable],
) -> Path:
    """Export report tables into local files and a manifest.

    Args:
        request: Report export request options.
        manifest: Source warehouse manifest.
        tables: Report outputs in export order.

    Returns:
        Path to generated reports manifest file.

    Raises:
        WardStoreError: If export options are invalid or writing fails.
    """
    _validate_file_format(request.file_format)
    export_dir = _build_export_dir(request.output_dir, manifest)
    report_paths = [
        _write_report_file(export_dir, table, request.file_format) for table in tables
    ]
    manifest_path = _write_reports_manifest(export_dir, manifest, tables, report_paths)
    _LOGGER.info(
        "reports_exported",
        warehouse_name=manifest.warehouse_name,
        version_id=manifest.version_id,
        report_count=len(tables),
        file_format=request.file_format,
        output_dir=str(export_dir),
    )
    return manifest_path


def report_table_to_arrow(table: ReportTable) -> pa.Table:
    """Convert a report into an all-string Arrow table with nulls kept."""
    columns = {
        column: [format_cell(row.get(column)) for row in table.rows] for column in table.columns
    }
    arrow_schema = pa.schema([(column, pa.string()) for column in table.columns])
    return pa.Table.from_pydict(columns, schema=arrow_schema)


def _validate_file_format(file_format: str) -> None:
    """Validate export file format input."""
    if file_format not in SUPPORTED_EXPORT_FORMATS:
        raise WardStoreError(
            f"Invalid export format '{file_format}': expected one of "
            f"{', '.join(SUPPORTED_EXPORT_FORMATS)}. Use --format csv or --format jsonl."
        )


def _build_export_dir(output_dir: str, manifest: WarehouseManifest) -> Path:
    """Build and create destination export directory."""
    base_dir = Path(output_dir).expanduser().resolve()
    export_dir = base_dir / manifest.warehouse_name / manifest.version_id
    export_dir.mkdir(parents=True, exist_ok=True)
    return export_dir


def _write_report_file(export_dir: Path, table: ReportTable, file_format: str) -> Path:
    """Write one report file."""
    report_path = export_dir / f"{table.name}.{file_format}"
    try:
        if file_format == "csv":
            pacsv.write_csv(report_table_to_arrow(table), str(report_path))
        else:
            lines = [
                json.dumps({column: json_cell(row.get(column)) for column in table.columns})
                for row in table.rows
            ]
            report_path.write_text("".join(line + "\n" for line in lines), encoding="utf-8")
    except (pa.ArrowException, OSError) as error:
        raise WardStoreError(
            f"Failed to export report {table.name} to {report_path}: {error}. "
            "Check write permissions and available disk space."
        ) from error
    return report_path


def _write_reports_manifest(
    export_dir: Path,
    source_manifest: WarehouseManifest,
    tables: list[ReportTable],
    report_paths: list[Path],
) -> Path:
    """Write reports export manifest file."""
    manifest_payload = {
        "warehouse_name": source_manifest.warehouse_name,
        "version_id": source_manifest.version_id,
        "report_count": len(tables),
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "reports": [
            {"name": table.name, "file": path.name, "row_count": len(table.rows)}
            for table, path in zip(tables, report_paths)
        ],
    }
    manifest_path = export_dir / REPORTS_MANIFEST_FILE_NAME
    manifest_path.write_text(json.dumps(manifest_payload, indent=2) + "\n", encoding="utf-8")
    return manifest_path
