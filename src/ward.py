"""Public SDK surface for Ward.

This module provides a stable import path for warehouse users.
It re-exports the client, option models, and report registry helpers.
"""

from __future__ import annotations

from core.config import WardConfig
from core.types import (
    IngestOptions,
    RejectedRow,
    ReportOptions,
    ReportTable,
    StarSchema,
    WarehouseManifest,
)
from reports.registry import supported_report_groups, supported_report_names
from reports.rendering import render_report_table
from store.warehouse_sdk import WardClient, Warehouse

__all__ = [
    "IngestOptions",
    "RejectedRow",
    "ReportOptions",
    "ReportTable",
    "StarSchema",
    "WardClient",
    "WardConfig",
    "Warehouse",
    "WarehouseManifest",
    "render_report_table",
    "supported_report_groups",
    "supported_report_names",
]
