"""Warehouse snapshot store and catalog.

This module persists immutable star schema versions with ingest metadata.
It provides create, list, and load operations for the SDK.
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
import shutil
from typing import Any, cast

from core.config import WardConfig
from core.constants import CATALOG_FILE_NAME, VERSIONS_DIR_NAME, WAREHOUSES_DIR_NAME
from core.errors import WardStoreError
from core.logging_config import get_logger
from core.types import RejectedRow, SnapshotWriteRequest, StarSchema, WarehouseManifest
from store.catalog_io import (
    build_version_id,
    manifest_from_dict,
    read_catalog_file,
    update_catalog,
    write_manifest_file,
)
from store.table_io import (
    read_rejected_rows,
    read_schema_tables,
    write_rejected_rows,
    write_schema_tables,
)

_LOGGER = get_logger(__name__)


class WarehouseStore:
    """Immutable warehouse snapshot store.

    This class owns warehouse directories, version manifests,
    and catalog updates. Every ingest writes a new version.
    """

    def __init__(self, config: WardConfig) -> None:
        """Initialize warehouse store from config.

        Args:
            config: Runtime configuration.
        """
        self._config = config
        self._warehouses_root = config.data_root / WAREHOUSES_DIR_NAME
        self._warehouses_root.mkdir(parents=True, exist_ok=True)

    def create_snapshot(self, request: SnapshotWriteRequest) -> WarehouseManifest:
        """Create a new immutable warehouse snapshot.

        Args:
            request: Snapshot write request payload.

        Returns:
            Persisted warehouse manifest.

        Raises:
            WardStoreError: If persistence fails.
        """
        warehouse_root = self._warehouse_root(request.warehouse_name)
        version_id = build_version_id(request.warehouse_name, request.schema)
        version_dir = warehouse_root / VERSIONS_DIR_NAME / version_id
        version_dir.mkdir(parents=True, exist_ok=False)
        try:
            manifest = self._write_version(warehouse_root, version_dir, version_id, request)
        except WardStoreError:
            shutil.rmtree(version_dir, ignore_errors=True)
            raise
        _LOGGER.info(
            "warehouse_snapshot_created",
            warehouse_name=request.warehouse_name,
            version_id=version_id,
            fact_count=manifest.fact_count,
            rejected_count=manifest.rejected_count,
        )
        return manifest

    def _write_version(
        self,
        warehouse_root: Path,
        version_dir: Path,
        version_id: str,
        request: SnapshotWriteRequest,
    ) -> WarehouseManifest:
        """Write tables, rejects, manifest, and catalog entry for one version."""
        write_schema_tables(version_dir, request.schema)
        write_rejected_rows(version_dir, list(request.rejected_rows))
        manifest = WarehouseManifest(
            warehouse_name=request.warehouse_name,
            version_id=version_id,
            created_at=datetime.now(timezone.utc),
            source_uri=request.source_uri,
            input_count=request.input_count,
            fact_count=len(request.schema.facts),
            dimension_counts={
                name: len(table) for name, table in request.schema.dimensions.items()
            },
            rejected_by_reason=dict(Counter(row.reason for row in request.rejected_rows)),
        )
        write_manifest_file(version_dir, manifest)
        update_catalog(warehouse_root / CATALOG_FILE_NAME, manifest)
        return manifest

    def list_versions(self, warehouse_name: str) -> list[WarehouseManifest]:
        """List manifests for a warehouse sorted by creation time.

        Args:
            warehouse_name: Warehouse identifier.

        Returns:
            Ordered manifest list.

        Raises:
            WardStoreError: If warehouse catalog does not exist.
        """
        catalog_path = self._warehouse_root(warehouse_name) / CATALOG_FILE_NAME
        catalog = read_catalog_file(catalog_path)
        version_payloads = cast(list[dict[str, Any]], catalog["versions"])
        versions = [manifest_from_dict(item) for item in version_payloads]
        return sorted(versions, key=lambda item: item.created_at)

    def load_schema(
        self,
        warehouse_name: str,
        version_id: str | None = None,
    ) -> tuple[WarehouseManifest, StarSchema]:
        """Load the star schema for a warehouse snapshot.

        Args:
            warehouse_name: Warehouse identifier.
            version_id: Optional snapshot version; latest when omitted.

        Returns:
            Pair of manifest and loaded star schema.

        Raises:
            WardStoreError: If warehouse/version is missing.
        """
        manifest = self.resolve_manifest(warehouse_name, version_id)
        version_dir = self._version_dir(warehouse_name, manifest.version_id)
        return manifest, read_schema_tables(version_dir)

    def load_rejected_rows(
        self,
        warehouse_name: str,
        version_id: str | None = None,
    ) -> list[RejectedRow]:
        """Load rows rejected while building a snapshot."""
        manifest = self.resolve_manifest(warehouse_name, version_id)
        return read_rejected_rows(self._version_dir(warehouse_name, manifest.version_id))

    def resolve_manifest(self, warehouse_name: str, version_id: str | None) -> WarehouseManifest:
        """Resolve a target manifest.

        Args:
            warehouse_name: Warehouse identifier.
            version_id: Optional version id; latest when omitted.

        Returns:
            Resolved warehouse manifest.

        Raises:
            WardStoreError: If catalog or target version is missing.
        """
        manifests = self.list_versions(warehouse_name)
        if not manifests:
            raise WardStoreError(
                f"No versions exist for warehouse '{warehouse_name}'. "
                "Ingest admissions before reading snapshots."
            )
        if version_id is None:
            return manifests[-1]
        for manifest in manifests:
            if manifest.version_id == version_id:
                return manifest
        raise WardStoreError(
            f"Version '{version_id}' not found for warehouse '{warehouse_name}'. "
            "Use `ward versions` to discover valid version ids."
        )

    def _warehouse_root(self, warehouse_name: str) -> Path:
        """Return warehouse root path and ensure base directories."""
        warehouse_root = self._warehouses_root / warehouse_name
        (warehouse_root / VERSIONS_DIR_NAME).mkdir(parents=True, exist_ok=True)
        return warehouse_root

    def _version_dir(self, warehouse_name: str, version_id: str) -> Path:
        """Return snapshot version directory.

        Args:
            warehouse_name: Warehouse identifier.
            version_id: Snapshot version id.

        Returns:
            Version directory path.

        Raises:
            WardStoreError: If version directory is missing.
        """
        version_dir = self._warehouse_root(warehouse_name) / VERSIONS_DIR_NAME / version_id
        if not version_dir.exists():
            raise WardStoreError(
                f"Missing snapshot directory for {warehouse_name}:{version_id} at {version_dir}. "
                "Recreate the snapshot by ingesting the source again."
            )
        return version_dir
