"""Catalog and manifest persistence helpers.

This module isolates JSON catalog IO and version id generation.
It keeps warehouse store orchestration focused on business flow.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, cast

from core.constants import MANIFEST_FILE_NAME
from core.errors import WardStoreError
from core.types import StarSchema, WarehouseManifest


def build_version_id(warehouse_name: str, schema: StarSchema) -> str:
    """Build a unique version id from warehouse name, time, and fact content.

    Args:
        warehouse_name: Warehouse identifier.
        schema: Star schema being persisted.

    Returns:
        Version id string.
    """
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
    digest_seed = "|".join(
        f"{fact.patient_id}:{fact.condition_id}:{fact.admission_date}:{fact.billing_amount}"
        for fact in schema.facts
    )
    digest = hashlib.sha256(digest_seed.encode("utf-8")).hexdigest()[:10]
    return f"{warehouse_name}-{timestamp}-{digest}"


def write_manifest_file(version_dir: Path, manifest: WarehouseManifest) -> None:
    """Write per-version manifest file.

    Args:
        version_dir: Snapshot version directory.
        manifest: Manifest payload.
    """
    manifest_path = version_dir / MANIFEST_FILE_NAME
    manifest_path.write_text(
        json.dumps(manifest_to_dict(manifest), indent=2) + "\n", encoding="utf-8"
    )


def update_catalog(catalog_path: Path, manifest: WarehouseManifest) -> None:
    """Append manifest entry to warehouse catalog.

    Args:
        catalog_path: Catalog JSON path.
        manifest: Manifest to append.
    """
    if catalog_path.exists():
        catalog = read_catalog_file(catalog_path)
    else:
        catalog = {"latest_version": None, "versions": []}
    versions = cast(list[dict[str, Any]], catalog["versions"])
    versions.append(manifest_to_dict(manifest))
    catalog["latest_version"] = manifest.version_id
    catalog_path.write_text(json.dumps(catalog, indent=2) + "\n", encoding="utf-8")


def read_catalog_file(catalog_path: Path) -> dict[str, Any]:
    """Read and validate warehouse catalog payload.

    Args:
        catalog_path: Catalog JSON path.

    Returns:
        Parsed catalog object.

    Raises:
        WardStoreError: If catalog is missing or invalid.
    """
    if not catalog_path.exists():
        raise WardStoreError(
            f"Warehouse catalog not found at {catalog_path}. "
            "Ingest admissions before requesting versions."
        )
    try:
        payload = json.loads(catalog_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as error:
        raise WardStoreError(
            f"Failed to parse warehouse catalog at {catalog_path}: {error.msg}. "
            "Recreate the warehouse by ingesting the source again."
        ) from error
    if not isinstance(payload, dict) or not isinstance(payload.get("versions"), list):
        raise WardStoreError(
            f"Failed to parse warehouse catalog at {catalog_path}: "
            "expected a JSON object with a versions list. Recreate the catalog."
        )
    return payload


def manifest_to_dict(manifest: WarehouseManifest) -> dict[str, Any]:
    """Serialize a manifest into a JSON-ready dictionary."""
    manifest_dict = asdict(manifest)
    manifest_dict["created_at"] = manifest.created_at.isoformat()
    manifest_dict["dimension_counts"] = dict(manifest.dimension_counts)
    manifest_dict["rejected_by_reason"] = dict(manifest.rejected_by_reason)
    return manifest_dict


def manifest_from_dict(payload: dict[str, Any]) -> WarehouseManifest:
    """Deserialize manifest payload from dictionary.

    Args:
        payload: Manifest dictionary.

    Returns:
        Typed warehouse manifest.
    """
    return WarehouseManifest(
        warehouse_name=str(payload["warehouse_name"]),
        version_id=str(payload["version_id"]),
        created_at=datetime.fromisoformat(str(payload["created_at"])),
        source_uri=str(payload["source_uri"]),
        input_count=int(payload["input_count"]),
        fact_count=int(payload["fact_count"]),
        dimension_counts={
            str(name): int(count) for name, count in payload["dimension_counts"].items()
        },
        rejected_by_reason={
            str(reason): int(count) for reason, count in payload["rejected_by_reason"].items()
        },
    )
