"""Ingest orchestration for admission warehouses.

This module coordinates source loading, row parsing, star schema
normalization, and snapshot writes for one ingest run.
"""

from __future__ import annotations

from collections import Counter
import re

from core.config import WardConfig
from core.errors import WardIngestError
from core.logging_config import get_logger
from core.types import (
    IngestOptions,
    NormalizationResult,
    RejectedRow,
    SnapshotWriteRequest,
    SourceRow,
    WarehouseManifest,
)
from ingest.input_reader import SourceReadResult, read_source_rows
from ingest.row_parser import ParseResult, parse_source_rows
from store.warehouse_store import WarehouseStore
from transforms.normalization import build_star_schema

_LOGGER = get_logger(__name__)
_WAREHOUSE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


class IngestPipelineRunner:
    """Runner for one load, normalize, and persist pass."""

    def __init__(self, options: IngestOptions, config: WardConfig) -> None:
        validate_warehouse_name(options.warehouse_name)
        self._options = options
        self._config = config
        self._store = WarehouseStore(config)

    def run(self) -> str:
        """Execute ingest pipeline and return created version id."""
        read_result = self._load_source_rows()
        parse_result = self._parse_rows(read_result.rows)
        normalization = build_star_schema(parse_result.rows)
        rejected_rows = (
            read_result.rejected_rows + parse_result.rejected_rows + normalization.rejected_rows
        )
        manifest = self._create_snapshot(read_result.input_count, normalization, rejected_rows)
        _log_ingest_completion(self._options, manifest, rejected_rows)
        return manifest.version_id

    def _load_source_rows(self) -> SourceReadResult:
        return read_source_rows(self._options.source_uri)

    def _parse_rows(self, source_rows: tuple[SourceRow, ...]) -> ParseResult:
        return parse_source_rows(source_rows)

    def _create_snapshot(
        self,
        input_count: int,
        normalization: NormalizationResult,
        rejected_rows: tuple[RejectedRow, ...],
    ) -> WarehouseManifest:
        write_request = SnapshotWriteRequest(
            warehouse_name=self._options.warehouse_name,
            source_uri=self._options.source_uri,
            input_count=input_count,
            schema=normalization.schema,
            rejected_rows=rejected_rows,
        )
        return self._store.create_snapshot(write_request)


def ingest_warehouse(options: IngestOptions, config: WardConfig) -> str:
    """Run the ingest pipeline and persist a warehouse snapshot.

    Args:
        options: Ingest request options.
        config: Runtime configuration.

    Returns:
        Created snapshot version id.

    Raises:
        WardIngestError: If the warehouse name or source is invalid.
        WardStoreError: If snapshot persistence fails.
    """
    runner = IngestPipelineRunner(options, config)
    return runner.run()


def validate_warehouse_name(warehouse_name: str) -> None:
    """Reject names that are empty or unsafe as a directory name.

    Raises:
        WardIngestError: If the name is invalid.
    """
    if _WAREHOUSE_NAME_PATTERN.match(warehouse_name):
        return
    raise WardIngestError(
        f"Invalid warehouse name '{warehouse_name}'. "
        "Use letters, digits, '.', '_' or '-', starting with a letter or digit."
    )


def _log_ingest_completion(
    options: IngestOptions,
    manifest: WarehouseManifest,
    rejected_rows: tuple[RejectedRow, ...],
) -> None:
    """Log pipeline completion with contextual metadata."""
    _LOGGER.info(
        "ingest_completed",
        warehouse_name=options.warehouse_name,
        source_uri=options.source_uri,
        input_count=manifest.input_count,
        fact_count=manifest.fact_count,
        rejected_count=len(rejected_rows),
        rejected_by_reason=dict(Counter(row.reason for row in rejected_rows)),
        version_id=manifest.version_id,
    )
