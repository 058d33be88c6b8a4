"""Storage and versioning layer.

This package persists immutable star-schema snapshots as Parquet tables,
keeps the warehouse catalog, and exports report files for the SDK.
"""
