"""Ward exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each subsystem raises a specific error type for debuggability.
"""

from __future__ import annotations


class WardError(Exception):
    """Base exception for all Ward failures."""


class WardConfigError(WardError):
    """Raised for invalid runtime configuration."""


class WardIngestError(WardError):
    """Raised for source reading and parsing failures."""


class WardStoreError(WardError):
    """Raised for warehouse store and versioning failures."""


class WardReportError(WardError):
    """Raised for unknown or invalid report requests."""


class WardDependencyError(WardError):
    """Raised when an optional runtime dependency is missing."""


class WardRunSpecError(WardError):
    """Raised for invalid or unsupported run-spec configuration."""


class WardVerificationError(WardError):
    """Raised when automated verification checks fail."""
