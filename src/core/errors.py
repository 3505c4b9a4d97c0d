"""phonereg exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each subsystem raises a specific error type for debuggability.
"""

from __future__ import annotations


class PhoneRegError(Exception):
    """Base exception for all phonereg failures."""


class PhoneRegConfigError(PhoneRegError):
    """Raised for invalid runtime configuration."""


class PhoneRegIngestError(PhoneRegError):
    """Raised for file parsing and ingest pipeline failures."""


class PhoneRegStoreError(PhoneRegError):
    """Raised for registry store persistence and initialization failures."""


class PhoneRegFileStoreError(PhoneRegError):
    """Raised for input file store failures."""


class PhoneRegFileNotFoundError(PhoneRegFileStoreError):
    """Raised when a requested input file does not exist."""


class PhoneRegDependencyError(PhoneRegError):
    """Raised when an optional runtime dependency is missing."""
