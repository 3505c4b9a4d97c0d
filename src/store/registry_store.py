"""Registry store contract.

This module defines the capability set every registry backend provides.
Callers depend on this protocol only, never on a concrete transport.
"""

from __future__ import annotations

from typing import Protocol

from core.types import FileRecord, PhoneRecord


class RegistryStore(Protocol):
    """Durable owner of file records and the phone-number registry."""

    @property
    def backend_name(self) -> str:
        """Short backend label used in logs."""
        ...

    def initialize(self) -> None:
        """Prepare underlying storage; idempotent and concurrency-safe.

        Raises:
            PhoneRegStoreError: If storage cannot be prepared.
        """
        ...

    def save_file_record(self, record: FileRecord) -> FileRecord:
        """Upsert a file record, assigning an id when empty."""
        ...

    def merge_phone_records(
        self,
        candidates: list[PhoneRecord],
        source_file: str,
    ) -> list[PhoneRecord]:
        """Merge candidates into the registry and return post-merge records.

        Per-candidate failures are logged and skipped, so the result may be
        shorter than ``candidates``.
        """
        ...

    def get_by_normalized_key(self, normalized_number: str) -> PhoneRecord | None:
        """Return the record for a key, or None when absent or unreadable."""
        ...
