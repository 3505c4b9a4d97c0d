"""Shared typed models.

This module defines immutable data models used by transforms, ingest,
and store layers to keep interfaces explicit and stable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from core.constants import FILE_STATUS_PROCESSED


def utc_now() -> datetime:
    """Return the current timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class FileRecord:
    """Metadata and content of one ingested file.

    Attributes:
        record_id: Unique identifier; generated by the store when empty.
        file_name: Original file name as delivered.
        file_type: Lower-cased name suffix, e.g. ``.txt``.
        processed_at: UTC timestamp of parsing.
        content: Full decoded text content.
        record_count: Number of non-empty lines.
        status: ``Processed`` or ``Error``.
    """

    record_id: str
    file_name: str
    file_type: str
    processed_at: datetime
    content: str
    record_count: int
    status: str = FILE_STATUS_PROCESSED


@dataclass(frozen=True)
class PhoneRecord:
    """Aggregated observations of one normalized phone number.

    Attributes:
        record_id: Unique record identifier.
        number: Raw token as first observed.
        normalized_number: Digits-only comparison key.
        source_file: File that first contributed this number.
        first_seen_at: UTC timestamp of the first observation.
        last_seen_at: UTC timestamp of the latest observation.
        occurrence_count: Number of merged observations.
        source_files: Distinct contributing file names in insertion order.
    """

    record_id: str
    number: str
    normalized_number: str
    source_file: str
    first_seen_at: datetime
    last_seen_at: datetime
    occurrence_count: int = 1
    source_files: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ProcessingResult:
    """Outcome of one orchestrated unit of work.

    Attributes:
        file_record: Stored file record.
        merged_records: Post-merge phone records.
        new_count: Records created by this unit of work.
        duplicate_count: Records that already existed.
        deleted: Whether the source file was removed.
    """

    file_record: FileRecord
    merged_records: tuple[PhoneRecord, ...]
    new_count: int
    duplicate_count: int
    deleted: bool
