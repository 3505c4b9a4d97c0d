"""Transport-free merge arithmetic for phone records.

Both registry backends apply the same observation rules; only how the
result is persisted differs.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime

from core.types import PhoneRecord


@dataclass(frozen=True)
class MergeSummary:
    """Counters for one merge batch."""

    new_count: int
    updated_count: int
    failed_count: int
    skipped_count: int


def apply_observation(
    existing: PhoneRecord,
    source_file: str,
    observed_at: datetime,
) -> PhoneRecord:
    """Fold one new observation into an existing record.

    Args:
        existing: Current authoritative record.
        source_file: File that produced the observation.
        observed_at: Observation timestamp.

    Returns:
        Updated copy with bumped counter, last-seen, and source set.
    """
    return replace(
        existing,
        last_seen_at=observed_at,
        occurrence_count=existing.occurrence_count + 1,
        source_files=with_source_file(existing.source_files, source_file),
    )


def prepare_new_record(candidate: PhoneRecord, source_file: str) -> PhoneRecord:
    """Return the candidate as it should be inserted.

    Extractor timestamps and counters are preserved; the merging file is
    guaranteed to be present in the source set.
    """
    return replace(
        candidate,
        source_files=with_source_file(candidate.source_files, source_file),
    )


def with_source_file(source_files: tuple[str, ...], source_file: str) -> tuple[str, ...]:
    """Append a file name unless it is already a member."""
    if source_file in source_files:
        return source_files
    return source_files + (source_file,)
