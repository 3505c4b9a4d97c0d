"""Phone number extraction transform.

This module scans file content line by line and emits one candidate
record per distinct normalized number found in that file.
"""

from __future__ import annotations

import re
import uuid

from core.logging_config import get_logger
from core.types import PhoneRecord, utc_now
from transforms.phone_normalization import contains_digit, normalize_number

_LOGGER = get_logger(__name__)
_LINE_BREAK_PATTERN = re.compile(r"[\r\n]+")


def split_content_lines(content: str) -> list[str]:
    """Split content on any CR/LF boundary, dropping empty entries.

    Args:
        content: Decoded file text.

    Returns:
        Non-empty lines in original order. Whitespace-only lines are kept.
    """
    return [line for line in _LINE_BREAK_PATTERN.split(content) if line]


def extract_phone_records(content: str, source_file: str) -> list[PhoneRecord]:
    """Extract candidate phone records from file content.

    Every trimmed line containing a digit is a candidate; its raw text is
    kept verbatim. The first line wins when several lines share a key.

    Args:
        content: Decoded file text.
        source_file: Name of the file the content came from.

    Returns:
        Candidate records with unique normalized numbers.
    """
    try:
        records = _extract_unique_records(content, source_file)
    except (AttributeError, TypeError) as error:
        _LOGGER.error(
            "phone_extraction_failed",
            source_file=source_file,
            error=str(error),
            exc_info=True,
        )
        return []
    _LOGGER.info(
        "phone_extraction_completed",
        source_file=source_file,
        unique_count=len(records),
    )
    return records


def _extract_unique_records(content: str, source_file: str) -> list[PhoneRecord]:
    seen_keys: set[str] = set()
    records: list[PhoneRecord] = []
    for line in split_content_lines(content):
        candidate = line.strip()
        if not contains_digit(candidate):
            continue
        normalized = normalize_number(candidate)
        if normalized in seen_keys:
            continue
        seen_keys.add(normalized)
        records.append(_build_candidate(candidate, normalized, source_file))
    return records


def _build_candidate(number: str, normalized: str, source_file: str) -> PhoneRecord:
    """Build a fresh candidate with a single observation."""
    observed_at = utc_now()
    return PhoneRecord(
        record_id=str(uuid.uuid4()),
        number=number,
        normalized_number=normalized,
        source_file=source_file,
        first_seen_at=observed_at,
        last_seen_at=observed_at,
        occurrence_count=1,
        source_files=(source_file,),
    )
