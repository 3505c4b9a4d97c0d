"""Shared JSON serialization for registry records.

This module centralizes FileRecord and PhoneRecord payload mapping.
It is reused by the flat-file mirror and the DynamoDB item codec.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from core.constants import FILE_STATUS_PROCESSED
from core.types import FileRecord, PhoneRecord


def file_record_to_payload(record: FileRecord) -> dict[str, object]:
    """Serialize FileRecord into JSON-safe payload.

    Args:
        record: File record instance.

    Returns:
        Dictionary payload for JSON encoding.
    """
    return {
        "id": record.record_id,
        "file_name": record.file_name,
        "file_type": record.file_type,
        "processed_at": record.processed_at.isoformat(),
        "content": record.content,
        "record_count": record.record_count,
        "status": record.status,
    }


def file_record_from_payload(payload: dict[str, Any]) -> FileRecord:
    """Deserialize JSON payload into FileRecord.

    Args:
        payload: Serialized record payload.

    Returns:
        Parsed FileRecord.
    """
    return FileRecord(
        record_id=str(payload.get("id", "")),
        file_name=str(payload.get("file_name", "")),
        file_type=str(payload.get("file_type", "")),
        processed_at=datetime.fromisoformat(str(payload["processed_at"])),
        content=str(payload.get("content", "")),
        record_count=int(payload.get("record_count", 0)),
        status=str(payload.get("status", FILE_STATUS_PROCESSED)),
    )


def phone_record_to_payload(record: PhoneRecord) -> dict[str, object]:
    """Serialize PhoneRecord into JSON-safe payload.

    Args:
        record: Phone record instance.

    Returns:
        Dictionary payload for JSON encoding.
    """
    return {
        "id": record.record_id,
        "number": record.number,
        "normalized_number": record.normalized_number,
        "source_file": record.source_file,
        "first_seen_at": record.first_seen_at.isoformat(),
        "last_seen_at": record.last_seen_at.isoformat(),
        "occurrence_count": record.occurrence_count,
        "source_files": list(record.source_files),
    }


def phone_record_from_payload(payload: dict[str, Any]) -> PhoneRecord:
    """Deserialize JSON payload into PhoneRecord.

    Numeric fields are coerced with ``int`` so DynamoDB ``Decimal``
    values and plain JSON numbers load identically.

    Args:
        payload: Serialized record payload.

    Returns:
        Parsed PhoneRecord.
    """
    return PhoneRecord(
        record_id=str(payload.get("id", "")),
        number=str(payload.get("number", "")),
        normalized_number=str(payload["normalized_number"]),
        source_file=str(payload.get("source_file", "")),
        first_seen_at=datetime.fromisoformat(str(payload["first_seen_at"])),
        last_seen_at=datetime.fromisoformat(str(payload["last_seen_at"])),
        occurrence_count=int(payload.get("occurrence_count", 1)),
        source_files=tuple(str(name) for name in payload.get("source_files", [])),
    )
