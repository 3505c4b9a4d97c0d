"""File content parsing.

This module decodes a delivered byte stream into a FileRecord. Content
that is not valid UTF-8 degrades the record to ``Error`` status.
"""

from __future__ import annotations

from pathlib import PurePosixPath
import uuid
from typing import BinaryIO

from core.constants import FILE_STATUS_ERROR, FILE_STATUS_PROCESSED, TEXT_ENCODING
from core.logging_config import get_logger
from core.types import FileRecord, utc_now
from transforms.phone_extraction import split_content_lines

_LOGGER = get_logger(__name__)


def parse_file_content(stream: BinaryIO, file_name: str) -> FileRecord:
    """Read a byte stream and build its FileRecord.

    Args:
        stream: Open binary stream of the delivered file.
        file_name: Original file name.

    Returns:
        Parsed record; status ``Error`` with empty content when the
        bytes cannot be decoded.
    """
    raw_bytes = stream.read()
    record_id = str(uuid.uuid4())
    file_type = detect_file_type(file_name)
    try:
        content = raw_bytes.decode(TEXT_ENCODING)
    except UnicodeDecodeError as error:
        _LOGGER.error(
            "file_decode_failed",
            file_name=file_name,
            size_bytes=len(raw_bytes),
            error=str(error),
        )
        return FileRecord(
            record_id=record_id,
            file_name=file_name,
            file_type=file_type,
            processed_at=utc_now(),
            content="",
            record_count=0,
            status=FILE_STATUS_ERROR,
        )
    record = FileRecord(
        record_id=record_id,
        file_name=file_name,
        file_type=file_type,
        processed_at=utc_now(),
        content=content,
        record_count=len(split_content_lines(content)),
        status=FILE_STATUS_PROCESSED,
    )
    _LOGGER.info(
        "file_parsed",
        file_name=file_name,
        size_bytes=len(raw_bytes),
        line_count=record.record_count,
    )
    return record


def detect_file_type(file_name: str) -> str:
    """Return the lower-cased suffix of a file name, e.g. ``.txt``."""
    return PurePosixPath(file_name).suffix.lower()
