"""Local flat-file registry backend.

This module keeps the phone registry in memory and mirrors it to one
JSON array file; file records are written one JSON file per id. It is
the fallback used when the networked store is unreachable.
"""

from __future__ import annotations

from dataclasses import replace
import json
from pathlib import Path
import threading
import uuid
from typing import Iterable

from core.constants import BACKEND_LOCAL, FILE_RECORD_SUFFIX, PHONE_MIRROR_FILE_SUFFIX
from core.errors import PhoneRegStoreError
from core.logging_config import get_logger
from core.types import FileRecord, PhoneRecord, utc_now
from store.initialization import OneShotInitializer
from store.phone_merge import MergeSummary, apply_observation, prepare_new_record
from store.record_payload import (
    file_record_to_payload,
    phone_record_from_payload,
    phone_record_to_payload,
)

_LOGGER = get_logger(__name__)


class LocalRegistryStore:
    """Flat-file registry store.

    All mutations run inside one lock that also rewrites the mirror file.
    A batch is staged on a copy of the map and committed only after the
    mirror write succeeds, so memory and disk never diverge.
    """

    def __init__(
        self,
        root: Path,
        file_container_name: str,
        phone_container_name: str,
    ) -> None:
        """Initialize the store layout without touching disk.

        Args:
            root: Directory holding the registry files.
            file_container_name: Subdirectory for per-file JSON records.
            phone_container_name: Base name of the phone mirror file.
        """
        self._root = root
        self._files_dir = root / file_container_name
        self._phone_path = root / f"{phone_container_name}{PHONE_MIRROR_FILE_SUFFIX}"
        self._records: dict[str, PhoneRecord] = {}
        self._lock = threading.Lock()
        self._initializer = OneShotInitializer(self._load)

    @property
    def backend_name(self) -> str:
        return BACKEND_LOCAL

    @property
    def phone_mirror_path(self) -> Path:
        """Path of the JSON array mirroring every phone record."""
        return self._phone_path

    @property
    def file_records_dir(self) -> Path:
        """Directory holding one JSON file per file record."""
        return self._files_dir

    def initialize(self) -> None:
        """Create directories and load the existing mirror once.

        Raises:
            PhoneRegStoreError: If directories cannot be created or the
                mirror file is unreadable.
        """
        self._initializer.ensure()

    def save_file_record(self, record: FileRecord) -> FileRecord:
        """Write a file record to its own JSON file, overwriting any copy.

        Args:
            record: File record to persist.

        Returns:
            Stored record with a guaranteed identifier.

        Raises:
            PhoneRegStoreError: If the record cannot be written.
        """
        self.initialize()
        stored = record
        if not stored.record_id:
            stored = replace(record, record_id=str(uuid.uuid4()))
            _LOGGER.warning("file_record_id_generated", record_id=stored.record_id)
        record_path = self._files_dir / f"{stored.record_id}{FILE_RECORD_SUFFIX}"
        payload = json.dumps(file_record_to_payload(stored))
        with self._lock:
            _write_text(record_path, payload)
        _LOGGER.info(
            "file_record_saved",
            backend=self.backend_name,
            file_name=stored.file_name,
            record_id=stored.record_id,
        )
        return stored

    def merge_phone_records(
        self,
        candidates: list[PhoneRecord],
        source_file: str,
    ) -> list[PhoneRecord]:
        """Merge candidates into the in-memory map and rewrite the mirror.

        Args:
            candidates: Extractor output for one file.
            source_file: File the candidates came from.

        Returns:
            Post-merge records in candidate order.

        Raises:
            PhoneRegStoreError: If the mirror file cannot be rewritten.
        """
        self.initialize()
        with self._lock:
            staged = dict(self._records)
            merged, summary = _merge_into(staged, candidates, source_file)
            if merged:
                _write_phone_mirror(self._phone_path, staged.values())
            self._records = staged
        _LOGGER.info(
            "phone_merge_completed",
            backend=self.backend_name,
            source_file=source_file,
            new_count=summary.new_count,
            updated_count=summary.updated_count,
            skipped_count=summary.skipped_count,
            total_count=len(merged),
        )
        return merged

    def get_by_normalized_key(self, normalized_number: str) -> PhoneRecord | None:
        """Return the in-memory record for a key."""
        self.initialize()
        return self._records.get(normalized_number)

    def _load(self) -> None:
        try:
            self._files_dir.mkdir(parents=True, exist_ok=True)
        except OSError as error:
            raise PhoneRegStoreError(
                f"Failed to prepare local registry at {self._root}: {error}. "
                "Check write permissions for PHONEREG_DATA_ROOT."
            ) from error
        loaded = _read_phone_mirror(self._phone_path)
        with self._lock:
            self._records = {record.normalized_number: record for record in loaded}
        _LOGGER.info(
            "registry_initialized",
            backend=self.backend_name,
            data_root=str(self._root),
            phone_record_count=len(loaded),
        )


def _merge_into(
    records: dict[str, PhoneRecord],
    candidates: list[PhoneRecord],
    source_file: str,
) -> tuple[list[PhoneRecord], MergeSummary]:
    """Apply a candidate batch to a staged record map in place."""
    merged: list[PhoneRecord] = []
    new_count = 0
    updated_count = 0
    skipped_count = 0
    for candidate in candidates:
        key = candidate.normalized_number
        if not key:
            skipped_count += 1
            _LOGGER.warning("phone_merge_skipped_empty_key", number=candidate.number)
            continue
        existing = records.get(key)
        if existing is None:
            record = prepare_new_record(candidate, source_file)
            new_count += 1
        else:
            record = apply_observation(existing, source_file, utc_now())
            updated_count += 1
        records[key] = record
        merged.append(record)
    summary = MergeSummary(
        new_count=new_count,
        updated_count=updated_count,
        failed_count=0,
        skipped_count=skipped_count,
    )
    return merged, summary


def _read_phone_mirror(mirror_path: Path) -> list[PhoneRecord]:
    """Load the phone mirror file, or nothing when it does not exist yet.

    Raises:
        PhoneRegStoreError: If the mirror exists but cannot be parsed.
    """
    if not mirror_path.exists():
        return []
    try:
        payload = json.loads(mirror_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as error:
        raise PhoneRegStoreError(
            f"Failed to read phone registry mirror at {mirror_path}: {error}. "
            "Restore the file from backup or remove it to start an empty registry."
        ) from error
    if not isinstance(payload, list):
        raise PhoneRegStoreError(
            f"Failed to read phone registry mirror at {mirror_path}: "
            "expected JSON array at top level."
        )
    try:
        return [phone_record_from_payload(item) for item in payload]
    except (KeyError, TypeError, ValueError) as error:
        raise PhoneRegStoreError(
            f"Invalid phone record in registry mirror at {mirror_path}: {error}."
        ) from error


def _write_phone_mirror(mirror_path: Path, records: Iterable[PhoneRecord]) -> None:
    """Rewrite the full phone mirror file."""
    payload = [phone_record_to_payload(record) for record in records]
    _write_text(mirror_path, json.dumps(payload, indent=2) + "\n")


def _write_text(target_path: Path, text: str) -> None:
    """Write text through a sibling temp file and atomic rename.

    Raises:
        PhoneRegStoreError: If the write fails.
    """
    temp_path = target_path.with_name(f".{target_path.name}.tmp")
    try:
        temp_path.write_text(text, encoding="utf-8")
        temp_path.replace(target_path)
    except OSError as error:
        raise PhoneRegStoreError(
            f"Failed to persist registry file at {target_path}: {error}. "
            "Check write permissions and available disk space."
        ) from error
