"""Unit tests for per-file ingest orchestration."""

from __future__ import annotations

from pathlib import Path

import pytest

from core.errors import PhoneRegFileNotFoundError, PhoneRegIngestError, PhoneRegStoreError
from ingest.file_store import LocalFileStore, S3FileStore
from ingest.pipeline import IngestionOrchestrator
from store.local_registry import LocalRegistryStore
from tests.fakes import FakeS3Client

_CONTAINER = "input-files"


def _registry(root: Path) -> LocalRegistryStore:
    return LocalRegistryStore(
        root=root,
        file_container_name="ProcessedFiles",
        phone_container_name="PhoneNumbers",
    )


def _deliver(inbox: Path, file_id: str, body: bytes) -> Path:
    container_dir = inbox / _CONTAINER
    container_dir.mkdir(parents=True, exist_ok=True)
    file_path = container_dir / file_id
    file_path.write_bytes(body)
    return file_path


def test_process_one_stores_records_and_deletes_file(tmp_path) -> None:
    """A successful run should persist everything and remove the input."""
    file_path = _deliver(tmp_path / "inbox", "a.txt", b"Call 555-123-4567 now\nhello")
    registry = _registry(tmp_path / "registry")
    orchestrator = IngestionOrchestrator(LocalFileStore(tmp_path / "inbox"), registry, _CONTAINER)

    result = orchestrator.process_one("a.txt")

    assert (result.new_count, result.duplicate_count, result.deleted) == (1, 0, True)
    assert not file_path.exists()
    assert registry.get_by_normalized_key("5551234567") is not None


def test_process_one_reports_duplicates_from_earlier_files(tmp_path) -> None:
    """Numbers already registered should count as duplicates."""
    registry = _registry(tmp_path / "registry")
    orchestrator = IngestionOrchestrator(LocalFileStore(tmp_path / "inbox"), registry, _CONTAINER)
    _deliver(tmp_path / "inbox", "a.txt", b"555-123-4567")
    orchestrator.process_one("a.txt")
    _deliver(tmp_path / "inbox", "b.txt", b"555 123 4567\n202-555-0199")

    result = orchestrator.process_one("b.txt")

    assert (result.new_count, result.duplicate_count) == (1, 1)


def test_process_one_completes_file_without_numbers(tmp_path) -> None:
    """A file with no digits should still be recorded and deleted."""
    _deliver(tmp_path / "inbox", "empty.txt", b"hello world\n")
    registry = _registry(tmp_path / "registry")
    orchestrator = IngestionOrchestrator(LocalFileStore(tmp_path / "inbox"), registry, _CONTAINER)

    result = orchestrator.process_one("empty.txt")

    assert (result.merged_records, result.deleted) == ((), True)
    assert (registry.file_records_dir / f"{result.file_record.record_id}.json").exists()


def test_process_one_missing_file_writes_nothing(tmp_path) -> None:
    """A missing input should fail before any registry write."""
    registry = _registry(tmp_path / "registry")
    orchestrator = IngestionOrchestrator(LocalFileStore(tmp_path / "inbox"), registry, _CONTAINER)

    with pytest.raises(PhoneRegFileNotFoundError):
        orchestrator.process_one("ghost.txt")

    assert not registry.file_records_dir.exists()


def test_process_one_keeps_file_when_merge_fails(tmp_path, monkeypatch) -> None:
    """A registry fault should propagate and leave the input for redelivery."""
    file_path = _deliver(tmp_path / "inbox", "a.txt", b"555-123-4567")
    registry = _registry(tmp_path / "registry")
    orchestrator = IngestionOrchestrator(LocalFileStore(tmp_path / "inbox"), registry, _CONTAINER)

    def _fail_write(*_args, **_kwargs) -> None:
        raise PhoneRegStoreError("disk full")

    monkeypatch.setattr("store.local_registry._write_phone_mirror", _fail_write)
    with pytest.raises(PhoneRegStoreError):
        orchestrator.process_one("a.txt")

    assert file_path.exists()


def test_process_one_tolerates_delete_failure(tmp_path) -> None:
    """A failed delete should be logged and reported, not raised."""
    client = FakeS3Client()
    client.put(_CONTAINER, "a.txt", b"555-123-4567")
    client.failing_deletes = True
    orchestrator = IngestionOrchestrator(
        S3FileStore(client),
        _registry(tmp_path / "registry"),
        _CONTAINER,
    )

    result = orchestrator.process_one("a.txt")

    assert (result.deleted, result.new_count) == (False, 1)


def test_process_one_completes_undecodable_file_with_error_status(tmp_path) -> None:
    """Invalid bytes should produce an Error record and still delete the input."""
    _deliver(tmp_path / "inbox", "binary.dat", b"\xff\xfe\x00")
    orchestrator = IngestionOrchestrator(
        LocalFileStore(tmp_path / "inbox"),
        _registry(tmp_path / "registry"),
        _CONTAINER,
    )

    result = orchestrator.process_one("binary.dat")

    assert (result.file_record.status, result.merged_records, result.deleted) == (
        "Error",
        (),
        True,
    )


def test_process_one_wraps_unexpected_faults(tmp_path, monkeypatch) -> None:
    """Non-domain exceptions should surface as ingest errors."""
    file_path = _deliver(tmp_path / "inbox", "a.txt", b"555-123-4567")
    registry = _registry(tmp_path / "registry")
    orchestrator = IngestionOrchestrator(LocalFileStore(tmp_path / "inbox"), registry, _CONTAINER)

    def _explode(*_args, **_kwargs):
        raise ValueError("bad payload")

    monkeypatch.setattr(registry, "merge_phone_records", _explode)
    with pytest.raises(PhoneRegIngestError):
        orchestrator.process_one("a.txt")

    assert file_path.exists()
