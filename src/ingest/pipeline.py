"""Ingest orchestration for one delivered file.

This module sequences fetch, parse, extract, merge, and delete for a
single unit of work. Delivery is at-least-once, so any fault before the
delete step leaves the source file in place for redelivery.
"""

from __future__ import annotations

from core.errors import PhoneRegError, PhoneRegFileStoreError, PhoneRegIngestError
from core.logging_config import get_logger
from core.types import FileRecord, PhoneRecord, ProcessingResult
from ingest.file_parser import parse_file_content
from ingest.file_store import FileStore
from store.registry_store import RegistryStore
from transforms.phone_extraction import extract_phone_records

_LOGGER = get_logger(__name__)


class IngestionOrchestrator:
    """Runs the per-file ingest sequence against a registry store."""

    def __init__(self, file_store: FileStore, registry: RegistryStore, container: str) -> None:
        self._file_store = file_store
        self._registry = registry
        self._container = container

    @property
    def registry(self) -> RegistryStore:
        """Registry store receiving merged records."""
        return self._registry

    def process_one(self, file_id: str) -> ProcessingResult:
        """Process one delivered file end to end.

        Args:
            file_id: Identifier of the file inside the input container.

        Returns:
            Summary of stored records and the delete outcome.

        Raises:
            PhoneRegError: Any fault before the delete step. Faults that
                are not PhoneRegError are wrapped in PhoneRegIngestError.
        """
        _LOGGER.info(
            "file_processing_started",
            container=self._container,
            file_id=file_id,
            backend=self._registry.backend_name,
        )
        try:
            file_record, merged_records = self._ingest(file_id)
        except Exception as error:
            _LOGGER.error(
                "file_processing_failed",
                container=self._container,
                file_id=file_id,
                backend=self._registry.backend_name,
                error=str(error),
                exc_info=True,
            )
            if isinstance(error, PhoneRegError):
                raise
            raise PhoneRegIngestError(
                f"Failed to process {file_id} from {self._container}: {error}. "
                "The file was left in place for redelivery."
            ) from error
        deleted = self._delete_source(file_id)
        new_count = sum(1 for record in merged_records if record.occurrence_count == 1)
        result = ProcessingResult(
            file_record=file_record,
            merged_records=tuple(merged_records),
            new_count=new_count,
            duplicate_count=len(merged_records) - new_count,
            deleted=deleted,
        )
        _LOGGER.info(
            "file_processed",
            file_id=file_id,
            record_id=file_record.record_id,
            status=file_record.status,
            new_count=result.new_count,
            duplicate_count=result.duplicate_count,
            total_count=len(merged_records),
            deleted=deleted,
        )
        return result

    def _ingest(self, file_id: str) -> tuple[FileRecord, list[PhoneRecord]]:
        with self._file_store.read(self._container, file_id) as stream:
            parsed_record = parse_file_content(stream, file_id)
        self._registry.initialize()
        file_record = self._registry.save_file_record(parsed_record)
        candidates = extract_phone_records(file_record.content, file_id)
        if not candidates:
            _LOGGER.info("no_phone_numbers_found", file_id=file_id)
            return file_record, []
        return file_record, self._registry.merge_phone_records(candidates, file_id)

    def _delete_source(self, file_id: str) -> bool:
        """Delete the processed file; failures only cause reprocessing."""
        try:
            deleted = self._file_store.delete(self._container, file_id)
        except PhoneRegFileStoreError as error:
            _LOGGER.error(
                "file_delete_failed",
                container=self._container,
                file_id=file_id,
                error=str(error),
            )
            return False
        if not deleted:
            _LOGGER.warning("file_delete_skipped", container=self._container, file_id=file_id)
        return deleted
