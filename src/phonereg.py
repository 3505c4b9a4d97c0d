"""Public SDK surface for phonereg.

This module provides a stable import path for embedding the ingest
pipeline in another host, such as a queue consumer or function runtime.
"""

from __future__ import annotations

from core.config import PhoneRegConfig
from core.logging_config import configure_logging
from core.types import FileRecord, PhoneRecord, ProcessingResult
from ingest.file_store import FileStore, LocalFileStore, S3FileStore, build_file_store
from ingest.pipeline import IngestionOrchestrator
from store.dynamodb_registry import DynamoDbRegistryStore
from store.local_registry import LocalRegistryStore
from store.registry_factory import build_registry_store
from store.registry_store import RegistryStore
from transforms.phone_extraction import extract_phone_records
from transforms.phone_normalization import normalize_number

__all__ = [
    "DynamoDbRegistryStore",
    "FileRecord",
    "FileStore",
    "IngestionOrchestrator",
    "LocalFileStore",
    "LocalRegistryStore",
    "PhoneRecord",
    "PhoneRegConfig",
    "ProcessingResult",
    "RegistryStore",
    "S3FileStore",
    "build_file_store",
    "build_orchestrator",
    "build_registry_store",
    "configure_logging",
    "extract_phone_records",
    "normalize_number",
]


def build_orchestrator(config: PhoneRegConfig) -> IngestionOrchestrator:
    """Wire an orchestrator from runtime configuration.

    Args:
        config: Runtime configuration.

    Returns:
        Orchestrator bound to the configured file store and registry.
    """
    return IngestionOrchestrator(
        file_store=build_file_store(config),
        registry=build_registry_store(config),
        container=config.input_container,
    )
