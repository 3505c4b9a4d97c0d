"""phonereg CLI entry points.
This module exposes commands for registry setup, file ingest, and lookups.
It maps argparse commands onto the orchestrator and registry store.
"""

from __future__ import annotations

import argparse
from dataclasses import replace
import json
import os
from pathlib import Path
from typing import Any, Sequence

from core.config import PhoneRegConfig
from core.constants import DEFAULT_INBOX_DIR_NAME, SUPPORTED_BACKENDS
from core.errors import PhoneRegError, PhoneRegStoreError
from core.logging_config import configure_logging, get_logger
from ingest.file_store import build_file_store
from ingest.pipeline import IngestionOrchestrator
from store.record_payload import phone_record_to_payload
from store.registry_factory import build_registry_store
from store.registry_store import RegistryStore
from transforms.phone_normalization import normalize_number

_LOGGER = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="phonereg", description="Phone number registry CLI")
    parser.add_argument("--data-root", help="Override PHONEREG_DATA_ROOT for this command")
    parser.add_argument(
        "--backend",
        choices=SUPPORTED_BACKENDS,
        help="Override PHONEREG_BACKEND for this command",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_init_command(subparsers)
    _add_process_command(subparsers)
    _add_drain_command(subparsers)
    _add_lookup_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the phonereg CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    config = _build_config(args.data_root, args.backend)
    configure_logging(config.log_level)
    registry = build_registry_store(config)
    if args.command == "init":
        return _run_init_command(registry)
    if args.command == "process":
        return _run_process_command(config, registry, args)
    if args.command == "drain":
        return _run_drain_command(config, registry)
    if args.command == "lookup":
        return _run_lookup_command(registry, args)
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _build_config(data_root: str | None, backend: str | None) -> PhoneRegConfig:
    """Build config with optional command-line overrides.

    Args:
        data_root: Optional override path.
        backend: Optional backend override.

    Returns:
        Runtime configuration.
    """
    config = PhoneRegConfig.from_env()
    if data_root:
        resolved_root = Path(data_root).expanduser().resolve()
        input_root = config.input_root
        if not os.getenv("PHONEREG_INPUT_ROOT"):
            input_root = resolved_root / DEFAULT_INBOX_DIR_NAME
        config = replace(config, data_root=resolved_root, input_root=input_root)
    if backend:
        config = replace(config, backend=backend)
    return config


def _run_init_command(registry: RegistryStore) -> int:
    """Handle init command; failures surface as a non-zero exit."""
    registry.initialize()
    print(registry.backend_name)
    return 0


def _run_process_command(
    config: PhoneRegConfig,
    registry: RegistryStore,
    args: argparse.Namespace,
) -> int:
    """Handle process command.

    Args:
        config: Runtime configuration.
        registry: Registry store for this process.
        args: Parsed CLI args.

    Returns:
        Exit code, 1 when any file failed.
    """
    return _process_files(config, registry, list(args.file_ids))


def _run_drain_command(config: PhoneRegConfig, registry: RegistryStore) -> int:
    """Handle drain command by processing every waiting file."""
    file_store = build_file_store(config)
    file_ids = file_store.list_files(config.input_container)
    _LOGGER.info(
        "drain_started",
        container=config.input_container,
        file_count=len(file_ids),
    )
    return _process_files(config, registry, file_ids)


def _run_lookup_command(registry: RegistryStore, args: argparse.Namespace) -> int:
    """Handle lookup command.

    Args:
        registry: Registry store for this process.
        args: Parsed CLI args.

    Returns:
        Exit code, 1 when the number is unknown.
    """
    record = registry.get_by_normalized_key(normalize_number(args.number))
    if record is None:
        print("not found")
        return 1
    print(json.dumps(phone_record_to_payload(record), indent=2, sort_keys=True))
    return 0


def _process_files(
    config: PhoneRegConfig,
    registry: RegistryStore,
    file_ids: list[str],
) -> int:
    """Process files sequentially, counting failures instead of stopping."""
    _warm_up_registry(registry)
    orchestrator = IngestionOrchestrator(
        file_store=build_file_store(config),
        registry=registry,
        container=config.input_container,
    )
    failed_count = 0
    for file_id in file_ids:
        try:
            result = orchestrator.process_one(file_id)
        except PhoneRegError:
            failed_count += 1
            print(f"{file_id}\tfailed")
            continue
        print(
            f"{file_id}\t"
            f"{result.file_record.status}\t"
            f"new={result.new_count}\t"
            f"duplicates={result.duplicate_count}\t"
            f"deleted={result.deleted}"
        )
    return 1 if failed_count else 0


def _warm_up_registry(registry: RegistryStore) -> None:
    """Initialize eagerly; on failure keep running so each file retries."""
    try:
        registry.initialize()
    except PhoneRegStoreError as error:
        _LOGGER.error(
            "registry_initialization_failed",
            backend=registry.backend_name,
            error=str(error),
        )


def _add_init_command(subparsers: Any) -> None:
    """Register init subcommand."""
    subparsers.add_parser("init", help="Create registry tables or directories")


def _add_process_command(subparsers: Any) -> None:
    """Register process subcommand."""
    parser = subparsers.add_parser("process", help="Process delivered files by id")
    parser.add_argument("file_ids", nargs="+", help="File ids inside the input container")


def _add_drain_command(subparsers: Any) -> None:
    """Register drain subcommand."""
    subparsers.add_parser("drain", help="Process every file waiting in the input container")


def _add_lookup_command(subparsers: Any) -> None:
    """Register lookup subcommand."""
    parser = subparsers.add_parser("lookup", help="Show the registry record for a number")
    parser.add_argument("number", help="Phone number in any format")
