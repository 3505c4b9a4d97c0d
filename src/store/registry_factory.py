"""Registry store construction from runtime config.

This module is the only place that maps the configured backend name
onto a concrete RegistryStore implementation.
"""

from __future__ import annotations

from core.aws_session import create_aws_client
from core.config import PhoneRegConfig
from core.constants import BACKEND_LOCAL, BACKEND_NETWORKED
from core.errors import PhoneRegConfigError
from core.logging_config import get_logger
from store.dynamodb_registry import DynamoDbRegistryStore
from store.local_registry import LocalRegistryStore
from store.registry_store import RegistryStore

_LOGGER = get_logger(__name__)


def build_registry_store(config: PhoneRegConfig) -> RegistryStore:
    """Build the registry store selected by ``config.backend``.

    Args:
        config: Runtime configuration.

    Returns:
        An uninitialized registry store.

    Raises:
        PhoneRegConfigError: If the backend name is unsupported.
    """
    if config.backend == BACKEND_LOCAL:
        store: RegistryStore = LocalRegistryStore(
            root=config.data_root,
            file_container_name=config.file_container_name,
            phone_container_name=config.phone_container_name,
        )
    elif config.backend == BACKEND_NETWORKED:
        store = DynamoDbRegistryStore(
            client=create_aws_client("dynamodb", config, config.dynamodb_endpoint_url),
            file_table_name=table_name(config.database_name, config.file_container_name),
            phone_table_name=table_name(config.database_name, config.phone_container_name),
            init_max_attempts=config.init_max_attempts,
            init_retry_delay_seconds=config.init_retry_delay_seconds,
        )
    else:
        raise PhoneRegConfigError(
            f"Unsupported registry backend '{config.backend}'. "
            f"Set PHONEREG_BACKEND to {BACKEND_LOCAL} or {BACKEND_NETWORKED}."
        )
    _LOGGER.info(
        "registry_store_built",
        backend=store.backend_name,
        database_name=config.database_name,
        file_container=config.file_container_name,
        phone_container=config.phone_container_name,
    )
    return store


def table_name(database_name: str, container_name: str) -> str:
    """Build the physical table name for a logical collection."""
    return f"{database_name}-{container_name}"
