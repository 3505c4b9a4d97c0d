"""Unit tests for registry store construction."""

from __future__ import annotations

from dataclasses import replace

import pytest

from core.errors import PhoneRegConfigError
from store.dynamodb_registry import DynamoDbRegistryStore
from store.local_registry import LocalRegistryStore
from store.registry_factory import build_registry_store, table_name
from tests.fakes import FakeDynamoDbClient


def test_build_registry_store_returns_local_store(local_config) -> None:
    """The local backend should map to the flat-file store."""
    store = build_registry_store(local_config)

    assert isinstance(store, LocalRegistryStore)


def test_build_registry_store_uses_configured_tables(local_config, monkeypatch) -> None:
    """The networked backend should name tables after database and container."""
    client = FakeDynamoDbClient()
    monkeypatch.setattr(
        "store.registry_factory.create_aws_client",
        lambda service_name, config, endpoint_url: client,
    )
    config = replace(local_config, backend="networked")

    store = build_registry_store(config)
    store.initialize()

    assert isinstance(store, DynamoDbRegistryStore)
    assert sorted(client.tables) == ["BlobDataDB-PhoneNumbers", "BlobDataDB-ProcessedFiles"]


def test_build_registry_store_rejects_unknown_backend(local_config) -> None:
    """Unknown backend names should raise a config error."""
    with pytest.raises(PhoneRegConfigError):
        build_registry_store(replace(local_config, backend="cosmos"))


def test_table_name_joins_database_and_container() -> None:
    """Physical table names should be prefixed with the database name."""
    assert table_name("BlobDataDB", "PhoneNumbers") == "BlobDataDB-PhoneNumbers"
