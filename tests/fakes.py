"""In-memory fakes for the AWS clients used by phonereg.

The fakes implement only the calls phonereg makes and raise real
botocore errors so adapter error handling is exercised unchanged.
"""

from __future__ import annotations

import copy
import io
import threading
from typing import Any

from botocore.exceptions import ClientError, EndpointConnectionError

from store.dynamodb_registry import OBSERVATION_UPDATE, SOURCE_OBSERVATION_UPDATE


def client_error(code: str, operation: str) -> ClientError:
    """Build a botocore ClientError with the given error code."""
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


class _TableWaiter:
    def __init__(self, client: "FakeDynamoDbClient") -> None:
        self._client = client

    def wait(self, TableName: str) -> None:
        if TableName not in self._client.tables:
            raise client_error("ResourceNotFoundException", "DescribeTable")


class FakeDynamoDbClient:
    """Thread-safe DynamoDB client fake storing typed attribute items."""

    def __init__(self) -> None:
        self.tables: dict[str, dict[str, dict[str, Any]]] = {}
        self.key_names: dict[str, str] = {}
        self.create_table_calls = 0
        self.unreachable_attempts = 0
        self.failing_put_keys: set[str] = set()
        self.failing_lookup = False
        self.failing_update_expressions: set[str] = set()
        self.stale_read_keys: set[str] = set()
        self._lock = threading.Lock()

    def create_table(self, TableName: str, KeySchema: list[dict[str, str]], **_: Any) -> dict:
        with self._lock:
            self.create_table_calls += 1
            if self.unreachable_attempts > 0:
                self.unreachable_attempts -= 1
                raise EndpointConnectionError(endpoint_url="http://dynamodb.invalid")
            if TableName in self.tables:
                raise client_error("ResourceInUseException", "CreateTable")
            self.tables[TableName] = {}
            self.key_names[TableName] = KeySchema[0]["AttributeName"]
        return {}

    def get_waiter(self, name: str) -> _TableWaiter:
        assert name == "table_exists"
        return _TableWaiter(self)

    def put_item(
        self,
        TableName: str,
        Item: dict[str, Any],
        ConditionExpression: str | None = None,
    ) -> dict:
        with self._lock:
            table = self._table(TableName)
            key = Item[self.key_names[TableName]]["S"]
            if key in self.failing_put_keys:
                raise client_error("ProvisionedThroughputExceededException", "PutItem")
            if ConditionExpression and ConditionExpression.startswith("attribute_not_exists"):
                if key in table:
                    raise client_error("ConditionalCheckFailedException", "PutItem")
            table[key] = copy.deepcopy(Item)
        return {}

    def get_item(self, TableName: str, Key: dict[str, Any], ConsistentRead: bool = False) -> dict:
        with self._lock:
            if self.failing_lookup:
                raise client_error("InternalServerError", "GetItem")
            table = self._table(TableName)
            key = next(iter(Key.values()))["S"]
            if key in self.stale_read_keys:
                self.stale_read_keys.discard(key)
                return {}
            item = table.get(key)
            return {"Item": copy.deepcopy(item)} if item else {}

    def update_item(
        self,
        TableName: str,
        Key: dict[str, Any],
        UpdateExpression: str,
        ExpressionAttributeValues: dict[str, Any],
        ConditionExpression: str | None = None,
        ReturnValues: str = "NONE",
    ) -> dict:
        with self._lock:
            if UpdateExpression in self.failing_update_expressions:
                raise client_error("ProvisionedThroughputExceededException", "UpdateItem")
            table = self._table(TableName)
            key = next(iter(Key.values()))["S"]
            item = table.get(key)
            if item is None:
                raise client_error("ConditionalCheckFailedException", "UpdateItem")
            if UpdateExpression == SOURCE_OBSERVATION_UPDATE:
                current = item.get("source_files", {"L": []})["L"]
                if ExpressionAttributeValues[":file"] in current:
                    raise client_error("ConditionalCheckFailedException", "UpdateItem")
                item["source_files"] = {"L": current + ExpressionAttributeValues[":files"]["L"]}
            elif UpdateExpression != OBSERVATION_UPDATE:
                raise AssertionError(f"Unexpected update expression: {UpdateExpression}")
            item["last_seen_at"] = ExpressionAttributeValues[":now"]
            count = int(item["occurrence_count"]["N"])
            increment = int(ExpressionAttributeValues[":one"]["N"])
            item["occurrence_count"] = {"N": str(count + increment)}
            return {"Attributes": copy.deepcopy(item)}

    def _table(self, table_name: str) -> dict[str, dict[str, Any]]:
        if table_name not in self.tables:
            raise client_error("ResourceNotFoundException", "GetItem")
        return self.tables[table_name]


class _ObjectPaginator:
    def __init__(self, client: "FakeS3Client") -> None:
        self._client = client

    def paginate(self, Bucket: str) -> list[dict[str, Any]]:
        keys = sorted(self._client.buckets.get(Bucket, {}))
        return [{"Contents": [{"Key": key} for key in keys]}] if keys else [{}]


class FakeS3Client:
    """S3 client fake holding objects as bytes per bucket."""

    def __init__(self) -> None:
        self.buckets: dict[str, dict[str, bytes]] = {}
        self.failing_deletes = False

    def put(self, bucket: str, key: str, body: bytes) -> None:
        self.buckets.setdefault(bucket, {})[key] = body

    def get_object(self, Bucket: str, Key: str) -> dict[str, Any]:
        body = self.buckets.get(Bucket, {}).get(Key)
        if body is None:
            raise client_error("NoSuchKey", "GetObject")
        return {"Body": io.BytesIO(body)}

    def head_object(self, Bucket: str, Key: str) -> dict[str, Any]:
        if Key not in self.buckets.get(Bucket, {}):
            raise client_error("404", "HeadObject")
        return {}

    def delete_object(self, Bucket: str, Key: str) -> dict[str, Any]:
        if self.failing_deletes:
            raise client_error("AccessDenied", "DeleteObject")
        self.buckets.get(Bucket, {}).pop(Key, None)
        return {}

    def get_paginator(self, name: str) -> _ObjectPaginator:
        assert name == "list_objects_v2"
        return _ObjectPaginator(self)
