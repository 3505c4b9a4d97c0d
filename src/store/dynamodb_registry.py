"""DynamoDB registry backend.

This module persists file records and phone records in two DynamoDB
tables. Phone records are keyed by normalized number, so every lookup
and merge is a single-partition operation.
"""

from __future__ import annotations

from dataclasses import replace
import uuid
from typing import Any

from boto3.dynamodb.types import TypeDeserializer, TypeSerializer
from botocore.exceptions import BotoCoreError, ClientError
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from core.constants import BACKEND_NETWORKED
from core.errors import PhoneRegStoreError
from core.logging_config import get_logger
from core.types import FileRecord, PhoneRecord, utc_now
from store.initialization import OneShotInitializer
from store.phone_merge import MergeSummary, prepare_new_record
from store.record_payload import (
    file_record_to_payload,
    phone_record_from_payload,
    phone_record_to_payload,
)

_LOGGER = get_logger(__name__)
_SERIALIZER = TypeSerializer()
_DESERIALIZER = TypeDeserializer()

FILE_TABLE_KEY = "id"
PHONE_TABLE_KEY = "normalized_number"
CONDITIONAL_CHECK_FAILED = "ConditionalCheckFailedException"
RESOURCE_IN_USE = "ResourceInUseException"
INSERT_CONDITION = f"attribute_not_exists({PHONE_TABLE_KEY})"
OBSERVATION_UPDATE = "SET last_seen_at = :now ADD occurrence_count :one"
OBSERVATION_CONDITION = f"attribute_exists({PHONE_TABLE_KEY})"
SOURCE_OBSERVATION_UPDATE = (
    "SET last_seen_at = :now, "
    "source_files = list_append(if_not_exists(source_files, :empty), :files) "
    "ADD occurrence_count :one"
)
SOURCE_OBSERVATION_CONDITION = (
    f"attribute_exists({PHONE_TABLE_KEY}) AND NOT contains(source_files, :file)"
)
_TRANSIENT_ERRORS = (BotoCoreError, ClientError)


class DynamoDbRegistryStore:
    """Networked registry store backed by DynamoDB.

    Concurrent merges of one key are reconciled by a conditional insert and
    atomic update expressions, so increments are never lost.
    """

    def __init__(
        self,
        client: Any,
        file_table_name: str,
        phone_table_name: str,
        init_max_attempts: int,
        init_retry_delay_seconds: float,
    ) -> None:
        """Initialize the store around an existing DynamoDB client.

        Args:
            client: boto3 DynamoDB client.
            file_table_name: Table holding file records.
            phone_table_name: Table holding phone records.
            init_max_attempts: Attempts for table setup before giving up.
            init_retry_delay_seconds: Fixed delay between setup attempts.
        """
        self._client = client
        self._file_table = file_table_name
        self._phone_table = phone_table_name
        self._init_max_attempts = init_max_attempts
        self._init_retry_delay_seconds = init_retry_delay_seconds
        self._initializer = OneShotInitializer(self._create_tables)

    @property
    def backend_name(self) -> str:
        return BACKEND_NETWORKED

    def initialize(self) -> None:
        """Create both tables if missing, retrying transient failures.

        Raises:
            PhoneRegStoreError: If setup still fails after every attempt.
        """
        self._initializer.ensure()

    def save_file_record(self, record: FileRecord) -> FileRecord:
        """Upsert a file record keyed by its id.

        Args:
            record: File record to persist.

        Returns:
            Stored record with a guaranteed identifier.

        Raises:
            PhoneRegStoreError: If the write fails.
        """
        self.initialize()
        stored = record
        if not stored.record_id:
            stored = replace(record, record_id=str(uuid.uuid4()))
            _LOGGER.warning("file_record_id_generated", record_id=stored.record_id)
        try:
            self._client.put_item(
                TableName=self._file_table,
                Item=_to_item(file_record_to_payload(stored)),
            )
        except _TRANSIENT_ERRORS as error:
            _LOGGER.error(
                "file_record_save_failed",
                backend=self.backend_name,
                file_name=stored.file_name,
                record_id=stored.record_id,
                error=str(error),
            )
            raise PhoneRegStoreError(
                f"Failed to save file record {stored.record_id} for {stored.file_name} "
                f"to table {self._file_table}: {error}. Redeliver the file to retry."
            ) from error
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
        """Merge candidates one by one, isolating per-candidate failures.

        Args:
            candidates: Extractor output for one file.
            source_file: File the candidates came from.

        Returns:
            Post-merge records for every candidate that persisted.
        """
        self.initialize()
        merged: list[PhoneRecord] = []
        new_count = 0
        failed_count = 0
        skipped_count = 0
        for candidate in candidates:
            if not candidate.normalized_number:
                skipped_count += 1
                _LOGGER.warning("phone_merge_skipped_empty_key", number=candidate.number)
                continue
            try:
                record, created = self._merge_one(candidate, source_file)
            except _TRANSIENT_ERRORS as error:
                failed_count += 1
                _LOGGER.error(
                    "phone_merge_failed",
                    backend=self.backend_name,
                    source_file=source_file,
                    normalized_number=candidate.normalized_number,
                    error=str(error),
                )
                continue
            new_count += int(created)
            merged.append(record)
        summary = MergeSummary(
            new_count=new_count,
            updated_count=len(merged) - new_count,
            failed_count=failed_count,
            skipped_count=skipped_count,
        )
        _LOGGER.info(
            "phone_merge_completed",
            backend=self.backend_name,
            source_file=source_file,
            new_count=summary.new_count,
            updated_count=summary.updated_count,
            failed_count=summary.failed_count,
            skipped_count=summary.skipped_count,
            total_count=len(merged),
        )
        return merged

    def get_by_normalized_key(self, normalized_number: str) -> PhoneRecord | None:
        """Read one phone record with a strongly consistent point lookup.

        A failed lookup is logged and reported as absent.
        """
        self.initialize()
        try:
            response = self._client.get_item(
                TableName=self._phone_table,
                Key={PHONE_TABLE_KEY: {"S": normalized_number}},
                ConsistentRead=True,
            )
        except _TRANSIENT_ERRORS as error:
            _LOGGER.error(
                "phone_lookup_failed",
                backend=self.backend_name,
                normalized_number=normalized_number,
                error=str(error),
            )
            return None
        item = response.get("Item")
        if not item:
            return None
        return phone_record_from_payload(_from_item(item))

    def _merge_one(self, candidate: PhoneRecord, source_file: str) -> tuple[PhoneRecord, bool]:
        """Merge one candidate and report whether it created a record."""
        key = candidate.normalized_number
        if self.get_by_normalized_key(key) is not None:
            return self._record_observation(key, source_file), False
        new_record = prepare_new_record(candidate, source_file)
        try:
            self._client.put_item(
                TableName=self._phone_table,
                Item=_to_item(phone_record_to_payload(new_record)),
                ConditionExpression=INSERT_CONDITION,
            )
        except ClientError as error:
            if _error_code(error) != CONDITIONAL_CHECK_FAILED:
                raise
            _LOGGER.warning(
                "phone_insert_conflict",
                backend=self.backend_name,
                source_file=source_file,
                normalized_number=key,
            )
            return self._record_observation(key, source_file), False
        return new_record, True

    def _record_observation(self, key: str, source_file: str) -> PhoneRecord:
        """Atomically fold one observation into an existing record.

        A first sighting from ``source_file`` bumps the counter and appends
        the file in one conditional write. Only when the file is already a
        member does it fall back to the counter-only update. Each write
        either applies in full or changes nothing.
        """
        item_key = {PHONE_TABLE_KEY: {"S": key}}
        now = {"S": utc_now().isoformat()}
        try:
            response = self._client.update_item(
                TableName=self._phone_table,
                Key=item_key,
                UpdateExpression=SOURCE_OBSERVATION_UPDATE,
                ConditionExpression=SOURCE_OBSERVATION_CONDITION,
                ExpressionAttributeValues={
                    ":now": now,
                    ":one": {"N": "1"},
                    ":empty": {"L": []},
                    ":files": {"L": [{"S": source_file}]},
                    ":file": {"S": source_file},
                },
                ReturnValues="ALL_NEW",
            )
        except ClientError as error:
            if _error_code(error) != CONDITIONAL_CHECK_FAILED:
                raise
            response = self._client.update_item(
                TableName=self._phone_table,
                Key=item_key,
                UpdateExpression=OBSERVATION_UPDATE,
                ConditionExpression=OBSERVATION_CONDITION,
                ExpressionAttributeValues={":now": now, ":one": {"N": "1"}},
                ReturnValues="ALL_NEW",
            )
        return phone_record_from_payload(_from_item(response["Attributes"]))

    def _create_tables(self) -> None:
        retrying = Retrying(
            stop=stop_after_attempt(self._init_max_attempts),
            wait=wait_fixed(self._init_retry_delay_seconds),
            retry=retry_if_exception_type(_TRANSIENT_ERRORS),
            before_sleep=self._log_retry,
            reraise=True,
        )
        try:
            for attempt in retrying:
                with attempt:
                    self._ensure_table(self._file_table, FILE_TABLE_KEY)
                    self._ensure_table(self._phone_table, PHONE_TABLE_KEY)
        except _TRANSIENT_ERRORS as error:
            _LOGGER.error(
                "registry_initialization_exhausted",
                backend=self.backend_name,
                max_attempts=self._init_max_attempts,
                error=str(error),
            )
            raise PhoneRegStoreError(
                f"Cannot initialize DynamoDB tables {self._file_table} and "
                f"{self._phone_table} after {self._init_max_attempts} attempts: {error}. "
                "Check PHONEREG_DYNAMODB_ENDPOINT and credentials, or set "
                "PHONEREG_BACKEND=local to use the flat-file registry instead."
            ) from error
        _LOGGER.info(
            "registry_initialized",
            backend=self.backend_name,
            file_table=self._file_table,
            phone_table=self._phone_table,
        )

    def _ensure_table(self, table_name: str, key_name: str) -> None:
        """Create a single-key table unless it already exists, then wait for it."""
        try:
            self._client.create_table(
                TableName=table_name,
                KeySchema=[{"AttributeName": key_name, "KeyType": "HASH"}],
                AttributeDefinitions=[{"AttributeName": key_name, "AttributeType": "S"}],
                BillingMode="PAY_PER_REQUEST",
            )
            _LOGGER.info("registry_table_created", backend=self.backend_name, table=table_name)
        except ClientError as error:
            if _error_code(error) != RESOURCE_IN_USE:
                raise
        self._client.get_waiter("table_exists").wait(TableName=table_name)

    def _log_retry(self, retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        _LOGGER.warning(
            "registry_initialization_retry",
            backend=self.backend_name,
            attempt=retry_state.attempt_number,
            max_attempts=self._init_max_attempts,
            delay_seconds=self._init_retry_delay_seconds,
            error=str(error),
        )


def _to_item(payload: dict[str, object]) -> dict[str, Any]:
    """Encode a payload dict as DynamoDB typed attribute values."""
    return {key: _SERIALIZER.serialize(value) for key, value in payload.items()}


def _from_item(item: dict[str, Any]) -> dict[str, Any]:
    """Decode DynamoDB typed attribute values into a payload dict."""
    return {key: _DESERIALIZER.deserialize(value) for key, value in item.items()}


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))
