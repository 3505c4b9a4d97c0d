"""Input file store adapters.

This module reads and removes delivered files from a local directory
tree or from S3 buckets. Containers are directories or buckets.
"""

from __future__ import annotations

import io
from pathlib import Path
from typing import Any, BinaryIO, Protocol

from botocore.exceptions import BotoCoreError, ClientError

from core.aws_session import create_aws_client
from core.config import PhoneRegConfig
from core.constants import FILE_STORE_LOCAL, FILE_STORE_S3
from core.errors import PhoneRegConfigError, PhoneRegFileNotFoundError, PhoneRegFileStoreError
from core.logging_config import get_logger

_LOGGER = get_logger(__name__)
_S3_MISSING_CODES = ("NoSuchKey", "404", "NotFound")


class FileStore(Protocol):
    """Byte-level access to delivered input files."""

    def read(self, container: str, file_id: str) -> BinaryIO:
        """Open a file for reading.

        Raises:
            PhoneRegFileNotFoundError: If the file does not exist.
            PhoneRegFileStoreError: For any other read fault.
        """
        ...

    def delete(self, container: str, file_id: str) -> bool:
        """Remove a file; False when it was already absent.

        Raises:
            PhoneRegFileStoreError: For faults other than absence.
        """
        ...

    def list_files(self, container: str) -> list[str]:
        """List file ids currently waiting in a container."""
        ...


class LocalFileStore:
    """File store over ``<root>/<container>/<file_id>`` paths."""

    def __init__(self, root: Path) -> None:
        self._root = root

    def read(self, container: str, file_id: str) -> BinaryIO:
        file_path = self._file_path(container, file_id)
        _LOGGER.info("file_read_started", container=container, file_id=file_id)
        try:
            return file_path.open("rb")
        except FileNotFoundError as error:
            raise PhoneRegFileNotFoundError(
                f"File {file_id} not found in container {container} at {file_path}."
            ) from error
        except OSError as error:
            raise PhoneRegFileStoreError(
                f"Failed to read {file_path}: {error}. Check file permissions."
            ) from error

    def delete(self, container: str, file_id: str) -> bool:
        file_path = self._file_path(container, file_id)
        try:
            file_path.unlink()
        except FileNotFoundError:
            _LOGGER.warning("file_already_absent", container=container, file_id=file_id)
            return False
        except OSError as error:
            raise PhoneRegFileStoreError(
                f"Failed to delete {file_path}: {error}. Check file permissions."
            ) from error
        _LOGGER.info("file_deleted", container=container, file_id=file_id)
        return True

    def list_files(self, container: str) -> list[str]:
        container_dir = self._root / container
        if not container_dir.is_dir():
            return []
        return sorted(
            path.name
            for path in container_dir.iterdir()
            if path.is_file() and not path.name.startswith(".")
        )

    def _file_path(self, container: str, file_id: str) -> Path:
        """Resolve a file path, rejecting ids that escape the container."""
        container_dir = (self._root / container).resolve()
        file_path = (container_dir / file_id).resolve()
        if container_dir not in file_path.parents:
            raise PhoneRegFileStoreError(
                f"Invalid file id '{file_id}': it must name a file inside {container_dir}."
            )
        return file_path


class S3FileStore:
    """File store over S3 buckets; file ids are object keys."""

    def __init__(self, client: Any) -> None:
        self._client = client

    def read(self, container: str, file_id: str) -> BinaryIO:
        _LOGGER.info("file_read_started", container=container, file_id=file_id)
        try:
            response = self._client.get_object(Bucket=container, Key=file_id)
            body = response["Body"].read()
        except ClientError as error:
            if _s3_error_code(error) in _S3_MISSING_CODES:
                raise PhoneRegFileNotFoundError(
                    f"Object {file_id} not found in bucket {container}."
                ) from error
            raise PhoneRegFileStoreError(
                f"Failed to read s3://{container}/{file_id}: {error}. "
                "Check AWS credentials and bucket permissions."
            ) from error
        except BotoCoreError as error:
            raise PhoneRegFileStoreError(
                f"Failed to read s3://{container}/{file_id}: {error}."
            ) from error
        return io.BytesIO(body)

    def delete(self, container: str, file_id: str) -> bool:
        try:
            self._client.head_object(Bucket=container, Key=file_id)
        except ClientError as error:
            if _s3_error_code(error) in _S3_MISSING_CODES:
                _LOGGER.warning("file_already_absent", container=container, file_id=file_id)
                return False
            raise PhoneRegFileStoreError(
                f"Failed to inspect s3://{container}/{file_id}: {error}."
            ) from error
        except BotoCoreError as error:
            raise PhoneRegFileStoreError(
                f"Failed to inspect s3://{container}/{file_id}: {error}."
            ) from error
        try:
            self._client.delete_object(Bucket=container, Key=file_id)
        except (BotoCoreError, ClientError) as error:
            raise PhoneRegFileStoreError(
                f"Failed to delete s3://{container}/{file_id}: {error}. "
                "Check AWS credentials and bucket permissions."
            ) from error
        _LOGGER.info("file_deleted", container=container, file_id=file_id)
        return True

    def list_files(self, container: str) -> list[str]:
        paginator = self._client.get_paginator("list_objects_v2")
        keys: list[str] = []
        try:
            for page in paginator.paginate(Bucket=container):
                for obj in page.get("Contents", []):
                    keys.append(obj["Key"])
        except (BotoCoreError, ClientError) as error:
            raise PhoneRegFileStoreError(
                f"Failed to list bucket {container}: {error}. "
                "Check AWS credentials and bucket permissions."
            ) from error
        return sorted(keys)


def build_file_store(config: PhoneRegConfig) -> FileStore:
    """Build the input file store selected by ``config.file_store``.

    Raises:
        PhoneRegConfigError: If the file store kind is unsupported.
    """
    if config.file_store == FILE_STORE_LOCAL:
        return LocalFileStore(config.input_root)
    if config.file_store == FILE_STORE_S3:
        return S3FileStore(create_aws_client("s3", config, config.s3_endpoint_url))
    raise PhoneRegConfigError(
        f"Unsupported file store '{config.file_store}'. "
        f"Set PHONEREG_FILE_STORE to {FILE_STORE_LOCAL} or {FILE_STORE_S3}."
    )


def _s3_error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))
