"""Core constants used across phonereg modules.

This module centralizes non-domain-specific constants.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

from pathlib import Path

DEFAULT_DATA_ROOT = Path(".phonereg")
DEFAULT_INBOX_DIR_NAME = "inbox"
DEFAULT_INPUT_CONTAINER = "input-files"
DEFAULT_DATABASE_NAME = "BlobDataDB"
DEFAULT_FILE_CONTAINER = "ProcessedFiles"
DEFAULT_PHONE_CONTAINER = "PhoneNumbers"
DEFAULT_INIT_MAX_ATTEMPTS = 5
DEFAULT_INIT_RETRY_DELAY_SECONDS = 3.0
DEFAULT_LOG_LEVEL = "INFO"
BACKEND_LOCAL = "local"
BACKEND_NETWORKED = "networked"
SUPPORTED_BACKENDS = (BACKEND_LOCAL, BACKEND_NETWORKED)
FILE_STORE_LOCAL = "local"
FILE_STORE_S3 = "s3"
SUPPORTED_FILE_STORES = (FILE_STORE_LOCAL, FILE_STORE_S3)
SUPPORTED_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")
FILE_STATUS_PROCESSED = "Processed"
FILE_STATUS_ERROR = "Error"
PHONE_MIRROR_FILE_SUFFIX = ".json"
FILE_RECORD_SUFFIX = ".json"
TEXT_ENCODING = "utf-8-sig"
