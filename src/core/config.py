"""Runtime configuration model for phonereg.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from core.constants import (
    BACKEND_LOCAL,
    DEFAULT_DATA_ROOT,
    DEFAULT_DATABASE_NAME,
    DEFAULT_FILE_CONTAINER,
    DEFAULT_INBOX_DIR_NAME,
    DEFAULT_INIT_MAX_ATTEMPTS,
    DEFAULT_INIT_RETRY_DELAY_SECONDS,
    DEFAULT_INPUT_CONTAINER,
    DEFAULT_LOG_LEVEL,
    DEFAULT_PHONE_CONTAINER,
    FILE_STORE_LOCAL,
    SUPPORTED_BACKENDS,
    SUPPORTED_FILE_STORES,
    SUPPORTED_LOG_LEVELS,
)
from core.errors import PhoneRegConfigError


@dataclass(frozen=True)
class PhoneRegConfig:
    """Validated runtime configuration.

    Attributes:
        backend: Registry backend, ``local`` or ``networked``.
        data_root: Local root directory for the flat-file registry.
        input_root: Local root directory holding input containers.
        file_store: Input file store kind, ``local`` or ``s3``.
        input_container: Container (directory or bucket) receiving new files.
        database_name: Logical database name, used as table-name prefix.
        file_container_name: Collection name for file records.
        phone_container_name: Collection name for phone records.
        aws_region: Optional default AWS region.
        aws_profile: Optional AWS profile for boto3 session initialization.
        dynamodb_endpoint_url: Optional DynamoDB endpoint override.
        s3_endpoint_url: Optional S3 endpoint override.
        init_max_attempts: Initialization attempts for the networked backend.
        init_retry_delay_seconds: Fixed delay between initialization attempts.
        log_level: Minimum structured log level.
    """

    backend: str
    data_root: Path
    input_root: Path
    file_store: str
    input_container: str
    database_name: str
    file_container_name: str
    phone_container_name: str
    aws_region: str | None
    aws_profile: str | None
    dynamodb_endpoint_url: str | None
    s3_endpoint_url: str | None
    init_max_attempts: int
    init_retry_delay_seconds: float
    log_level: str

    @classmethod
    def from_env(cls) -> "PhoneRegConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            PhoneRegConfigError: If environment values are invalid.
        """
        data_root = Path(os.getenv("PHONEREG_DATA_ROOT", str(DEFAULT_DATA_ROOT)))
        input_root_value = os.getenv("PHONEREG_INPUT_ROOT")
        input_root = (
            Path(input_root_value) if input_root_value else data_root / DEFAULT_INBOX_DIR_NAME
        )
        return cls(
            backend=_parse_choice(
                "PHONEREG_BACKEND", os.getenv("PHONEREG_BACKEND", BACKEND_LOCAL), SUPPORTED_BACKENDS
            ),
            data_root=data_root.expanduser().resolve(),
            input_root=input_root.expanduser().resolve(),
            file_store=_parse_choice(
                "PHONEREG_FILE_STORE",
                os.getenv("PHONEREG_FILE_STORE", FILE_STORE_LOCAL),
                SUPPORTED_FILE_STORES,
            ),
            input_container=os.getenv("PHONEREG_INPUT_CONTAINER", DEFAULT_INPUT_CONTAINER),
            database_name=os.getenv("PHONEREG_DATABASE_NAME", DEFAULT_DATABASE_NAME),
            file_container_name=os.getenv("PHONEREG_FILE_CONTAINER", DEFAULT_FILE_CONTAINER),
            phone_container_name=os.getenv("PHONEREG_PHONE_CONTAINER", DEFAULT_PHONE_CONTAINER),
            aws_region=os.getenv("PHONEREG_AWS_REGION"),
            aws_profile=os.getenv("PHONEREG_AWS_PROFILE"),
            dynamodb_endpoint_url=os.getenv("PHONEREG_DYNAMODB_ENDPOINT"),
            s3_endpoint_url=os.getenv("PHONEREG_S3_ENDPOINT"),
            init_max_attempts=_parse_positive_int(
                "PHONEREG_INIT_MAX_ATTEMPTS",
                os.getenv("PHONEREG_INIT_MAX_ATTEMPTS", str(DEFAULT_INIT_MAX_ATTEMPTS)),
            ),
            init_retry_delay_seconds=_parse_delay(
                os.getenv(
                    "PHONEREG_INIT_RETRY_DELAY_SECONDS", str(DEFAULT_INIT_RETRY_DELAY_SECONDS)
                )
            ),
            log_level=_parse_choice(
                "PHONEREG_LOG_LEVEL",
                os.getenv("PHONEREG_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
                SUPPORTED_LOG_LEVELS,
            ),
        )


def _parse_choice(name: str, raw_value: str, choices: tuple[str, ...]) -> str:
    """Validate an enumerated environment value.

    Args:
        name: Environment variable name for error context.
        raw_value: Raw string from environment.
        choices: Accepted values.

    Returns:
        The validated value.

    Raises:
        PhoneRegConfigError: If value is not one of the choices.
    """
    value = raw_value.strip()
    if value not in choices:
        raise PhoneRegConfigError(
            f"Invalid {name} value: expected one of {', '.join(choices)}, got '{raw_value}'. "
            f"Set {name} to a supported value."
        )
    return value


def _parse_positive_int(name: str, raw_value: str) -> int:
    """Parse a positive integer environment value.

    Raises:
        PhoneRegConfigError: If value is not a positive integer.
    """
    try:
        value = int(raw_value)
    except ValueError as error:
        raise PhoneRegConfigError(
            f"Invalid {name} value: expected integer, got '{raw_value}'. "
            f"Set {name} to a numeric value."
        ) from error
    if value < 1:
        raise PhoneRegConfigError(
            f"Invalid {name} value: expected at least 1, got {value}. "
            f"Set {name} to a positive integer."
        )
    return value


def _parse_delay(raw_value: str) -> float:
    """Parse the initialization retry delay.

    Raises:
        PhoneRegConfigError: If value is not a non-negative number.
    """
    try:
        value = float(raw_value)
    except ValueError as error:
        raise PhoneRegConfigError(
            "Invalid PHONEREG_INIT_RETRY_DELAY_SECONDS value: "
            f"expected number, got '{raw_value}'. "
            "Set PHONEREG_INIT_RETRY_DELAY_SECONDS to a numeric value."
        ) from error
    if value < 0:
        raise PhoneRegConfigError(
            "Invalid PHONEREG_INIT_RETRY_DELAY_SECONDS value: "
            f"expected a non-negative number, got {value}."
        )
    return value
