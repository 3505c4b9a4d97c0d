"""AWS client construction helpers.

This module centralizes boto3 session setup for S3 and DynamoDB.
It keeps profile, region, and endpoint handling consistent.
"""

from __future__ import annotations

from typing import Any

from core.config import PhoneRegConfig
from core.errors import PhoneRegDependencyError


def create_aws_client(service_name: str, config: PhoneRegConfig, endpoint_url: str | None) -> Any:
    """Create a boto3 client for one AWS service.

    Args:
        service_name: boto3 service name, e.g. ``s3`` or ``dynamodb``.
        config: Runtime config containing optional profile/region.
        endpoint_url: Optional endpoint override for local emulators.

    Returns:
        Boto3 service client.

    Raises:
        PhoneRegDependencyError: If boto3 is missing.
    """
    try:
        import boto3
    except ImportError as error:
        raise PhoneRegDependencyError(
            f"{service_name} support requires boto3, but it is not installed. "
            "Install boto3 or switch to the local backend."
        ) from error
    session = boto3.session.Session(**build_session_kwargs(config))
    client_kwargs: dict[str, str] = {}
    if endpoint_url:
        client_kwargs["endpoint_url"] = endpoint_url
    return session.client(service_name, **client_kwargs)


def build_session_kwargs(config: PhoneRegConfig) -> dict[str, str]:
    """Build boto3 Session kwargs from config.

    Args:
        config: Runtime config.

    Returns:
        Session keyword arguments.
    """
    kwargs: dict[str, str] = {}
    if config.aws_profile:
        kwargs["profile_name"] = config.aws_profile
    if config.aws_region:
        kwargs["region_name"] = config.aws_region
    return kwargs
