"""boto3 client construction shared by the S3 and Bedrock services."""

from __future__ import annotations

from typing import Any

import boto3
from botocore.config import Config

from essay_review.config.settings import S3Config, settings


def credential_kwargs(config: S3Config) -> dict[str, str]:
    """Static credentials from settings, or nothing to use the default chain."""

    if config.access_key and config.secret_key:
        return {
            "aws_access_key_id": config.access_key,
            "aws_secret_access_key": config.secret_key,
        }
    return {}


def create_boto3_client(
    service_name: str,
    *,
    region_name: str | None = None,
    config: Config | None = None,
) -> Any:
    client_kwargs: dict[str, Any] = {
        "region_name": region_name or settings.s3.region,
        **credential_kwargs(settings.s3),
    }
    if config is not None:
        client_kwargs["config"] = config
    return boto3.client(service_name, **client_kwargs)


__all__ = ["create_boto3_client", "credential_kwargs"]
