"""S3 storage for submission media."""

from __future__ import annotations

import logging
import os
import time
from pathlib import Path
from typing import Any, Optional

from botocore.exceptions import BotoCoreError, ClientError
from fastapi.concurrency import run_in_threadpool

from essay_review.application.interfaces import (
    ExternalCallLoggerInterface,
    MediaStorageInterface,
)
from essay_review.config.settings import S3Config, settings
from essay_review.models.submission import MediaType
from essay_review.pipelines.review.context import AuditContext
from essay_review.pipelines.review.result import Failure, Result, Success, is_success
from essay_review.pipelines.review.types import UploadedMedia
from essay_review.services.aws import create_boto3_client

logger = logging.getLogger(__name__)

UPLOAD_SERVICE = "s3"
UPLOAD_TASK = "s3-media-upload"

_CONTENT_TYPES = {
    MediaType.VIDEO: "video/mp4",
    MediaType.AUDIO: "audio/mpeg",
}


def _object_url(bucket: str, region: str, key: str) -> str:
    if region == "us-east-1":
        return f"https://{bucket}.s3.amazonaws.com/{key}"
    return f"https://{bucket}.s3.{region}.amazonaws.com/{key}"


def build_object_key(prefix: str, submission_id: str, media_type: MediaType, local_path: str) -> str:
    extension = Path(local_path).suffix.lower()
    return f"{prefix.strip('/')}/{submission_id}/{media_type.value}{extension}"


class S3MediaStorage(MediaStorageInterface):
    """Upload processed media and hand back a presigned download URL."""

    def __init__(
        self,
        call_logger: ExternalCallLoggerInterface,
        *,
        config: Optional[S3Config] = None,
        client: Any = None,
    ) -> None:
        self._config = config or settings.s3
        self._client = client or create_boto3_client("s3", region_name=self._config.region)
        self._call_logger = call_logger

    async def upload(
        self,
        local_path: str,
        media_type: MediaType,
        context: AuditContext,
    ) -> Result[UploadedMedia]:
        started = time.perf_counter()
        result = await self._upload(local_path, media_type, context)
        latency_ms = int((time.perf_counter() - started) * 1000)

        succeeded = is_success(result)
        await self._call_logger.log_external_call(
            context,
            latency_ms=latency_ms,
            success=succeeded,
            service=UPLOAD_SERVICE,
            task_name=UPLOAD_TASK,
            description=f"Upload {media_type.value} {os.path.basename(local_path)}",
            error_message=None if succeeded else result.error,
        )
        return result

    async def _upload(
        self,
        local_path: str,
        media_type: MediaType,
        context: AuditContext,
    ) -> Result[UploadedMedia]:
        bucket = self._config.bucket_name
        if not bucket:
            return Failure("S3 bucket name is not configured")

        submission_id = context.submission_id or context.trace_id
        key = build_object_key(self._config.key_prefix, submission_id, media_type, local_path)

        try:
            body = await run_in_threadpool(Path(local_path).read_bytes)
        except OSError as exc:
            logger.error("Could not read media file %s: %s", local_path, exc)
            return Failure(f"Failed to read {media_type.value.lower()} file")

        try:
            await run_in_threadpool(
                self._client.put_object,
                Bucket=bucket,
                Key=key,
                Body=body,
                ContentType=_CONTENT_TYPES[media_type],
            )
            signed_url = await run_in_threadpool(
                self._client.generate_presigned_url,
                "get_object",
                Params={"Bucket": bucket, "Key": key},
                ExpiresIn=self._config.signed_url_expires_hours * 3600,
            )
        except (BotoCoreError, ClientError) as exc:
            logger.error("S3 upload failed key=%s: %s", key, exc)
            return Failure(f"Failed to upload {media_type.value.lower()}: {exc}")

        logger.info("Uploaded %s to s3://%s/%s (%s bytes)", media_type.value, bucket, key, len(body))
        return Success(
            UploadedMedia(
                media_type=media_type,
                remote_url=_object_url(bucket, self._config.region, key),
                signed_url=signed_url,
                byte_size=len(body),
            )
        )


__all__ = ["S3MediaStorage", "UPLOAD_SERVICE", "UPLOAD_TASK", "build_object_key"]
