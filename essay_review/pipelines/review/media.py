"""Media stage of the review pipeline (Stage 02).

Transcodes the uploaded response video, uploads the processed video and the
extracted audio to object storage and records one media row per file. The
local transcoder outputs are removed whether or not the uploads succeed.
"""

from __future__ import annotations

import logging
from uuid import UUID

from essay_review.application.interfaces import (
    MediaStorageInterface,
    SubmissionRepositoryInterface,
    VideoTranscoderInterface,
)
from essay_review.models.submission import MediaType

from .context import AuditContext
from .result import Result, Success, is_success
from .types import MediaUrls, UploadedMedia

logger = logging.getLogger("essay_review.pipeline")


class MediaStage:
    def __init__(
        self,
        transcoder: VideoTranscoderInterface,
        storage: MediaStorageInterface,
    ) -> None:
        self._transcoder = transcoder
        self._storage = storage

    async def process(
        self,
        video_path: str,
        submission_id: UUID,
        submissions: SubmissionRepositoryInterface,
        context: AuditContext,
    ) -> tuple[Result[MediaUrls], AuditContext]:
        transcoded = await self._transcoder.transcode(video_path, str(submission_id))
        if not is_success(transcoded):
            logger.warning(
                "Transcoding failed trace_id=%s submission_id=%s error=%s",
                context.trace_id,
                submission_id,
                transcoded.error,
            )
            return transcoded, context

        output = transcoded.data
        context = context.accumulate(
            local_video_path=output.local_video_path,
            local_audio_path=output.local_audio_path,
            original_duration_seconds=output.original_duration_seconds,
            processed_duration_seconds=output.processed_duration_seconds,
        )

        try:
            video, context = await self._store(
                output.local_video_path, MediaType.VIDEO, submission_id, submissions, context
            )
            if not is_success(video):
                return video, context

            audio, context = await self._store(
                output.local_audio_path, MediaType.AUDIO, submission_id, submissions, context
            )
            if not is_success(audio):
                return audio, context
        finally:
            await self._transcoder.cleanup(
                [output.local_video_path, output.local_audio_path]
            )

        urls = MediaUrls(
            video_signed_url=video.data.signed_url,
            audio_signed_url=audio.data.signed_url,
        )
        return Success(urls), context.accumulate(
            video_signed_url=urls.video_signed_url,
            audio_signed_url=urls.audio_signed_url,
        )

    async def _store(
        self,
        local_path: str,
        media_type: MediaType,
        submission_id: UUID,
        submissions: SubmissionRepositoryInterface,
        context: AuditContext,
    ) -> tuple[Result[UploadedMedia], AuditContext]:
        uploaded = await self._storage.upload(local_path, media_type, context)
        if not is_success(uploaded):
            logger.warning(
                "Upload failed trace_id=%s media_type=%s error=%s",
                context.trace_id,
                media_type.value,
                uploaded.error,
            )
            return uploaded, context

        media = uploaded.data
        prefix = media_type.value.lower()
        context = context.accumulate(
            **{
                f"{prefix}_file_url": media.remote_url,
                f"{prefix}_file_size": media.byte_size,
            }
        )
        await submissions.create_media(submission_id, media)
        return uploaded, context


__all__ = ["MediaStage"]
