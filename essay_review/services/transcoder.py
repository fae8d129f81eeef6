"""ffmpeg based transcoder for submission videos.

A submission video shows the student on the right half of the frame; the
processed video keeps that half only and drops the audio track, which is
exported separately as an MP3.
"""

from __future__ import annotations

import json
import logging
import os
import subprocess
from pathlib import Path
from typing import Any, Optional, Sequence

from fastapi.concurrency import run_in_threadpool

from essay_review.application.interfaces import VideoTranscoderInterface
from essay_review.config.settings import MediaConfig, settings
from essay_review.pipelines.review.result import Failure, FailureKind, Result, Success
from essay_review.pipelines.review.types import TranscodeOutput

logger = logging.getLogger(__name__)

ALLOWED_EXTENSION = ".mp4"
CROP_RIGHT_HALF = "crop=iw/2:ih:iw/2:0"


class TranscodeError(RuntimeError):
    """Raised inside the worker thread when ffmpeg/ffprobe fails."""

    def __init__(self, message: str, kind: FailureKind = FailureKind.ERROR):
        super().__init__(message)
        self.kind = kind


class FfmpegTranscoder(VideoTranscoderInterface):
    """Split an uploaded MP4 into a cropped silent video and an MP3 track."""

    def __init__(self, config: Optional[MediaConfig] = None) -> None:
        self._config = config or settings.media

    def validate(self, input_path: str) -> Optional[str]:
        """Return an error message when the input cannot be processed."""

        path = Path(input_path)
        if not path.exists():
            return "Video file not found"
        if not path.is_file():
            return "Video path is not a file"
        if path.suffix.lower() != ALLOWED_EXTENSION:
            return "Only MP4 videos are supported"
        max_bytes = self._config.max_file_size_mb * 1024 * 1024
        if path.stat().st_size > max_bytes:
            return f"Video exceeds {self._config.max_file_size_mb}MB limit"
        return None

    async def transcode(self, input_path: str, submission_id: str) -> Result[TranscodeOutput]:
        error = self.validate(input_path)
        if error is not None:
            return Failure(error)

        try:
            output = await run_in_threadpool(self._transcode_sync, input_path, submission_id)
        except TranscodeError as exc:
            await self.cleanup(self.output_paths(submission_id))
            return Failure(str(exc), kind=exc.kind)
        return Success(output)

    def output_paths(self, submission_id: str) -> tuple[str, str]:
        output_dir = Path(self._config.temp_directory)
        return (
            str(output_dir / f"{submission_id}_video.mp4"),
            str(output_dir / f"{submission_id}_audio.mp3"),
        )

    async def cleanup(self, paths: Sequence[str]) -> None:
        for path in paths:
            try:
                if path and os.path.exists(path):
                    os.remove(path)
            except OSError as exc:
                logger.warning("Could not remove temporary file %s: %s", path, exc)

    def _transcode_sync(self, input_path: str, submission_id: str) -> TranscodeOutput:
        output_dir = Path(self._config.temp_directory)
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise TranscodeError(f"Cannot create temp directory: {exc}") from exc

        probe = self._probe(input_path)
        if not any(stream.get("codec_type") == "video" for stream in probe.get("streams", [])):
            raise TranscodeError("No video stream found")
        original_duration = self._duration(probe)

        video_path, audio_path = self.output_paths(submission_id)

        self._run(
            [
                self._config.ffmpeg_binary,
                "-y",
                "-i", input_path,
                "-vf", CROP_RIGHT_HALF,
                "-c:v", "libx264",
                "-preset", "fast",
                "-crf", "23",
                "-movflags", "+faststart",
                "-an",
                video_path,
            ],
            "video",
        )
        self._run(
            [
                self._config.ffmpeg_binary,
                "-y",
                "-i", input_path,
                "-vn",
                "-c:a", "libmp3lame",
                "-b:a", "128k",
                "-ar", "44100",
                audio_path,
            ],
            "audio",
        )

        processed_duration = self._duration(self._probe(video_path))
        logger.info(
            "Transcoded %s original=%.2fs processed=%.2fs",
            submission_id,
            original_duration,
            processed_duration,
        )
        return TranscodeOutput(
            local_video_path=video_path,
            local_audio_path=audio_path,
            original_duration_seconds=original_duration,
            processed_duration_seconds=processed_duration,
        )

    def _probe(self, path: str) -> dict[str, Any]:
        process = self._run(
            [
                self._config.ffprobe_binary,
                "-v", "error",
                "-print_format", "json",
                "-show_format",
                "-show_streams",
                path,
            ],
            "probe",
        )
        try:
            return json.loads(process.stdout.decode("utf-8", errors="replace") or "{}")
        except json.JSONDecodeError as exc:
            raise TranscodeError("Could not read video metadata") from exc

    @staticmethod
    def _duration(probe: dict[str, Any]) -> float:
        try:
            return float(probe.get("format", {}).get("duration", 0.0))
        except (TypeError, ValueError):
            return 0.0

    def _run(self, command: list[str], step: str) -> subprocess.CompletedProcess:
        try:
            return subprocess.run(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                check=True,
                timeout=self._config.timeout_seconds,
            )
        except subprocess.TimeoutExpired as exc:
            logger.error("ffmpeg %s step timed out after %ss", step, self._config.timeout_seconds)
            raise TranscodeError(
                f"Video processing timed out ({step})", kind=FailureKind.TIMEOUT
            ) from exc
        except subprocess.CalledProcessError as exc:
            error_msg = exc.stderr.decode("utf-8", errors="replace") if exc.stderr else "No stderr"
            logger.error("ffmpeg %s step failed. stderr: %s", step, error_msg)
            raise TranscodeError(f"Video processing failed ({step})") from exc
        except OSError as exc:
            logger.error("Could not start %s: %s", command[0], exc)
            raise TranscodeError(f"Video processing failed ({step})") from exc


__all__ = ["FfmpegTranscoder", "TranscodeError"]
