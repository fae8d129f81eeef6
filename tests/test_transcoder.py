"""FfmpegTranscoder input validation and subprocess handling."""

from __future__ import annotations

import json
import os
import subprocess

import pytest

from essay_review.config.settings import MediaConfig
from essay_review.pipelines.review.result import FailureKind, is_success
from essay_review.services import transcoder as transcoder_module
from essay_review.services.transcoder import CROP_RIGHT_HALF, FfmpegTranscoder


@pytest.fixture
def media_config(tmp_path):
    return MediaConfig(temp_directory=str(tmp_path / "out"), max_file_size_mb=1)


@pytest.fixture
def video_file(tmp_path):
    path = tmp_path / "answer.mp4"
    path.write_bytes(b"\x00" * 128)
    return path


def probe_output(duration: str, codec_type: str = "video") -> bytes:
    return json.dumps(
        {"streams": [{"codec_type": codec_type}], "format": {"duration": duration}}
    ).encode()


async def test_missing_file(media_config, tmp_path):
    result = await FfmpegTranscoder(media_config).transcode(str(tmp_path / "nope.mp4"), "id")
    assert result.error == "Video file not found"


async def test_directory_is_rejected(media_config, tmp_path):
    folder = tmp_path / "folder.mp4"
    folder.mkdir()
    result = await FfmpegTranscoder(media_config).transcode(str(folder), "id")
    assert result.error == "Video path is not a file"


async def test_wrong_extension(media_config, tmp_path):
    path = tmp_path / "answer.mov"
    path.write_bytes(b"data")
    result = await FfmpegTranscoder(media_config).transcode(str(path), "id")
    assert result.error == "Only MP4 videos are supported"


async def test_file_too_large(media_config, tmp_path):
    path = tmp_path / "big.mp4"
    path.write_bytes(b"\x00" * (1024 * 1024 + 1))
    result = await FfmpegTranscoder(media_config).transcode(str(path), "id")
    assert result.error == "Video exceeds 1MB limit"


async def test_successful_transcode_builds_expected_commands(
    media_config, video_file, monkeypatch
):
    commands = []

    def fake_run(command, **kwargs):
        commands.append(command)
        assert kwargs["timeout"] == media_config.timeout_seconds
        if command[0] == media_config.ffprobe_binary:
            duration = "30.5" if command[-1] == str(video_file) else "30.0"
            return subprocess.CompletedProcess(command, 0, probe_output(duration), b"")
        return subprocess.CompletedProcess(command, 0, b"", b"")

    monkeypatch.setattr(transcoder_module.subprocess, "run", fake_run)

    result = await FfmpegTranscoder(media_config).transcode(str(video_file), "sub-1")

    assert is_success(result)
    output = result.data
    assert output.local_video_path.endswith("sub-1_video.mp4")
    assert output.local_audio_path.endswith("sub-1_audio.mp3")
    assert output.original_duration_seconds == 30.5
    assert output.processed_duration_seconds == 30.0

    video_command = commands[1]
    assert CROP_RIGHT_HALF in video_command
    assert "-an" in video_command
    audio_command = commands[2]
    assert audio_command[audio_command.index("-c:a") + 1] == "libmp3lame"
    assert audio_command[audio_command.index("-b:a") + 1] == "128k"


async def test_input_without_video_stream_fails(media_config, video_file, monkeypatch):
    def fake_run(command, **kwargs):
        return subprocess.CompletedProcess(command, 0, probe_output("3.0", "audio"), b"")

    monkeypatch.setattr(transcoder_module.subprocess, "run", fake_run)

    result = await FfmpegTranscoder(media_config).transcode(str(video_file), "sub-2")
    assert result.error == "No video stream found"


async def test_timeout_is_reported_as_timeout(media_config, video_file, monkeypatch):
    def fake_run(command, **kwargs):
        if command[0] == media_config.ffprobe_binary:
            return subprocess.CompletedProcess(command, 0, probe_output("3.0"), b"")
        raise subprocess.TimeoutExpired(command, kwargs["timeout"])

    monkeypatch.setattr(transcoder_module.subprocess, "run", fake_run)

    result = await FfmpegTranscoder(media_config).transcode(str(video_file), "sub-3")
    assert not is_success(result)
    assert result.kind is FailureKind.TIMEOUT


async def test_ffmpeg_error_removes_partial_outputs(media_config, video_file, monkeypatch):
    transcoder = FfmpegTranscoder(media_config)
    video_path, _ = transcoder.output_paths("sub-4")

    def fake_run(command, **kwargs):
        if command[0] == media_config.ffprobe_binary:
            return subprocess.CompletedProcess(command, 0, probe_output("3.0"), b"")
        if command[-1] == video_path:
            with open(video_path, "wb") as handle:
                handle.write(b"partial")
            return subprocess.CompletedProcess(command, 0, b"", b"")
        raise subprocess.CalledProcessError(1, command, b"", b"encoder missing")

    monkeypatch.setattr(transcoder_module.subprocess, "run", fake_run)

    result = await transcoder.transcode(str(video_file), "sub-4")
    assert result.error == "Video processing failed (audio)"
    assert result.kind is FailureKind.ERROR
    assert not os.path.exists(video_path)
