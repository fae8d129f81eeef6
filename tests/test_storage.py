"""S3 media upload with a stubbed boto3 client."""

from __future__ import annotations

from botocore.exceptions import ClientError

from essay_review.config.settings import S3Config
from essay_review.models import MediaType
from essay_review.pipelines.review.result import is_success
from essay_review.services.storage import (
    UPLOAD_SERVICE,
    UPLOAD_TASK,
    S3MediaStorage,
    build_object_key,
)


class StubS3Client:
    def __init__(self, error=None):
        self.error = error
        self.put_calls = []
        self.presign_calls = []

    def put_object(self, **kwargs):
        if self.error is not None:
            raise self.error
        self.put_calls.append(kwargs)

    def generate_presigned_url(self, operation, Params, ExpiresIn):
        self.presign_calls.append((operation, Params, ExpiresIn))
        return f"https://signed.example/{Params['Key']}"


def s3_config():
    return S3Config(bucket_name="essays", region="eu-west-1", key_prefix="submissions")


def test_object_key_layout():
    assert (
        build_object_key("submissions/", "abc", MediaType.AUDIO, "/tmp/abc_audio.MP3")
        == "submissions/abc/AUDIO.mp3"
    )


async def test_upload_returns_urls_and_logs_call(tmp_path, context, call_logger):
    local = tmp_path / "sub_video.mp4"
    local.write_bytes(b"video-bytes")
    context = context.accumulate(submission_id="sub-1")
    client = StubS3Client()

    result = await S3MediaStorage(call_logger, config=s3_config(), client=client).upload(
        str(local), MediaType.VIDEO, context
    )

    assert is_success(result)
    media = result.data
    assert media.media_type == MediaType.VIDEO
    assert media.remote_url == (
        "https://essays.s3.eu-west-1.amazonaws.com/submissions/sub-1/VIDEO.mp4"
    )
    assert media.signed_url == "https://signed.example/submissions/sub-1/VIDEO.mp4"
    assert media.byte_size == len(b"video-bytes")
    (put,) = client.put_calls
    assert put["ContentType"] == "video/mp4"
    assert put["Bucket"] == "essays"
    assert client.presign_calls[0][0] == "get_object"
    assert client.presign_calls[0][2] == 24 * 3600

    (entry,) = call_logger.entries
    assert entry["service"] == UPLOAD_SERVICE
    assert entry["task_name"] == UPLOAD_TASK
    assert entry["success"] is True


async def test_client_error_becomes_failure(tmp_path, context, call_logger):
    local = tmp_path / "sub_audio.mp3"
    local.write_bytes(b"audio")
    error = ClientError({"Error": {"Code": "AccessDenied", "Message": "denied"}}, "PutObject")

    result = await S3MediaStorage(
        call_logger, config=s3_config(), client=StubS3Client(error=error)
    ).upload(str(local), MediaType.AUDIO, context)

    assert not is_success(result)
    assert result.error.startswith("Failed to upload audio")
    assert call_logger.entries[0]["success"] is False
    assert call_logger.entries[0]["error_message"] == result.error


async def test_missing_local_file(tmp_path, context, call_logger):
    result = await S3MediaStorage(
        call_logger, config=s3_config(), client=StubS3Client()
    ).upload(str(tmp_path / "gone.mp4"), MediaType.VIDEO, context)

    assert result.error == "Failed to read video file"
