"""Service layer helpers for external integrations."""

from .external_logger import ExternalCallLogger
from .llm_client import BedrockLlmClient
from .storage import S3MediaStorage
from .transcoder import FfmpegTranscoder, TranscodeError

__all__ = [
    "BedrockLlmClient",
    "ExternalCallLogger",
    "FfmpegTranscoder",
    "S3MediaStorage",
    "TranscodeError",
]
