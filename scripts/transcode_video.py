import asyncio
import os
import sys
from uuid import uuid4

# Add project root to path so we can import essay_review
sys.path.append(os.getcwd())

from essay_review.pipelines.review.result import is_success
from essay_review.services.transcoder import FfmpegTranscoder


async def main():
    if len(sys.argv) < 2:
        print("Usage: python scripts/transcode_video.py path/to/video.mp4 [--keep]")
        return

    file_path = sys.argv[1]
    keep_outputs = "--keep" in sys.argv[2:]

    transcoder = FfmpegTranscoder()
    submission_id = uuid4().hex
    print(f"Transcoding {file_path} as {submission_id}...")

    result = await transcoder.transcode(file_path, submission_id)
    if not is_success(result):
        print(f"\nTranscoding failed ({result.kind.value}): {result.error}")
        return

    output = result.data
    print("\n--- Transcode Result ---")
    print(f"video:     {output.local_video_path} ({os.path.getsize(output.local_video_path)} bytes)")
    print(f"audio:     {output.local_audio_path} ({os.path.getsize(output.local_audio_path)} bytes)")
    print(f"duration:  {output.original_duration_seconds:.2f}s -> {output.processed_duration_seconds:.2f}s")
    print("------------------------")

    if not keep_outputs:
        await transcoder.cleanup([output.local_video_path, output.local_audio_path])


if __name__ == "__main__":
    asyncio.run(main())
