"""Audio download, conversion, chunking and notification."""

from transcribe4all.transcription.pipeline import (
    TranscriptionJob,
    TranscriptionPipeline,
    make_task_function,
)

__all__ = ["TranscriptionJob", "TranscriptionPipeline", "make_task_function"]
