"""ffmpeg-backed audio conversion and chunking."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from transcribe4all.config import TranscriptionSettings

logger = logging.getLogger(__name__)

# 16 kHz mono is what speech recognizers expect.
SAMPLE_RATE_HZ = 16_000
CHANNELS = 1

_STDERR_TAIL_CHARS = 2_000


class AudioConversionError(RuntimeError):
    """ffmpeg could not be started or exited with an error."""

    def __init__(self, message: str, *, stderr: str = "") -> None:
        super().__init__(message)
        self.stderr = stderr


def convert_to_wav(path: Path, *, ffmpeg_binary: str = "ffmpeg") -> Path:
    """Convert ``path`` to 16 kHz mono WAV next to the source file."""

    output = path.with_name(f"{path.name}.wav")
    _run_ffmpeg(
        ffmpeg_binary,
        ["-i", str(path), "-ar", str(SAMPLE_RATE_HZ), "-ac", str(CHANNELS), str(output)],
    )
    return output


def convert_to_flac(path: Path, *, ffmpeg_binary: str = "ffmpeg") -> Path:
    """Convert ``path`` to 16 kHz mono FLAC next to the source file."""

    output = path.with_name(f"{path.name}.flac")
    _run_ffmpeg(
        ffmpeg_binary,
        ["-i", str(path), "-ar", str(SAMPLE_RATE_HZ), "-ac", str(CHANNELS), str(output)],
    )
    return output


def extract_segment(
    path: Path,
    output: Path,
    *,
    start_seconds: int,
    duration_seconds: int,
    ffmpeg_binary: str = "ffmpeg",
) -> Path:
    """Write ``duration_seconds`` of ``path`` starting at ``start_seconds`` to ``output``."""

    _run_ffmpeg(
        ffmpeg_binary,
        [
            "-i",
            str(path),
            "-ss",
            str(start_seconds),
            "-t",
            str(duration_seconds),
            str(output),
        ],
    )
    return output


def chunk_count(size_bytes: int, *, split_bytes: int = 95_000_000) -> int:
    """Number of chunks needed to keep every chunk under ``split_bytes``.

    One extra chunk absorbs the remainder and the overlap between chunks.
    """

    if size_bytes < 0:
        raise ValueError(f"size_bytes must be >= 0, got {size_bytes}")
    if split_bytes <= 0:
        raise ValueError(f"split_bytes must be > 0, got {split_bytes}")
    return size_bytes // split_bytes + 1


def chunk_start_second(
    index: int,
    *,
    chunk_length_seconds: int = 2968,
    overlap_seconds: int = 5,
) -> int:
    """Start offset of chunk ``index``; each chunk after the first overlaps the previous one."""

    if index < 0:
        raise ValueError(f"index must be >= 0, got {index}")
    return index * (chunk_length_seconds - overlap_seconds)


def split_flac_file(path: Path, *, settings: TranscriptionSettings) -> list[Path]:
    """Split ``path`` into FLAC chunks small enough for upload to a speech service.

    A 95 MB slice of 16 kHz mono WAV is always about 2968 seconds long, so the
    chunk count comes from the WAV size and every chunk has a fixed length.
    """

    ffmpeg = settings.ffmpeg_binary
    wav_path = convert_to_wav(path, ffmpeg_binary=ffmpeg)
    count = chunk_count(wav_path.stat().st_size, split_bytes=settings.chunk_split_bytes)
    logger.info("Splitting %s into %d chunk(s)", path.name, count)

    chunks: list[Path] = []
    for index in range(count):
        segment = wav_path.with_name(f"{wav_path.stem}.{index}.wav")
        extract_segment(
            wav_path,
            segment,
            start_seconds=chunk_start_second(
                index,
                chunk_length_seconds=settings.chunk_length_seconds,
                overlap_seconds=settings.chunk_overlap_seconds,
            ),
            duration_seconds=settings.chunk_length_seconds,
            ffmpeg_binary=ffmpeg,
        )
        chunks.append(convert_to_flac(segment, ffmpeg_binary=ffmpeg))
    return chunks


def _run_ffmpeg(binary: str, args: list[str]) -> None:
    command = [binary, "-y", "-loglevel", "error", *args]
    logger.debug("Running %s", " ".join(command))
    try:
        completed = subprocess.run(  # noqa: S603
            command,
            check=False,
            capture_output=True,
            text=True,
        )
    except FileNotFoundError as error:
        raise AudioConversionError(f"ffmpeg not found: {binary}") from error
    except OSError as error:
        raise AudioConversionError(f"ffmpeg failed to start: {error}") from error

    if completed.returncode != 0:
        stderr = (completed.stderr or "")[-_STDERR_TAIL_CHARS:]
        raise AudioConversionError(
            f"ffmpeg exited with code {completed.returncode}",
            stderr=stderr,
        )
