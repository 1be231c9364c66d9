"""Builds transcription work functions for the task executor."""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlparse
from uuid import uuid4

from transcribe4all.config import EmailSettings, Settings, TranscriptionSettings
from transcribe4all.transcription.audio import split_flac_file
from transcribe4all.transcription.download import AudioDownloader, file_name_from_url
from transcribe4all.transcription.mailer import send_email

logger = logging.getLogger(__name__)

SplitAudio = Callable[..., list[Path]]
SendMail = Callable[[EmailSettings, Sequence[str], str, str], None]


@dataclass(slots=True, frozen=True)
class TranscriptionJob:
    """One submitted audio file and who to notify about it."""

    audio_url: str
    email_addresses: tuple[str, ...]

    def validate(self) -> None:
        parsed = urlparse(self.audio_url)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ValueError(
                f"Invalid audio URL: {self.audio_url!r}. "
                "Expected an absolute URL with http:// or https:// scheme.",
            )
        file_name_from_url(self.audio_url)
        if not any(address.strip() for address in self.email_addresses):
            raise ValueError("At least one email address is required.")


class TranscriptionPipeline:
    """Turns a job into a niladic work function: download, split, notify."""

    def __init__(
        self,
        settings: Settings,
        *,
        downloader_factory: Callable[[], AudioDownloader] | None = None,
        split_audio: SplitAudio = split_flac_file,
        send_mail: SendMail = send_email,
    ) -> None:
        self.settings = settings
        self._downloader_factory = downloader_factory or self._default_downloader
        self._split_audio = split_audio
        self._send_mail = send_mail

    def build_task(self, job: TranscriptionJob) -> Callable[[], None]:
        job.validate()
        recipients = [address.strip() for address in job.email_addresses if address.strip()]

        def work() -> None:
            job_dir = self.settings.transcription.work_dir / uuid4().hex
            try:
                self._process(job, recipients, job_dir)
            finally:
                if not self.settings.transcription.keep_work_files:
                    _remove_job_dir(job_dir)

        return work

    def _process(self, job: TranscriptionJob, recipients: list[str], job_dir: Path) -> None:
        try:
            with self._downloader_factory() as downloader:
                audio_path = downloader.download(job.audio_url, job_dir)
            chunks = self._split_audio(audio_path, settings=self.settings.transcription)
        except Exception as error:
            self._notify_failure(job, recipients, error)
            raise

        self._send_mail(
            self.settings.email,
            recipients,
            f"Transcription job finished: {audio_path.name}",
            _completion_body(job, chunks),
        )

    def _notify_failure(
        self,
        job: TranscriptionJob,
        recipients: list[str],
        error: Exception,
    ) -> None:
        try:
            self._send_mail(
                self.settings.email,
                recipients,
                "Transcription job failed",
                f"Processing {job.audio_url} failed: {error}",
            )
        except Exception:  # noqa: BLE001
            logger.exception("Failure notice for %s could not be sent", job.audio_url)

    def _default_downloader(self) -> AudioDownloader:
        transcription: TranscriptionSettings = self.settings.transcription
        return AudioDownloader(
            timeout_seconds=transcription.download_timeout_seconds,
            max_retries=transcription.download_max_retries,
        )


def make_task_function(
    audio_url: str,
    email_addresses: Sequence[str],
    settings: Settings,
) -> Callable[[], None]:
    """Shortcut for ``TranscriptionPipeline(settings).build_task(...)``."""

    job = TranscriptionJob(audio_url=audio_url, email_addresses=tuple(email_addresses))
    return TranscriptionPipeline(settings).build_task(job)


def _remove_job_dir(job_dir: Path) -> None:
    try:
        shutil.rmtree(job_dir)
    except FileNotFoundError:
        pass
    except OSError:
        logger.exception("Could not remove work directory %s", job_dir)
    else:
        logger.debug("Removed work directory %s", job_dir)


def _completion_body(job: TranscriptionJob, chunks: list[Path]) -> str:
    lines = [f"Finished processing {job.audio_url}.", "", f"Audio chunks ({len(chunks)}):"]
    lines.extend(f"- {chunk.name}" for chunk in chunks)
    return "\r\n".join(lines)
