"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from transcribe4all.config import Settings, TranscriptionSettings
from transcribe4all.transcription import TranscriptionPipeline

from .fakes import FakeDownloader, FakeSplitter, RecordingMailer


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(transcription=TranscriptionSettings(work_dir=tmp_path / "jobs"))


@pytest.fixture()
def downloader() -> FakeDownloader:
    return FakeDownloader()


@pytest.fixture()
def splitter() -> FakeSplitter:
    return FakeSplitter()


@pytest.fixture()
def recording_mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture()
def pipeline(
    settings: Settings,
    downloader: FakeDownloader,
    splitter: FakeSplitter,
    recording_mailer: RecordingMailer,
) -> TranscriptionPipeline:
    """Pipeline whose download, split and mail steps are all in-memory fakes."""
    return TranscriptionPipeline(
        settings,
        downloader_factory=lambda: downloader,
        split_audio=splitter,
        send_mail=recording_mailer,
    )
