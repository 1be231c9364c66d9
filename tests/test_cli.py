from __future__ import annotations

from pathlib import Path

import allure
import httpx
import pytest
from click.testing import CliRunner

from transcribe4all import __version__, main
from transcribe4all.config import Settings
from transcribe4all.controllers import JobCliController
from transcribe4all.main import transcribe4all
from transcribe4all.tasks import TaskExecutor
from transcribe4all.transcription import TranscriptionPipeline
from transcribe4all.transcription.download import DownloadError

from .fakes import FakeDownloader, FakeSplitter, RecordingMailer

pytestmark = [
    allure.epic("Service Runtime"),
    allure.feature("CLI"),
]

AUDIO_URL = "https://example.com/talk.mp3"


@pytest.fixture(autouse=True)
def _quiet_logging(monkeypatch) -> None:
    monkeypatch.setattr(main, "setup_logging", lambda **_kwargs: None)


def _use_controller(monkeypatch, controller: JobCliController) -> None:
    monkeypatch.setattr(main, "JOB_CONTROLLER", controller)


def _pipeline_factory(downloader: FakeDownloader):
    def factory(settings: Settings) -> TranscriptionPipeline:
        return TranscriptionPipeline(
            settings,
            downloader_factory=lambda: downloader,
            split_audio=FakeSplitter(),
            send_mail=RecordingMailer(),
        )

    return factory


def test_version() -> None:
    result = CliRunner().invoke(transcribe4all, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_run_reports_success(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("TRANSCRIBE4ALL_WORK_DIR", str(tmp_path / "jobs"))
    _use_controller(
        monkeypatch,
        JobCliController(pipeline_factory=_pipeline_factory(FakeDownloader())),
    )

    result = CliRunner().invoke(
        transcribe4all,
        ["run", AUDIO_URL, "--email", "a@example.com", "--timeout", "10"],
    )

    assert result.exit_code == 0, result.output
    assert "status=SUCCESS" in result.output
    assert "task_id=" in result.output


def test_run_reports_failure_with_error(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("TRANSCRIBE4ALL_WORK_DIR", str(tmp_path / "jobs"))
    downloader = FakeDownloader(error=DownloadError(AUDIO_URL, "HTTP 500"))
    _use_controller(monkeypatch, JobCliController(pipeline_factory=_pipeline_factory(downloader)))

    result = CliRunner().invoke(
        transcribe4all,
        ["run", AUDIO_URL, "--email", "a@example.com", "--timeout", "10"],
    )

    assert result.exit_code != 0
    assert "status=FAILURE" in result.output
    assert "HTTP 500" in result.output
    assert "Transcription job failed" in result.output


def test_run_rejects_invalid_url(monkeypatch) -> None:
    _use_controller(
        monkeypatch,
        JobCliController(pipeline_factory=_pipeline_factory(FakeDownloader())),
    )

    result = CliRunner().invoke(transcribe4all, ["run", "talk.mp3", "--email", "a@example.com"])

    assert result.exit_code != 0
    assert "Invalid audio URL" in result.output


def test_run_uses_config_file(tmp_path: Path, monkeypatch) -> None:
    config = tmp_path / "config.toml"
    config.write_text(
        f'[transcription]\nwork_dir = "{(tmp_path / "jobs").as_posix()}"\nkeep_work_files = true\n',
    )
    downloader = FakeDownloader()
    _use_controller(monkeypatch, JobCliController(pipeline_factory=_pipeline_factory(downloader)))

    result = CliRunner().invoke(
        transcribe4all,
        ["run", AUDIO_URL, "--email", "a@example.com", "--config", str(config)],
    )

    assert result.exit_code == 0, result.output
    assert list((tmp_path / "jobs").glob("*/talk.mp3"))


def test_submit_prints_task_id(monkeypatch) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/jobs"
        return httpx.Response(202, json={"task_id": "abc-123"})

    _use_controller(monkeypatch, JobCliController(transport=httpx.MockTransport(handler)))

    result = CliRunner().invoke(
        transcribe4all,
        ["submit", AUDIO_URL, "--email", "a@example.com", "--server", "http://testserver"],
    )

    assert result.exit_code == 0, result.output
    assert "task_id=abc-123" in result.output


def test_submit_reports_rejection(monkeypatch) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(422, json={"detail": "At least one email address is required."})

    _use_controller(monkeypatch, JobCliController(transport=httpx.MockTransport(handler)))

    result = CliRunner().invoke(transcribe4all, ["submit", AUDIO_URL, "--email", " "])

    assert result.exit_code != 0
    assert "HTTP 422" in result.output


def test_status_prints_server_status(monkeypatch) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/job_status/abc-123"
        return httpx.Response(200, text="INPROGRESS")

    _use_controller(monkeypatch, JobCliController(transport=httpx.MockTransport(handler)))

    result = CliRunner().invoke(transcribe4all, ["status", "abc-123"])

    assert result.exit_code == 0, result.output
    assert "status=INPROGRESS" in result.output


def test_status_unknown_task_exits_non_zero(monkeypatch) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"detail": "Task not found: nope"})

    _use_controller(monkeypatch, JobCliController(transport=httpx.MockTransport(handler)))

    result = CliRunner().invoke(transcribe4all, ["status", "nope"])

    assert result.exit_code != 0
    assert "Task not found: nope" in result.output


def test_status_reports_unreachable_server(monkeypatch) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    _use_controller(monkeypatch, JobCliController(transport=httpx.MockTransport(handler)))

    result = CliRunner().invoke(transcribe4all, ["status", "abc"])

    assert result.exit_code != 0
    assert "Server request failed" in result.output


def test_serve_runs_uvicorn_with_overrides(monkeypatch) -> None:
    calls: dict[str, object] = {}

    def fake_run(app, **kwargs) -> None:
        calls["app"] = app
        calls.update(kwargs)

    monkeypatch.setattr(main.uvicorn, "run", fake_run)
    monkeypatch.delenv("TRANSCRIBE4ALL_PORT", raising=False)

    result = CliRunner().invoke(transcribe4all, ["serve", "--port", "9001", "--debug"])

    assert result.exit_code == 0, result.output
    assert calls["port"] == 9001
    assert calls["host"] == "127.0.0.1"
    assert isinstance(calls["app"].state.executor, TaskExecutor)
    assert calls["app"].state.settings.server.debug is True


def test_serve_rejects_invalid_config(tmp_path: Path) -> None:
    config = tmp_path / "config.toml"
    config.write_text("[server]\nport = -1\n")

    result = CliRunner().invoke(transcribe4all, ["serve", "--config", str(config)])

    assert result.exit_code != 0
    assert "TRANSCRIBE4ALL_PORT" in result.output


def test_serve_validates_host_override(monkeypatch) -> None:
    calls: list[object] = []
    monkeypatch.setattr(main.uvicorn, "run", lambda app, **kwargs: calls.append(app))

    result = CliRunner().invoke(transcribe4all, ["serve", "--host", " "])

    assert result.exit_code != 0
    assert "TRANSCRIBE4ALL_HOST" in result.output
    assert calls == []


def test_serve_port_override_replaces_invalid_config_port(tmp_path: Path, monkeypatch) -> None:
    config = tmp_path / "config.toml"
    config.write_text("[server]\nport = -1\n")
    calls: dict[str, object] = {}
    monkeypatch.setattr(main.uvicorn, "run", lambda app, **kwargs: calls.update(kwargs))

    result = CliRunner().invoke(
        transcribe4all,
        ["serve", "--config", str(config), "--port", "9002"],
    )

    assert result.exit_code == 0, result.output
    assert calls["port"] == 9002
