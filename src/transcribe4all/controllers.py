"""Controllers for transcription CLI commands."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

import httpx

from transcribe4all.config import Settings
from transcribe4all.tasks import TaskExecutor, TaskStatus
from transcribe4all.transcription import TranscriptionJob, TranscriptionPipeline

DEFAULT_SERVER_URL = "http://127.0.0.1:8080"


@dataclass(slots=True)
class RunJobCommand:
    """CLI input for running one job in-process."""

    config_path: Path | None
    audio_url: str
    email_addresses: tuple[str, ...]
    timeout_seconds: float | None


@dataclass(slots=True)
class SubmitJobCommand:
    """CLI input for submitting a job to a running server."""

    server_url: str
    audio_url: str
    email_addresses: tuple[str, ...]


@dataclass(slots=True)
class JobStatusCommand:
    """CLI input for polling a job on a running server."""

    server_url: str
    task_id: str


@dataclass(slots=True)
class CommandResult:
    lines: list[str]
    success: bool


class JobCliController:
    """Runs job commands and renders their results as printable lines."""

    def __init__(
        self,
        *,
        pipeline_factory: Callable[[Settings], TranscriptionPipeline] = TranscriptionPipeline,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._pipeline_factory = pipeline_factory
        self._transport = transport

    def run_local(self, command: RunJobCommand) -> CommandResult:
        settings = Settings.load(command.config_path)
        job = TranscriptionJob(
            audio_url=command.audio_url,
            email_addresses=command.email_addresses,
        )
        work = self._pipeline_factory(settings).build_task(job)

        executor = TaskExecutor()
        task_id = executor.queue_task(work)
        status = executor.wait_for_task(task_id, timeout=command.timeout_seconds)
        record = executor.get_task_record(task_id)

        lines = [f"task_id={task_id}", f"status={status.value}"]
        if record.error:
            lines.append(f"error={record.error}")
        return CommandResult(lines=lines, success=status is TaskStatus.SUCCESS)

    def submit(self, command: SubmitJobCommand) -> CommandResult:
        with self._client(command.server_url) as client:
            response = client.post(
                "/api/jobs",
                json={
                    "audioURL": command.audio_url,
                    "emailAddresses": list(command.email_addresses),
                },
            )
        if response.status_code != httpx.codes.ACCEPTED:
            return CommandResult(
                lines=[f"Submission rejected (HTTP {response.status_code}): {_detail(response)}"],
                success=False,
            )
        return CommandResult(lines=[f"task_id={response.json()['task_id']}"], success=True)

    def status(self, command: JobStatusCommand) -> CommandResult:
        with self._client(command.server_url) as client:
            response = client.get(f"/job_status/{command.task_id}")
        if response.status_code == httpx.codes.NOT_FOUND:
            return CommandResult(lines=[_detail(response)], success=False)
        response.raise_for_status()
        return CommandResult(lines=[f"status={response.text.strip()}"], success=True)

    def _client(self, server_url: str) -> httpx.Client:
        return httpx.Client(base_url=server_url, transport=self._transport, timeout=30.0)


def _detail(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text
    if isinstance(payload, dict) and "detail" in payload:
        return str(payload["detail"])
    return response.text
