"""CLI entrypoint for transcribe4all."""

from pathlib import Path

import httpx
import rich_click as click
import uvicorn

from transcribe4all import __version__
from transcribe4all.config import Settings
from transcribe4all.controllers import (
    DEFAULT_SERVER_URL,
    JobCliController,
    JobStatusCommand,
    RunJobCommand,
    SubmitJobCommand,
)
from transcribe4all.logging_setup import setup_logging
from transcribe4all.web import create_app

click.rich_click.USE_MARKDOWN = True
JOB_CONTROLLER = JobCliController()

_CONFIG_OPTION = click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, exists=True, dir_okay=False),
    default=None,
    help="TOML config file. Environment variables are used when omitted.",
)
_SERVER_OPTION = click.option(
    "--server",
    "server_url",
    default=DEFAULT_SERVER_URL,
    show_default=True,
    help="Base URL of a running transcribe4all server.",
)


@click.group()
@click.version_option(version=__version__, prog_name="transcribe4all")
def transcribe4all() -> None:
    """Audio transcription service."""


@transcribe4all.command("serve")
@_CONFIG_OPTION
@click.option("--host", default=None, help="Bind address. Overrides config.")
@click.option("--port", type=click.IntRange(min=1, max=65535), default=None, help="Bind port.")
@click.option("--debug/--no-debug", default=None, help="Verbose logging. Overrides config.")
def serve(
    config_path: Path | None,
    host: str | None,
    port: int | None,
    debug: bool | None,
) -> None:
    """Run the HTTP server."""

    try:
        settings = (
            Settings.from_toml(config_path) if config_path is not None else Settings.from_env()
        )
        if host is not None:
            settings.server.host = host
        if port is not None:
            settings.server.port = port
        if debug is not None:
            settings.server.debug = debug
        settings.validate()
    except ValueError as error:
        raise click.ClickException(str(error)) from error

    setup_logging(debug=settings.server.debug)
    uvicorn.run(
        create_app(settings),
        host=settings.server.host,
        port=settings.server.port,
        log_config=None,
    )


@transcribe4all.command("run")
@click.argument("audio_url")
@click.option(
    "--email",
    "email_addresses",
    multiple=True,
    required=True,
    help="Notification address. Can be repeated.",
)
@_CONFIG_OPTION
@click.option(
    "--timeout",
    "timeout_seconds",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Give up waiting after this many seconds.",
)
def run(
    audio_url: str,
    email_addresses: tuple[str, ...],
    config_path: Path | None,
    timeout_seconds: float | None,
) -> None:
    """Process one audio file in this process and wait for the outcome."""

    setup_logging()
    try:
        result = JOB_CONTROLLER.run_local(
            RunJobCommand(
                config_path=config_path,
                audio_url=audio_url,
                email_addresses=email_addresses,
                timeout_seconds=timeout_seconds,
            ),
        )
    except (ValueError, TimeoutError) as error:
        raise click.ClickException(str(error)) from error
    _emit_lines(result.lines)
    if not result.success:
        raise click.ClickException("Transcription job failed.")


@transcribe4all.command("submit")
@click.argument("audio_url")
@click.option(
    "--email",
    "email_addresses",
    multiple=True,
    required=True,
    help="Notification address. Can be repeated.",
)
@_SERVER_OPTION
def submit(audio_url: str, email_addresses: tuple[str, ...], server_url: str) -> None:
    """Queue a job on a running server and print its task id."""

    try:
        result = JOB_CONTROLLER.submit(
            SubmitJobCommand(
                server_url=server_url,
                audio_url=audio_url,
                email_addresses=email_addresses,
            ),
        )
    except httpx.HTTPError as error:
        raise click.ClickException(f"Server request failed: {error}") from error
    _emit_lines(result.lines)
    if not result.success:
        raise click.ClickException("Job was not accepted.")


@transcribe4all.command("status")
@click.argument("task_id")
@_SERVER_OPTION
def status(task_id: str, server_url: str) -> None:
    """Print the status of a task on a running server."""

    try:
        result = JOB_CONTROLLER.status(JobStatusCommand(server_url=server_url, task_id=task_id))
    except httpx.HTTPError as error:
        raise click.ClickException(f"Server request failed: {error}") from error
    _emit_lines(result.lines)
    if not result.success:
        raise click.ClickException("Unknown task.")


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    transcribe4all()
