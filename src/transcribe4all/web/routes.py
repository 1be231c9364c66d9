"""HTTP routes for job submission and status polling."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, FastAPI, Form, HTTPException, Request, status
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse
from pydantic import BaseModel, ConfigDict, Field

from transcribe4all import __version__
from transcribe4all.config import Settings
from transcribe4all.tasks import TaskExecutor, TaskNotFoundError
from transcribe4all.transcription import TranscriptionJob, TranscriptionPipeline

logger = logging.getLogger(__name__)

router = APIRouter()

_FORM_PAGE = """\
<!DOCTYPE html>
<html>
  <head>
    <title>transcribe4all</title>
  </head>
  <body>
    <form action="/add_job" method="POST">
      <div>URL: <input type="url" name="AudioURL" required></div>
      <div>Email Addresses: <input type="email" name="EmailAddresses" multiple required></div>
      <div><input type="submit" value="Submit"></div>
    </form>
  </body>
</html>
"""


class TranscriptionJobRequest(BaseModel):
    """JSON body for job submission."""

    model_config = ConfigDict(populate_by_name=True)

    audio_url: str = Field(alias="audioURL")
    email_addresses: list[str] = Field(alias="emailAddresses")


class QueuedJobResponse(BaseModel):
    task_id: str


def get_executor(request: Request) -> TaskExecutor:
    return request.app.state.executor


def get_pipeline(request: Request) -> TranscriptionPipeline:
    return request.app.state.pipeline


def create_app(
    settings: Settings | None = None,
    *,
    executor: TaskExecutor | None = None,
    pipeline: TranscriptionPipeline | None = None,
) -> FastAPI:
    """Build the application around an explicitly owned executor."""

    settings = settings or Settings()
    app = FastAPI(title="transcribe4all", version=__version__, debug=settings.server.debug)
    app.state.settings = settings
    app.state.executor = executor or TaskExecutor()
    app.state.pipeline = pipeline or TranscriptionPipeline(settings)
    app.include_router(router)
    return app


@router.get("/", response_class=HTMLResponse)
def form_page() -> str:
    return _FORM_PAGE


@router.get("/hello/{name}", response_class=PlainTextResponse)
def hello(name: str) -> str:
    return f"Hello {name}!"


@router.get("/health", response_class=PlainTextResponse)
def health() -> str:
    return "healthy!"


@router.post("/add_job")
def add_job_from_form(
    audio_url: Annotated[str, Form(alias="AudioURL")],
    email_addresses: Annotated[list[str], Form(alias="EmailAddresses")],
    executor: Annotated[TaskExecutor, Depends(get_executor)],
    pipeline: Annotated[TranscriptionPipeline, Depends(get_pipeline)],
) -> RedirectResponse:
    """Queue a job posted from the HTML form and redirect back to it."""

    # Browsers send a ``multiple`` email input as one comma-separated value.
    addresses = [part.strip() for value in email_addresses for part in value.split(",")]
    _queue_job(executor, pipeline, audio_url, addresses)
    return RedirectResponse(url="/", status_code=status.HTTP_302_FOUND)


@router.post("/api/jobs", status_code=status.HTTP_202_ACCEPTED)
def add_job(
    body: TranscriptionJobRequest,
    executor: Annotated[TaskExecutor, Depends(get_executor)],
    pipeline: Annotated[TranscriptionPipeline, Depends(get_pipeline)],
) -> QueuedJobResponse:
    task_id = _queue_job(executor, pipeline, body.audio_url, body.email_addresses)
    return QueuedJobResponse(task_id=task_id)


@router.get("/job_status/{task_id}", response_class=PlainTextResponse)
def job_status(
    task_id: str,
    executor: Annotated[TaskExecutor, Depends(get_executor)],
) -> str:
    """Render the current status of a task as plain text."""

    try:
        return executor.get_task_status(task_id).value
    except TaskNotFoundError as error:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error)) from error


def _queue_job(
    executor: TaskExecutor,
    pipeline: TranscriptionPipeline,
    audio_url: str,
    email_addresses: list[str],
) -> str:
    job = TranscriptionJob(audio_url=audio_url, email_addresses=tuple(email_addresses))
    try:
        work = pipeline.build_task(job)
    except ValueError as error:
        raise HTTPException(
            status_code=422,
            detail=str(error),
        ) from error
    task_id = executor.queue_task(work)
    logger.info("Accepted task %s for %s", task_id, audio_url)
    return task_id
