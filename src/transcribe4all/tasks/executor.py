"""Thread-per-task executor with a pollable status registry."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import replace
from datetime import UTC, datetime
from uuid import uuid4

from transcribe4all.tasks.models import (
    TaskNotFoundError,
    TaskRecord,
    TaskStatus,
    WorkFunction,
)

logger = logging.getLogger(__name__)


class TaskExecutor:
    """Runs work functions on their own threads and answers status queries.

    Each queued task gets a record in ``INPROGRESS`` state before its thread
    starts. The thread moves the record to ``SUCCESS`` or ``FAILURE`` exactly
    once. Records are never removed, so an id stays queryable for the lifetime
    of the executor.

    A work function fails when it raises or when it returns an exception
    instance. Neither case propagates to callers; failures are only visible
    as ``TaskStatus.FAILURE``.
    """

    def __init__(self, *, thread_name_prefix: str = "task") -> None:
        self._lock = threading.Lock()
        self._records: dict[str, TaskRecord] = {}
        self._thread_name_prefix = thread_name_prefix

    def queue_task(self, work: WorkFunction) -> str:
        """Start ``work`` on a new thread and return its task id immediately."""

        if not callable(work):
            raise TypeError(f"Work function must be callable, got {type(work).__name__}")

        with self._lock:
            task_id = str(uuid4())
            while task_id in self._records:
                task_id = str(uuid4())
            self._records[task_id] = TaskRecord(
                task_id=task_id,
                status=TaskStatus.INPROGRESS,
                created_at=datetime.now(UTC),
            )

        thread = threading.Thread(
            target=self._run,
            args=(task_id, work),
            daemon=True,
            name=f"{self._thread_name_prefix}-{task_id[:8]}",
        )
        thread.start()
        logger.debug("Queued task %s", task_id)
        return task_id

    def get_task_status(self, task_id: str) -> TaskStatus:
        """Return the current status of ``task_id`` without waiting."""

        return self.get_task_record(task_id).status

    def get_task_record(self, task_id: str) -> TaskRecord:
        with self._lock:
            record = self._records.get(task_id)
        if record is None:
            raise TaskNotFoundError(task_id)
        return record

    def wait_for_task(
        self,
        task_id: str,
        *,
        timeout: float | None = None,
        poll_interval: float = 0.05,
    ) -> TaskStatus:
        """Poll until ``task_id`` reaches a terminal status.

        Raises ``TimeoutError`` if ``timeout`` seconds pass first.
        """

        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            status = self.get_task_status(task_id)
            if status.is_terminal:
                return status
            if deadline is not None and time.monotonic() >= deadline:
                raise TimeoutError(f"Task {task_id} still in progress after {timeout}s")
            time.sleep(poll_interval)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, task_id: object) -> bool:
        with self._lock:
            return task_id in self._records

    def _run(self, task_id: str, work: WorkFunction) -> None:
        status = TaskStatus.FAILURE
        error: str | None = None
        try:
            try:
                result = work()
            except BaseException as raised:  # noqa: BLE001
                logger.exception("Task %s raised", task_id)
                error = _describe(raised)
            else:
                if isinstance(result, Exception):
                    logger.warning("Task %s returned error: %s", task_id, result)
                    error = _describe(result)
                else:
                    logger.info("Task %s succeeded", task_id)
                    status = TaskStatus.SUCCESS
        finally:
            # Always leave INPROGRESS, even if describing the error failed.
            self._finish(task_id, status, error)

    def _finish(self, task_id: str, status: TaskStatus, error: str | None) -> None:
        with self._lock:
            record = self._records[task_id]
            if record.status.is_terminal:
                return
            self._records[task_id] = replace(
                record,
                status=status,
                finished_at=datetime.now(UTC),
                error=error,
            )


def _describe(error: BaseException) -> str:
    name = type(error).__name__
    try:
        message = str(error)
    except Exception:  # noqa: BLE001
        return f"{name}: <unprintable error>"
    return f"{name}: {message}" if message else name
