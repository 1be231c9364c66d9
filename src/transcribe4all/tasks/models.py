"""Domain models for in-process task execution."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

WorkFunction = Callable[[], object]


class TaskStatus(str, Enum):
    """Task lifecycle states."""

    INPROGRESS = "INPROGRESS"
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"

    @property
    def is_terminal(self) -> bool:
        return self is not TaskStatus.INPROGRESS


@dataclass(slots=True, frozen=True)
class TaskRecord:
    """Point-in-time snapshot of one task."""

    task_id: str
    status: TaskStatus
    created_at: datetime
    finished_at: datetime | None = None
    error: str | None = None


class TaskNotFoundError(LookupError):
    """Status lookup for an id this executor never issued."""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id
