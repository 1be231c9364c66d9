"""In-process asynchronous task execution.

Work functions run on their own daemon threads; callers poll by task id.
There is no persistence, scheduling, or cancellation: a task that never
returns stays ``INPROGRESS`` for the life of the executor.
"""

from transcribe4all.tasks.executor import TaskExecutor
from transcribe4all.tasks.models import TaskNotFoundError, TaskRecord, TaskStatus, WorkFunction

__all__ = [
    "TaskExecutor",
    "TaskNotFoundError",
    "TaskRecord",
    "TaskStatus",
    "WorkFunction",
]
