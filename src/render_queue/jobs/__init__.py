"""
In-memory render job queue.

Jobs live in a `JobStore` and are processed one at a time by the worker
thread that `JobQueue` starts on demand. `RetentionSweeper` keeps the store
from growing without bound by evicting finished jobs after a retention window.
"""

from render_queue.jobs.errors import (
    InvalidTransitionError,
    JobNotFoundError,
    QueueClosedError,
)
from render_queue.jobs.models import Job, JobStatus
from render_queue.jobs.queue import JobQueue
from render_queue.jobs.retention import RetentionSweeper
from render_queue.jobs.store import JobStore

__all__ = [
    "InvalidTransitionError",
    "Job",
    "JobNotFoundError",
    "JobQueue",
    "JobStatus",
    "JobStore",
    "QueueClosedError",
    "RetentionSweeper",
]
