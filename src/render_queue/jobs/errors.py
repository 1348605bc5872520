from __future__ import annotations

from render_queue.jobs.models import JobStatus


class JobNotFoundError(KeyError):
    """Raised when a job id was never created or has been evicted."""

    def __init__(self, job_id: str) -> None:
        super().__init__(job_id)
        self.job_id = job_id

    def __str__(self) -> str:
        return f"Job not found: {self.job_id}"


class InvalidTransitionError(RuntimeError):
    """Raised when an update would break the job state machine."""

    def __init__(self, job_id: str, current: JobStatus, target: JobStatus) -> None:
        super().__init__(
            f"Job {job_id} cannot move from {current.value} to {target.value}",
        )
        self.job_id = job_id
        self.current = current
        self.target = target


class QueueClosedError(RuntimeError):
    """Raised when submitting to a queue that has been shut down."""


__all__ = ["InvalidTransitionError", "JobNotFoundError", "QueueClosedError"]
