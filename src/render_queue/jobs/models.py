from __future__ import annotations

import copy
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any


class JobStatus(str, Enum):
    """Lifecycle states of a render job."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


MAX_PROGRESS = 100

TERMINAL_STATUSES = frozenset({JobStatus.COMPLETED, JobStatus.FAILED})

# Every legal move of the state machine. Terminal states have no way out.
ALLOWED_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.PENDING: frozenset({JobStatus.PROCESSING}),
    JobStatus.PROCESSING: frozenset(
        {JobStatus.PROCESSING, JobStatus.COMPLETED, JobStatus.FAILED},
    ),
    JobStatus.COMPLETED: frozenset(),
    JobStatus.FAILED: frozenset(),
}


@dataclass(frozen=True)
class Job:
    """
    Immutable snapshot of a job record.

    The store swaps whole snapshots under its lock, so a reader holding a
    `Job` always sees a consistent combination of status, progress, result
    and error.
    """

    id: str
    payload: Any
    created_at: datetime
    status: JobStatus = JobStatus.PENDING
    progress: int = 0
    result: Any = None
    error: str | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-ready view of the snapshot."""
        return {
            "id": self.id,
            "status": self.status.value,
            "progress": self.progress,
            "data": copy.deepcopy(self.payload),
            "result": self.result,
            "error": self.error,
            "created_at": _isoformat(self.created_at),
            "started_at": _isoformat(self.started_at),
            "completed_at": _isoformat(self.completed_at),
        }


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


__all__ = [
    "ALLOWED_TRANSITIONS",
    "MAX_PROGRESS",
    "TERMINAL_STATUSES",
    "Job",
    "JobStatus",
]
