"""
Thread-safe in-memory job store.

Holds the authoritative `Job` snapshot for every submitted job. All access to
the underlying dict goes through a single lock, so producers on request
threads, the worker thread and the retention sweeper can share one store.
"""

from __future__ import annotations

import copy
import logging
import threading
import uuid
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

from render_queue.jobs.errors import InvalidTransitionError, JobNotFoundError
from render_queue.jobs.models import (
    ALLOWED_TRANSITIONS,
    MAX_PROGRESS,
    Job,
    JobStatus,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
Mutator = Callable[[Job], Job]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobStore:
    def __init__(self, clock: Clock = utcnow) -> None:
        self._clock = clock
        self._jobs: dict[str, Job] = {}
        self._lock = threading.Lock()

    def now(self) -> datetime:
        return self._clock()

    def create(self, payload: Any) -> str:
        """Insert a new pending job holding a private copy of `payload`."""
        with self._lock:
            job_id = uuid.uuid4().hex
            while job_id in self._jobs:
                job_id = uuid.uuid4().hex
            self._jobs[job_id] = Job(
                id=job_id,
                payload=copy.deepcopy(payload),
                created_at=self._clock(),
            )
        logger.debug("Created job %s", job_id)
        return job_id

    def get(self, job_id: str) -> Job:
        with self._lock:
            job = self._jobs.get(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    def list_all(self) -> list[Job]:
        """Return every retained job, newest first."""
        with self._lock:
            jobs = list(self._jobs.values())
        return sorted(jobs, key=lambda job: job.created_at, reverse=True)

    def update(self, job_id: str, mutator: Mutator) -> Job:
        """
        Replace the stored snapshot with `mutator(current)`.

        The mutator runs under the store lock and must be quick. The new
        snapshot is validated against the state machine before it is stored;
        on failure the old snapshot is kept.
        """
        with self._lock:
            current = self._jobs.get(job_id)
            if current is None:
                raise JobNotFoundError(job_id)
            updated = mutator(current)
            _validate(current, updated)
            self._jobs[job_id] = updated
        return updated

    def evict_older_than(
        self,
        age: timedelta,
        now: datetime | None = None,
    ) -> list[str]:
        """Drop terminal jobs that finished before `now - age`."""
        cutoff = (now if now is not None else self._clock()) - age
        with self._lock:
            expired = [
                job_id
                for job_id, job in self._jobs.items()
                if job.is_terminal
                and job.completed_at is not None
                and job.completed_at < cutoff
            ]
            for job_id in expired:
                del self._jobs[job_id]
        return expired

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)

    def __contains__(self, job_id: object) -> bool:
        with self._lock:
            return job_id in self._jobs


def _validate(current: Job, updated: Job) -> None:
    if (
        updated.id != current.id
        or updated.created_at != current.created_at
        or updated.payload is not current.payload
    ):
        msg = f"Job {current.id} identity fields are immutable"
        raise ValueError(msg)

    if updated.status != current.status or updated.status.is_terminal:
        if updated.status not in ALLOWED_TRANSITIONS[current.status]:
            raise InvalidTransitionError(current.id, current.status, updated.status)

    if not 0 <= updated.progress <= MAX_PROGRESS:
        msg = f"Job {current.id} progress out of range: {updated.progress}"
        raise ValueError(msg)

    if (
        current.status is JobStatus.PROCESSING
        and updated.progress < current.progress
    ):
        msg = f"Job {current.id} progress cannot decrease"
        raise ValueError(msg)

    if updated.is_terminal:
        if updated.completed_at is None:
            msg = f"Job {current.id} is terminal without completed_at"
            raise ValueError(msg)
        if updated.status is JobStatus.COMPLETED:
            consistent = (
                updated.result is not None
                and updated.error is None
                and updated.progress == MAX_PROGRESS
            )
        else:
            consistent = updated.error is not None and updated.result is None
        if not consistent:
            msg = f"Job {current.id} has inconsistent result/error"
            raise ValueError(msg)
    elif (
        updated.completed_at is not None
        or updated.error is not None
        or updated.result is not None
    ):
        msg = f"Job {current.id} is not terminal but carries a final state"
        raise ValueError(msg)


__all__ = ["Clock", "JobStore", "Mutator", "utcnow"]
