"""
Sequential render job queue.

Producers call `JobQueue.submit`, which records a pending job in the store,
appends its id to a FIFO and returns immediately. A single worker thread is
started on demand, drains the FIFO one job at a time and exits once the FIFO
is empty; the next submission starts a fresh one.
"""

from __future__ import annotations

import copy
import logging
import threading
from collections import deque
from dataclasses import replace
from typing import Any

from render_queue.jobs.errors import JobNotFoundError, QueueClosedError
from render_queue.jobs.models import MAX_PROGRESS, Job, JobStatus
from render_queue.jobs.store import JobStore
from render_queue.render import ProgressCallback, RenderError, Renderer

logger = logging.getLogger(__name__)


def describe_error(exc: BaseException) -> str:
    """Human readable failure message for a job record."""
    return str(exc) or type(exc).__name__


class JobQueue:
    """
    FIFO job queue with a lazily started, self-terminating worker thread.

    `fallback_result`, when not None, turns render failures into completed
    jobs carrying that result. It is off by default because it reports a
    failed render as a success.
    """

    def __init__(
        self,
        store: JobStore,
        renderer: Renderer,
        *,
        fallback_result: Any = None,
        thread_name: str = "render-queue-worker",
    ) -> None:
        self.store = store
        self.renderer = renderer
        self.fallback_result = fallback_result
        self.thread_name = thread_name

        self._pending: deque[str] = deque()
        self._lock = threading.Lock()
        self._idle = threading.Condition(self._lock)
        self._running = False
        self._closed = False

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._running

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    def submit(self, payload: Any) -> str:
        """Create a pending job, enqueue it and return its id."""
        with self._lock:
            if self._closed:
                msg = "Job queue is shut down"
                raise QueueClosedError(msg)
            # The worker blocks on this lock until the job is enqueued, so it
            # is started first and nothing is recorded if it cannot start.
            if not self._running:
                self._start_worker()
            # Creating under the queue lock keeps creation order equal to
            # processing order when several producers submit at once.
            job_id = self.store.create(payload)
            self._pending.append(job_id)
        logger.info("Queued job %s", job_id)
        return job_id

    def wait_idle(self, timeout: float | None = None) -> bool:
        """Block until the worker has drained the queue. False on timeout."""
        with self._idle:
            return self._idle.wait_for(lambda: not self._running, timeout)

    def shutdown(self, *, wait: bool = True, timeout: float | None = None) -> bool:
        """Stop accepting jobs and optionally wait for queued ones to finish."""
        with self._lock:
            self._closed = True
        logger.info("Job queue shutting down")
        if wait:
            return self.wait_idle(timeout)
        return not self.is_running

    def _start_worker(self) -> None:
        # Caller holds self._lock.
        self._running = True
        thread = threading.Thread(target=self._drain, name=self.thread_name, daemon=True)
        try:
            thread.start()
        except RuntimeError:
            self._running = False
            raise

    def _drain(self) -> None:
        logger.debug("Worker started")
        while True:
            with self._lock:
                if not self._pending:
                    self._running = False
                    self._idle.notify_all()
                    logger.debug("Worker idle")
                    return
                job_id = self._pending.popleft()
            try:
                self._process(job_id)
            except Exception:
                logger.exception("Unexpected fault while processing job %s", job_id)

    def _process(self, job_id: str) -> None:
        started_at = self.store.now()
        try:
            job = self.store.update(
                job_id,
                lambda current: replace(
                    current,
                    status=JobStatus.PROCESSING,
                    progress=0,
                    started_at=started_at,
                ),
            )
        except JobNotFoundError:
            logger.warning("Job %s vanished before processing; skipping", job_id)
            return

        logger.info("Processing job %s", job_id)
        try:
            result = self.renderer.render(
                copy.deepcopy(job.payload),
                self._progress_reporter(job_id),
            )
            if result is None:
                msg = "Renderer returned no result"
                raise RenderError(msg)
        except Exception as exc:
            logger.exception("Render failed for job %s", job_id)
            self._record_failure(job_id, exc)
            return

        try:
            self._complete(job_id, result)
        except Exception as exc:
            logger.exception("Could not record result for job %s", job_id)
            self._record_failure(job_id, exc)
            return
        logger.info("Job %s completed", job_id)

    def _progress_reporter(self, job_id: str) -> ProgressCallback:
        def report(value: int) -> None:
            clamped = max(0, min(MAX_PROGRESS, int(value)))
            self.store.update(
                job_id,
                lambda current: replace(current, progress=max(current.progress, clamped)),
            )

        return report

    def _complete(self, job_id: str, result: Any) -> Job:
        completed_at = self.store.now()
        return self.store.update(
            job_id,
            lambda current: replace(
                current,
                status=JobStatus.COMPLETED,
                progress=MAX_PROGRESS,
                result=result,
                completed_at=completed_at,
            ),
        )

    def _record_failure(self, job_id: str, exc: BaseException) -> None:
        try:
            if self.fallback_result is not None:
                logger.warning(
                    "Job %s failed (%s); completing with fallback result",
                    job_id,
                    describe_error(exc),
                )
                self._complete(job_id, self.fallback_result)
                return

            completed_at = self.store.now()
            message = describe_error(exc)
            self.store.update(
                job_id,
                lambda current: replace(
                    current,
                    status=JobStatus.FAILED,
                    error=message,
                    completed_at=completed_at,
                ),
            )
        except JobNotFoundError:
            logger.warning("Job %s vanished before its failure was recorded", job_id)
            return
        logger.info("Job %s failed: %s", job_id, describe_error(exc))


__all__ = ["JobQueue", "describe_error"]
