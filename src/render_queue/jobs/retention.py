from __future__ import annotations

import logging
import threading
from datetime import timedelta

from render_queue.jobs.store import JobStore

logger = logging.getLogger(__name__)

DEFAULT_MAX_AGE = timedelta(hours=24)
DEFAULT_INTERVAL = timedelta(hours=1)


class RetentionSweeper:
    """
    Periodically evict finished jobs from a `JobStore`.

    Runs on its own daemon thread between `start()` and `stop()`. A failing
    sweep is logged and the next one runs on schedule.
    """

    def __init__(
        self,
        store: JobStore,
        *,
        max_age: timedelta = DEFAULT_MAX_AGE,
        interval: timedelta = DEFAULT_INTERVAL,
    ) -> None:
        self.store = store
        self.max_age = max_age
        self.interval = interval
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def sweep_once(self) -> list[str]:
        """Run a single eviction pass and return the evicted job ids."""
        try:
            evicted = self.store.evict_older_than(self.max_age, self.store.now())
        except Exception:
            logger.exception("Retention sweep failed")
            return []
        if evicted:
            logger.info("Evicted %d expired job(s)", len(evicted))
        return evicted

    def start(self) -> None:
        if self.is_running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run,
            name="render-queue-retention",
            daemon=True,
        )
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _run(self) -> None:
        seconds = self.interval.total_seconds()
        while not self._stop.wait(seconds):
            self.sweep_once()


__all__ = ["DEFAULT_INTERVAL", "DEFAULT_MAX_AGE", "RetentionSweeper"]
