"""
Pytest configuration and fixtures for the render queue tests.
"""
import os
import tempfile
import threading
from datetime import datetime, timedelta, timezone

import pytest

# Keep rendered files out of the working tree before the web package is imported
os.environ.setdefault("EXPORT_FOLDER", tempfile.mkdtemp(prefix="render-queue-tests-"))

from render_queue.jobs import JobQueue, JobStore  # noqa: E402
from render_queue.render import RenderError  # noqa: E402


class TickingClock:
    """Deterministic clock that moves forward one second per reading."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2024, 1, 1, tzinfo=timezone.utc)
        self._lock = threading.Lock()

    def __call__(self) -> datetime:
        with self._lock:
            self.current += timedelta(seconds=1)
            return self.current

    def advance(self, delta: timedelta) -> None:
        with self._lock:
            self.current += delta


class ScriptedRenderer:
    """
    Fake renderer driven by the payload.

    A payload of {"fail": "message"} raises RenderError, {"result": value}
    returns value and {"progress": [...]} is reported before resolving.
    """

    def __init__(self) -> None:
        self.calls: list[object] = []
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def render(self, payload, on_progress):
        with self._lock:
            self.calls.append(payload)
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            for value in payload.get("progress", []):
                on_progress(value)
            if "fail" in payload:
                raise RenderError(payload["fail"])
            return payload.get("result", f"result-{payload.get('name')}")
        finally:
            with self._lock:
                self.active -= 1


class GatedRenderer:
    """Fake renderer that blocks each call until the test releases it."""

    def __init__(self) -> None:
        self.started = threading.Event()
        self.release = threading.Event()
        self.calls: list[object] = []

    def render(self, payload, on_progress):
        self.calls.append(payload)
        on_progress(25)
        self.started.set()
        if not self.release.wait(timeout=5):
            msg = "gate never released"
            raise RenderError(msg)
        return {"video_url": f"/api/videos/{payload['name']}.gif"}


@pytest.fixture
def clock():
    return TickingClock()


@pytest.fixture
def store(clock):
    return JobStore(clock=clock)


@pytest.fixture
def renderer():
    return ScriptedRenderer()


@pytest.fixture
def gated_renderer():
    gated = GatedRenderer()
    yield gated
    gated.release.set()


@pytest.fixture
def queue(store, renderer):
    job_queue = JobQueue(store, renderer)
    yield job_queue
    job_queue.shutdown(timeout=5)


@pytest.fixture
def gated_queue(store, gated_renderer):
    job_queue = JobQueue(store, gated_renderer)
    yield job_queue
    gated_renderer.release.set()
    job_queue.shutdown(timeout=5)
