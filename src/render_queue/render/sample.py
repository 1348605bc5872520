from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from typing import Any

from render_queue.render import ProgressCallback

logger = logging.getLogger(__name__)

SAMPLE_URL = "/api/generate-video/sample"
SAMPLE_FILENAME = "sample.svg"

# (progress reported, seconds spent before the next milestone)
DEFAULT_MILESTONES: tuple[tuple[int, float], ...] = ((10, 3.0), (50, 2.0), (80, 1.0))


class SampleRenderer:
    """
    Stand-in renderer for deployments without a real rendering backend.

    Walks through fixed progress milestones with a delay after each one and
    then returns the placeholder sample artifact.
    """

    def __init__(
        self,
        milestones: Sequence[tuple[int, float]] = DEFAULT_MILESTONES,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.milestones = tuple(milestones)
        self._sleep = sleep

    def render(self, payload: Any, on_progress: ProgressCallback) -> dict[str, str]:
        logger.info("Simulating render for payload %r", payload)
        for progress, delay in self.milestones:
            on_progress(progress)
            self._sleep(delay)
        return {"video_url": SAMPLE_URL, "filename": SAMPLE_FILENAME}


__all__ = ["DEFAULT_MILESTONES", "SAMPLE_FILENAME", "SAMPLE_URL", "SampleRenderer"]
