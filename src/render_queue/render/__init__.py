"""
Render capability used by the job queue.

The queue only knows that a renderer turns a payload into a result, may
report progress along the way, and raises `RenderError` (or anything else)
when it cannot.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any, Protocol

ProgressCallback = Callable[[int], None]


class RenderError(Exception):
    """The render operation could not produce a result."""


class Renderer(Protocol):
    def render(self, payload: Any, on_progress: ProgressCallback) -> Any:
        """Render `payload` and return an opaque result reference."""
        ...


def build_renderer(name: str, output_dir: Path) -> Renderer:
    """Return the renderer registered under `name` (`gif` or `sample`)."""
    clean_name = name.strip().lower()
    if clean_name == "gif":
        from render_queue.render.gif import GifRenderer  # noqa: PLC0415

        return GifRenderer(output_dir)
    if clean_name == "sample":
        from render_queue.render.sample import SampleRenderer  # noqa: PLC0415

        return SampleRenderer()
    msg = f"Unknown renderer: {name!r}"
    raise ValueError(msg)


__all__ = ["ProgressCallback", "RenderError", "Renderer", "build_renderer"]
