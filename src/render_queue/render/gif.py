from __future__ import annotations

import re
import time
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from render_queue.render import ProgressCallback, RenderError

DEFAULT_WIDTH = 480
DEFAULT_HEIGHT = 270
DEFAULT_FRAMES = 24
FRAME_DURATION_MS = 50  # 20 frames per second

_BACKGROUND_TOP = np.array([15, 23, 32], dtype=np.float32)
_BACKGROUND_BOTTOM = np.array([110, 231, 183], dtype=np.float32)
_TEXT_COLOR = (230, 238, 246)


def sanitize_name(name: str) -> str:
    """Reduce a display name to characters that are safe in a filename."""
    return re.sub(r"[^a-zA-Z0-9]", "_", name) or "video"


def allocate_video_path(output_dir: Path, name: str, extension: str = ".gif") -> Path:
    """Pick a `video_<name>_<millis>` filename that does not exist yet."""
    stem = f"video_{sanitize_name(name)}_{int(time.time() * 1000)}"
    target = output_dir / f"{stem}{extension}"
    index = 1
    while target.exists():
        target = output_dir / f"{stem}-{index}{extension}"
        index += 1
    return target


def _background(width: int, height: int) -> np.ndarray:
    """Vertical gradient used behind the title card text."""
    t = np.linspace(0.0, 1.0, height, dtype=np.float32)[:, None, None]
    rows = _BACKGROUND_TOP * (1.0 - t) + _BACKGROUND_BOTTOM * t
    return np.broadcast_to(rows, (height, width, 3)).astype(np.uint8)


def _text_layer(lines: list[str], width: int, height: int) -> np.ndarray:
    """Render the card text into a grayscale mask."""
    layer = Image.new("L", (width, height), 0)
    draw = ImageDraw.Draw(layer)
    font = ImageFont.load_default()
    line_height = max(12, height // (len(lines) + 2))
    top = (height - line_height * len(lines)) // 2
    for i, line in enumerate(lines):
        left, _, right, _ = draw.textbbox((0, 0), line, font=font)
        x = max(0, (width - (right - left)) // 2)
        draw.text((x, top + i * line_height), line, fill=255, font=font)
    return np.array(layer)


class GifRenderer:
    """
    Render a scrolling animated GIF title card from the submitted form data.

    Each frame rolls the text layer horizontally over a gradient background,
    and progress is reported once per frame.
    """

    def __init__(
        self,
        output_dir: Path,
        *,
        width: int = DEFAULT_WIDTH,
        height: int = DEFAULT_HEIGHT,
        frames: int = DEFAULT_FRAMES,
        url_prefix: str = "/api/videos",
    ) -> None:
        self.output_dir = output_dir
        self.width = max(1, int(width))
        self.height = max(1, int(height))
        self.frames = max(2, int(frames))
        self.url_prefix = url_prefix.rstrip("/")

    def render(self, payload: Any, on_progress: ProgressCallback) -> dict[str, str]:
        if not isinstance(payload, Mapping):
            msg = "Payload must be a mapping"
            raise RenderError(msg)
        name = str(payload.get("name") or "").strip()
        if not name:
            msg = "Name is required"
            raise RenderError(msg)

        lines = [
            name,
            str(payload.get("quiz_result") or ""),
            str(payload.get("video_text") or ""),
        ]
        lines = [line for line in lines if line]

        try:
            background = _background(self.width, self.height)
            mask0 = _text_layer(lines, self.width, self.height)

            frames_list: list[Image.Image] = []
            for i in range(self.frames):
                on_progress(int((i / self.frames) * 100))
                shift = round(i * (self.width / self.frames))
                mask = np.roll(mask0, -shift, axis=1)[..., None] / 255.0
                frame = background * (1.0 - mask) + np.array(_TEXT_COLOR) * mask
                frames_list.append(Image.fromarray(frame.astype(np.uint8)))

            self.output_dir.mkdir(parents=True, exist_ok=True)
            out_file = allocate_video_path(self.output_dir, name)
            frames_list[0].save(
                out_file,
                format="GIF",
                save_all=True,
                append_images=frames_list[1:],
                loop=0,
                duration=FRAME_DURATION_MS,
                optimize=False,
            )
        except (OSError, ValueError) as exc:
            raise RenderError(str(exc)) from exc

        return {
            "video_url": f"{self.url_prefix}/{out_file.name}",
            "filename": out_file.name,
        }


__all__ = ["GifRenderer", "allocate_video_path", "sanitize_name"]
