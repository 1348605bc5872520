from os import getenv
from pathlib import Path

# Directory where rendered videos are written and served from.
EXPORT_FOLDER = Path(getenv("EXPORT_FOLDER", str(Path.cwd() / "exports")))
"""Directory where rendered videos are written and served from"""
EXPORT_FOLDER.mkdir(
    parents=True,
    exist_ok=True,
)

RENDERER = getenv("RENDERER", "gif")
"""Renderer used by the job queue: `gif` or `sample`"""

RETENTION_HOURS = float(getenv("RETENTION_HOURS", "24"))
SWEEP_INTERVAL_SECONDS = float(getenv("SWEEP_INTERVAL_SECONDS", "3600"))

# When set, failed renders complete with this URL instead of failing.
RENDER_FALLBACK_URL = getenv("RENDER_FALLBACK_URL") or None

POLL_INTERVAL_MS = 2000

VIDEO_MEDIA_TYPES = {
    ".gif": "image/gif",
    ".mp4": "video/mp4",
    ".svg": "image/svg+xml",
}


__all__ = [
    "EXPORT_FOLDER",
    "POLL_INTERVAL_MS",
    "RENDERER",
    "RENDER_FALLBACK_URL",
    "RETENTION_HOURS",
    "SWEEP_INTERVAL_SECONDS",
    "VIDEO_MEDIA_TYPES",
]
