from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import timedelta
from importlib.metadata import version
from os import getenv
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import HTMLResponse
from jinja2 import Environment, FileSystemLoader, select_autoescape

from render_queue.jobs import JobQueue, JobStore, RetentionSweeper
from render_queue.render import build_renderer
from render_queue.web.constants import (
    EXPORT_FOLDER,
    POLL_INTERVAL_MS,
    RENDER_FALLBACK_URL,
    RENDERER,
    RETENTION_HOURS,
    SWEEP_INTERVAL_SECONDS,
)
from render_queue.web.routers import api_router
from render_queue.web.utils.files import list_exported_videos

logger = logging.getLogger(__name__)

SHUTDOWN_TIMEOUT = 10.0

# Set up Jinja2 template environment
templates_dir = Path(__file__).parent / "templates"
template_env = Environment(
    loader=FileSystemLoader(templates_dir),
    autoescape=select_autoescape(["html", "xml"]),
)
index_template = template_env.get_template("index.html")


def build_queue(export_dir: Path = EXPORT_FOLDER) -> JobQueue:
    """Construct the job queue from environment configuration."""
    fallback = None
    if RENDER_FALLBACK_URL:
        fallback = {
            "video_url": RENDER_FALLBACK_URL,
            "filename": Path(RENDER_FALLBACK_URL).name,
        }
    return JobQueue(
        JobStore(),
        build_renderer(RENDERER, export_dir),
        fallback_result=fallback,
    )


def build_sweeper(store: JobStore) -> RetentionSweeper:
    return RetentionSweeper(
        store,
        max_age=timedelta(hours=RETENTION_HOURS),
        interval=timedelta(seconds=SWEEP_INTERVAL_SECONDS),
    )


def create_app(
    queue: JobQueue | None = None,
    sweeper: RetentionSweeper | None = None,
    export_dir: Path = EXPORT_FOLDER,
) -> FastAPI:
    """
    Build the web application around a job queue and retention sweeper.

    Both default to instances configured from the environment. The sweeper
    runs for the lifetime of the app; on shutdown the queue stops accepting
    jobs and is given `SHUTDOWN_TIMEOUT` seconds to drain.
    """
    if queue is None:
        queue = build_queue(export_dir)
    if sweeper is None:
        sweeper = build_sweeper(queue.store)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        sweeper.start()
        logger.info("Render queue ready (renderer=%s)", type(queue.renderer).__name__)
        try:
            yield
        finally:
            sweeper.stop()
            if not queue.shutdown(timeout=SHUTDOWN_TIMEOUT):
                logger.warning("Render queue still busy after %.0fs", SHUTDOWN_TIMEOUT)

    app = FastAPI(
        title="Render Queue",
        version=version("render-queue"),
        lifespan=lifespan,
    )
    app.state.queue = queue
    app.state.sweeper = sweeper
    app.state.export_dir = export_dir

    # Add middleware to compress responses larger than 500 bytes
    app.add_middleware(GZipMiddleware, minimum_size=500)

    @app.get("/", response_class=HTMLResponse)
    async def index() -> HTMLResponse:
        """Render the request form and the list of finished videos."""
        html = index_template.render(
            videos=list_exported_videos(export_dir),
            poll_interval_ms=POLL_INTERVAL_MS,
        )
        return HTMLResponse(html)

    app.include_router(
        api_router,
    )
    return app


app = create_app()


def run(
    *,
    port: int | None = None,
    host: str | None = None,
    reload: bool = False,
    log_level: str = "info",
) -> None:
    """
    Start the web server for the render queue.

    Args:
        port: The port number to run the server on (keyword-only).
            Defaults to the PORT environment variable if set, otherwise 2025.
        host: The host address to bind the server to (keyword-only).
            Defaults to '127.0.0.1' if not specified.
        reload: Enable auto-reload when code changes are detected (keyword-only).
        log_level: Log level passed on to uvicorn (keyword-only).

    Example:
        >>> run()  # Runs on 127.0.0.1:2025
        >>> run(port=8000, host='0.0.0.0')  # Runs on 0.0.0.0:8000

    """
    env_port = getenv("PORT")
    if env_port and not port:
        port = int(env_port)
    if port is None:
        port = 2025

    if not host:
        host = "127.0.0.1"

    import uvicorn  # noqa: PLC0415

    uvicorn.run(
        "render_queue.web:app",
        host=host,
        port=port,
        reload=reload,
        log_level=log_level.lower(),
    )


if __name__ == "__main__":
    run()
