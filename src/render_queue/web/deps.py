from pathlib import Path
from typing import Annotated

from fastapi import Depends, Request

from render_queue.jobs import JobQueue, JobStore


def get_queue(request: Request) -> JobQueue:
    return request.app.state.queue


def get_store(request: Request) -> JobStore:
    return request.app.state.queue.store


def get_export_dir(request: Request) -> Path:
    return request.app.state.export_dir


QueueDep = Annotated[JobQueue, Depends(get_queue)]
StoreDep = Annotated[JobStore, Depends(get_store)]
ExportDirDep = Annotated[Path, Depends(get_export_dir)]

__all__ = ["ExportDirDep", "QueueDep", "StoreDep", "get_export_dir", "get_queue", "get_store"]
