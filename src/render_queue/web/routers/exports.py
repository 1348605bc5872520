from fastapi import APIRouter
from fastapi.responses import FileResponse

from render_queue.web.constants import VIDEO_MEDIA_TYPES
from render_queue.web.deps import ExportDirDep
from render_queue.web.utils.files import list_exported_videos, resolve_export_file

router = APIRouter(
    prefix="/videos",
    tags=["exports"],
)


@router.get("/")
async def exports_list(export_dir: ExportDirDep) -> dict:
    """Return a JSON listing of rendered videos."""
    return {"videos": list_exported_videos(export_dir)}


@router.get("/{filename:path}")
async def export_file(filename: str, export_dir: ExportDirDep) -> FileResponse:
    """Serve a rendered video from the exports directory."""
    target = resolve_export_file(filename, export_dir)
    media_type = VIDEO_MEDIA_TYPES.get(target.suffix.lower())
    return FileResponse(target, media_type=media_type, filename=target.name)


__all__ = ["router"]
