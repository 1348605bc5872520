from pathlib import Path

from fastapi import HTTPException, status

from render_queue.web.constants import EXPORT_FOLDER


def resolve_export_file(filename: str, base_dir: Path = EXPORT_FOLDER) -> Path:
    """Ensure the requested filename lives inside the exports folder."""
    clean_name = Path(filename).name
    base = base_dir.resolve()
    target = (base / clean_name).resolve()
    try:
        target.relative_to(base)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="File not found",
        ) from exc
    if not clean_name or not target.is_file():
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="File not found",
        )
    return target


def list_exported_videos(base_dir: Path = EXPORT_FOLDER) -> list[str]:
    """Return the filenames that currently exist in the exports directory."""
    if not base_dir.is_dir():
        return []
    return sorted([f.name for f in base_dir.iterdir() if f.is_file()])
