from fastapi import APIRouter, HTTPException, status

from render_queue.jobs import JobNotFoundError
from render_queue.web.deps import StoreDep

router = APIRouter(
    tags=["jobs"],
)


@router.get("/job-status/{job_id}")
async def job_status(job_id: str, store: StoreDep) -> dict:
    """Return the current snapshot of a job for polling clients."""
    try:
        job = store.get(job_id)
    except JobNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Job not found",
        ) from exc
    return {"success": True, "job": job.to_dict()}


@router.get("/jobs")
async def jobs_list(store: StoreDep) -> dict:
    """List every retained job, newest first."""
    return {"success": True, "jobs": [job.to_dict() for job in store.list_all()]}


__all__ = ["router"]
