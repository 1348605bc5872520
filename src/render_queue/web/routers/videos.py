import logging

from fastapi import APIRouter, HTTPException, Response, status
from pydantic import BaseModel

from render_queue.jobs import QueueClosedError
from render_queue.web.deps import QueueDep

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["videos"],
)

SAMPLE_SVG = """<svg width="400" height="300" xmlns="http://www.w3.org/2000/svg">
  <rect width="400" height="300" fill="#f0f0f0"/>
  <text x="200" y="150" text-anchor="middle" font-family="Arial" font-size="20" fill="#333">
    Sample Video Placeholder
  </text>
  <text x="200" y="180" text-anchor="middle" font-family="Arial" font-size="14" fill="#666">
    Your rendered video will appear here
  </text>
</svg>
"""


class VideoRequest(BaseModel):
    name: str = ""
    quiz_result: str = ""
    video_text: str = ""


@router.post("/generate-video-async")
async def generate_video_async(body: VideoRequest, queue: QueueDep) -> dict:
    """Queue a render job and return a job id for polling."""
    name = body.name.strip()
    if not name:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Name is required",
        )

    payload = body.model_dump()
    payload["name"] = name
    try:
        job_id = queue.submit(payload)
    except QueueClosedError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Render queue is shutting down",
        ) from exc

    logger.info("Video generation job %s requested for %r", job_id, name)
    return {
        "success": True,
        "job_id": job_id,
        "message": f"Video generation started for {name}!",
        "status_url": f"/api/job-status/{job_id}",
    }


@router.get("/generate-video/sample")
async def sample_video() -> Response:
    """Placeholder artifact returned by the sample renderer."""
    return Response(SAMPLE_SVG, media_type="image/svg+xml")


__all__ = ["VideoRequest", "router"]
