from fastapi import APIRouter

from render_queue.web.routers.exports import router as exports_router
from render_queue.web.routers.jobs import router as jobs_router
from render_queue.web.routers.videos import router as videos_router

api_router = APIRouter(
    prefix="/api",
)

api_router.include_router(
    videos_router,
)

api_router.include_router(
    jobs_router,
)

api_router.include_router(
    exports_router,
)

__all__ = ["api_router"]
