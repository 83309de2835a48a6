"""Main v1 API router that aggregates all sub-routers."""

from fastapi import APIRouter

from .events import router as events_router

# Main v1 router
router = APIRouter(prefix="/api/v1")

router.include_router(events_router, prefix="/events", tags=["Events"])

__all__ = ["router"]
