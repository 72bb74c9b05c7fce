"""API v1 routers."""

from fastapi import APIRouter

from .alerts import router as alerts_router
from .events import router as events_router
from .retention import router as retention_router

# Create v1 router that includes all v1 endpoints
router = APIRouter(prefix="/v1")

router.include_router(events_router)
router.include_router(retention_router)
router.include_router(alerts_router)

__all__ = ["router", "alerts_router", "events_router", "retention_router"]
