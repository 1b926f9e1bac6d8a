"""API v1 module for foundryhub."""

from fastapi import APIRouter

from foundryhub.app.api.v1.instances import router as instances_router

router = APIRouter(prefix="/api/v1")
router.include_router(instances_router)

__all__ = ["router"]
