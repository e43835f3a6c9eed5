"""API v1 router."""

from fastapi import APIRouter

from assethub.api.v1.endpoints import (
    assets,
    configs,
    notifications,
    reviews,
    storage,
    system,
    uploads,
)

api_router = APIRouter()

api_router.include_router(system.router, prefix="/system", tags=["system"])
api_router.include_router(uploads.router, prefix="/assets/upload", tags=["uploads"])
api_router.include_router(assets.router, prefix="/assets", tags=["assets"])
api_router.include_router(reviews.router, prefix="/reviews", tags=["reviews"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
api_router.include_router(configs.router, prefix="/configs", tags=["configs"])
api_router.include_router(storage.router, prefix="/storage", tags=["storage"])
