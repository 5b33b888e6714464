############################################################
#
# requestbooth - Live Event Song Request Service
#
# __init__.py: API endpoints package and router configuration
#
############################################################

"""API endpoints for RequestBooth."""

from fastapi import APIRouter

from backend.app.api.auth import router as auth_router
from backend.app.api.bans_api import router as bans_router
from backend.app.api.health import router as health_router
from backend.app.api.requests_api import router as requests_router
from backend.app.api.songs_api import router as songs_router
from backend.app.api.system_api import router as system_router
from backend.app.api.terms_api import router as terms_router

# Create main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(health_router)
api_router.include_router(system_router, prefix="/api", tags=["system"])
api_router.include_router(auth_router, prefix="/api/auth", tags=["auth"])
api_router.include_router(requests_router, prefix="/api/requests", tags=["requests"])
api_router.include_router(bans_router, prefix="/api/bans", tags=["bans"])
api_router.include_router(terms_router, prefix="/api/terms", tags=["terms"])
api_router.include_router(songs_router, prefix="/api/songs", tags=["songs"])

__all__ = ["api_router"]
