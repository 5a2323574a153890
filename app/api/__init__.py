"""
Leakwatch - API Routers:  app/api/__init__.py
"""

from fastapi import APIRouter

from app.api.routers.auth import router as auth_router
from app.api.routers.scan import router as scan_router
from app.api.routers.revenue import router as revenue_router
from app.api.routers.recovery import router as recovery_router


# Main API router
api_router = APIRouter()

# Include sub-routers
api_router.include_router(auth_router)
api_router.include_router(scan_router)
api_router.include_router(revenue_router)
api_router.include_router(recovery_router)
