"""
API Routes - Combines all route modules into single router.
"""

from fastapi import APIRouter

from app.api.routes.job_routes import router as job_router
from app.api.routes.application_routes import router as application_router
from app.api.routes.notification_routes import router as notification_router

# Main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(job_router)
api_router.include_router(application_router)
api_router.include_router(notification_router)
