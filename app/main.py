"""
Placify - Main Application

FastAPI backend with:
- MongoDB for users, jobs, applications and notifications
- Application status lifecycle with audit history
- Resume storage (local disk or S3)
- JWT verification for students and recruiters
- Daily retention cleanup (APScheduler)

Run: uvicorn app.main:app --reload
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from app.api.routes import api_router
from app.core.config import get_settings
from app.core.errors import PlacifyError, SystemFailureError
from app.core.logging_config import configure_logging
from app.core.scheduler import start_scheduler, stop_scheduler
from app.db.mongodb import init_mongo_indexes, test_mongo_connection
from app.schemas.schemas import ErrorResponse

configure_logging()
logger = logging.getLogger(__name__)

settings = get_settings()

# Create FastAPI app
app = FastAPI(
    title="Placify",
    description="""
    Job board backend: recruiters post jobs, students apply, both track
    applications through a status lifecycle.

    ## Features
    - **Jobs**: Create, view and delete postings (cascades to applications)
    - **Applications**: Apply with a resume, review/reject, withdraw
    - **History**: Every status change is recorded with actor and reason
    - **Notifications**: Recruiters hear about new applications, students about decisions
    - **Analytics**: Per-status and per-day counts for recruiters
    """,
    version="1.0.0",
    debug=settings.debug,
    docs_url="/docs",
    redoc_url="/redoc"
)

# CORS middleware (allow all for development)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PlacifyError)
async def placify_error_handler(request: Request, exc: PlacifyError):
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(PyMongoError)
async def database_error_handler(request: Request, exc: PyMongoError):
    logger.exception(f"Database error on {request.method} {request.url.path}")
    error = SystemFailureError("Database error occurred")
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


# Include API routes
app.include_router(
    api_router,
    prefix="/api",
    responses={code: {"model": ErrorResponse} for code in (400, 403, 404, 409, 500)}
)


# Startup event
@app.on_event("startup")
async def startup_event():
    """Initialize MongoDB indexes and the retention scheduler."""
    try:
        init_mongo_indexes()
    except PyMongoError as e:
        logger.warning(f"MongoDB index initialization failed: {e}")
    start_scheduler()


@app.on_event("shutdown")
async def shutdown_event():
    stop_scheduler()


@app.get("/health", tags=["Health"])
async def health_check():
    """Detailed health check."""
    return {
        "status": "healthy",
        "app": "Placify",
        "mongodb": "connected" if test_mongo_connection() else "disconnected"
    }
