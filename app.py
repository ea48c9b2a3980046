"""
EduAudit Karnataka API: school grievance filing, district oversight and alumni mentoring.
"""
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy import text

import config
from database.connection import Database
from database.schemas import validation_message
from core.logger import logger
from middleware.security import (
    RateLimitMiddleware, SecurityHeadersMiddleware,
    setup_cors, setup_trusted_hosts
)
from middleware.auth_middleware import AuthRequiredMiddleware
from services.storage_service import StorageService
from routers.auth import router as auth_router
from routers.users import router as users_router
from routers.schools import router as schools_router
from routers.complaints import router as complaints_router
from routers.alumni import router as alumni_router
from routers.connections import router as connections_router
from routers.districts import router as districts_router
from routers.metadata import router as metadata_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the database and seed district statistics on startup."""
    logger.info("=" * 60)
    logger.info(f"Starting {config.APP_NAME}...")
    logger.info("=" * 60)

    try:
        config.db = Database(
            database_url=config.DATABASE_URL,
            pool_size=config.DB_POOL_SIZE,
            max_overflow=config.DB_MAX_OVERFLOW
        )
        config.db.create_tables()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}", exc_info=True)
        raise

    if config.SEED_DISTRICT_STATS:
        with config.db.get_session() as db:
            created = StorageService.seed_district_stats(db, config.SEEDED_DISTRICTS)
        if created:
            logger.info(f"Seeded stats for {created} districts")

    if not config.OPENAI_API_KEY:
        logger.warning("OPENAI_API_KEY not set. AI features will return fallback results.")

    logger.info(f"Environment: {config.ENVIRONMENT}")
    logger.info("API Docs: http://localhost:8000/docs")

    yield

    logger.info("Shutting down...")
    if config.db:
        config.db.engine.dispose()
        config.db = None
        logger.info("Database connections closed")


app = FastAPI(
    title=config.APP_NAME,
    description="Grievance portal for Karnataka schools with AI triage and alumni mentoring",
    version=config.APP_VERSION,
    lifespan=lifespan
)

app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    RateLimitMiddleware,
    requests_per_minute=config.RATE_LIMIT_PER_MINUTE,
    requests_per_hour=config.RATE_LIMIT_PER_HOUR
)
app.add_middleware(AuthRequiredMiddleware)
setup_cors(app, config.CORS_ORIGINS)
if config.ENVIRONMENT == "production":
    setup_trusted_hosts(app, config.TRUSTED_HOSTS)

app.include_router(auth_router)
app.include_router(users_router)
app.include_router(schools_router)
app.include_router(complaints_router)
app.include_router(alumni_router)
app.include_router(connections_router)
app.include_router(districts_router)
app.include_router(metadata_router)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies and parameters are reported as 400 with a readable message."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": validation_message(exc.errors())}
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": str(exc) or "Internal Server Error"}
    )


@app.get("/")
async def root():
    """Root endpoint with API information. Public endpoint."""
    return {
        "message": config.APP_NAME,
        "version": config.APP_VERSION,
        "environment": config.ENVIRONMENT,
        "docs": "/docs",
        "ai_enabled": bool(config.OPENAI_API_KEY),
    }


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring. Public endpoint."""
    health_status = {
        "status": "healthy",
        "timestamp": time.time(),
        "checks": {}
    }

    try:
        if config.db is None:
            health_status["checks"]["database"] = {"status": "error", "error": "not initialized"}
            health_status["status"] = "degraded"
        else:
            with config.db.get_session() as db:
                db.execute(text("SELECT 1"))
            health_status["checks"]["database"] = {"status": "ok"}
    except Exception as e:
        health_status["checks"]["database"] = {"status": "error", "error": str(e)}
        health_status["status"] = "degraded"

    return health_status


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
