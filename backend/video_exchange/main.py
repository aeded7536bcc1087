"""
Video Exchange - FastAPI Application

Main entry point for the backend API.
Provides endpoints for video libraries, exchanges, ratings and subscriptions.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from video_exchange.config.settings import settings
from video_exchange.infrastructure.exceptions import (
    VideoExchangeError,
    BillingUnavailableError,
    ExternalServiceError,
    PaymentProviderError,
)

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


# Error category -> HTTP status
CATEGORY_STATUS = {
    "validation": 400,
    "authorization": 403,
    "not_found": 404,
    "conflict": 409,
    "state_conflict": 409,
    "external_service": 502,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    logger.info(f"Video Exchange Backend starting in {settings.environment} mode...")

    if settings.database_url:
        from video_exchange.infrastructure.db.database import init_db
        await init_db()
        logger.info("SQLModel database connection pool initialized")
    else:
        logger.warning("DATABASE_URL is not set; requests touching the database will fail")

    yield

    if settings.database_url:
        from video_exchange.infrastructure.db.database import close_db
        await close_db()
        logger.info("SQLModel database connection pool closed")

    logger.info("Video Exchange Backend shutting down...")


app = FastAPI(
    title="Video Exchange",
    description="Video library and barter platform",
    version="1.0.0",
    lifespan=lifespan,
    debug=settings.debug,
)

# CORS configuration from Settings
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Exception Handlers
# ============================================================================

@app.exception_handler(PaymentProviderError)
async def payment_provider_error_handler(request: Request, exc: PaymentProviderError):
    """Pass the payment gateway's own status through."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
    )


@app.exception_handler(BillingUnavailableError)
async def billing_unavailable_error_handler(request: Request, exc: BillingUnavailableError):
    """Handle billing provider outages and timeouts."""
    logger.warning(f"Billing unavailable on {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=503,
        content=exc.to_dict(),
    )


@app.exception_handler(ExternalServiceError)
async def external_service_error_handler(request: Request, exc: ExternalServiceError):
    """Handle storage and moderation provider failures."""
    logger.warning(f"External service failure on {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=502,
        content=exc.to_dict(),
    )


@app.exception_handler(VideoExchangeError)
async def application_error_handler(request: Request, exc: VideoExchangeError):
    """Map every other application error by its category."""
    status_code = CATEGORY_STATUS.get(exc.category, 500)
    if status_code == 500:
        logger.error(f"Unhandled application error on {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=status_code,
        content=exc.to_dict(),
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    """Last resort: log the traceback, hide the internals."""
    logger.exception(f"Unexpected error on {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "InternalServerError",
            "category": "internal",
            "message": "An unexpected error occurred.",
            "details": {},
        },
    )


# ============================================================================
# Health Check
# ============================================================================

@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "video-exchange"}


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Video Exchange API",
        "version": "1.0.0",
        "docs": "/docs",
    }


# ============================================================================
# Import and register routers
# ============================================================================

from video_exchange.api.routes import (  # noqa: E402
    exchanges,
    notifications,
    ratings,
    statistics,
    subscriptions,
    users,
    videos,
)

app.include_router(users.router, prefix="/api", tags=["Users"])
app.include_router(videos.router, prefix="/api", tags=["Videos"])
app.include_router(exchanges.router, prefix="/api", tags=["Exchanges"])
app.include_router(ratings.router, prefix="/api", tags=["Ratings"])
app.include_router(subscriptions.router, prefix="/api", tags=["Subscriptions"])
app.include_router(notifications.router, prefix="/api", tags=["Notifications"])
app.include_router(statistics.router, prefix="/api", tags=["Statistics"])
