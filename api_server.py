"""
FastAPI Server for FitAI Pro
Serves the API endpoints, the realtime WebSocket and uploaded avatars
"""

import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from loguru import logger
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from config.config import (
    validate_config,
    WEBAPP_URL,
    ENVIRONMENT,
    API_RATE_LIMIT,
    AVATAR_STORAGE_DIR,
    MEDIA_URL_PREFIX,
)
from config.logging import setup_logging
from config.sentry import init_sentry
from fitai.database.engine import init_db, dispose_engine
from fitai.api.router import router as api_router
from fitai.tasks.maintenance_scheduler import create_scheduler

# Setup logging at module level (must run before app creation)
# This ensures logging works when uvicorn imports the module
setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup/shutdown events
    """
    # Startup
    logger.info("Starting FitAI Pro API Server...")

    init_sentry()

    await init_db()

    scheduler = create_scheduler()
    scheduler.start()
    logger.info("Maintenance scheduler started (notifications/accounts/challenges/queue/subscriptions)")

    yield

    # Shutdown
    logger.info("Shutting down FitAI Pro API Server...")

    scheduler.shutdown(wait=False)
    logger.info("Maintenance scheduler stopped")

    await dispose_engine()
    logger.info("Database connections closed")


# Rate limiter per IP address (configurable via API_RATE_LIMIT)
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[API_RATE_LIMIT],  # Global limit for every endpoint
    storage_uri="memory://",
)

# Create FastAPI application
app = FastAPI(
    title="FitAI Pro API",
    description="API for the FitAI Pro fitness platform",
    version="1.0.0",
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


# CORS: exact origins only, no wildcards
allowed_origins = [
    "http://localhost:5173",  # Vite dev server
    "http://127.0.0.1:5173",
    "https://fitaipro.com.br",  # Production domain
]

if WEBAPP_URL and WEBAPP_URL not in allowed_origins:
    allowed_origins.append(WEBAPP_URL)

if ENVIRONMENT == "development":
    ngrok_url = os.getenv("NGROK_URL")
    if ngrok_url and ngrok_url not in allowed_origins:
        allowed_origins.append(ngrok_url)
        logger.warning(f"Development mode: Added ngrok URL to CORS: {ngrok_url}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    """
    Add security headers to every response

    Headers:
    - X-Content-Type-Options: no MIME sniffing
    - X-Frame-Options: clickjacking protection
    - Referrer-Policy: referrer control
    - Permissions-Policy: browser features (camera allowed for avatar capture)
    - Strict-Transport-Security: production HTTPS only
    """
    response = await call_next(request)

    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "SAMEORIGIN"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    response.headers["Permissions-Policy"] = (
        "geolocation=(), "
        "microphone=(), "
        "camera=(self), "
        "usb=(), "
        "magnetometer=(), "
        "gyroscope=()"
    )

    if ENVIRONMENT == "production" and request.url.scheme == "https":
        response.headers["Strict-Transport-Security"] = (
            "max-age=31536000; includeSubDomains; preload"
        )

    return response


# API router (includes every sub-router) under /api
app.include_router(api_router, prefix="/api")

# Uploaded avatars
Path(AVATAR_STORAGE_DIR).mkdir(parents=True, exist_ok=True)
app.mount(MEDIA_URL_PREFIX, StaticFiles(directory=AVATAR_STORAGE_DIR), name="media")


# Root endpoint
@app.get("/")
async def root():
    return {
        "service": "FitAI Pro API",
        "version": "1.0.0",
        "status": "running",
        "docs": "/docs",
    }


# Health check endpoint
@app.get("/health")
async def health():
    return {"status": "healthy"}


# Error handler for HTTPException (must be before generic Exception handler)
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """
    Handle HTTPException properly - return correct status code and detail
    """
    # Log 4xx as warning, 5xx as error
    if exc.status_code >= 500:
        logger.error(f"HTTP {exc.status_code}: {exc.detail}")
    elif exc.status_code >= 400:
        logger.warning(f"HTTP {exc.status_code}: {exc.detail}")

    content = exc.detail if isinstance(exc.detail, dict) else {"detail": exc.detail}
    return JSONResponse(
        status_code=exc.status_code,
        content=content,
        headers=getattr(exc, "headers", None),
    )


# Error handler for unexpected exceptions
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Global exception handler for unexpected errors
    """
    logger.exception(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal server error",
        }
    )


if __name__ == "__main__":
    import uvicorn

    try:
        validate_config()
    except ValueError as e:
        logger.error(f"Configuration validation failed: {e}")
        exit(1)

    logger.info("Configuration validated successfully")

    # Listen on localhost only, public access goes through the reverse proxy
    uvicorn.run(
        "api_server:app",
        host="127.0.0.1",
        port=int(os.getenv("API_PORT", "8000")),
        reload=ENVIRONMENT == "development",
        log_level="info",
    )
