"""
Rakshak Alert - FastAPI Application Entry Point

Community incident reporting with one-tap SOS alerts to emergency contacts.

DESIGN PRINCIPLES:
- Citizens report, moderators triage (pending -> active -> resolved)
- SOS reports are stored first; contact notification never blocks or fails them
- Provider-agnostic: Firestore or mock DB, local or Firebase image storage,
  mock/Twilio/WhatsApp Cloud messaging, all chosen by settings
"""

import logging
import os
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from rakshak.core.exceptions import RakshakError
from rakshak.core.settings import settings
from rakshak.config.firebase import initialize_firestore
from rakshak.routes import auth, contacts, health, incidents, stats
from rakshak.services.sos_service import get_sos_service
from rakshak.services.user_service import get_user_service


logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

API_PREFIX = "/api"


# Initialize FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Community incident reporting and SOS alerts",
    debug=settings.DEBUG
)


@app.exception_handler(RakshakError)
async def rakshak_exception_handler(request: Request, exc: RakshakError):
    """Domain errors raised by the services -> {"error": message} with their status code."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")

    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


# Global exception handler to catch ALL exceptions
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch all unhandled exceptions and log them with full traceback."""
    logger.error("=" * 80)
    logger.error("🔥 GLOBAL EXCEPTION HANDLER CAUGHT EXCEPTION")
    logger.error(f"Path: {request.url.path}")
    logger.error(f"Method: {request.method}")
    logger.error("=" * 80, exc_info=exc)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"}
    )


# Pydantic validation error handler
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Catch Pydantic validation errors and log them."""
    logger.warning(f"🔥 VALIDATION ERROR {request.method} {request.url.path}: {exc.errors()}")

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"error": "Invalid request", "detail": jsonable_encoder(exc.errors())}
    )


# CORS configuration - origins come from settings, never "*"
app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.CORS_ORIGINS.split(",") if origin.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Application lifecycle events
@app.on_event("startup")
async def startup_event():
    """
    Initialize services on application startup.
    Firestore connection, then the default admin/moderator accounts.
    """
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    try:
        initialize_firestore()
    except Exception as e:
        logger.warning(f"Firestore initialization failed: {e}")
        logger.warning("The app will start but database operations will return 503.")
        return

    try:
        created = get_user_service().ensure_default_users()
        if created:
            logger.info(f"[STARTUP] Created {created} default user(s)")
    except Exception as e:
        # Fail gracefully - don't block startup
        logger.warning(f"Failed to create default users: {e}")


@app.on_event("shutdown")
async def shutdown_event():
    """
    Cleanup on application shutdown.
    Lets SOS notifications that are still in flight finish.
    """
    await get_sos_service().drain()
    logger.info(f"Shutting down {settings.APP_NAME}")


# Include routers
app.include_router(health.router, prefix=API_PREFIX)
app.include_router(incidents.router, prefix=API_PREFIX)
app.include_router(contacts.router, prefix=API_PREFIX)
app.include_router(stats.router, prefix=API_PREFIX)
app.include_router(auth.router, prefix=API_PREFIX)


# Locally stored incident photos are referenced as /uploads/<name>
if (settings.STORAGE_PROVIDER or "local").lower() == "local":
    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")


# Root endpoint
@app.get("/")
async def root():
    """
    Root endpoint - API information.
    """
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
        "docs": "/docs",
        "health": f"{API_PREFIX}/health",
    }
