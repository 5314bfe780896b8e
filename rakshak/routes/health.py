"""
Liveness and readiness checks.
"""

from fastapi import APIRouter
from rakshak.config.firebase import get_db_or_none
from rakshak.core.exceptions import ServiceUnavailableError
from rakshak.core.settings import settings
from datetime import datetime, timezone


router = APIRouter(prefix="/health", tags=["Health"])


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("")
async def health_check():
    """
    Process is up. Also reports which providers were configured, which helps
    when an SOS "succeeds" but nobody got a message (mock messaging).
    """
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "providers": {
            "database": "mock" if settings.USE_MOCK_DB else "firestore",
            "storage": settings.STORAGE_PROVIDER,
            "messaging": settings.MESSAGING_PROVIDER,
        },
        "timestamp": _now(),
    }


@router.get("/db")
async def database_health():
    """
    Readiness: 200 when the document store answers, 503 otherwise.
    """
    db = get_db_or_none()
    if db is None:
        raise ServiceUnavailableError("Database not available. Please try again later.")

    try:
        collections = [collection.id for collection in db.collections()]
    except Exception as e:
        raise ServiceUnavailableError(f"Database connection failed: {e}")

    return {
        "status": "healthy",
        "connected": True,
        "collections": sorted(collections),
        "timestamp": _now(),
    }
