import logging
from typing import Optional

from rakshak.core.settings import settings
from .base import StorageProvider
from .local_provider import LocalStorageProvider

logger = logging.getLogger(__name__)

_provider_instance: Optional[StorageProvider] = None


def get_storage_provider() -> StorageProvider:
    """
    Resolve the active image store based on settings.

    Rules:
    - Default: local disk under UPLOAD_DIR.
    - If STORAGE_PROVIDER='firebase' AND FIREBASE_STORAGE_BUCKET is set:
      - Try Firebase Storage; if initialization fails, fall back to local disk.
    """
    global _provider_instance
    if _provider_instance is not None:
        return _provider_instance

    provider_name = (settings.STORAGE_PROVIDER or "local").lower()

    if provider_name == "firebase":
        if settings.FIREBASE_STORAGE_BUCKET:
            try:
                from .firebase_provider import FirebaseStorageProvider
                _provider_instance = FirebaseStorageProvider(
                    bucket_name=settings.FIREBASE_STORAGE_BUCKET,
                    max_bytes=settings.MAX_UPLOAD_BYTES,
                )
                logger.info("Storage provider initialized: firebase")
                return _provider_instance
            except Exception as e:
                logger.warning(f"Failed to initialize FirebaseStorageProvider: {e}. Falling back to local disk.")
        else:
            logger.warning("STORAGE_PROVIDER=firebase but FIREBASE_STORAGE_BUCKET is not set. Using local disk.")

    _provider_instance = LocalStorageProvider(
        upload_dir=settings.UPLOAD_DIR,
        max_bytes=settings.MAX_UPLOAD_BYTES,
    )
    logger.info("Storage provider initialized: local")
    return _provider_instance
