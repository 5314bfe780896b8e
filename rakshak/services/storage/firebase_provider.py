import logging
import posixpath
from typing import Optional
from urllib.parse import unquote, urlparse

from firebase_admin import storage

from rakshak.config.firebase import initialize_firebase_app
from .base import ImageUpload, StorageProvider, build_object_name

logger = logging.getLogger(__name__)


class FirebaseStorageProvider(StorageProvider):
    """
    Stores images in a Firebase Storage bucket under "uploads/".

    - Objects are made public so the web client can render them directly.
    - The public URL is the reference kept on the incident.
    """

    FOLDER = "uploads"

    def __init__(self, bucket_name: Optional[str], max_bytes: int):
        super().__init__(max_bytes)
        initialize_firebase_app()
        self.bucket = storage.bucket(bucket_name)

    def save(self, upload: ImageUpload) -> str:
        self.validate(upload)

        blob = self.bucket.blob(f"{self.FOLDER}/{build_object_name(upload.filename)}")
        blob.upload_from_string(upload.data, content_type=upload.content_type)
        blob.make_public()

        logger.info(f"Image uploaded to bucket {self.bucket.name}: {blob.name}")
        return blob.public_url

    def _object_name(self, reference: str) -> str:
        name = posixpath.basename(unquote(urlparse(reference).path))
        return f"{self.FOLDER}/{name}"

    def delete(self, reference: str) -> bool:
        if not reference:
            return False

        blob = self.bucket.blob(self._object_name(reference))
        if not blob.exists():
            logger.info(f"Image already gone, nothing to delete: {reference}")
            return False

        blob.delete()
        logger.info(f"Image deleted from bucket {self.bucket.name}: {blob.name}")
        return True
