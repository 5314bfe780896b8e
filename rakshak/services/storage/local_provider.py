import logging
import os

from .base import ImageUpload, StorageProvider, build_object_name

logger = logging.getLogger(__name__)


class LocalStorageProvider(StorageProvider):
    """
    Stores images under UPLOAD_DIR.

    References look like "/uploads/<name>", which is where main.py mounts
    the directory for static serving.
    """

    URL_PREFIX = "/uploads/"

    def __init__(self, upload_dir: str, max_bytes: int):
        super().__init__(max_bytes)
        self.upload_dir = upload_dir
        os.makedirs(self.upload_dir, exist_ok=True)

    def _path_for(self, reference: str) -> str:
        # basename() keeps a crafted reference from escaping the upload dir
        return os.path.join(self.upload_dir, os.path.basename(reference))

    def save(self, upload: ImageUpload) -> str:
        self.validate(upload)

        name = build_object_name(upload.filename)
        with open(os.path.join(self.upload_dir, name), "wb") as f:
            f.write(upload.data)

        logger.info(f"Image stored: {name} ({len(upload.data)} bytes)")
        return f"{self.URL_PREFIX}{name}"

    def delete(self, reference: str) -> bool:
        if not reference:
            return False

        path = self._path_for(reference)
        if not os.path.exists(path):
            logger.info(f"Image already gone, nothing to delete: {reference}")
            return False

        os.remove(path)
        logger.info(f"Image deleted: {reference}")
        return True
