from abc import ABC, abstractmethod
from dataclasses import dataclass
import logging
import os
import time
import uuid

from rakshak.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = ("jpeg", "jpg", "png", "gif")


@dataclass
class ImageUpload:
    filename: str
    content_type: str
    data: bytes


class StorageProvider(ABC):
    """
    Abstract image store.

    Contract:
    - save(upload) validates the upload, stores it and returns a reference
      string that is kept on the incident (path or URL).
    - delete(reference) removes the stored file. Returns False when there was
      nothing to delete; missing files are not an error.
    - Rejected uploads raise ValidationError.
    """

    def __init__(self, max_bytes: int):
        self.max_bytes = max_bytes

    def validate(self, upload: ImageUpload) -> None:
        extension = os.path.splitext(upload.filename or "")[1].lower().lstrip(".")
        content_type = (upload.content_type or "").lower()

        # Both the extension and the MIME type must look like an image
        if extension not in ALLOWED_IMAGE_TYPES or not any(t in content_type for t in ALLOWED_IMAGE_TYPES):
            raise ValidationError("Only image files are allowed!")

        if len(upload.data) > self.max_bytes:
            raise ValidationError(f"Image exceeds the {self.max_bytes // (1024 * 1024)}MB size limit")

    @abstractmethod
    def save(self, upload: ImageUpload) -> str:
        raise NotImplementedError

    @abstractmethod
    def delete(self, reference: str) -> bool:
        raise NotImplementedError


def build_object_name(filename: str) -> str:
    """<epoch-millis>-<uuid4><ext>, so names never collide or leak user input."""
    extension = os.path.splitext(filename or "")[1].lower()
    return f"{int(time.time() * 1000)}-{uuid.uuid4()}{extension}"
