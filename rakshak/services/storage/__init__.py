"""
Image storage for incident photos.

Local disk by default; Firebase Storage when STORAGE_PROVIDER=firebase.
"""

from rakshak.services.storage.base import ImageUpload, StorageProvider
from rakshak.services.storage.local_provider import LocalStorageProvider
from rakshak.services.storage.firebase_provider import FirebaseStorageProvider
from rakshak.services.storage.resolver import get_storage_provider

__all__ = [
    "ImageUpload",
    "StorageProvider",
    "LocalStorageProvider",
    "FirebaseStorageProvider",
    "get_storage_provider",
]
