"""
Storage module - Profile asset storage contract and Firebase Storage client.
"""

from common.storage.base import ProfileAssetStore, StorageError
from common.storage.firebase_storage import FirebaseStorageAssetStore

__all__ = ["ProfileAssetStore", "StorageError", "FirebaseStorageAssetStore"]
