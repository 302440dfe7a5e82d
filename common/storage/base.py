"""
Abstract profile asset storage.
"""

from abc import ABC, abstractmethod


class ProfileAssetStore(ABC):
    """Stores profile images and returns their public URL."""

    @abstractmethod
    async def upload_profile_image(self, uid: str, image_bytes: bytes) -> str:
        """
        Upload a profile image for a user.

        Args:
            uid: Provider user id
            image_bytes: Encoded image (JPEG)

        Returns:
            Download URL of the stored image

        Raises:
            StorageError: If the upload fails
        """
        pass


class StorageError(Exception):
    """Raised when an asset cannot be stored."""
