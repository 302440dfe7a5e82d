"""
Firebase Storage client for profile images.

Uploads through the Firebase Storage REST endpoint using the signed-in
user's ID token, and returns a tokenized download URL.

Example:
    store = FirebaseStorageAssetStore(settings, http_client, auth.current_id_token)
    url = await store.upload_profile_image(uid, jpeg_bytes)
"""

import logging
from typing import Callable, Optional
from urllib.parse import quote

import httpx

from common.config.base_settings import AuthSettings
from common.storage.base import ProfileAssetStore, StorageError

logger = logging.getLogger(__name__)


class FirebaseStorageAssetStore(ProfileAssetStore):
    """Profile image storage backed by a Firebase Storage bucket."""

    PROFILE_IMAGE_FOLDER = "profile_images"
    CONTENT_TYPE = "image/jpeg"

    def __init__(
        self,
        settings: AuthSettings,
        http_client: httpx.AsyncClient,
        id_token: Callable[[], Optional[str]],
    ):
        """
        Initialize the store.

        Args:
            settings: Resolved settings (bucket, storage URL)
            http_client: Shared async HTTP client
            id_token: Returns the current user's Firebase ID token
        """
        if not settings.FIREBASE_STORAGE_BUCKET:
            raise ValueError(
                "Firebase storage bucket is required for uploads. "
                "Set FIREBASE_STORAGE_BUCKET environment variable."
            )

        self._bucket_url = (
            f"{settings.FIREBASE_STORAGE_URL.rstrip('/')}/{settings.FIREBASE_STORAGE_BUCKET}/o"
        )
        self._client = http_client
        self._id_token = id_token

    async def upload_profile_image(self, uid: str, image_bytes: bytes) -> str:
        if not image_bytes:
            raise StorageError("Image is empty")

        object_name = f"{self.PROFILE_IMAGE_FOLDER}/{uid}.jpg"
        headers = {"Content-Type": self.CONTENT_TYPE}

        token = self._id_token()
        if token:
            headers["Authorization"] = f"Firebase {token}"

        try:
            response = await self._client.post(
                self._bucket_url,
                params={"uploadType": "media", "name": object_name},
                content=image_bytes,
                headers=headers,
            )
        except httpx.TransportError as e:
            logger.warning(f"Profile image upload failed for {uid}: {e}")
            raise StorageError(f"Upload failed: {e}") from e

        if response.status_code != 200:
            logger.warning(
                f"Profile image upload rejected for {uid}: HTTP {response.status_code}"
            )
            raise StorageError(f"Upload rejected with HTTP {response.status_code}")

        data = response.json()
        download_token = (data.get("downloadTokens") or "").split(",")[0]

        url = f"{self._bucket_url}/{quote(object_name, safe='')}?alt=media"
        if download_token:
            url = f"{url}&token={download_token}"

        logger.info(f"Profile image uploaded for {uid}")
        return url
