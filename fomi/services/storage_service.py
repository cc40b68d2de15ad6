"""
Storage Service

Photo uploads for reviews, avatars and list covers.

Paths:
- review-photos/{userId}/{reviewId}_{n}.{ext}   (n starts at 1)
- profile-photos/{userId}/avatar.{ext}
- list-covers/{userId}/{listId}_cover.{ext}
"""

import mimetypes
import time
from typing import List, Optional, Sequence

from ..backend import SupabaseClient
from ..core.exceptions import BackendError
from ..core.logging import get_logger
from ..models.review import PhotoUpload

logger = get_logger(__name__)


def review_photo_path(user_id: str, review_id: str, index: int, photo: PhotoUpload) -> str:
    """Object path of the photo at zero-based `index`."""
    return f"{user_id}/{review_id}_{index + 1}.{photo.extension}"


def _content_type(photo: PhotoUpload) -> str:
    return photo.content_type or mimetypes.guess_type(photo.filename)[0] or "image/jpeg"


class StorageService:
    """Uploads raise BackendError unless stated otherwise."""

    def __init__(self, client: SupabaseClient):
        self.client = client
        self.settings = client.settings

    async def _upload(self, bucket: str, path: str, photo: PhotoUpload) -> str:
        await self.client.storage.upload(
            bucket,
            path,
            photo.content,
            content_type=_content_type(photo),
            upsert=True,
        )
        return self.client.storage.get_public_url(bucket, path)

    async def upload_review_photo(
        self,
        user_id: str,
        review_id: str,
        photo: PhotoUpload,
        index: int,
    ) -> str:
        path = review_photo_path(user_id, review_id, index, photo)
        return await self._upload(self.settings.review_photos_bucket, path, photo)

    async def upload_review_photos(
        self,
        user_id: str,
        review_id: str,
        photos: Sequence[PhotoUpload],
    ) -> List[Optional[str]]:
        """
        Upload photos in input order.

        Returns one public URL per input photo, None where the upload failed.
        """
        urls: List[Optional[str]] = []
        for index, photo in enumerate(photos):
            try:
                urls.append(await self.upload_review_photo(user_id, review_id, photo, index))
            except BackendError as e:
                logger.error(
                    "review_photo_upload_failed",
                    review_id=review_id,
                    filename=photo.filename,
                    error=e.message,
                )
                urls.append(None)
        return urls

    async def upload_profile_photo(self, user_id: str, photo: PhotoUpload) -> str:
        """Upload an avatar; the URL is cache-busted since the path is reused."""
        path = f"{user_id}/avatar.{photo.extension}"
        bucket = self.settings.profile_photos_bucket
        await self.client.storage.upload(
            bucket, path, photo.content, content_type=_content_type(photo), upsert=True
        )
        return self.client.storage.get_public_url(bucket, path, cache_bust=str(int(time.time())))

    async def upload_list_cover(self, user_id: str, list_id: str, photo: PhotoUpload) -> str:
        path = f"{user_id}/{list_id}_cover.{photo.extension}"
        return await self._upload(self.settings.list_covers_bucket, path, photo)
