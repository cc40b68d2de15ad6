"""
Storage Client

Uploads files to Supabase Storage buckets and builds public URLs.
"""

from typing import TYPE_CHECKING, Optional

from ..core.logging import get_logger
from .responses import raise_for_status

if TYPE_CHECKING:
    from .client import SupabaseClient

logger = get_logger(__name__)


class StorageClient:
    """Object storage under /storage/v1."""

    def __init__(self, client: "SupabaseClient"):
        self._client = client

    async def upload(
        self,
        bucket: str,
        path: str,
        content: bytes,
        content_type: str = "application/octet-stream",
        upsert: bool = True,
    ) -> str:
        """
        Upload a file to a bucket.

        Args:
            bucket: Storage bucket name
            path: Object path inside the bucket
            content: File content as bytes
            content_type: MIME type
            upsert: Overwrite an existing object at the same path

        Returns:
            The object path

        Raises:
            BackendError: if the upload is rejected
        """
        response = await self._client.request(
            "POST",
            f"/storage/v1/object/{bucket}/{path}",
            content=content,
            headers={
                "Content-Type": content_type,
                "x-upsert": "true" if upsert else "false",
            },
            timeout=self._client.settings.upload_timeout,
        )

        if not response.is_success:
            logger.error(
                "supabase_upload_failed",
                bucket=bucket,
                path=path,
                status=response.status_code,
                error=response.text[:200],
            )
        raise_for_status(response)

        logger.info(
            "supabase_upload_success",
            bucket=bucket,
            path=path,
            size=len(content),
        )
        return path

    def get_public_url(self, bucket: str, path: str, cache_bust: Optional[str] = None) -> str:
        """Public URL of an object in a public bucket."""
        url = f"{self._client.url}/storage/v1/object/public/{bucket}/{path}"
        if cache_bust:
            url += f"?v={cache_bust}"
        return url
