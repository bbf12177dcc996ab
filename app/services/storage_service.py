"""Storage service for handling Supabase storage operations."""

from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from app.core.config import settings
from app.core.exceptions import StorageError
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)


class StorageService:
    """Reads and writes contract files in a Supabase storage bucket."""

    def __init__(
        self,
        bucket: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the storage service.

        Args:
            bucket: Bucket name, defaults to ``SUPABASE_STORAGE_BUCKET``
            transport: Optional httpx transport (used to stub Supabase in tests)
        """
        self.url = settings.supabase_url.rstrip("/")
        self.bucket = bucket or settings.storage_bucket
        self.base_api_url = f"{self.url}/storage/v1"
        self.service_role_key = settings.supabase_service_role_key
        self.headers = {
            "Authorization": f"Bearer {self.service_role_key}",
            "apikey": self.service_role_key,
        }
        self.transport = transport

    def _object_url(self, path: str) -> str:
        return f"{self.base_api_url}/object/{self.bucket}/{quote(path)}"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=settings.http_timeout, transport=self.transport)

    async def upload_bytes(
        self,
        path: str,
        content: bytes,
        content_type: str = "application/octet-stream",
    ) -> str:
        """Write ``content`` to ``path`` in the bucket.

        Returns:
            The storage path that was written

        Raises:
            StorageError: If the upload fails
        """
        try:
            async with self._client() as client:
                response = await client.post(
                    self._object_url(path),
                    headers={**self.headers, "Content-Type": content_type, "x-upsert": "false"},
                    content=content,
                )
        except httpx.HTTPError as e:
            LOGGER.error(f"Error uploading file to Supabase: {e}", exc_info=True)
            raise StorageError(f"Storage upload error: {e}", original_error=e) from e

        if response.status_code not in (200, 201):
            LOGGER.error(
                f"Failed to upload file to Supabase: {response.text}",
                extra={"bucket": self.bucket, "path": path, "status_code": response.status_code}
            )
            raise StorageError(f"Upload failed: {response.text}")

        LOGGER.info(f"Uploaded {len(content)} bytes to {self.bucket}/{path}")
        return path

    async def download_text(self, path: str) -> str:
        """Read an object and decode it as UTF-8 (undecodable bytes replaced).

        Raises:
            StorageError: If the download fails
        """
        try:
            async with self._client() as client:
                response = await client.get(self._object_url(path), headers=self.headers)
        except httpx.HTTPError as e:
            LOGGER.error(f"Error downloading file from Supabase: {e}", exc_info=True)
            raise StorageError(f"Failed to download file: {e}", original_error=e) from e

        if response.status_code != 200:
            LOGGER.error(
                f"Failed to download file from Supabase: {response.text}",
                extra={"bucket": self.bucket, "path": path, "status_code": response.status_code}
            )
            raise StorageError("Failed to download file")

        return response.content.decode("utf-8", errors="replace")

    async def create_signed_url(self, path: str, expires_in: int = 3600) -> Dict[str, Any]:
        """Generate a time-limited download URL for an object.

        Raises:
            StorageError: If URL generation fails
        """
        url = f"{self.base_api_url}/object/sign/{self.bucket}/{quote(path)}"
        try:
            async with self._client() as client:
                response = await client.post(url, headers=self.headers, json={"expiresIn": expires_in})
        except httpx.HTTPError as e:
            LOGGER.error(f"Error generating signed URL: {e}", exc_info=True)
            raise StorageError(f"Signed URL error: {e}", original_error=e) from e

        if response.status_code != 200:
            LOGGER.error(
                f"Failed to generate signed URL: {response.text}",
                extra={"bucket": self.bucket, "path": path, "status_code": response.status_code}
            )
            raise StorageError(f"Signed URL generation failed: {response.text}")

        signed_path = response.json().get("signedURL")
        if not signed_path:
            raise StorageError("Supabase response did not contain signedURL")

        # Supabase answers with a path relative to the storage API root
        if signed_path.startswith("/storage/v1"):
            signed_url = f"{self.url}{signed_path}"
        elif signed_path.startswith("/"):
            signed_url = f"{self.base_api_url}{signed_path}"
        else:
            signed_url = signed_path

        return {"signed_url": signed_url, "storage_path": path, "expires_in": expires_in}

    async def delete_object(self, path: str) -> None:
        """Remove an object from the bucket.

        Raises:
            StorageError: If the delete fails
        """
        try:
            async with self._client() as client:
                response = await client.request(
                    "DELETE",
                    f"{self.base_api_url}/object/{self.bucket}",
                    headers=self.headers,
                    json={"prefixes": [path]},
                )
        except httpx.HTTPError as e:
            raise StorageError(f"Storage delete error: {e}", original_error=e) from e

        if response.status_code != 200:
            raise StorageError(f"Delete failed: {response.text}")
