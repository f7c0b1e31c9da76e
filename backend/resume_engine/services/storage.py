"""
Blob Storage Service

Raw uploaded documents live in an object store keyed by storage path.
The pipeline only needs get() and exists(); the upload endpoint uses put().
"""
import os
import re
import time
import logging
from functools import lru_cache
from typing import Optional

import aiofiles
import httpx

from ..config import get_settings

logger = logging.getLogger(__name__)


class BlobStoreError(Exception):
    """Raised when a storage operation fails or the object is missing."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


def build_storage_path(user_id: int, filename: str) -> str:
    """Build a unique storage path: user_<id>/<timestamp>_<sanitized name>"""
    safe_filename = re.sub(r"[^a-zA-Z0-9._-]", "_", filename or "resume")
    safe_filename = re.sub(r"_+", "_", safe_filename)
    return f"user_{user_id}/{int(time.time() * 1000)}_{safe_filename}"


class BlobStore:
    """Interface for the opaque blob store."""

    async def get(self, path: str) -> bytes:
        raise NotImplementedError

    async def exists(self, path: str) -> bool:
        raise NotImplementedError

    async def put(self, path: str, content: bytes, content_type: str) -> str:
        raise NotImplementedError


class LocalBlobStore(BlobStore):
    """Stores blobs on the local filesystem under base_dir."""

    def __init__(self, base_dir: str):
        self.base_dir = os.path.abspath(base_dir)

    def _resolve(self, path: str) -> str:
        full_path = os.path.abspath(os.path.join(self.base_dir, path.lstrip("/")))
        if os.path.commonpath([full_path, self.base_dir]) != self.base_dir:
            raise BlobStoreError(f"Storage path escapes base directory: {path}", path)
        return full_path

    async def get(self, path: str) -> bytes:
        full_path = self._resolve(path)
        if not os.path.isfile(full_path):
            raise BlobStoreError(f"Object not found: {path}", path)
        async with aiofiles.open(full_path, "rb") as f:
            return await f.read()

    async def exists(self, path: str) -> bool:
        return os.path.isfile(self._resolve(path))

    async def put(self, path: str, content: bytes, content_type: str) -> str:
        full_path = self._resolve(path)
        os.makedirs(os.path.dirname(full_path), exist_ok=True)
        async with aiofiles.open(full_path, "wb") as f:
            await f.write(content)
        logger.info(f"[STORAGE] Saved {len(content)} bytes to local storage: {path}")
        return path


class SupabaseBlobStore(BlobStore):
    """
    Supabase Storage over its REST API.

    Uploads send an explicit Content-Length; downloads use the service role key
    so private buckets work.
    """

    def __init__(
        self,
        supabase_url: str,
        service_key: str,
        bucket: str,
        timeout: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not supabase_url or not service_key:
            raise BlobStoreError("Supabase configuration missing")
        self.supabase_url = supabase_url.rstrip("/")
        self.service_key = service_key
        self.bucket = bucket
        self.timeout = timeout
        self._transport = transport

    def _object_url(self, path: str) -> str:
        return f"{self.supabase_url}/storage/v1/object/{self.bucket}/{path.lstrip('/')}"

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.service_key}",
            "apikey": self.service_key,
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def get(self, path: str) -> bytes:
        try:
            async with self._client() as client:
                response = await client.get(self._object_url(path), headers=self._headers())
        except httpx.TimeoutException:
            raise BlobStoreError(f"Download timeout for {path}", path)
        except httpx.HTTPError as e:
            raise BlobStoreError(f"Download failed for {path}: {e}", path)

        if response.status_code == 404:
            raise BlobStoreError(f"Object not found: {path}", path)
        if response.status_code != 200:
            error_detail = response.text[:500] if response.text else "Unknown error"
            raise BlobStoreError(
                f"Supabase download failed ({response.status_code}): {error_detail}", path
            )
        return response.content

    async def exists(self, path: str) -> bool:
        try:
            async with self._client() as client:
                response = await client.head(self._object_url(path), headers=self._headers())
        except httpx.HTTPError as e:
            raise BlobStoreError(f"Existence check failed for {path}: {e}", path)
        return response.status_code == 200

    async def put(self, path: str, content: bytes, content_type: str) -> str:
        headers = {
            **self._headers(),
            "Content-Type": content_type or "application/octet-stream",
            "Content-Length": str(len(content)),
            "x-upsert": "false",
        }
        try:
            async with self._client() as client:
                response = await client.post(self._object_url(path), headers=headers, content=content)
        except httpx.TimeoutException:
            raise BlobStoreError("Upload timeout - file too large or slow connection", path)
        except httpx.HTTPError as e:
            raise BlobStoreError(f"Upload failed: {e}", path)

        if response.status_code not in (200, 201):
            error_detail = response.text[:500] if response.text else "Unknown error"
            raise BlobStoreError(
                f"Supabase upload failed ({response.status_code}): {error_detail}", path
            )
        logger.info(f"[STORAGE] Uploaded {len(content)} bytes to Supabase: {self.bucket}/{path}")
        return path


@lru_cache()
def get_blob_store() -> BlobStore:
    """Build the configured blob store (one per process)."""
    settings = get_settings()
    if settings.storage_backend == "supabase":
        return SupabaseBlobStore(
            supabase_url=settings.supabase_url,
            service_key=settings.supabase_service_role_key,
            bucket=settings.storage_bucket,
        )
    return LocalBlobStore(settings.local_storage_dir)
