"""
Object storage for rendered documents (Supabase Storage).

Objects are keyed ``{user_id}/{document_id}.{format}``.  The supabase client
is synchronous, so every call runs in a worker thread; failures raise
``StorageError``.
"""
from __future__ import annotations

import asyncio
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

import aiofiles
from supabase import Client, create_client

from app.config import settings

logger = logging.getLogger(__name__)

CONTENT_TYPES = {
    "pdf": "application/pdf",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}


class StorageError(Exception):
    """Upload or removal of a stored object failed."""


def object_key(user_id: str, document_id: str, fmt: str) -> str:
    return f"{user_id}/{document_id}.{fmt}"


@lru_cache(maxsize=1)
def get_supabase() -> Client:
    """Cached service-role client; raises StorageError when it cannot be built."""
    try:
        return create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)
    except Exception as exc:
        raise StorageError(f"Failed to initialize Supabase client: {exc}") from exc


class ObjectStorage:
    def __init__(self, client: Optional[Any] = None, bucket: Optional[str] = None) -> None:
        self._client = client
        self.bucket = bucket or settings.STORAGE_BUCKET

    @property
    def configured(self) -> bool:
        return self._client is not None or settings.storage_configured

    def _bucket(self):
        client = self._client if self._client is not None else get_supabase()
        return client.storage.from_(self.bucket)

    def public_url(self, key: str) -> str:
        return self._bucket().get_public_url(key)

    async def upload(self, path: Path, key: str, fmt: str) -> str:
        """Upload the file at *path* under *key*; returns its public URL."""
        async with aiofiles.open(path, "rb") as fh:
            data = await fh.read()

        options = {
            "content-type": CONTENT_TYPES.get(fmt, "application/octet-stream"),
            "upsert": "true",
        }
        try:
            bucket = self._bucket()
            await asyncio.to_thread(bucket.upload, path=key, file=data, file_options=options)
            url = bucket.get_public_url(key)
        except Exception as exc:
            logger.error("Upload of %s failed: %s", key, exc)
            raise StorageError(f"Upload failed: {exc}") from exc

        logger.info("Uploaded %s (%d bytes)", key, len(data))
        return url

    async def remove(self, key: str) -> None:
        # Removing a key that is already gone is not an error.
        try:
            await asyncio.to_thread(self._bucket().remove, [key])
        except Exception as exc:
            logger.error("Removal of %s failed: %s", key, exc)
            raise StorageError(f"Removal failed: {exc}") from exc
        logger.info("Removed stored object %s", key)
