from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urlparse

from supabase import Client, create_client

from ..config import SupabaseSettings
from .blob_common import BlobStorageConfigError, StoredBlob, timestamped_name

logger = logging.getLogger(__name__)


class SupabaseBlobStore:
    """Uploads files into a Supabase Storage bucket and hands back public URLs."""

    storage_type = "supabase"

    def __init__(self, settings: SupabaseSettings, client: Optional[Client] = None) -> None:
        if client is None and not (settings.url and settings.key):
            raise BlobStorageConfigError("Supabase credentials not configured")
        self.bucket = settings.bucket
        self._client = client or create_client(settings.url, settings.key)
        self._bucket_ready = False

    def _ensure_bucket(self) -> None:
        if self._bucket_ready:
            return
        existing = {bucket.name for bucket in self._client.storage.list_buckets()}
        if self.bucket not in existing:
            logger.info("supabase_bucket_create bucket=%s", self.bucket)
            self._client.storage.create_bucket(self.bucket, options={"public": True})
        self._bucket_ready = True

    def upload(self, path: Path, file_name: str, mime_type: str) -> StoredBlob:
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")

        self._ensure_bucket()
        object_name = timestamped_name(file_name, sanitize=True)
        bucket = self._client.storage.from_(self.bucket)
        bucket.upload(
            path=object_name,
            file=path.read_bytes(),
            file_options={"content-type": mime_type, "cache-control": "3600"},
        )
        public_url = bucket.get_public_url(object_name)
        return StoredBlob(key=object_name, locator=public_url)

    def delete(self, locator: str) -> None:
        object_name = self.object_name_from_url(locator)
        if not object_name:
            raise ValueError(f"Could not extract object name from {locator!r}")
        self._client.storage.from_(self.bucket).remove([object_name])

    def object_name_from_url(self, locator: str) -> Optional[str]:
        path = urlparse(locator).path
        marker = f"/{self.bucket}/"
        if marker not in path:
            return None
        return unquote(path.split(marker, 1)[1]) or None
