"""Size-based routing of uploaded bytes to Supabase or Google Drive.

Uploads never fail from the caller's point of view: when a store errors the
router logs it and returns a ``<storage_type>://documents/<name>`` placeholder
with ``stored=False`` on the result.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Optional, Protocol

from ..config import Settings
from .blob_common import StoredBlob

logger = logging.getLogger(__name__)

SIZE_THRESHOLD_BYTES = 10 * 1024 * 1024

SUPABASE = "supabase"
GOOGLE_DRIVE = "googledrive"


class BlobStore(Protocol):
    storage_type: str

    def upload(self, path: Path, file_name: str, mime_type: str) -> StoredBlob: ...

    def delete(self, locator: str) -> None: ...


@dataclass
class RoutedUpload:
    locator: str
    storage_type: str
    stored: bool
    error: Optional[str] = None


def select_storage_type(size_bytes: int) -> str:
    return SUPABASE if size_bytes < SIZE_THRESHOLD_BYTES else GOOGLE_DRIVE


def placeholder_locator(storage_type: str, file_name: str) -> str:
    return f"{storage_type}://documents/{file_name}"


def is_placeholder_locator(locator: str) -> bool:
    return locator.startswith((f"{SUPABASE}://", f"{GOOGLE_DRIVE}://"))


class BlobRouter:
    def __init__(self, store_factories: Dict[str, Callable[[], BlobStore]]) -> None:
        self._factories = dict(store_factories)
        self._stores: Dict[str, BlobStore] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "BlobRouter":
        from .google_drive import GoogleDriveBlobStore
        from .supabase_storage import SupabaseBlobStore

        return cls(
            {
                SUPABASE: lambda: SupabaseBlobStore(settings.supabase),
                GOOGLE_DRIVE: lambda: GoogleDriveBlobStore(settings.google_drive),
            }
        )

    def _store(self, storage_type: str) -> BlobStore:
        with self._lock:
            store = self._stores.get(storage_type)
            if store is None:
                factory = self._factories.get(storage_type)
                if factory is None:
                    raise KeyError(f"No blob store registered for {storage_type!r}")
                store = factory()
                self._stores[storage_type] = store
            return store

    def route(self, path: Path, file_name: str, mime_type: str, size_bytes: Optional[int] = None) -> RoutedUpload:
        path = Path(path)
        if size_bytes is None:
            size_bytes = path.stat().st_size
        storage_type = select_storage_type(size_bytes)

        try:
            stored = self._store(storage_type).upload(path, file_name, mime_type)
        except Exception as exc:
            logger.warning(
                "blob_upload_failed storage_type=%s file_name=%s error=%s",
                storage_type,
                file_name,
                exc,
                exc_info=True,
            )
            return RoutedUpload(
                locator=placeholder_locator(storage_type, file_name),
                storage_type=storage_type,
                stored=False,
                error=str(exc),
            )

        logger.info(
            "blob_upload_complete storage_type=%s key=%s bytes=%s",
            storage_type,
            stored.key,
            size_bytes,
        )
        return RoutedUpload(locator=stored.locator, storage_type=storage_type, stored=True)

    def delete(self, locator: str, storage_type: str) -> bool:
        """Best-effort removal of stored bytes; placeholders have nothing to remove."""
        if not locator or is_placeholder_locator(locator):
            return False
        try:
            self._store(storage_type).delete(locator)
        except Exception:
            logger.warning("blob_delete_failed storage_type=%s locator=%s", storage_type, locator, exc_info=True)
            return False
        logger.info("blob_delete_complete storage_type=%s", storage_type)
        return True
