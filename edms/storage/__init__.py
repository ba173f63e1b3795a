from __future__ import annotations

import logging

from ..config import Settings
from .base import StorageBackend, format_bytes
from .memory import MemoryStorage
from .records import DocumentRecord, ProjectRecord, Stats, UserRecord
from .samples import seed_sample_data
from .sql import SqlStorage

logger = logging.getLogger(__name__)


def create_storage(settings: Settings) -> StorageBackend:
    """Pick the backend once at start-up: relational when a database is configured."""
    if settings.database_url:
        logger.info("storage_backend_selected backend=sql")
        return SqlStorage.from_url(settings.database_url)

    logger.info("storage_backend_selected backend=memory")
    storage = MemoryStorage()
    seed_sample_data(storage)
    return storage


__all__ = [
    "DocumentRecord",
    "MemoryStorage",
    "ProjectRecord",
    "SqlStorage",
    "Stats",
    "StorageBackend",
    "UserRecord",
    "create_storage",
    "format_bytes",
    "seed_sample_data",
]
