from __future__ import annotations

import pathlib
import sys
from pathlib import Path
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

ROOT_DIR = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from edms.config import OpenAISettings, Settings
from edms.main import create_app
from edms.services.blob_common import StoredBlob, timestamped_name
from edms.services.blob_router import GOOGLE_DRIVE, SUPABASE, BlobRouter
from edms.storage import MemoryStorage, seed_sample_data


class FakeBlobStore:
    """Records uploads instead of talking to a remote service."""

    def __init__(self, storage_type: str, fail: bool = False) -> None:
        self.storage_type = storage_type
        self.fail = fail
        self.uploads: list[dict] = []
        self.deleted: list[str] = []

    def upload(self, path: Path, file_name: str, mime_type: str) -> StoredBlob:
        if self.fail:
            raise RuntimeError(f"{self.storage_type} unavailable")
        key = timestamped_name(file_name)
        self.uploads.append(
            {"path": Path(path), "file_name": file_name, "mime_type": mime_type, "size": Path(path).stat().st_size}
        )
        return StoredBlob(key=key, locator=f"https://{self.storage_type}.test/documents/{key}")

    def delete(self, locator: str) -> None:
        self.deleted.append(locator)


@pytest.fixture()
def blob_stores() -> dict[str, FakeBlobStore]:
    return {SUPABASE: FakeBlobStore(SUPABASE), GOOGLE_DRIVE: FakeBlobStore(GOOGLE_DRIVE)}


@pytest.fixture()
def blob_router(blob_stores: dict[str, FakeBlobStore]) -> BlobRouter:
    return BlobRouter({name: (lambda store=store: store) for name, store in blob_stores.items()})


@pytest.fixture()
def storage() -> MemoryStorage:
    backend = MemoryStorage()
    seed_sample_data(backend)
    return backend


@pytest.fixture()
def app_settings(tmp_path: Path) -> Settings:
    return Settings(
        database_url=None,
        upload_dir=tmp_path / "uploads",
        metrics_enabled=False,
        sentry_dsn=None,
        openai=OpenAISettings(api_key="sk-test"),
    )


@pytest.fixture()
def app(app_settings: Settings, storage: MemoryStorage, blob_router: BlobRouter):
    return create_app(settings=app_settings, storage=storage, blob_router=blob_router)


@pytest.fixture()
def client(app) -> Iterator[TestClient]:
    """Provide a FastAPI TestClient instance."""
    with TestClient(app) as _client:
        yield _client
