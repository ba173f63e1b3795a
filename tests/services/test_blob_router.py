from __future__ import annotations

from pathlib import Path

import pytest

from edms.config import Settings
from edms.services.blob_common import BlobStorageConfigError
from edms.services.blob_router import (
    GOOGLE_DRIVE,
    SIZE_THRESHOLD_BYTES,
    SUPABASE,
    BlobRouter,
    is_placeholder_locator,
    placeholder_locator,
    select_storage_type,
)


@pytest.fixture()
def sample_file(tmp_path: Path) -> Path:
    path = tmp_path / "beam-calcs.pdf"
    path.write_bytes(b"%PDF-1.4\nbeam")
    return path


def test_threshold_boundary():
    assert SIZE_THRESHOLD_BYTES == 10_485_760
    assert select_storage_type(10_485_759) == SUPABASE
    assert select_storage_type(10_485_760) == GOOGLE_DRIVE
    assert select_storage_type(0) == SUPABASE


def test_route_small_file_to_supabase(blob_router, blob_stores, sample_file):
    routed = blob_router.route(sample_file, "beam-calcs.pdf", "application/pdf")
    assert routed.stored is True
    assert routed.storage_type == SUPABASE
    assert routed.locator.startswith("https://supabase.test/documents/")
    assert routed.locator.endswith("-beam-calcs.pdf")
    assert blob_stores[SUPABASE].uploads[0]["mime_type"] == "application/pdf"


def test_route_uses_declared_size(blob_router, blob_stores, sample_file):
    routed = blob_router.route(sample_file, "survey.tif", "image/tiff", size_bytes=SIZE_THRESHOLD_BYTES)
    assert routed.storage_type == GOOGLE_DRIVE
    assert len(blob_stores[GOOGLE_DRIVE].uploads) == 1
    assert blob_stores[SUPABASE].uploads == []


def test_route_failure_returns_placeholder(blob_router, blob_stores, sample_file):
    blob_stores[SUPABASE].fail = True
    routed = blob_router.route(sample_file, "beam-calcs.pdf", "application/pdf")
    assert routed.stored is False
    assert routed.locator == "supabase://documents/beam-calcs.pdf"
    assert "unavailable" in routed.error
    assert is_placeholder_locator(routed.locator)


def test_missing_credentials_degrade_to_placeholder(sample_file):
    def unconfigured():
        raise BlobStorageConfigError("Supabase credentials not configured")

    router = BlobRouter({SUPABASE: unconfigured})
    routed = router.route(sample_file, "beam-calcs.pdf", "application/pdf")
    assert routed.stored is False
    assert routed.locator == placeholder_locator(SUPABASE, "beam-calcs.pdf")


def test_stores_are_built_once(sample_file, blob_stores):
    built = []

    def factory():
        built.append(1)
        return blob_stores[SUPABASE]

    router = BlobRouter({SUPABASE: factory})
    router.route(sample_file, "a.pdf", "application/pdf")
    router.route(sample_file, "b.pdf", "application/pdf")
    assert built == [1]


def test_delete_skips_placeholders(blob_router, blob_stores):
    assert blob_router.delete("supabase://documents/a.pdf", SUPABASE) is False
    assert blob_router.delete("https://supabase.test/documents/1-a.pdf", SUPABASE) is True
    assert blob_stores[SUPABASE].deleted == ["https://supabase.test/documents/1-a.pdf"]


def test_from_settings_without_credentials(sample_file, monkeypatch):
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_KEY", raising=False)
    router = BlobRouter.from_settings(Settings(database_url=None))
    routed = router.route(sample_file, "beam-calcs.pdf", "application/pdf", size_bytes=10)
    assert routed.stored is False
    assert routed.locator == "supabase://documents/beam-calcs.pdf"
