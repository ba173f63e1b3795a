from __future__ import annotations

from datetime import datetime, timezone

import pytest

from edms.config import Settings
from edms.storage import MemoryStorage, SqlStorage, create_storage, format_bytes, seed_sample_data


@pytest.fixture(params=["memory", "sql"])
def backend(request):
    if request.param == "memory":
        storage = MemoryStorage()
    else:
        storage = SqlStorage.from_url("sqlite://")
        storage.create_schema()
    seed_sample_data(storage)
    yield storage
    storage.close()


def _document(**overrides) -> dict:
    payload = {
        "name": "Floor plan",
        "description": None,
        "type": "PDF",
        "project_id": 1,
        "user_id": 1,
        "file_path": "https://supabase.test/documents/plan.pdf",
        "storage_type": "supabase",
        "file_size": 2048,
        "mime_type": "application/pdf",
    }
    payload.update(overrides)
    return payload


def test_seed_is_applied_once(backend):
    assert backend.get_user_by_username("admin").role == "admin"
    assert seed_sample_data(backend) is False
    assert len(backend.get_projects()) == 3


def test_create_user_defaults_role(backend):
    user = backend.create_user({"username": "surveyor", "password": "pw", "full_name": "Site Surveyor"})
    assert user.role == "user"
    assert backend.get_user(user.id).username == "surveyor"
    assert backend.get_user(999) is None


def test_project_update_only_touches_mutable_fields(backend):
    project = backend.create_project({"name": "Depot", "location": "Medan"})
    updated = backend.update_project(
        project.id,
        {"status": "completed", "id": 77, "created_at": datetime(2000, 1, 1, tzinfo=timezone.utc)},
    )
    assert updated.id == project.id
    assert updated.status == "completed"
    assert updated.created_at == project.created_at
    assert updated.updated_at > project.updated_at
    assert backend.get_project(project.id).status == "completed"


def test_update_missing_entities_returns_none(backend):
    assert backend.update_project(999, {"name": "x"}) is None
    assert backend.update_document(999, {"name": "x"}) is None


def test_recent_projects_order_by_last_update(backend):
    oldest = backend.get_projects()[-1]
    backend.update_project(oldest.id, {"description": "touched"})
    recent = backend.get_recent_projects(2)
    assert [p.id for p in recent][0] == oldest.id
    assert len(recent) == 2


def test_recent_documents_newest_first(backend):
    ids = [backend.create_document(_document(name=f"doc {i}")).id for i in range(4)]
    recent = backend.get_recent_documents(2)
    assert [d.id for d in recent] == [ids[3], ids[2]]


def test_documents_filter_by_project_and_user(backend):
    backend.create_document(_document(project_id=1))
    backend.create_document(_document(project_id=2))
    backend.create_document(_document(project_id=None, user_id=2))

    assert [d.project_id for d in backend.get_documents_by_project(2)] == [2]
    assert len(backend.get_documents_by_user(1)) == 2
    assert len(backend.get_documents()) == 3


def test_delete_document_twice(backend):
    document = backend.create_document(_document())
    assert backend.delete_document(document.id) is True
    assert backend.delete_document(document.id) is False
    assert backend.get_document(document.id) is None


def test_ids_are_not_reused(backend):
    first = backend.create_document(_document())
    backend.delete_document(first.id)
    second = backend.create_document(_document())
    assert second.id > first.id


def test_delete_project_detaches_documents(backend):
    document = backend.create_document(_document(project_id=2))
    assert backend.delete_project(2) is True
    assert backend.delete_project(2) is False
    assert backend.get_document(document.id).project_id is None


def test_update_document_analysis(backend):
    document = backend.create_document(_document())
    assert document.is_analyzed is False
    assert document.analysis is None

    analysis = {"summary": "Ground floor layout", "keywords": ["plan"], "category": "plan"}
    updated = backend.update_document_analysis(document.id, analysis)
    assert updated.is_analyzed is True
    assert updated.analysis["summary"] == "Ground floor layout"
    assert updated.updated_at > document.updated_at

    stored = backend.get_document(document.id)
    assert stored.is_analyzed is True
    assert stored.analysis == analysis


def test_update_document_analysis_for_missing_document(backend):
    assert backend.update_document_analysis(999, {"summary": "late"}) is None


def test_update_document_analysis_requires_payload(backend):
    document = backend.create_document(_document())
    with pytest.raises(ValueError):
        backend.update_document_analysis(document.id, None)


def test_returned_records_are_copies(backend):
    document = backend.create_document(_document())
    document.name = "mutated"
    assert backend.get_document(document.id).name == "Floor plan"


def test_stats(backend):
    stats = backend.get_stats()
    assert stats.total_documents == 0
    assert stats.active_projects == 2
    assert stats.storage == "0 Bytes"

    backend.create_document(_document(file_size=1_048_576))
    stats = backend.get_stats()
    assert stats.total_documents == 1
    assert stats.documents_this_month == 1
    assert stats.storage == "1.0 MB"


@pytest.mark.parametrize(
    ("num_bytes", "expected"),
    [(0, "0 Bytes"), (512, "512.0 Bytes"), (1536, "1.5 KB"), (1_048_576, "1.0 MB"), (5 * 1024**4, "5.0 TB")],
)
def test_format_bytes(num_bytes, expected):
    assert format_bytes(num_bytes) == expected


def test_factory_selects_backend():
    assert create_storage(Settings(database_url=None)).name == "memory"
    storage = create_storage(Settings(database_url="sqlite://"))
    try:
        assert storage.name == "sql"
    finally:
        storage.close()


def test_factory_seeds_memory_backend():
    storage = create_storage(Settings(database_url=None))
    assert storage.get_user_by_username("admin") is not None
    assert [p.status for p in storage.get_projects()].count("active") == 2
