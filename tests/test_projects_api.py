from __future__ import annotations

from datetime import datetime


def _create(client, **overrides):
    payload = {"name": "Harbor Warehouse", "location": "Semarang", "description": "Cold storage"}
    payload.update(overrides)
    return client.post("/api/projects", json=payload)


def test_list_projects_includes_seeded_samples(client):
    response = client.get("/api/projects")
    assert response.status_code == 200
    names = {project["name"] for project in response.json()}
    assert "Bandung Tech Park" in names
    assert len(names) == 3


def test_create_project_defaults_to_active(client):
    response = _create(client, startDate="2025-01-15T00:00:00Z")
    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "active"
    assert body["startDate"].startswith("2025-01-15")
    assert body["createdAt"] == body["updatedAt"]

    fetched = client.get(f"/api/projects/{body['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["name"] == "Harbor Warehouse"


def test_create_project_reports_field_errors(client):
    response = client.post("/api/projects", json={"description": "missing required fields", "status": "paused"})
    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail["message"] == "Invalid project data"
    fields = {error["field"] for error in detail["errors"]}
    assert {"name", "location", "status"} <= fields


def test_recent_projects_respects_limit(client):
    created = _create(client, name="Newest").json()
    response = client.get("/api/projects/recent", params={"limit": 2})
    assert response.status_code == 200
    recent = response.json()
    assert len(recent) == 2
    assert recent[0]["id"] == created["id"]

    default = client.get("/api/projects/recent").json()
    assert len(default) == 3


def test_update_project_moves_updated_at_forward(client):
    created = _create(client).json()
    response = client.patch(f"/api/projects/{created['id']}", json={"status": "completed"})
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "completed"
    assert datetime.fromisoformat(body["updatedAt"]) > datetime.fromisoformat(created["updatedAt"])
    assert body["createdAt"] == created["createdAt"]

    fetched = client.get(f"/api/projects/{created['id']}").json()
    assert fetched["status"] == "completed"


def test_update_project_rejects_null_name(client):
    created = _create(client).json()
    response = client.patch(f"/api/projects/{created['id']}", json={"name": None})
    assert response.status_code == 400


def test_update_missing_project_is_404(client):
    response = client.patch("/api/projects/9999", json={"status": "completed"})
    assert response.status_code == 404
    assert response.json()["detail"] == "Project not found"


def test_delete_project_is_idempotent_in_effect(client):
    created = _create(client).json()
    first = client.delete(f"/api/projects/{created['id']}")
    assert first.status_code == 204
    second = client.delete(f"/api/projects/{created['id']}")
    assert second.status_code == 404
    assert client.get(f"/api/projects/{created['id']}").status_code == 404


def test_unknown_project_is_404(client):
    assert client.get("/api/projects/4242").status_code == 404


def test_project_documents_lists_only_that_project(client, storage):
    for project_id in (1, 1, 2):
        storage.create_document(
            {
                "name": f"doc-{project_id}",
                "type": "PDF",
                "project_id": project_id,
                "user_id": 1,
                "file_path": "https://supabase.test/documents/x.pdf",
                "storage_type": "supabase",
                "file_size": 10,
                "mime_type": "application/pdf",
            }
        )

    response = client.get("/api/projects/1/documents")
    assert response.status_code == 200
    assert [doc["projectId"] for doc in response.json()] == [1, 1]
    assert client.get("/api/projects/99/documents").json() == []


def test_non_object_body_is_400(client):
    response = client.post("/api/projects", json=["x"])
    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail["message"] == "Invalid request"
    assert detail["errors"][0]["field"] == "body"


def test_malformed_json_is_400(client):
    response = client.post(
        "/api/projects", content=b"{not json", headers={"content-type": "application/json"}
    )
    assert response.status_code == 400


def test_non_integer_id_is_400(client):
    response = client.get("/api/projects/abc")
    assert response.status_code == 400
    assert response.json()["detail"]["errors"][0]["field"] == "project_id"
