from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from edms import cli
from edms.config import Settings
from edms.services import enrichment
from edms.storage import SqlStorage

runner = CliRunner()


@pytest.fixture()
def database_url(tmp_path, monkeypatch) -> str:
    url = f"sqlite:///{tmp_path / 'edms.db'}"
    monkeypatch.setattr(cli, "get_settings", lambda: Settings(database_url=url))
    return url


def test_init_db_seed_and_stats(database_url):
    assert runner.invoke(cli.app, ["init-db"]).exit_code == 0

    seeded = runner.invoke(cli.app, ["seed"])
    assert seeded.exit_code == 0
    assert "Sample data inserted" in seeded.stdout
    assert "already present" in runner.invoke(cli.app, ["seed"]).stdout

    result = runner.invoke(cli.app, ["stats"])
    assert result.exit_code == 0
    assert json.loads(result.stdout) == {
        "totalDocuments": 0,
        "activeProjects": 2,
        "documentsThisMonth": 0,
        "storage": "0 Bytes",
    }


def test_create_user(database_url):
    runner.invoke(cli.app, ["init-db"])
    result = runner.invoke(cli.app, ["create-user", "foreman", "Site Foreman", "--password", "s3cret"])
    assert result.exit_code == 0

    storage = SqlStorage.from_url(database_url)
    try:
        assert storage.get_user_by_username("foreman").full_name == "Site Foreman"
    finally:
        storage.close()

    duplicate = runner.invoke(cli.app, ["create-user", "foreman", "Again", "--password", "x"])
    assert duplicate.exit_code == 1


def test_analyze_document(database_url, tmp_path, monkeypatch):
    runner.invoke(cli.app, ["init-db"])
    storage = SqlStorage.from_url(database_url)
    try:
        document = storage.create_document(
            {
                "name": "notes.txt",
                "type": "TXT",
                "user_id": 1,
                "file_path": "https://supabase.test/documents/1-notes.txt",
                "storage_type": "supabase",
                "file_size": 5,
                "mime_type": "text/plain",
            }
        )
    finally:
        storage.close()

    local_copy = tmp_path / "notes.txt"
    local_copy.write_text("hello")
    monkeypatch.setattr(enrichment, "analyze_document", lambda *args: {"summary": "Greeting", "category": "memo"})

    result = runner.invoke(cli.app, ["analyze-document", str(document.id), str(local_copy)])
    assert result.exit_code == 0
    assert json.loads(result.stdout)["summary"] == "Greeting"

    missing = runner.invoke(cli.app, ["analyze-document", "999", str(local_copy)])
    assert missing.exit_code == 1


def test_commands_need_a_database(monkeypatch):
    monkeypatch.setattr(cli, "get_settings", lambda: Settings(database_url=None))
    assert runner.invoke(cli.app, ["init-db"]).exit_code == 1
