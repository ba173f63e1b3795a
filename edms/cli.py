from __future__ import annotations

import json
from pathlib import Path

import typer

from .config import get_settings
from .services.enrichment import enrich_document
from .storage import SqlStorage, create_storage, seed_sample_data

app = typer.Typer(help="Construction document management administrative CLI")


def _require_sql_storage() -> SqlStorage:
    settings = get_settings()
    if not settings.database_url:
        typer.echo("DATABASE_URL is not set; nothing to do for the in-memory backend.", err=True)
        raise typer.Exit(code=1)
    return SqlStorage.from_url(settings.database_url)


@app.command()
def init_db() -> None:
    """Create the users, projects and documents tables."""
    storage = _require_sql_storage()
    try:
        storage.create_schema()
        typer.echo("Schema created")
    finally:
        storage.close()


@app.command()
def create_user(
    username: str = typer.Argument(..., help="Login name"),
    full_name: str = typer.Argument(..., help="Display name"),
    password: str = typer.Option(..., "--password", "-p", prompt=True, hide_input=True),
    role: str = typer.Option("user", "--role", "-r", show_default=True),
) -> None:
    """Create a user account."""
    storage = _require_sql_storage()
    try:
        if storage.get_user_by_username(username) is not None:
            typer.echo(f"User {username} already exists", err=True)
            raise typer.Exit(code=1)
        user = storage.create_user(
            {"username": username, "password": password, "full_name": full_name, "role": role}
        )
        typer.echo(f"Created user {user.username} ({user.id})")
    finally:
        storage.close()


@app.command()
def seed() -> None:
    """Insert the sample admin user and projects."""
    storage = _require_sql_storage()
    try:
        if seed_sample_data(storage):
            typer.echo("Sample data inserted")
        else:
            typer.echo("Sample data already present")
    finally:
        storage.close()


@app.command()
def analyze_document(
    document_id: int = typer.Argument(..., help="Stored document id"),
    path: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Local copy of the file"),
) -> None:
    """Run analysis for a stored document from a local copy of its bytes."""
    settings = get_settings()
    storage = create_storage(settings)
    try:
        document = storage.get_document(document_id)
        if document is None:
            typer.echo(f"Document {document_id} not found", err=True)
            raise typer.Exit(code=1)

        updated = enrich_document(
            storage,
            document.id,
            path.read_bytes(),
            document.type,
            document.name,
            settings.openai,
        )
        if updated is None:
            typer.echo("Analysis did not produce a result", err=True)
            raise typer.Exit(code=1)
        typer.echo(json.dumps(updated.analysis, indent=2))
    finally:
        storage.close()


@app.command()
def stats() -> None:
    """Print dashboard statistics."""
    storage = create_storage(get_settings())
    try:
        result = storage.get_stats()
        typer.echo(
            json.dumps(
                {
                    "totalDocuments": result.total_documents,
                    "activeProjects": result.active_projects,
                    "documentsThisMonth": result.documents_this_month,
                    "storage": result.storage,
                },
                indent=2,
            )
        )
    finally:
        storage.close()


if __name__ == "__main__":
    app()
