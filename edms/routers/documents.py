from __future__ import annotations

import logging
import os
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, BackgroundTasks, Body, Depends, File, Form, HTTPException, Query, Response, UploadFile

from ..config import Settings
from ..dependencies.storage import get_app_settings, get_blob_router, get_storage
from ..schemas import DocumentCreate, DocumentUpdate
from ..services.blob_common import sanitize_filename
from ..services.blob_router import BlobRouter
from ..services.enrichment import is_analyzable, run_document_enrichment
from ..services.metrics import record_upload
from ..storage import StorageBackend
from ..storage.base import DEFAULT_RECENT_DOCUMENTS
from .common import invalid_field, serialize_document, validate_payload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/documents")

CHUNK_BYTES = 1024 * 1024
DEFAULT_MIME_TYPE = "application/octet-stream"


def _spool_upload(file: UploadFile, upload_dir: Path, max_bytes: int) -> tuple[Path, int]:
    upload_dir.mkdir(parents=True, exist_ok=True)
    temp_path = upload_dir / f"{uuid.uuid4().hex}-{sanitize_filename(file.filename or 'upload')}"
    total_bytes = 0
    try:
        with temp_path.open("wb") as buffer:
            while True:
                chunk = file.file.read(CHUNK_BYTES)
                if not chunk:
                    break
                total_bytes += len(chunk)
                if total_bytes > max_bytes:
                    raise HTTPException(status_code=413, detail="File too large.")
                buffer.write(chunk)
    except BaseException:
        _remove_temp_file(temp_path)
        raise
    finally:
        file.file.close()
    return temp_path, total_bytes


def _remove_temp_file(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError:
        logger.warning("temp_file_cleanup_failed path=%s", path, exc_info=True)


def _file_type(file_name: str) -> str:
    return os.path.splitext(file_name)[1].lstrip(".").upper()


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    return value.strip()


@router.get("")
def list_documents(storage: StorageBackend = Depends(get_storage)) -> List[Dict[str, Any]]:
    return [serialize_document(document) for document in storage.get_documents()]


@router.get("/recent")
def recent_documents(
    limit: int = Query(default=DEFAULT_RECENT_DOCUMENTS, ge=0, le=100),
    storage: StorageBackend = Depends(get_storage),
) -> List[Dict[str, Any]]:
    return [serialize_document(document) for document in storage.get_recent_documents(limit)]


@router.get("/{document_id}")
def get_document(document_id: int, storage: StorageBackend = Depends(get_storage)) -> Dict[str, Any]:
    document = storage.get_document(document_id)
    if document is None:
        raise HTTPException(status_code=404, detail="Document not found")
    return serialize_document(document)


@router.post("/upload", status_code=201)
def upload_document(
    background_tasks: BackgroundTasks,
    file: Optional[UploadFile] = File(default=None),
    name: Optional[str] = Form(default=None),
    description: Optional[str] = Form(default=None),
    project_id: Optional[str] = Form(default=None, alias="projectId"),
    storage: StorageBackend = Depends(get_storage),
    blob_router: BlobRouter = Depends(get_blob_router),
    settings: Settings = Depends(get_app_settings),
) -> Dict[str, Any]:
    if file is None:
        raise HTTPException(status_code=400, detail="No file uploaded")

    original_name = file.filename or "upload"
    mime_type = file.content_type or DEFAULT_MIME_TYPE
    temp_path, total_bytes = _spool_upload(file, Path(settings.upload_dir), settings.max_upload_bytes)

    try:
        display_name = _blank_to_none(name) or original_name
        file_type = _file_type(original_name)

        routed = blob_router.route(temp_path, display_name, mime_type, size_bytes=total_bytes)
        record_upload(routed.storage_type, routed.stored)

        data = validate_payload(
            DocumentCreate,
            {
                "name": display_name,
                "description": _blank_to_none(description),
                "type": file_type,
                "projectId": _blank_to_none(project_id),
                "userId": settings.default_user_id,
                "filePath": routed.locator,
                "storageType": routed.storage_type,
                "fileSize": total_bytes,
                "mimeType": mime_type,
            },
            "Invalid document data",
        )
        if data.project_id is not None and storage.get_project(data.project_id) is None:
            raise invalid_field("Invalid document data", "projectId", "Project not found")

        document = storage.create_document(data.model_dump())
        logger.info(
            "document_uploaded document_id=%s storage_type=%s stored=%s bytes=%s type=%s",
            document.id,
            document.storage_type,
            routed.stored,
            total_bytes,
            file_type,
        )

        if is_analyzable(file_type):
            content = temp_path.read_bytes()
            background_tasks.add_task(
                run_document_enrichment,
                storage,
                document.id,
                content,
                file_type,
                display_name,
                settings.openai,
            )
            logger.info("analysis_scheduled document_id=%s type=%s", document.id, file_type)
    finally:
        _remove_temp_file(temp_path)

    return serialize_document(document)


@router.patch("/{document_id}")
def update_document(
    document_id: int,
    payload: Dict[str, Any] = Body(...),
    storage: StorageBackend = Depends(get_storage),
) -> Dict[str, Any]:
    changes = validate_payload(DocumentUpdate, payload, "Invalid document data").model_dump(exclude_unset=True)
    project_id = changes.get("project_id")
    if project_id is not None and storage.get_project(project_id) is None:
        raise invalid_field("Invalid document data", "projectId", "Project not found")
    user_id = changes.get("user_id")
    if user_id is not None and storage.get_user(user_id) is None:
        raise invalid_field("Invalid document data", "userId", "User not found")

    document = storage.update_document(document_id, changes)
    if document is None:
        raise HTTPException(status_code=404, detail="Document not found")
    logger.info("document_updated document_id=%s fields=%s", document_id, sorted(changes))
    return serialize_document(document)


@router.delete("/{document_id}", status_code=204)
def delete_document(
    document_id: int,
    background_tasks: BackgroundTasks,
    storage: StorageBackend = Depends(get_storage),
    blob_router: BlobRouter = Depends(get_blob_router),
) -> Response:
    document = storage.get_document(document_id)
    if document is None or not storage.delete_document(document_id):
        raise HTTPException(status_code=404, detail="Document not found")
    background_tasks.add_task(blob_router.delete, document.file_path, document.storage_type)
    logger.info("document_deleted document_id=%s storage_type=%s", document_id, document.storage_type)
    return Response(status_code=204)
