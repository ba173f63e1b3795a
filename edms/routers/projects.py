from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response

from ..dependencies.storage import get_storage
from ..schemas import ProjectCreate, ProjectUpdate
from ..storage import StorageBackend
from ..storage.base import DEFAULT_RECENT_PROJECTS
from .common import serialize_document, serialize_project, validate_payload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/projects")


@router.get("")
def list_projects(storage: StorageBackend = Depends(get_storage)) -> List[Dict[str, Any]]:
    return [serialize_project(project) for project in storage.get_projects()]


@router.get("/recent")
def recent_projects(
    limit: int = Query(default=DEFAULT_RECENT_PROJECTS, ge=0, le=100),
    storage: StorageBackend = Depends(get_storage),
) -> List[Dict[str, Any]]:
    return [serialize_project(project) for project in storage.get_recent_projects(limit)]


@router.get("/{project_id}")
def get_project(project_id: int, storage: StorageBackend = Depends(get_storage)) -> Dict[str, Any]:
    project = storage.get_project(project_id)
    if project is None:
        raise HTTPException(status_code=404, detail="Project not found")
    return serialize_project(project)


@router.get("/{project_id}/documents")
def list_project_documents(project_id: int, storage: StorageBackend = Depends(get_storage)) -> List[Dict[str, Any]]:
    return [serialize_document(document) for document in storage.get_documents_by_project(project_id)]


@router.post("", status_code=201)
def create_project(
    payload: Dict[str, Any] = Body(...),
    storage: StorageBackend = Depends(get_storage),
) -> Dict[str, Any]:
    data = validate_payload(ProjectCreate, payload, "Invalid project data")
    project = storage.create_project(data.model_dump())
    logger.info("project_created project_id=%s status=%s", project.id, project.status)
    return serialize_project(project)


@router.patch("/{project_id}")
def update_project(
    project_id: int,
    payload: Dict[str, Any] = Body(...),
    storage: StorageBackend = Depends(get_storage),
) -> Dict[str, Any]:
    changes = validate_payload(ProjectUpdate, payload, "Invalid project data").model_dump(exclude_unset=True)
    project = storage.update_project(project_id, changes)
    if project is None:
        raise HTTPException(status_code=404, detail="Project not found")
    logger.info("project_updated project_id=%s fields=%s", project_id, sorted(changes))
    return serialize_project(project)


@router.delete("/{project_id}", status_code=204)
def delete_project(project_id: int, storage: StorageBackend = Depends(get_storage)) -> Response:
    if not storage.delete_project(project_id):
        raise HTTPException(status_code=404, detail="Project not found")
    logger.info("project_deleted project_id=%s", project_id)
    return Response(status_code=204)
