from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Type, TypeVar

from fastapi import HTTPException
from pydantic import BaseModel, ValidationError

from ..schemas import field_errors
from ..storage import DocumentRecord, ProjectRecord

PayloadT = TypeVar("PayloadT", bound=BaseModel)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def validate_payload(model: Type[PayloadT], payload: Any, message: str) -> PayloadT:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail={"message": message, "errors": field_errors(exc)}) from exc


def invalid_field(message: str, field: str, reason: str) -> HTTPException:
    return HTTPException(status_code=400, detail={"message": message, "errors": [{"field": field, "message": reason}]})


def serialize_project(project: ProjectRecord) -> Dict[str, Any]:
    return {
        "id": project.id,
        "name": project.name,
        "description": project.description,
        "location": project.location,
        "status": project.status,
        "image": project.image,
        "startDate": _iso(project.start_date),
        "endDate": _iso(project.end_date),
        "createdAt": _iso(project.created_at),
        "updatedAt": _iso(project.updated_at),
    }


def serialize_document(document: DocumentRecord) -> Dict[str, Any]:
    return {
        "id": document.id,
        "name": document.name,
        "description": document.description,
        "type": document.type,
        "projectId": document.project_id,
        "userId": document.user_id,
        "filePath": document.file_path,
        "storageType": document.storage_type,
        "fileSize": document.file_size,
        "mimeType": document.mime_type,
        "isAnalyzed": document.is_analyzed,
        "analysis": document.analysis,
        "createdAt": _iso(document.created_at),
        "updatedAt": _iso(document.updated_at),
    }
