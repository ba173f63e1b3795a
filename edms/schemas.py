"""Request payload validation for projects and documents.

Payloads arrive with camelCase keys (``projectId``, ``fileSize``) and are
dumped with snake_case keys for the storage layer.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Mapping, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

ProjectStatus = Literal["active", "pending", "completed"]
StorageType = Literal["supabase", "googledrive"]


class _Payload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class ProjectCreate(_Payload):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    location: str = Field(min_length=1)
    status: ProjectStatus = "active"
    image: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class ProjectUpdate(_Payload):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    location: Optional[str] = Field(default=None, min_length=1)
    status: Optional[ProjectStatus] = None
    image: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    @field_validator("name", "location", "status", mode="before")
    @classmethod
    def _not_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("must not be null")
        return value


class DocumentCreate(_Payload):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    type: str = ""
    project_id: Optional[int] = None
    user_id: int
    file_path: str = Field(min_length=1)
    storage_type: StorageType
    file_size: int = Field(ge=0)
    mime_type: str = Field(min_length=1)


class DocumentUpdate(_Payload):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    type: Optional[str] = None
    project_id: Optional[int] = None
    user_id: Optional[int] = None
    file_path: Optional[str] = Field(default=None, min_length=1)
    storage_type: Optional[StorageType] = None
    file_size: Optional[int] = Field(default=None, ge=0)
    mime_type: Optional[str] = Field(default=None, min_length=1)

    @field_validator("name", "type", "user_id", "file_path", "storage_type", "file_size", "mime_type", mode="before")
    @classmethod
    def _not_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("must not be null")
        return value


_REQUEST_SECTIONS = frozenset({"body", "query", "path", "form", "header", "cookie"})


def flatten_errors(raw_errors: Sequence[Mapping[str, Any]]) -> list[dict[str, str]]:
    """Flatten pydantic error dicts into ``{field, message}`` pairs using the wire names."""
    errors: list[dict[str, str]] = []
    for error in raw_errors:
        location = [str(part) for part in error.get("loc", ())]
        if len(location) > 1 and location[0] in _REQUEST_SECTIONS:
            location = location[1:]
        errors.append({"field": ".".join(location) or "body", "message": error.get("msg", "invalid")})
    return errors


def field_errors(exc: ValidationError) -> list[dict[str, str]]:
    return flatten_errors(exc.errors(include_url=False, include_context=False, include_input=False))
