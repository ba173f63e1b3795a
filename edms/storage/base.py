"""Storage contract shared by the in-memory and relational backends.

Lookups addressed to a missing id return ``None`` (or ``False`` for deletes)
instead of raising. Updates merge only the mutable fields listed below and
always move ``updated_at`` strictly forward.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional

from .records import DocumentRecord, ProjectRecord, Stats, UserRecord

DEFAULT_RECENT_PROJECTS = 3
DEFAULT_RECENT_DOCUMENTS = 4

PROJECT_MUTABLE_FIELDS = frozenset(
    {"name", "description", "location", "status", "image", "start_date", "end_date"}
)
DOCUMENT_MUTABLE_FIELDS = frozenset(
    {
        "name",
        "description",
        "type",
        "project_id",
        "user_id",
        "file_path",
        "storage_type",
        "file_size",
        "mime_type",
    }
)

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB", "TB")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def next_timestamp(previous: Optional[datetime]) -> datetime:
    """Current time, nudged past ``previous`` when the clock has not advanced."""
    now = utcnow()
    previous = as_utc(previous)
    if previous is not None and now <= previous:
        return previous + timedelta(microseconds=1)
    return now


def start_of_current_month() -> datetime:
    """First instant of the current calendar month on the server's local clock."""
    local_now = datetime.now().astimezone()
    return local_now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def format_bytes(num_bytes: int) -> str:
    if num_bytes <= 0:
        return "0 Bytes"
    value = float(num_bytes)
    unit = 0
    while value >= 1024 and unit < len(_SIZE_UNITS) - 1:
        value /= 1024
        unit += 1
    return f"{value:.1f} {_SIZE_UNITS[unit]}"


def pick_fields(changes: Mapping[str, Any], allowed: frozenset[str]) -> dict[str, Any]:
    return {key: value for key, value in changes.items() if key in allowed}


class StorageBackend(ABC):
    """Persistence for users, projects and documents."""

    name: str = "abstract"

    # Users

    @abstractmethod
    def get_user(self, user_id: int) -> Optional[UserRecord]: ...

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[UserRecord]: ...

    @abstractmethod
    def create_user(self, data: Mapping[str, Any]) -> UserRecord: ...

    # Projects

    @abstractmethod
    def get_project(self, project_id: int) -> Optional[ProjectRecord]: ...

    @abstractmethod
    def get_projects(self) -> list[ProjectRecord]: ...

    @abstractmethod
    def get_recent_projects(self, limit: int = DEFAULT_RECENT_PROJECTS) -> list[ProjectRecord]: ...

    @abstractmethod
    def create_project(self, data: Mapping[str, Any]) -> ProjectRecord: ...

    @abstractmethod
    def update_project(self, project_id: int, changes: Mapping[str, Any]) -> Optional[ProjectRecord]: ...

    @abstractmethod
    def delete_project(self, project_id: int) -> bool: ...

    # Documents

    @abstractmethod
    def get_document(self, document_id: int) -> Optional[DocumentRecord]: ...

    @abstractmethod
    def get_documents(self) -> list[DocumentRecord]: ...

    @abstractmethod
    def get_documents_by_project(self, project_id: int) -> list[DocumentRecord]: ...

    @abstractmethod
    def get_documents_by_user(self, user_id: int) -> list[DocumentRecord]: ...

    @abstractmethod
    def get_recent_documents(self, limit: int = DEFAULT_RECENT_DOCUMENTS) -> list[DocumentRecord]: ...

    @abstractmethod
    def create_document(self, data: Mapping[str, Any]) -> DocumentRecord: ...

    @abstractmethod
    def update_document(self, document_id: int, changes: Mapping[str, Any]) -> Optional[DocumentRecord]: ...

    @abstractmethod
    def update_document_analysis(self, document_id: int, analysis: Mapping[str, Any]) -> Optional[DocumentRecord]:
        """Attach an analysis and mark the document analyzed; ``None`` if it no longer exists."""

    @abstractmethod
    def delete_document(self, document_id: int) -> bool: ...

    # Dashboard

    @abstractmethod
    def get_stats(self) -> Stats: ...

    def close(self) -> None:
        """Release backend resources."""
