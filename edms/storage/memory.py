"""Volatile dict-backed storage for development and tests.

Data lives for the lifetime of the instance only.
"""

from __future__ import annotations

import copy
import logging
import threading
from datetime import datetime
from typing import Any, Mapping, Optional

from .base import (
    DEFAULT_RECENT_DOCUMENTS,
    DEFAULT_RECENT_PROJECTS,
    DOCUMENT_MUTABLE_FIELDS,
    PROJECT_MUTABLE_FIELDS,
    StorageBackend,
    as_utc,
    format_bytes,
    next_timestamp,
    pick_fields,
    start_of_current_month,
)
from .records import DocumentRecord, ProjectRecord, Stats, UserRecord

logger = logging.getLogger(__name__)


class MemoryStorage(StorageBackend):
    name = "memory"

    def __init__(self) -> None:
        self._users: dict[int, UserRecord] = {}
        self._projects: dict[int, ProjectRecord] = {}
        self._documents: dict[int, DocumentRecord] = {}
        self._user_id_counter = 1
        self._project_id_counter = 1
        self._document_id_counter = 1
        self._last_timestamp: Optional[datetime] = None
        # Request handlers run on a thread pool.
        self._lock = threading.RLock()

    def _tick(self) -> datetime:
        """Strictly increasing timestamps so recency ordering never ties."""
        now = next_timestamp(self._last_timestamp)
        self._last_timestamp = now
        return now

    # Users

    def get_user(self, user_id: int) -> Optional[UserRecord]:
        with self._lock:
            return copy.deepcopy(self._users.get(user_id))

    def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        with self._lock:
            for user in self._users.values():
                if user.username == username:
                    return copy.deepcopy(user)
            return None

    def create_user(self, data: Mapping[str, Any]) -> UserRecord:
        with self._lock:
            user = UserRecord(
                id=self._user_id_counter,
                username=data["username"],
                password=data["password"],
                full_name=data["full_name"],
                role=data.get("role") or "user",
                created_at=self._tick(),
            )
            self._user_id_counter += 1
            self._users[user.id] = user
            return copy.deepcopy(user)

    # Projects

    def get_project(self, project_id: int) -> Optional[ProjectRecord]:
        with self._lock:
            return copy.deepcopy(self._projects.get(project_id))

    def _projects_by_recency(self) -> list[ProjectRecord]:
        return sorted(self._projects.values(), key=lambda p: (p.updated_at, p.id), reverse=True)

    def get_projects(self) -> list[ProjectRecord]:
        with self._lock:
            return copy.deepcopy(self._projects_by_recency())

    def get_recent_projects(self, limit: int = DEFAULT_RECENT_PROJECTS) -> list[ProjectRecord]:
        with self._lock:
            return copy.deepcopy(self._projects_by_recency()[: max(limit, 0)])

    def create_project(self, data: Mapping[str, Any]) -> ProjectRecord:
        with self._lock:
            now = self._tick()
            project = ProjectRecord(
                id=self._project_id_counter,
                name=data["name"],
                location=data["location"],
                description=data.get("description"),
                status=data.get("status") or "active",
                image=data.get("image"),
                start_date=as_utc(data.get("start_date")),
                end_date=as_utc(data.get("end_date")),
                created_at=now,
                updated_at=now,
            )
            self._project_id_counter += 1
            self._projects[project.id] = project
            return copy.deepcopy(project)

    def update_project(self, project_id: int, changes: Mapping[str, Any]) -> Optional[ProjectRecord]:
        with self._lock:
            project = self._projects.get(project_id)
            if project is None:
                return None
            for key, value in pick_fields(changes, PROJECT_MUTABLE_FIELDS).items():
                if key in ("start_date", "end_date"):
                    value = as_utc(value)
                setattr(project, key, value)
            project.updated_at = self._tick()
            return copy.deepcopy(project)

    def delete_project(self, project_id: int) -> bool:
        with self._lock:
            if self._projects.pop(project_id, None) is None:
                return False
            for document in self._documents.values():
                if document.project_id == project_id:
                    document.project_id = None
            return True

    # Documents

    def get_document(self, document_id: int) -> Optional[DocumentRecord]:
        with self._lock:
            return copy.deepcopy(self._documents.get(document_id))

    def _documents_by_recency(self) -> list[DocumentRecord]:
        return sorted(self._documents.values(), key=lambda d: (d.created_at, d.id), reverse=True)

    def get_documents(self) -> list[DocumentRecord]:
        with self._lock:
            return copy.deepcopy(self._documents_by_recency())

    def get_documents_by_project(self, project_id: int) -> list[DocumentRecord]:
        with self._lock:
            return copy.deepcopy([d for d in self._documents_by_recency() if d.project_id == project_id])

    def get_documents_by_user(self, user_id: int) -> list[DocumentRecord]:
        with self._lock:
            return copy.deepcopy([d for d in self._documents_by_recency() if d.user_id == user_id])

    def get_recent_documents(self, limit: int = DEFAULT_RECENT_DOCUMENTS) -> list[DocumentRecord]:
        with self._lock:
            return copy.deepcopy(self._documents_by_recency()[: max(limit, 0)])

    def create_document(self, data: Mapping[str, Any]) -> DocumentRecord:
        with self._lock:
            now = self._tick()
            document = DocumentRecord(
                id=self._document_id_counter,
                name=data["name"],
                description=data.get("description"),
                type=data["type"],
                project_id=data.get("project_id"),
                user_id=data["user_id"],
                file_path=data["file_path"],
                storage_type=data["storage_type"],
                file_size=data["file_size"],
                mime_type=data["mime_type"],
                is_analyzed=False,
                analysis=None,
                created_at=now,
                updated_at=now,
            )
            self._document_id_counter += 1
            self._documents[document.id] = document
            return copy.deepcopy(document)

    def update_document(self, document_id: int, changes: Mapping[str, Any]) -> Optional[DocumentRecord]:
        with self._lock:
            document = self._documents.get(document_id)
            if document is None:
                return None
            for key, value in pick_fields(changes, DOCUMENT_MUTABLE_FIELDS).items():
                setattr(document, key, value)
            document.updated_at = self._tick()
            return copy.deepcopy(document)

    def update_document_analysis(self, document_id: int, analysis: Mapping[str, Any]) -> Optional[DocumentRecord]:
        if analysis is None:
            raise ValueError("analysis must not be None")
        with self._lock:
            document = self._documents.get(document_id)
            if document is None:
                logger.info("analysis_target_missing document_id=%s backend=memory", document_id)
                return None
            document.analysis = copy.deepcopy(dict(analysis))
            document.is_analyzed = True
            document.updated_at = self._tick()
            return copy.deepcopy(document)

    def delete_document(self, document_id: int) -> bool:
        with self._lock:
            return self._documents.pop(document_id, None) is not None

    # Dashboard

    def get_stats(self) -> Stats:
        with self._lock:
            month_start = start_of_current_month()
            documents = list(self._documents.values())
            return Stats(
                total_documents=len(documents),
                active_projects=sum(1 for p in self._projects.values() if p.status == "active"),
                documents_this_month=sum(1 for d in documents if d.created_at >= month_start),
                storage=format_bytes(sum(d.file_size for d in documents)),
            )
