"""Durable storage over the relational schema in ``edms.models``."""

from __future__ import annotations

import logging
from datetime import timezone
from typing import Any, Mapping, Optional

from sqlalchemy import func
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from ..db.session import make_engine, make_session_factory
from ..models import Base, Document, Project, User
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
    utcnow,
)
from .records import DocumentRecord, ProjectRecord, Stats, UserRecord

logger = logging.getLogger(__name__)


def _user_record(user: User) -> UserRecord:
    return UserRecord(
        id=user.id,
        username=user.username,
        password=user.password,
        full_name=user.full_name,
        role=user.role,
        created_at=as_utc(user.created_at),
    )


def _project_record(project: Project) -> ProjectRecord:
    return ProjectRecord(
        id=project.id,
        name=project.name,
        description=project.description,
        location=project.location,
        status=project.status,
        image=project.image,
        start_date=as_utc(project.start_date),
        end_date=as_utc(project.end_date),
        created_at=as_utc(project.created_at),
        updated_at=as_utc(project.updated_at),
    )


def _document_record(document: Document) -> DocumentRecord:
    return DocumentRecord(
        id=document.id,
        name=document.name,
        description=document.description,
        type=document.type,
        project_id=document.project_id,
        user_id=document.user_id,
        file_path=document.file_path,
        storage_type=document.storage_type,
        file_size=document.file_size,
        mime_type=document.mime_type,
        is_analyzed=bool(document.is_analyzed),
        analysis=dict(document.analysis) if document.analysis is not None else None,
        created_at=as_utc(document.created_at),
        updated_at=as_utc(document.updated_at),
    )


class SqlStorage(StorageBackend):
    name = "sql"

    def __init__(self, engine: Engine, session_factory: Optional[sessionmaker] = None) -> None:
        self.engine = engine
        self._session_factory = session_factory or make_session_factory(engine)

    @classmethod
    def from_url(cls, database_url: str) -> "SqlStorage":
        return cls(make_engine(database_url))

    def create_schema(self) -> None:
        Base.metadata.create_all(bind=self.engine)

    def close(self) -> None:
        self.engine.dispose()

    def _session(self) -> Session:
        return self._session_factory()

    # Users

    def get_user(self, user_id: int) -> Optional[UserRecord]:
        with self._session() as db:
            user = db.get(User, user_id)
            return _user_record(user) if user else None

    def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        with self._session() as db:
            user = db.query(User).filter(User.username == username).one_or_none()
            return _user_record(user) if user else None

    def create_user(self, data: Mapping[str, Any]) -> UserRecord:
        with self._session() as db:
            user = User(
                username=data["username"],
                password=data["password"],
                full_name=data["full_name"],
                role=data.get("role") or "user",
                created_at=utcnow(),
            )
            db.add(user)
            db.commit()
            return _user_record(user)

    # Projects

    def get_project(self, project_id: int) -> Optional[ProjectRecord]:
        with self._session() as db:
            project = db.get(Project, project_id)
            return _project_record(project) if project else None

    def get_projects(self) -> list[ProjectRecord]:
        with self._session() as db:
            rows = db.query(Project).order_by(Project.updated_at.desc(), Project.id.desc()).all()
            return [_project_record(row) for row in rows]

    def get_recent_projects(self, limit: int = DEFAULT_RECENT_PROJECTS) -> list[ProjectRecord]:
        with self._session() as db:
            rows = (
                db.query(Project)
                .order_by(Project.updated_at.desc(), Project.id.desc())
                .limit(max(limit, 0))
                .all()
            )
            return [_project_record(row) for row in rows]

    def create_project(self, data: Mapping[str, Any]) -> ProjectRecord:
        now = utcnow()
        with self._session() as db:
            project = Project(
                name=data["name"],
                description=data.get("description"),
                location=data["location"],
                status=data.get("status") or "active",
                image=data.get("image"),
                start_date=as_utc(data.get("start_date")),
                end_date=as_utc(data.get("end_date")),
                created_at=now,
                updated_at=now,
            )
            db.add(project)
            db.commit()
            return _project_record(project)

    def update_project(self, project_id: int, changes: Mapping[str, Any]) -> Optional[ProjectRecord]:
        with self._session() as db:
            project = db.get(Project, project_id)
            if project is None:
                return None
            for key, value in pick_fields(changes, PROJECT_MUTABLE_FIELDS).items():
                if key in ("start_date", "end_date"):
                    value = as_utc(value)
                setattr(project, key, value)
            project.updated_at = next_timestamp(project.updated_at)
            db.commit()
            return _project_record(project)

    def delete_project(self, project_id: int) -> bool:
        with self._session() as db:
            project = db.get(Project, project_id)
            if project is None:
                return False
            db.query(Document).filter(Document.project_id == project_id).update(
                {Document.project_id: None}, synchronize_session=False
            )
            db.delete(project)
            db.commit()
            return True

    # Documents

    def get_document(self, document_id: int) -> Optional[DocumentRecord]:
        with self._session() as db:
            document = db.get(Document, document_id)
            return _document_record(document) if document else None

    def _documents_query(self, db: Session):
        return db.query(Document).order_by(Document.created_at.desc(), Document.id.desc())

    def get_documents(self) -> list[DocumentRecord]:
        with self._session() as db:
            return [_document_record(row) for row in self._documents_query(db).all()]

    def get_documents_by_project(self, project_id: int) -> list[DocumentRecord]:
        with self._session() as db:
            rows = self._documents_query(db).filter(Document.project_id == project_id).all()
            return [_document_record(row) for row in rows]

    def get_documents_by_user(self, user_id: int) -> list[DocumentRecord]:
        with self._session() as db:
            rows = self._documents_query(db).filter(Document.user_id == user_id).all()
            return [_document_record(row) for row in rows]

    def get_recent_documents(self, limit: int = DEFAULT_RECENT_DOCUMENTS) -> list[DocumentRecord]:
        with self._session() as db:
            rows = self._documents_query(db).limit(max(limit, 0)).all()
            return [_document_record(row) for row in rows]

    def create_document(self, data: Mapping[str, Any]) -> DocumentRecord:
        now = utcnow()
        with self._session() as db:
            document = Document(
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
            db.add(document)
            db.commit()
            return _document_record(document)

    def update_document(self, document_id: int, changes: Mapping[str, Any]) -> Optional[DocumentRecord]:
        with self._session() as db:
            document = db.get(Document, document_id)
            if document is None:
                return None
            for key, value in pick_fields(changes, DOCUMENT_MUTABLE_FIELDS).items():
                setattr(document, key, value)
            document.updated_at = next_timestamp(document.updated_at)
            db.commit()
            return _document_record(document)

    def update_document_analysis(self, document_id: int, analysis: Mapping[str, Any]) -> Optional[DocumentRecord]:
        if analysis is None:
            raise ValueError("analysis must not be None")
        with self._session() as db:
            document = db.get(Document, document_id)
            if document is None:
                logger.info("analysis_target_missing document_id=%s backend=sql", document_id)
                return None
            document.analysis = dict(analysis)
            document.is_analyzed = True
            document.updated_at = next_timestamp(document.updated_at)
            db.commit()
            return _document_record(document)

    def delete_document(self, document_id: int) -> bool:
        with self._session() as db:
            deleted = db.query(Document).filter(Document.id == document_id).delete(synchronize_session=False)
            db.commit()
            return bool(deleted)

    # Dashboard

    def get_stats(self) -> Stats:
        month_start = start_of_current_month().astimezone(timezone.utc)
        with self._session() as db:
            total_documents = db.query(func.count(Document.id)).scalar() or 0
            active_projects = (
                db.query(func.count(Project.id)).filter(Project.status == "active").scalar() or 0
            )
            documents_this_month = (
                db.query(func.count(Document.id)).filter(Document.created_at >= month_start).scalar() or 0
            )
            total_bytes = db.query(func.coalesce(func.sum(Document.file_size), 0)).scalar() or 0
        return Stats(
            total_documents=int(total_documents),
            active_projects=int(active_projects),
            documents_this_month=int(documents_this_month),
            storage=format_bytes(int(total_bytes)),
        )
