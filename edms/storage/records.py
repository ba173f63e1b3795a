from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional


@dataclass
class UserRecord:
    id: int
    username: str
    password: str
    full_name: str
    role: str
    created_at: datetime


@dataclass
class ProjectRecord:
    id: int
    name: str
    location: str
    created_at: datetime
    updated_at: datetime
    description: Optional[str] = None
    status: str = "active"
    image: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


@dataclass
class DocumentRecord:
    id: int
    name: str
    type: str
    user_id: int
    file_path: str
    storage_type: str
    file_size: int
    mime_type: str
    created_at: datetime
    updated_at: datetime
    description: Optional[str] = None
    project_id: Optional[int] = None
    is_analyzed: bool = False
    analysis: Optional[dict[str, Any]] = field(default=None)


@dataclass
class Stats:
    total_documents: int
    active_projects: int
    documents_this_month: int
    storage: str
