from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends

from ..dependencies.storage import get_storage
from ..storage import StorageBackend

router = APIRouter()


@router.get("/api/stats")
def get_stats(storage: StorageBackend = Depends(get_storage)) -> Dict[str, Any]:
    stats = storage.get_stats()
    return {
        "totalDocuments": stats.total_documents,
        "activeProjects": stats.active_projects,
        "documentsThisMonth": stats.documents_this_month,
        "storage": stats.storage,
    }
