from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends

from ..dependencies.storage import get_storage
from ..storage import StorageBackend

router = APIRouter()


@router.get("/health")
def health(storage: StorageBackend = Depends(get_storage)) -> Dict[str, Any]:
    return {"ok": True, "storage": storage.name}


@router.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}
