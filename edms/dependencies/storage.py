from __future__ import annotations

from fastapi import Request

from ..config import Settings
from ..services.blob_router import BlobRouter
from ..storage import StorageBackend


def get_storage(request: Request) -> StorageBackend:
    return request.app.state.storage


def get_blob_router(request: Request) -> BlobRouter:
    return request.app.state.blob_router


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings
