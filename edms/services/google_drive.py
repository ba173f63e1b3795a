from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Optional
from urllib.parse import parse_qs, urlparse

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.http import MediaFileUpload

from ..config import GoogleDriveSettings
from .blob_common import BlobStorageConfigError, StoredBlob, timestamped_name

logger = logging.getLogger(__name__)

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"
DRIVE_SCOPES = ["https://www.googleapis.com/auth/drive.file"]
DRIVE_VIEW_URL = "https://drive.google.com/file/d/{file_id}/view"

_FILE_ID_PATTERN = re.compile(r"/d/([A-Za-z0-9_-]+)")


class GoogleDriveBlobStore:
    """Uploads large files into a shared Drive folder and returns their view links."""

    storage_type = "googledrive"

    def __init__(self, settings: GoogleDriveSettings, service: Optional[Any] = None) -> None:
        if service is None and not (settings.client_id and settings.client_secret and settings.refresh_token):
            raise BlobStorageConfigError("Google Drive credentials not configured")
        self.folder_name = settings.folder_name
        self._service = service or self._build_service(settings)
        self._folder_id: Optional[str] = None

    @staticmethod
    def _build_service(settings: GoogleDriveSettings) -> Any:
        credentials = Credentials(
            token=None,
            refresh_token=settings.refresh_token,
            client_id=settings.client_id,
            client_secret=settings.client_secret,
            token_uri=settings.token_uri,
            scopes=DRIVE_SCOPES,
        )
        return build("drive", "v3", credentials=credentials, cache_discovery=False)

    def _ensure_folder(self) -> str:
        if self._folder_id:
            return self._folder_id

        escaped = self.folder_name.replace("\\", "\\\\").replace("'", "\\'")
        response = (
            self._service.files()
            .list(
                q=f"name='{escaped}' and mimeType='{FOLDER_MIME_TYPE}' and trashed=false",
                fields="files(id)",
                spaces="drive",
            )
            .execute()
        )
        folders = response.get("files") or []
        if folders:
            self._folder_id = folders[0]["id"]
        else:
            logger.info("drive_folder_create name=%s", self.folder_name)
            folder = (
                self._service.files()
                .create(body={"name": self.folder_name, "mimeType": FOLDER_MIME_TYPE}, fields="id")
                .execute()
            )
            self._folder_id = folder["id"]
        return self._folder_id

    def upload(self, path: Path, file_name: str, mime_type: str) -> StoredBlob:
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")

        folder_id = self._ensure_folder()
        media = MediaFileUpload(str(path), mimetype=mime_type, resumable=True)
        created = (
            self._service.files()
            .create(
                body={"name": timestamped_name(file_name), "parents": [folder_id]},
                media_body=media,
                fields="id,webViewLink",
            )
            .execute()
        )
        file_id = created["id"]
        self._service.permissions().create(
            fileId=file_id,
            body={"role": "reader", "type": "anyone"},
        ).execute()
        locator = created.get("webViewLink") or DRIVE_VIEW_URL.format(file_id=file_id)
        return StoredBlob(key=file_id, locator=locator)

    def delete(self, locator: str) -> None:
        file_id = self.file_id_from_url(locator)
        if not file_id:
            raise ValueError(f"Could not extract Drive file id from {locator!r}")
        self._service.files().delete(fileId=file_id).execute()

    @staticmethod
    def file_id_from_url(locator: str) -> Optional[str]:
        parsed = urlparse(locator)
        ids = parse_qs(parsed.query).get("id")
        if ids:
            return ids[0]
        match = _FILE_ID_PATTERN.search(parsed.path)
        return match.group(1) if match else None
