from __future__ import annotations

import os
import re
import time
from dataclasses import dataclass


class BlobStorageConfigError(RuntimeError):
    """Raised when a blob store is used without its credentials."""


@dataclass
class StoredBlob:
    key: str
    locator: str


def sanitize_filename(filename: str) -> str:
    name = os.path.basename(filename or "document")
    name = re.sub(r"[^A-Za-z0-9._-]", "_", name)
    return name[:100] or "document"


def timestamped_name(file_name: str, sanitize: bool = False) -> str:
    base = sanitize_filename(file_name) if sanitize else (os.path.basename(file_name) or "document")
    return f"{int(time.time() * 1000)}-{base}"
