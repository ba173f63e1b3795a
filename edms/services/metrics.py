from __future__ import annotations

from prometheus_client import Counter


UPLOADS_COUNTER = Counter(
    "edms_document_uploads_total",
    "Documents uploaded per blob storage backend",
    ["storage_type"],
)

BLOB_FALLBACKS_COUNTER = Counter(
    "edms_blob_fallbacks_total",
    "Uploads recorded with a placeholder locator because the blob store failed",
    ["storage_type"],
)

ANALYSES_COUNTER = Counter(
    "edms_document_analyses_total",
    "Document analysis attempts by outcome",
    ["outcome"],
)


def record_upload(storage_type: str, stored: bool) -> None:
    UPLOADS_COUNTER.labels(storage_type=storage_type).inc()
    if not stored:
        BLOB_FALLBACKS_COUNTER.labels(storage_type=storage_type).inc()


def record_analysis(outcome: str) -> None:
    ANALYSES_COUNTER.labels(outcome=outcome).inc()
