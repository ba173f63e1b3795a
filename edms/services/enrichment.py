from __future__ import annotations

import logging
from typing import Optional

from ..config import OpenAISettings
from ..storage import DocumentRecord, StorageBackend
from .llm_analyze import FALLBACK_SUMMARY, analyze_document
from .metrics import record_analysis

logger = logging.getLogger(__name__)

ANALYZABLE_TYPES = frozenset({"PDF", "DOC", "DOCX", "TXT"})


def is_analyzable(file_type: str) -> bool:
    return (file_type or "").upper() in ANALYZABLE_TYPES


def enrich_document(
    storage: StorageBackend,
    document_id: int,
    content: bytes,
    file_type: str,
    file_name: str,
    settings: OpenAISettings,
) -> Optional[DocumentRecord]:
    """Analyze document bytes and attach the result to the stored record.

    Returns the updated record, or ``None`` when nothing was written.
    """
    analysis = analyze_document(content, file_type, file_name, settings)
    if analysis is None:
        record_analysis("failed")
        logger.info("analysis_not_written document_id=%s file_type=%s", document_id, file_type)
        return None

    updated = storage.update_document_analysis(document_id, analysis)
    if updated is None:
        record_analysis("orphaned")
        logger.warning("analysis_discarded document_id=%s reason=document_deleted", document_id)
        return None

    outcome = "fallback" if analysis.get("summary") == FALLBACK_SUMMARY else "completed"
    record_analysis(outcome)
    logger.info(
        "analysis_complete document_id=%s outcome=%s category=%s",
        document_id,
        outcome,
        analysis.get("category"),
    )
    return updated


def run_document_enrichment(
    storage: StorageBackend,
    document_id: int,
    content: bytes,
    file_type: str,
    file_name: str,
    settings: OpenAISettings,
) -> None:
    """Background-task entry point; failures end here."""
    try:
        enrich_document(storage, document_id, content, file_type, file_name, settings)
    except Exception:
        record_analysis("failed")
        logger.exception("analysis_crashed document_id=%s", document_id)
