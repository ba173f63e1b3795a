from __future__ import annotations

import base64
import io
import logging
from typing import BinaryIO, Optional, Union

import pdfplumber
from docx import Document as DocxDocument

logger = logging.getLogger(__name__)

MAX_CONTEXT_CHARS = 10_000

PLAIN_TEXT_TYPES = frozenset({"TXT", "MD", "CSV", "JSON", "HTML", "XML"})
IMAGE_TYPES = frozenset({"JPG", "JPEG", "PNG", "GIF", "WEBP"})
VISION_TYPES = IMAGE_TYPES | {"PDF"}


def extract_text_from_pdf(source: Union[bytes, BinaryIO]) -> Optional[str]:
    try:
        buffer = io.BytesIO(source) if isinstance(source, (bytes, bytearray)) else source
        with pdfplumber.open(buffer) as pdf:
            pages = []
            length = 0
            for page in pdf.pages:
                text = page.extract_text() or ""
                pages.append(text)
                length += len(text)
                if length >= MAX_CONTEXT_CHARS:
                    break
        text = "\n".join(pages).strip()
        return text if text else None
    except Exception:
        logger.debug("pdf_text_extraction_failed", exc_info=True)
        return None


def extract_text_from_docx(content: bytes) -> Optional[str]:
    try:
        document = DocxDocument(io.BytesIO(content))
    except Exception:
        logger.debug("docx_text_extraction_failed", exc_info=True)
        return None
    text = "\n".join(paragraph.text for paragraph in document.paragraphs if paragraph.text).strip()
    return text if text else None


def extract_text(content: bytes, file_type: str) -> str:
    """Best-effort text context for a document, capped at ``MAX_CONTEXT_CHARS``."""
    kind = file_type.upper()
    text: Optional[str] = None
    if kind in PLAIN_TEXT_TYPES:
        text = content.decode("utf-8", errors="replace")
    elif kind == "PDF":
        text = extract_text_from_pdf(content)
    elif kind == "DOCX":
        text = extract_text_from_docx(content)
    return (text or "")[:MAX_CONTEXT_CHARS]


def to_data_url(content: bytes, file_type: str) -> Optional[str]:
    """Base64 data URL for vision-capable inference, or ``None`` for other types."""
    kind = file_type.upper()
    if kind not in VISION_TYPES:
        return None
    if kind == "PDF":
        mime = "application/pdf"
    elif kind in ("JPG", "JPEG"):
        mime = "image/jpeg"
    else:
        mime = f"image/{kind.lower()}"
    return f"data:{mime};base64,{base64.b64encode(content).decode('ascii')}"
