from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

import instructor
import openai
from instructor.exceptions import InstructorRetryException
from pydantic import BaseModel, Field, ValidationError

from ..config import OpenAISettings
from .text_extract import IMAGE_TYPES, extract_text, to_data_url

logger = logging.getLogger(__name__)

FALLBACK_SUMMARY = "The document could not be analyzed."
FALLBACK_CATEGORY = "Uncategorized"


class DocumentAnalysisLLMOut(BaseModel):
    summary: str
    keywords: list[str] = Field(default_factory=list)
    category: str
    dates: list[str] = Field(default_factory=list)
    values: list[str] = Field(default_factory=list)
    entities: list[str] = Field(default_factory=list)


SYSTEM_TMPL = """You are a document analysis assistant for a construction company.
Analyze the following {file_type} document in detail and extract:
1. A short summary of the document (at most 300 characters)
2. 3-6 relevant keywords or tags
3. The main category or document type (contract, report, specification, invoice, plan, ...)
4. Important dates mentioned in the document
5. Significant numeric values or measurements, with their units
6. Names of people or organizations mentioned

Respond with a single JSON object:
{{
  "summary": "short summary",
  "keywords": ["keyword1", "keyword2", "keyword3"],
  "category": "main category",
  "dates": ["YYYY-MM-DD where possible"],
  "values": ["numeric value with unit"],
  "entities": ["person or organization name"]
}}"""


def build_messages(content: bytes, file_type: str, file_name: str) -> list[dict[str, Any]]:
    kind = file_type.upper()
    text = extract_text(content, kind)
    data_url = to_data_url(content, kind)
    system = {"role": "system", "content": SYSTEM_TMPL.format(file_type=kind)}

    if data_url is None:
        user_content = text or f"[This is a {kind} document that needs analysis: {file_name}]"
        return [system, {"role": "user", "content": user_content}]

    instruction = f"Analyze this document and extract the requested information: {file_name}"
    if text:
        instruction = f"{instruction}\n\nExtracted text:\n---\n{text}\n---"
    if kind in IMAGE_TYPES:
        attachment = {"type": "image_url", "image_url": {"url": data_url}}
    else:
        attachment = {"type": "file", "file": {"filename": file_name, "file_data": data_url}}
    return [system, {"role": "user", "content": [{"type": "text", "text": instruction}, attachment]}]


def fallback_analysis() -> dict[str, Any]:
    return {
        "summary": FALLBACK_SUMMARY,
        "keywords": [],
        "category": FALLBACK_CATEGORY,
        "dates": [],
        "values": [],
        "entities": [],
    }


def _caused_by_api_error(exc: BaseException) -> bool:
    seen = exc
    while seen is not None:
        if isinstance(seen, openai.OpenAIError):
            return True
        seen = seen.__cause__ or seen.__context__
    return False


def _client(settings: OpenAISettings) -> Any:
    return instructor.from_openai(openai.OpenAI(api_key=settings.api_key), mode=instructor.Mode.JSON)


def analyze_document(
    content: bytes,
    file_type: str,
    file_name: str,
    settings: OpenAISettings,
) -> Optional[dict[str, Any]]:
    """Structured analysis of a document, or ``None`` when no result could be produced.

    Output the model returns but that does not parse into the expected shape
    becomes the fallback record instead of ``None``.
    """
    if not settings.api_key:
        logger.warning("analysis_skipped reason=missing_api_key file_name=%s", file_name)
        return None
    if not content:
        logger.warning("analysis_skipped reason=empty_content file_name=%s", file_name)
        return None

    messages = build_messages(content, file_type, file_name)
    try:
        result: DocumentAnalysisLLMOut = _client(settings).chat.completions.create(
            model=settings.model,
            response_model=DocumentAnalysisLLMOut,
            messages=messages,
            max_retries=1,
        )
        analysis = result.model_dump()
    except (InstructorRetryException, ValidationError) as exc:
        if _caused_by_api_error(exc):
            logger.exception("analysis_request_failed file_name=%s", file_name)
            return None
        logger.warning("analysis_unparseable file_name=%s error=%s", file_name, exc)
        analysis = fallback_analysis()
    except openai.OpenAIError:
        logger.exception("analysis_request_failed file_name=%s", file_name)
        return None

    analysis["analyzedAt"] = datetime.now(timezone.utc).isoformat()
    analysis["fileType"] = file_type.upper()
    analysis["fileName"] = file_name
    return analysis
