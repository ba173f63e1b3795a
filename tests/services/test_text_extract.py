from __future__ import annotations

import io

from docx import Document as DocxDocument

from edms.services.text_extract import MAX_CONTEXT_CHARS, extract_text, extract_text_from_pdf, to_data_url


def _docx_bytes(*paragraphs: str) -> bytes:
    document = DocxDocument()
    for paragraph in paragraphs:
        document.add_paragraph(paragraph)
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def test_plain_text_is_capped():
    text = extract_text(b"a" * (MAX_CONTEXT_CHARS + 50), "txt")
    assert len(text) == MAX_CONTEXT_CHARS


def test_docx_paragraphs_are_joined():
    content = _docx_bytes("Scope of works", "", "Pile caps to grid C")
    assert extract_text(content, "DOCX") == "Scope of works\nPile caps to grid C"


def test_corrupt_inputs_yield_empty_text():
    assert extract_text(b"not a zip", "DOCX") == ""
    assert extract_text_from_pdf(b"not a pdf") is None
    assert extract_text(b"\xd0\xcf\x11\xe0", "DOC") == ""


def test_data_urls():
    assert to_data_url(b"%PDF", "pdf").startswith("data:application/pdf;base64,")
    assert to_data_url(b"\xff\xd8", "JPG").startswith("data:image/jpeg;base64,")
    assert to_data_url(b"\x89PNG", "png").startswith("data:image/png;base64,")
    assert to_data_url(b"text", "TXT") is None
