# app/services/parse_utils.py
"""
Helpers to extract text from common resume file bytes.
- PDF -> uses pdfminer.six
- DOCX -> uses python-docx
- TXT  -> decode bytes

Failures raise ExtractionError; the worker decides what to do about them.
"""

from typing import Tuple
import io

from docx import Document
from pdfminer.high_level import extract_text_to_fp

from app.core.errors import ExtractionError


def _is_pdf_bytes(b: bytes) -> bool:
    return b.startswith(b"%PDF")

def _is_docx_bytes(b: bytes) -> bool:
    # docx is a zip archive with '[Content_Types].xml' file; check PK header
    return b.startswith(b"PK")

def parse_text_bytes(b: bytes, encoding: str = "utf-8") -> str:
    return b.decode(encoding, errors="replace")

def parse_docx_bytes(b: bytes) -> str:
    doc = Document(io.BytesIO(b))
    paras = [p.text.strip() for p in doc.paragraphs if p.text and p.text.strip()]
    return "\n".join(paras)

def parse_pdf_bytes(b: bytes) -> str:
    output = io.StringIO()
    extract_text_to_fp(io.BytesIO(b), output, laparams=None)
    return output.getvalue()

def extract_text(b: bytes) -> Tuple[str, str]:
    """
    Detect the document type and extract its text. Returns (text, type_str)
    where type_str is one of "pdf", "docx", "txt".
    """
    if not b:
        raise ExtractionError("Document is empty")

    if _is_pdf_bytes(b):
        kind, parser = "pdf", parse_pdf_bytes
    elif _is_docx_bytes(b):
        kind, parser = "docx", parse_docx_bytes
    else:
        kind, parser = "txt", parse_text_bytes

    try:
        return parser(b), kind
    except Exception as exc:
        raise ExtractionError(f"Could not extract text from {kind} document: {exc}") from exc
