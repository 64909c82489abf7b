# tests/test_parse_utils.py
import io

import pytest
from docx import Document

from app.core.errors import ExtractionError
from app.services.parse_utils import extract_text


def test_plain_text():
    text, kind = extract_text(b"Jane Doe\nPython developer")
    assert kind == "txt"
    assert "Python developer" in text


def make_pdf(line: str) -> bytes:
    """One-page PDF showing `line` in Helvetica, with a correct xref table."""
    stream = f"BT /F1 24 Tf 72 720 Td ({line}) Tj ET".encode("latin-1")
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
        b"/Resources << /Font << /F1 5 0 R >> >> /Contents 4 0 R >>",
        b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for num, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += b"%d 0 obj\n" % num + body + b"\nendobj\n"
    xref = len(out)
    out += b"xref\n0 %d\n0000000000 65535 f \n" % (len(objects) + 1)
    for off in offsets:
        out += b"%010d 00000 n \n" % off
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (len(objects) + 1, xref)
    return bytes(out)


def test_pdf_text():
    text, kind = extract_text(make_pdf("Jane Doe Resume"))
    assert kind == "pdf"
    assert "Jane Doe Resume" in text


def test_docx_paragraphs():
    doc = Document()
    doc.add_paragraph("Jane Doe")
    doc.add_paragraph("")
    doc.add_paragraph("Led a team of five")
    buf = io.BytesIO()
    doc.save(buf)

    text, kind = extract_text(buf.getvalue())
    assert kind == "docx"
    assert text == "Jane Doe\nLed a team of five"


def test_empty_document():
    with pytest.raises(ExtractionError):
        extract_text(b"")


def test_corrupt_docx_raises_extraction_error():
    with pytest.raises(ExtractionError) as ei:
        extract_text(b"PK\x03\x04 not really a zip")
    assert "docx" in str(ei.value)
