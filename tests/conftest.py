import io
from typing import List

import PyPDF2
import pytest
from docx import Document

from docuchat.pdf_worker import worker_context


def build_pdf(pages: List[str]) -> bytes:
    """Build a minimal PDF with one Helvetica text line per page."""
    count = len(pages)
    kids = " ".join(f"{4 + 2 * i} 0 R" for i in range(count))
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        f"<< /Type /Pages /Kids [{kids}] /Count {count} >>".encode(),
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    for i, text in enumerate(pages):
        objects.append(
            (
                "<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
                f"/Resources << /Font << /F1 3 0 R >> >> /Contents {5 + 2 * i} 0 R >>"
            ).encode()
        )
        stream = f"BT /F1 24 Tf 72 720 Td ({text}) Tj ET".encode()
        objects.append(b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream")

    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += b"%d 0 obj\n" % number + body + b"\nendobj\n"

    xref_offset = len(out)
    out += b"xref\n0 %d\n" % (len(objects) + 1)
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += b"%010d 00000 n \n" % offset
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\n" % (len(objects) + 1)
    out += b"startxref\n%d\n%%%%EOF\n" % xref_offset
    return bytes(out)


def build_docx(paragraphs: List[str], table_rows: List[List[str]] = None) -> bytes:
    document = Document()
    for text in paragraphs:
        document.add_paragraph(text)
    if table_rows:
        table = document.add_table(rows=len(table_rows), cols=len(table_rows[0]))
        for row, values in zip(table.rows, table_rows):
            for cell, value in zip(row.cells, values):
                cell.text = value
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


# ---------------------- Fixtures ---------------------- #
@pytest.fixture(autouse=True)
def fresh_worker():
    """Each test starts with an uninitialized PDF worker pinned to the installed library."""
    worker_context.reset()
    worker_context.pinned_version = PyPDF2.__version__
    yield worker_context
    worker_context.reset()


@pytest.fixture
def make_pdf():
    return build_pdf


@pytest.fixture
def make_docx():
    return build_docx


class FakeAnsweringClient:
    """Records each call and replies with a canned answer or raises."""

    def __init__(self, reply="This is a mock answer.", error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    async def answer(self, knowledge_base, messages):
        self.calls.append((knowledge_base, [dict(m) for m in messages]))
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def answering_client():
    return FakeAnsweringClient()
