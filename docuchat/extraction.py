import asyncio
import io
import logging
from typing import Dict, List, Protocol

from docx import Document
from docx.oxml.ns import qn
from docx.table import Table
from docx.text.paragraph import Paragraph

from .errors import ExtractionError
from .formats import DocumentFormat, UploadedFile, classify
from .pdf_worker import WORKER_MISMATCH_MARKER, ensure_worker_ready, worker_context

logger = logging.getLogger(__name__)


class TextExtractor(Protocol):
    async def extract(self, data: bytes) -> str:
        ...


def _page_fragments(page) -> List[str]:
    text = page.extract_text() or ""
    return [line.strip() for line in text.splitlines() if line.strip()]


def read_pdf(library, file_bytes: bytes) -> str:
    """Page text in page order, fragments joined by a space, one line per page."""
    reader = library.PdfReader(io.BytesIO(file_bytes))
    text = ""
    for page in reader.pages:
        text += " ".join(_page_fragments(page)) + "\n"
    return text.strip()


def read_docx(file_bytes: bytes) -> str:
    """Paragraph and table cell text in body order."""
    document = Document(io.BytesIO(file_bytes))
    blocks = []
    for child in document.element.body.iterchildren():
        if child.tag == qn("w:p"):
            blocks.append(Paragraph(child, document).text)
        elif child.tag == qn("w:tbl"):
            for row in Table(child, document).rows:
                blocks.extend(cell.text for cell in row.cells)
    return "\n\n".join(block for block in blocks if block)


def read_text(file_bytes: bytes) -> str:
    try:
        return file_bytes.decode("utf-8-sig")
    except UnicodeDecodeError:
        return file_bytes.decode("utf-8-sig", errors="replace")


class PdfTextExtractor:
    async def extract(self, data: bytes) -> str:
        try:
            await ensure_worker_ready()
        except Exception as exc:
            raise ExtractionError(f"PDF support is unavailable: {exc}") from exc

        try:
            return await worker_context.run(read_pdf, data)
        except Exception as exc:
            if WORKER_MISMATCH_MARKER not in str(exc):
                raise ExtractionError(f"Failed to extract text from PDF: {exc}") from exc
            logger.warning("%s; retrying with the PDF worker disabled", exc)

        try:
            return await worker_context.run(read_pdf, data, disable_worker=True)
        except Exception as exc:
            raise ExtractionError(f"Failed to extract text from PDF: {exc}") from exc


class DocxTextExtractor:
    async def extract(self, data: bytes) -> str:
        try:
            return await asyncio.to_thread(read_docx, data) or ""
        except Exception as exc:
            raise ExtractionError(f"Failed to extract text from DOCX: {exc}") from exc


class PlainTextExtractor:
    async def extract(self, data: bytes) -> str:
        return read_text(data)


EXTRACTORS: Dict[DocumentFormat, TextExtractor] = {
    DocumentFormat.PDF: PdfTextExtractor(),
    DocumentFormat.DOCX: DocxTextExtractor(),
    DocumentFormat.TXT: PlainTextExtractor(),
    DocumentFormat.UNKNOWN: PlainTextExtractor(),
}


async def extract(file: UploadedFile) -> str:
    """
    Extract the trimmed text of one file using the extractor for its format.

    Plain text and unknown formats never fail; PDF and DOCX raise
    `ExtractionError` when the document cannot be parsed.
    """
    fmt = classify(file)
    data = file.data
    if not data:
        return ""
    logger.debug("Extracting %s as %s (%d bytes)", file.name, fmt.value, len(data))
    text = await EXTRACTORS[fmt].extract(data)
    return text.strip()
