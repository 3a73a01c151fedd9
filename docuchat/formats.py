from dataclasses import dataclass
from enum import Enum

PDF_MIME = "application/pdf"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
TXT_MIME = "text/plain"


class DocumentFormat(str, Enum):
    PDF = "pdf"
    DOCX = "docx"
    TXT = "txt"
    UNKNOWN = "unknown"


MIME_FORMATS = {
    PDF_MIME: DocumentFormat.PDF,
    DOCX_MIME: DocumentFormat.DOCX,
    TXT_MIME: DocumentFormat.TXT,
}

EXTENSION_FORMATS = {
    ".pdf": DocumentFormat.PDF,
    ".docx": DocumentFormat.DOCX,
    ".txt": DocumentFormat.TXT,
}


@dataclass(frozen=True)
class UploadedFile:
    """A selected file: raw bytes plus the declared MIME type and name hints."""

    name: str
    content_type: str
    data: bytes


def _normalize_mime(content_type: str) -> str:
    return (content_type or "").split(";", 1)[0].strip().lower()


def classify(file: UploadedFile) -> DocumentFormat:
    """
    Classify a file by its declared MIME type, falling back to the file
    extension when the MIME type is missing, generic or unrecognised.
    A recognised MIME type always wins over the extension.
    """
    mime = _normalize_mime(file.content_type)
    if mime in MIME_FORMATS:
        return MIME_FORMATS[mime]

    lower = (file.name or "").lower()
    for extension, fmt in EXTENSION_FORMATS.items():
        if lower.endswith(extension):
            return fmt
    return DocumentFormat.UNKNOWN
