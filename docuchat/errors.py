class ExtractionError(Exception):
    """A document could not be converted to text."""


class WorkerVersionMismatch(ExtractionError):
    """The PDF library and its background worker disagree on the version."""


class DocumentProcessingError(Exception):
    """A batch of documents failed; no knowledge base was produced."""


class AnsweringError(Exception):
    """The remote model did not return a usable reply."""
