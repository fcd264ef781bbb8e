"""Exceptions raised while extracting text from uploaded documents."""


class DocumentParseError(Exception):
    """Raised when a document cannot be turned into text."""

    pass


class UnsupportedDocumentError(DocumentParseError):
    """Raised for file types the assistant does not read."""

    pass
