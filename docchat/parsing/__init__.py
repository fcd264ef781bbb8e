"""Document parsing utilities.

Turns uploaded PDF, DOCX and plain-text files into text that can be merged
into the chat context.
"""

from docchat.parsing.documents import (
    SUPPORTED_EXTENSIONS,
    ParsedDocument,
    is_supported,
    parse_document,
)
from docchat.parsing.errors import DocumentParseError, UnsupportedDocumentError
from docchat.parsing.pdf_parser import MAX_FILE_SIZE, PDFContent, PDFParseError, parse_pdf

__all__ = [
    "MAX_FILE_SIZE",
    "SUPPORTED_EXTENSIONS",
    "DocumentParseError",
    "PDFContent",
    "PDFParseError",
    "ParsedDocument",
    "UnsupportedDocumentError",
    "is_supported",
    "parse_document",
    "parse_pdf",
]
