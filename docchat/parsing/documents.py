"""Text extraction for the document types the assistant accepts.

Dispatches on file extension: PDF through pypdf, DOCX through python-docx,
plain text decoded as UTF-8.
"""

import io
import logging
from pathlib import Path

from docx import Document as DocxDocument
from pydantic import BaseModel, Field

from docchat.parsing.errors import DocumentParseError, UnsupportedDocumentError
from docchat.parsing.pdf_parser import check_size, parse_pdf

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".pdf", ".txt", ".docx")
UNSUPPORTED_TYPE_MESSAGE = "Unsupported file type. Please upload a PDF, TXT, or DOCX file."


class ParsedDocument(BaseModel):
    """Plain text extracted from one uploaded file."""

    name: str
    text: str
    pages: int = Field(default=1, ge=0)
    metadata: dict[str, str] = Field(default_factory=dict)


def is_supported(filename: str | None) -> bool:
    """Whether the filename has an accepted extension."""
    return bool(filename) and Path(filename).suffix.lower() in SUPPORTED_EXTENSIONS


def _parse_text(content: bytes) -> str:
    return content.decode("utf-8-sig", errors="replace")


def _parse_docx(content: bytes) -> str:
    try:
        doc = DocxDocument(io.BytesIO(content))
    except Exception as e:
        raise DocumentParseError(f"Corrupt or invalid DOCX: {e}") from e

    parts = [para.text for para in doc.paragraphs if para.text.strip()]
    if not parts:
        for table in doc.tables:
            for row in table.rows:
                parts.append(" | ".join(cell.text for cell in row.cells))
    return "\n".join(parts)


def parse_document(filename: str, content: bytes) -> ParsedDocument:
    """Extract the text of an uploaded document.

    Args:
        filename: Original filename, used to pick the parser.
        content: Raw file bytes.

    Returns:
        ParsedDocument named after the file.

    Raises:
        UnsupportedDocumentError: If the extension is not accepted.
        DocumentParseError: If the file is empty, too large or unreadable.
    """
    if not is_supported(filename):
        raise UnsupportedDocumentError(UNSUPPORTED_TYPE_MESSAGE)

    suffix = Path(filename).suffix.lower()
    if suffix == ".pdf":
        pdf = parse_pdf(content)
        return ParsedDocument(name=filename, text=pdf.text, pages=pdf.pages, metadata=pdf.metadata)

    check_size(content)
    text = _parse_docx(content) if suffix == ".docx" else _parse_text(content)
    if not text.strip():
        logger.warning(f"Document contains no text: {filename}")
    return ParsedDocument(name=filename, text=text)
