"""PDF parsing module using pypdf.

Extracts text content and metadata from PDF files with validation.
"""

import io
import logging

from pydantic import BaseModel, Field
from pypdf import PdfReader
from pypdf.errors import PdfReadError

from docchat.parsing.errors import DocumentParseError

logger = logging.getLogger(__name__)

# Constants
MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB
PDF_MAGIC_BYTES = b"%PDF"


class PDFContent(BaseModel):
    """Extracted content from a PDF file.

    Attributes:
        text: Page texts joined by blank lines.
        pages: Total number of pages in the document.
        metadata: Document metadata (title, author, etc.).
    """

    text: str
    pages: int = Field(ge=0)
    metadata: dict[str, str]


class PDFParseError(DocumentParseError):
    """Raised when PDF parsing fails."""

    pass


def check_size(file_content: bytes) -> None:
    """Reject empty or oversized uploads.

    Raises:
        DocumentParseError: If the content is empty or above MAX_FILE_SIZE.
    """
    if not file_content:
        raise DocumentParseError("Empty file provided")

    if len(file_content) > MAX_FILE_SIZE:
        size_mb = len(file_content) / (1024 * 1024)
        raise DocumentParseError(f"File size ({size_mb:.1f}MB) exceeds maximum allowed (10MB)")


def _validate_pdf_bytes(file_content: bytes) -> None:
    check_size(file_content)

    if not file_content.lstrip()[:10].startswith(PDF_MAGIC_BYTES):
        raise PDFParseError("Invalid PDF: file does not start with PDF header")


def _extract_metadata(reader: PdfReader) -> dict[str, str]:
    """Extract the standard info-dictionary fields, skipping missing ones."""
    metadata: dict[str, str] = {}

    try:
        if reader.metadata:
            for key, field in (
                ("title", "/Title"),
                ("author", "/Author"),
                ("subject", "/Subject"),
                ("creator", "/Creator"),
                ("producer", "/Producer"),
            ):
                value = reader.metadata.get(field)
                if value:
                    metadata[key] = str(value)
    except Exception as e:
        logger.warning(f"Failed to extract some metadata: {e}")

    return metadata


def parse_pdf(file_content: bytes) -> PDFContent:
    """Parse a PDF file and extract its text content.

    Args:
        file_content: Raw bytes of the PDF file.

    Returns:
        PDFContent with extracted text, page count, and metadata.

    Raises:
        DocumentParseError: If the file is invalid, too large, empty, or corrupt.
    """
    _validate_pdf_bytes(file_content)

    try:
        reader = PdfReader(io.BytesIO(file_content))
        pages = len(reader.pages)
    except PdfReadError as e:
        raise PDFParseError(f"Corrupt or invalid PDF: {e}") from e
    except Exception as e:
        raise PDFParseError(f"Failed to read PDF: {e}") from e

    if pages == 0:
        raise PDFParseError("PDF contains no pages")

    text_parts: list[str] = []
    for i, page in enumerate(reader.pages):
        try:
            page_text = page.extract_text()
        except Exception as e:
            logger.warning(f"Failed to extract text from page {i + 1}: {e}")
            continue
        if page_text:
            text_parts.append(page_text)

    text = "\n\n".join(text_parts)

    if not text.strip():
        logger.warning("PDF contains no extractable text (may be scanned/image-based)")

    return PDFContent(
        text=text,
        pages=pages,
        metadata=_extract_metadata(reader),
    )
