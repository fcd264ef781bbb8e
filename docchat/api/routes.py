"""Document upload endpoint for context extraction.

Handles file upload, validation and text extraction. Nothing is stored on the
server: the extracted text goes back to the client, which owns the merged
context.
"""

import logging

from fastapi import APIRouter, HTTPException, UploadFile, status

from docchat.models.schemas import DocumentUploadResponse
from docchat.parsing.documents import UNSUPPORTED_TYPE_MESSAGE, is_supported, parse_document
from docchat.parsing.errors import DocumentParseError
from docchat.parsing.pdf_parser import MAX_FILE_SIZE

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/upload", tags=["upload"])

# 10MB limit matches pdf_parser constant
MAX_UPLOAD_SIZE = MAX_FILE_SIZE


def _validate_file_extension(filename: str | None) -> str:
    """Validate that the file is a PDF, TXT or DOCX.

    Args:
        filename: The uploaded filename.

    Returns:
        The validated filename.

    Raises:
        HTTPException: 400 if the name is missing or the extension is invalid.
    """
    if not filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Filename is required",
        )

    if not is_supported(filename):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=UNSUPPORTED_TYPE_MESSAGE,
        )

    return filename


async def _read_and_validate_size(file: UploadFile) -> bytes:
    """Read file content and validate size.

    Raises:
        HTTPException: 413 if file exceeds size limit.
    """
    content = await file.read()

    if len(content) > MAX_UPLOAD_SIZE:
        size_mb = len(content) / (1024 * 1024)
        raise HTTPException(
            status_code=status.HTTP_413_CONTENT_TOO_LARGE,
            detail=f"File size ({size_mb:.1f}MB) exceeds maximum allowed (10MB)",
        )

    return content


@router.post("/document", response_model=DocumentUploadResponse)
async def upload_document(file: UploadFile) -> DocumentUploadResponse:
    """Extract the text of an uploaded document.

    Args:
        file: The uploaded file (multipart/form-data).

    Returns:
        DocumentUploadResponse with filename, extracted text and page count.

    Raises:
        400: Unsupported type, empty or corrupt file.
        413: File exceeds 10MB limit.
    """
    filename = _validate_file_extension(file.filename)
    content = await _read_and_validate_size(file)

    try:
        document = parse_document(filename, content)
    except DocumentParseError as e:
        logger.warning(f"Parse error for {filename}: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        ) from e

    logger.info(f"Extracted {len(document.text)} chars from {filename} ({document.pages} pages)")
    return DocumentUploadResponse(
        filename=filename,
        content=document.text,
        pages=document.pages,
        metadata=document.metadata,
    )
