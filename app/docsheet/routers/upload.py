"""
Router for upload endpoints.

Handles:
- PDF upload and text extraction
"""

import logging
from typing import Annotated

from fastapi import APIRouter, File, HTTPException, UploadFile, status

from ..models import ExtractTextResponse
from ..services.pdf_service import get_pdf_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["upload"])


def ensure_pdf_filename(filename: str | None) -> str:
    """Reject uploads that are not named like PDFs."""
    if not filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No filename provided",
        )
    if not filename.lower().endswith(".pdf"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Only PDF files are accepted: {filename}",
        )
    return filename


@router.post("/extract-text", response_model=ExtractTextResponse)
async def extract_text(
    file: Annotated[UploadFile, File(description="PDF file to read")],
) -> ExtractTextResponse:
    """
    Upload a PDF and return its plain text.

    Text extraction failures surface as 422 via the TextExtractionError
    handler.
    """
    filename = ensure_pdf_filename(file.filename)

    try:
        file_bytes = await file.read()
        if not file_bytes:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Empty file provided",
            )

        logger.info("Processing PDF: %s (%d bytes)", filename, len(file_bytes))
        text = get_pdf_service().extract_text(file_bytes)
        return ExtractTextResponse(file_name=filename, text=text)
    finally:
        await file.close()
