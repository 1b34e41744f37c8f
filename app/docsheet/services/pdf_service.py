"""
PDF text extraction service using PyMuPDF.

Supplies the plain text of uploaded PDFs to the extraction pipeline.
"""

import logging
from typing import BinaryIO

import fitz  # PyMuPDF

logger = logging.getLogger(__name__)


class TextExtractionError(Exception):
    """Raised when text cannot be extracted from a document."""

    pass


class PDFService:
    """
    Service for PDF processing operations.

    Uses PyMuPDF to read the text layer of each page.
    """

    def __init__(self, page_separator: str = "\n\n"):
        """
        Initialize the PDF service.

        Args:
            page_separator: String placed between the text of consecutive pages.
        """
        self.page_separator = page_separator

    @staticmethod
    def _read_bytes(file_bytes: bytes | BinaryIO) -> bytes:
        if hasattr(file_bytes, "read"):
            return file_bytes.read()
        return file_bytes

    def extract_text(self, file_bytes: bytes | BinaryIO) -> str:
        """
        Extract the plain text of every page of a PDF.

        Args:
            file_bytes: PDF file as bytes or file-like object.

        Returns:
            Text of all pages joined by ``page_separator``.

        Raises:
            TextExtractionError: Empty input, non-PDF content, unreadable
                PDF, or a PDF without any text layer.
        """
        pdf_bytes = self._read_bytes(file_bytes)

        if not pdf_bytes:
            raise TextExtractionError("Empty PDF file provided")

        # Validate PDF magic bytes
        if pdf_bytes[:4] != b"%PDF":
            raise TextExtractionError("Invalid PDF file: does not start with PDF header")

        try:
            with fitz.open(stream=pdf_bytes, filetype="pdf") as doc:
                page_texts = [page.get_text().strip() for page in doc]
        except fitz.FileDataError as e:
            logger.error("PDF stream is corrupted: %s", e)
            raise TextExtractionError(f"Invalid or corrupted PDF file: {e}") from e
        except Exception as e:
            logger.exception("Unexpected error during PDF text extraction")
            raise TextExtractionError(f"PDF text extraction failed: {e}") from e

        text = self.page_separator.join(t for t in page_texts if t)
        if not text:
            raise TextExtractionError("No extractable text found in PDF")

        logger.info(
            "Extracted %d characters from %d page(s)", len(text), len(page_texts)
        )
        return text


# Singleton instance for convenience
_pdf_service: PDFService | None = None


def get_pdf_service() -> PDFService:
    """Get or create the PDF service singleton."""
    global _pdf_service
    if _pdf_service is None:
        _pdf_service = PDFService()
    return _pdf_service
