"""
Router for batch processing endpoints.

Handles:
- Extracting records from several PDFs with one schema
"""

import logging
from typing import Annotated

from fastapi import APIRouter, File, Form, HTTPException, UploadFile, status
from pydantic import TypeAdapter, ValidationError

from ..config import get_settings
from ..models import (
    BatchExtractResponse,
    DocumentData,
    DocumentFailureResponse,
    FieldSchema,
)
from ..services.ai import get_ai_service
from ..services.pdf_service import get_pdf_service
from ..services.pipeline import SourceDocument, run_batch
from .upload import ensure_pdf_filename

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["batches"])

_schema_adapter = TypeAdapter(list[FieldSchema])


def parse_schema_form(raw: str) -> list[FieldSchema]:
    """Parse a JSON schema forest sent as a form field."""
    try:
        return _schema_adapter.validate_json(raw)
    except ValidationError as e:
        if any(error["type"] == "json_invalid" for error in e.errors()):
            detail = f"Invalid JSON in confirmed_schema: {e}"
        else:
            detail = f"Invalid schema: {e}"
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


@router.post("/extract-batch", response_model=BatchExtractResponse)
async def extract_batch(
    files: Annotated[list[UploadFile], File(description="PDF files to extract")],
    confirmed_schema: Annotated[str, Form(description="JSON list of schema fields")],
) -> BatchExtractResponse:
    """
    Extract records from a batch of PDFs.

    Every file is read to text and extracted with the same schema. A file
    that fails does not stop the others; it is listed under ``failures``.
    Results and failures keep upload order.
    """
    fields = parse_schema_form(confirmed_schema)

    documents: list[SourceDocument] = []
    for upload in files:
        filename = ensure_pdf_filename(upload.filename)
        try:
            content = await upload.read()
        finally:
            await upload.close()
        documents.append(SourceDocument(label=filename, content=content))

    settings = get_settings()
    report = await run_batch(
        documents,
        fields,
        extractor=get_ai_service().extract_raw,
        text_source=get_pdf_service().extract_text,
        max_concurrency=settings.max_concurrent_jobs,
    )

    return BatchExtractResponse(
        results=[
            DocumentData(file_name=result.label, data=result.record.to_dict())
            for result in report.results
        ],
        failures=[
            DocumentFailureResponse(
                file_name=failure.label,
                stage=failure.stage,
                error=failure.error,
                path=failure.path,
            )
            for failure in report.failures
        ],
        skipped=report.skipped,
        total_documents=report.total_documents,
        successful_documents=len(report.results),
    )
