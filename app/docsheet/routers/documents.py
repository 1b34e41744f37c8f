"""
Router for single-document extraction.

Handles:
- Extracting a validated record from document text
"""

import logging

from fastapi import APIRouter

from ..models import ExtractDataRequest
from ..services.ai import get_ai_service
from ..services.schema_service import validate_schema

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["documents"])


@router.post("/extract-data")
async def extract_data(request: ExtractDataRequest) -> dict:
    """
    Extract one record from document text.

    Returns the record shaped exactly like the schema. Schema problems
    give 400, a reply that does not match the schema gives 422 and
    extraction service failures give 503.
    """
    fields = request.schema_definition
    validate_schema(fields)

    logger.info(
        "Extracting data: %d chars, fields=%s",
        len(request.text),
        [f.name for f in fields],
    )
    record = await get_ai_service().extract_record(fields, request.text)
    return record.to_dict()
