"""
Router for spreadsheet export endpoints.

Handles:
- Flattening extracted records into rows and returning them as CSV
"""

import logging

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import Response

from ..config import get_settings
from ..models import ExportRequest
from ..services.ai import RecordValidationError, build_record_validator
from ..services.export_service import CSV_MEDIA_TYPE, export_filename, rows_to_csv
from ..services.flattening import flatten_batch
from ..services.pipeline import DocumentResult
from ..services.schema_service import validate_schema

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["export"])


@router.post("/generate-export")
async def generate_export(request: ExportRequest) -> Response:
    """
    Export extracted records as a CSV spreadsheet.

    Records are validated against the schema again before flattening,
    since the client may have edited them. Each item of the rows field
    becomes one row carrying the file name and every top-level scalar.
    """
    fields = request.schema_definition
    validate_schema(fields)
    validator = build_record_validator(fields)

    results: list[DocumentResult] = []
    for document in request.data:
        try:
            record = validator(document.data)
        except RecordValidationError as e:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=f"Invalid data for '{document.file_name}': {e}",
            ) from e
        results.append(DocumentResult(document.file_name, record))

    rows = flatten_batch(
        results,
        fields,
        rows_field=request.rows_field,
        label_column=get_settings().export_label_column,
    )
    filename = export_filename()

    logger.info("Exporting %d documents as %s", len(results), filename)
    return Response(
        content=rows_to_csv(rows),
        media_type=CSV_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
