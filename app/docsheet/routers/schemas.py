"""
Router for schema endpoints.

Handles:
- Providing the default schema
- Structural validation of schemas
- Previewing the compiled extraction contract
"""

import logging

from fastapi import APIRouter

from ..models import (
    ContractResponse,
    FieldSchema,
    SchemaRequest,
    SchemaValidationResponse,
)
from ..services.ai.contract import build_function_definition, compile_contract
from ..services.flattening import FlatteningLimitationError, resolve_rows_field
from ..services.schema_service import default_invoice_schema, validate_schema

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/schemas", tags=["schemas"])


@router.get("/default", response_model=list[FieldSchema])
async def get_default_schema() -> list[FieldSchema]:
    """Return the starter invoice schema."""
    return default_invoice_schema()


@router.post("/validate", response_model=SchemaValidationResponse)
async def validate_schema_endpoint(request: SchemaRequest) -> SchemaValidationResponse:
    """
    Check a schema for structural problems.

    Responds 400 (via the SchemaError handler) when the schema is unusable.
    ``rows_field`` names the array field that an export would expand, or
    is null when the schema has none or several.
    """
    fields = request.schema_definition
    validate_schema(fields)

    try:
        rows_field: str | None = resolve_rows_field(fields).name
    except FlatteningLimitationError:
        rows_field = None

    return SchemaValidationResponse(valid=True, rows_field=rows_field)


@router.post("/contract", response_model=ContractResponse)
async def compile_contract_endpoint(request: SchemaRequest) -> ContractResponse:
    """Return the extraction contract the schema compiles to."""
    fields = request.schema_definition
    validate_schema(fields)
    contract = compile_contract(fields)
    return ContractResponse(
        contract=contract,
        function=build_function_definition(contract),
    )
