"""
Pydantic models for the document extraction pipeline.

Defines the recursive field schema the user builds in the editor and the
request/response models of the HTTP API.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class FieldType(str, Enum):
    """Supported field types for extraction."""

    STRING = "string"
    NUMBER = "number"
    ARRAY = "array"  # Repeated group of nested fields


class FieldSchema(BaseModel):
    """
    Definition of a single extraction target.

    Scalar fields (string/number) carry no children. Array fields describe
    a repeated group whose items are records made of ``fields``.

    The model only checks shape. Empty names, duplicate siblings and empty
    groups are reported by ``validate_schema`` so that a half-edited schema
    can still be parsed and sent back to the editor.

    Attributes:
        name: Field identifier, unique among its siblings.
        type: Scalar type or ``array`` for a repeated group.
        fields: Child fields of an array group.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(
        ...,
        max_length=100,
        description="Field identifier",
        examples=["company", "total_sum", "items"],
    )
    type: FieldType = Field(
        ...,
        description="Expected data type for the field",
    )
    fields: tuple["FieldSchema", ...] | None = Field(
        default=None,
        description="Child fields (array groups only)",
    )

    @model_validator(mode="after")
    def check_children_only_on_groups(self) -> "FieldSchema":
        """Scalar fields may not declare children."""
        if self.type != FieldType.ARRAY and self.fields:
            raise ValueError(
                f"Field '{self.name}' of type '{self.type.value}' cannot have child fields"
            )
        return self

    @property
    def is_group(self) -> bool:
        return self.type == FieldType.ARRAY

    @property
    def children(self) -> tuple["FieldSchema", ...]:
        return self.fields or ()


FieldSchema.model_rebuild()


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(default="healthy")
    message: str = Field(default="")
    version: str = Field(default="1.0.0")


# =============================================================================
# Schema Models
# =============================================================================


class SchemaRequest(BaseModel):
    """Request carrying a schema forest."""

    schema_definition: list[FieldSchema] = Field(
        ...,
        description="Top-level fields of the schema, in column order",
        alias="schema",
    )


class SchemaValidationResponse(BaseModel):
    """Result of a structural schema check."""

    valid: bool = Field(..., description="Whether the schema is usable")
    rows_field: str | None = Field(
        default=None,
        description="The array field that becomes spreadsheet rows, if unambiguous",
    )


class ContractResponse(BaseModel):
    """Compiled extraction contract for a schema."""

    contract: dict[str, Any] = Field(
        ...,
        description="JSON schema sent to the extraction service",
    )
    function: dict[str, Any] = Field(
        ...,
        description="Tool definition wrapping the contract",
    )


# =============================================================================
# Extraction Models
# =============================================================================


class ExtractTextResponse(BaseModel):
    """Response model for the extract-text endpoint."""

    file_name: str = Field(..., description="Original filename")
    text: str = Field(..., description="Plain text extracted from the PDF")


class ExtractDataRequest(BaseModel):
    """Request model for extracting a record from document text."""

    text: str = Field(..., min_length=1, description="Document text")
    schema_definition: list[FieldSchema] = Field(
        ...,
        description="Schema to extract",
        alias="schema",
    )


class DocumentData(BaseModel):
    """Extracted record for one document."""

    file_name: str = Field(..., description="Source document label")
    data: dict[str, Any] = Field(..., description="Record shaped by the schema")


class DocumentFailureResponse(BaseModel):
    """A document that could not be turned into a record."""

    file_name: str = Field(..., description="Source document label")
    stage: str = Field(..., description="Pipeline stage that failed")
    error: str = Field(..., description="Error message")
    path: str | None = Field(
        default=None,
        description="Offending field path for validation failures",
    )


class BatchExtractResponse(BaseModel):
    """Partial-success report of a batch extraction."""

    results: list[DocumentData] = Field(
        default_factory=list,
        description="Successful records in upload order",
    )
    failures: list[DocumentFailureResponse] = Field(
        default_factory=list,
        description="Failed documents in upload order",
    )
    skipped: list[str] = Field(
        default_factory=list,
        description="Documents never processed because the batch was cancelled",
    )
    total_documents: int = Field(..., ge=0, description="Documents submitted")
    successful_documents: int = Field(..., ge=0, description="Documents extracted")


# =============================================================================
# Export Models
# =============================================================================


class ExportRequest(BaseModel):
    """Request model for generating a spreadsheet export."""

    schema_definition: list[FieldSchema] = Field(
        ...,
        description="Schema the records were extracted with",
        alias="schema",
    )
    data: list[DocumentData] = Field(
        ...,
        description="Records to export, in document order",
    )
    rows_field: str | None = Field(
        default=None,
        description="Array field to expand into rows (required when the schema has several)",
    )
