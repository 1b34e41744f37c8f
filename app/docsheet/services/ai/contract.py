"""
Compilation of field schemas into extraction contracts.

The contract is the JSON schema handed to the extraction service as the
parameters of a forced function call. It is rebuilt from the schema on
every request and is a pure function of it.
"""

from collections.abc import Sequence
from typing import Any

from ...models import FieldSchema, FieldType

EXTRACTION_FUNCTION_NAME = "document_data_extraction"


def _scalar_property(field: FieldSchema, description: str) -> dict[str, Any]:
    return {"type": field.type.value, "description": description}


def _item_property(field: FieldSchema) -> dict[str, Any]:
    if field.type == FieldType.ARRAY:
        # Only one level of repetition is requested per group
        return {
            "type": "array",
            "description": f"Array of {field.name}",
            "items": {"type": "object"},
        }
    return _scalar_property(field, f"{field.name} of the item")


def _group_property(field: FieldSchema) -> dict[str, Any]:
    properties = {child.name: _item_property(child) for child in field.children}
    return {
        "type": "array",
        "description": f"Array of {field.name}",
        "items": {
            "type": "object",
            "properties": properties,
            "required": [child.name for child in field.children],
        },
    }


def compile_contract(fields: Sequence[FieldSchema]) -> dict[str, Any]:
    """
    Translate a validated schema into an extraction contract.

    Properties appear in schema order and every field, top-level and
    per-item, is required. Compiling the same schema twice gives equal
    contracts.

    Args:
        fields: Top-level fields, already checked by ``validate_schema``.

    Returns:
        JSON-schema object describing the value the service must return.
    """
    properties: dict[str, Any] = {}
    for field in fields:
        if field.type == FieldType.ARRAY:
            properties[field.name] = _group_property(field)
        else:
            properties[field.name] = _scalar_property(
                field, f"{field.name} from the document"
            )

    return {
        "type": "object",
        "properties": properties,
        "required": [field.name for field in fields],
    }


def build_function_definition(contract: dict[str, Any]) -> dict[str, Any]:
    """Wrap a contract as an OpenAI tool definition."""
    return {
        "type": "function",
        "function": {
            "name": EXTRACTION_FUNCTION_NAME,
            "description": "Extract structured data from document text",
            "parameters": contract,
        },
    }
