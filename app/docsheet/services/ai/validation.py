"""
Validation of extraction replies against a field schema.

Handles:
- Strict type checks (strings stay strings, numbers must be JSON numbers)
- Recursive validation of array groups with indexed field paths
- Conversion of the raw reply into an immutable ExtractionRecord

Validation is all-or-nothing: the first mismatch in schema order raises
and no partial record is returned. There is deliberately no coercion
between strings and numbers.
"""

import logging
import math
from collections.abc import Callable, Sequence
from typing import Any

from ...models import FieldSchema, FieldType
from ...records import ExtractionRecord, RecordValue
from .exceptions import MissingFieldError, TypeMismatchError

logger = logging.getLogger(__name__)

RecordValidator = Callable[[Any], ExtractionRecord]


def _type_name(value: Any) -> str:
    """Name a raw JSON value's type the way JSON does."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _is_number(value: Any) -> bool:
    # bool is an int subclass but never a valid number here
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    # ints of any size are finite; only floats can be NaN or infinite
    return not isinstance(value, float) or math.isfinite(value)


def _field_path(parent: str, name: str) -> str:
    return f"{parent}.{name}" if parent else name


def _validate_value(field: FieldSchema, value: Any, path: str) -> RecordValue:
    if field.type == FieldType.STRING:
        if not isinstance(value, str):
            raise TypeMismatchError(path, "string", _type_name(value))
        return value

    if field.type == FieldType.NUMBER:
        if not _is_number(value):
            raise TypeMismatchError(path, "number", _type_name(value))
        return value

    if not isinstance(value, list):
        raise TypeMismatchError(path, "array", _type_name(value))
    return tuple(
        _validate_object(field.children, item, f"{path}[{index}]")
        for index, item in enumerate(value)
    )


def _validate_object(
    fields: Sequence[FieldSchema], data: Any, path: str
) -> ExtractionRecord:
    if not isinstance(data, dict):
        raise TypeMismatchError(path, "object", _type_name(data))

    values: dict[str, RecordValue] = {}
    for field in fields:
        field_path = _field_path(path, field.name)
        if field.name not in data:
            raise MissingFieldError(field_path)
        values[field.name] = _validate_value(field, data[field.name], field_path)
    return ExtractionRecord(values)


def build_record_validator(fields: Sequence[FieldSchema]) -> RecordValidator:
    """
    Build a validator for extraction replies shaped by ``fields``.

    Args:
        fields: Top-level fields, already checked by ``validate_schema``.

    Returns:
        A callable taking the raw reply (decoded JSON) and returning an
        ExtractionRecord, or raising MissingFieldError / TypeMismatchError.
    """
    schema = tuple(fields)

    def validate(raw: Any) -> ExtractionRecord:
        record = _validate_object(schema, raw, "")
        logger.debug("Validated record with fields %s", list(record))
        return record

    return validate


def validate_record(raw: Any, fields: Sequence[FieldSchema]) -> ExtractionRecord:
    """One-shot form of ``build_record_validator(fields)(raw)``."""
    return build_record_validator(fields)(raw)
