"""
Structural checks for user-defined field schemas.

A schema must pass ``validate_schema`` before it is compiled into an
extraction contract or used to build a record validator.
"""

import logging
from collections.abc import Sequence

from ..models import FieldSchema, FieldType

logger = logging.getLogger(__name__)


class SchemaError(Exception):
    """Raised when a schema is structurally unusable."""

    def __init__(self, message: str, path: str = ""):
        super().__init__(message)
        self.path = path


class EmptySchemaError(SchemaError):
    """The schema defines no fields at all."""

    def __init__(self):
        super().__init__("Schema must define at least one field")


class EmptyNameError(SchemaError):
    """A field has an empty name."""

    def __init__(self, path: str):
        where = f" at '{path}'" if path else ""
        super().__init__(f"Field name must not be empty{where}", path)


class DuplicateSiblingNameError(SchemaError):
    """Two fields on the same level share a name."""

    def __init__(self, path: str, name: str):
        super().__init__(f"Duplicate field name '{name}' at '{path}'", path)
        self.name = name


class MissingGroupChildrenError(SchemaError):
    """An array group declares no child fields."""

    def __init__(self, path: str):
        super().__init__(f"Array field '{path}' must define at least one child field", path)


def _join(parent: str, name: str) -> str:
    return f"{parent}.{name}" if parent else name


def _validate_level(fields: Sequence[FieldSchema], parent: str) -> None:
    seen: set[str] = set()
    for index, field in enumerate(fields):
        if not field.name.strip():
            # Unnamed fields are addressed by position
            raise EmptyNameError(f"{parent}[{index}]")

        path = _join(parent, field.name)
        if field.name in seen:
            raise DuplicateSiblingNameError(path, field.name)
        seen.add(field.name)

        if field.type == FieldType.ARRAY:
            if not field.children:
                raise MissingGroupChildrenError(path)
            _validate_level(field.children, path)


def validate_schema(fields: Sequence[FieldSchema]) -> None:
    """
    Check a schema forest for structural problems.

    Checks run in field order and recurse into every array group; the first
    problem found is raised.

    Args:
        fields: Top-level fields of the schema.

    Raises:
        EmptySchemaError: No fields were given.
        EmptyNameError: A field name is empty or blank.
        DuplicateSiblingNameError: Two siblings share a name.
        MissingGroupChildrenError: An array group has no children.
    """
    if not fields:
        raise EmptySchemaError()
    _validate_level(fields, "")
    logger.debug("Schema validated: %s", [f.name for f in fields])


def default_invoice_schema() -> list[FieldSchema]:
    """Return the starter schema offered to new users (invoice header + line items)."""
    return [
        FieldSchema(name="company", type=FieldType.STRING),
        FieldSchema(name="address", type=FieldType.STRING),
        FieldSchema(name="total_sum", type=FieldType.NUMBER),
        FieldSchema(
            name="items",
            type=FieldType.ARRAY,
            fields=(
                FieldSchema(name="item", type=FieldType.STRING),
                FieldSchema(name="unit_price", type=FieldType.NUMBER),
                FieldSchema(name="quantity", type=FieldType.NUMBER),
                FieldSchema(name="sum", type=FieldType.NUMBER),
            ),
        ),
    ]
