"""
Flattening of extraction records into spreadsheet rows.

A record has a header (top-level scalar fields) and one designated array
group holding its line items. Each item becomes one row that repeats the
header values, so every exported row is self-contained.
"""

import logging
from collections.abc import Iterable, Sequence
from typing import Any, Protocol

from ..models import FieldSchema, FieldType
from ..records import ExtractionRecord

logger = logging.getLogger(__name__)

DEFAULT_LABEL_COLUMN = "File Name"

Row = dict[str, Any]


class FlatteningLimitationError(Exception):
    """Raised when a record cannot be flattened unambiguously."""

    pass


class LabeledRecord(Protocol):
    label: str
    record: ExtractionRecord


def resolve_rows_field(
    fields: Sequence[FieldSchema], rows_field: str | None = None
) -> FieldSchema:
    """
    Pick the array group whose items become rows.

    Args:
        fields: Top-level fields of the schema.
        rows_field: Name of the designated group. Required when the schema
            has more than one top-level group.

    Raises:
        FlatteningLimitationError: The designated field is missing or not
            a group, or no unique group exists.
    """
    groups = [field for field in fields if field.type == FieldType.ARRAY]

    if rows_field is not None:
        for field in groups:
            if field.name == rows_field:
                return field
        raise FlatteningLimitationError(
            f"Rows field '{rows_field}' is not a top-level array field"
        )

    if not groups:
        raise FlatteningLimitationError("Schema has no array field to expand into rows")
    if len(groups) > 1:
        raise FlatteningLimitationError(
            "Schema has several array fields "
            f"({', '.join(field.name for field in groups)}); choose one as rows field"
        )
    return groups[0]


def _check_label_column(names: Iterable[str], label_column: str) -> None:
    if label_column in names:
        raise FlatteningLimitationError(
            f"Field '{label_column}' has the same name as the label column; "
            "rename the field or configure another label column"
        )


def _header(
    record: ExtractionRecord,
    fields: Sequence[FieldSchema],
    label: str,
    label_column: str,
) -> Row:
    scalars = [field for field in fields if field.type != FieldType.ARRAY]
    _check_label_column((field.name for field in scalars), label_column)

    header: Row = {label_column: label}
    for field in scalars:
        header[field.name] = record[field.name]
    return header


def summarize_record(
    record: ExtractionRecord,
    fields: Sequence[FieldSchema],
    label: str,
    label_column: str = DEFAULT_LABEL_COLUMN,
) -> Row:
    """Return the document-level row: label plus every top-level scalar."""
    return _header(record, fields, label, label_column)


def flatten_record(
    record: ExtractionRecord,
    fields: Sequence[FieldSchema],
    label: str,
    rows_field: str | None = None,
    label_column: str = DEFAULT_LABEL_COLUMN,
) -> tuple[Row, ...]:
    """
    Expand one record into one row per item of its rows group.

    Column order is: label, top-level scalars in schema order, then the
    item's properties. An item property with the same name as a header
    column replaces it. Other array groups are not exported. An empty
    group gives no rows.

    Raises:
        FlatteningLimitationError: No unique rows group, or an item holds
            a nested group (only one level is flattened). Also raised when a
            field is named like the label column.
    """
    group = resolve_rows_field(fields, rows_field)
    nested = [child.name for child in group.children if child.type == FieldType.ARRAY]
    if nested:
        raise FlatteningLimitationError(
            f"Array field '{group.name}' contains nested array fields "
            f"({', '.join(nested)}); only one level can be flattened"
        )

    _check_label_column((child.name for child in group.children), label_column)

    header = _header(record, fields, label, label_column)
    return tuple({**header, **item} for item in record[group.name])


def flatten_batch(
    results: Iterable[LabeledRecord],
    fields: Sequence[FieldSchema],
    rows_field: str | None = None,
    label_column: str = DEFAULT_LABEL_COLUMN,
) -> tuple[Row, ...]:
    """
    Flatten every record of a batch, keeping document order.

    Args:
        results: Objects with ``label`` and ``record`` attributes, in
            document order.
        fields: Schema the records were validated against.
        rows_field: Designated array group (see ``resolve_rows_field``).
        label_column: Header of the column holding the document label.

    Returns:
        All rows, documents in order and items in their original order.
    """
    rows = tuple(
        row
        for result in results
        for row in flatten_record(
            result.record, fields, result.label, rows_field, label_column
        )
    )
    logger.info("Flattened batch into %d rows", len(rows))
    return rows
