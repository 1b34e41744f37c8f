"""
Immutable extraction records.

An ExtractionRecord is the validated, schema-shaped result for one
document: scalar values keyed by field name, and tuples of nested
records for array groups.
"""

from collections.abc import Iterator, Mapping
from typing import Any, Union

RecordValue = Union[str, int, float, tuple["ExtractionRecord", ...]]


class ExtractionRecord(Mapping):
    """
    Read-only mapping from field name to validated value.

    Key order is the schema field order. Instances are created by the
    record validator and never change afterwards.
    """

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[str, RecordValue] | None = None):
        self._values: dict[str, RecordValue] = dict(values or {})

    def __getitem__(self, key: str) -> RecordValue:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"ExtractionRecord({self._values!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ExtractionRecord):
            return self._values == other._values
        if isinstance(other, Mapping):
            return self.to_dict() == dict(other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def to_dict(self) -> dict[str, Any]:
        """Return a plain JSON-compatible copy (groups become lists of dicts)."""
        result: dict[str, Any] = {}
        for key, value in self._values.items():
            if isinstance(value, tuple):
                result[key] = [item.to_dict() for item in value]
            else:
                result[key] = value
        return result
