"""
Spreadsheet export of flattened rows.

Writes rows as UTF-8 CSV, which every spreadsheet application opens.
"""

import csv
import io
import logging
import time
from collections.abc import Sequence
from typing import Any

logger = logging.getLogger(__name__)

CSV_MEDIA_TYPE = "text/csv"


def collect_headers(rows: Sequence[dict[str, Any]]) -> list[str]:
    """Union of row keys in first-seen order."""
    headers: dict[str, None] = {}
    for row in rows:
        for key in row:
            headers.setdefault(key, None)
    return list(headers)


def rows_to_csv(rows: Sequence[dict[str, Any]]) -> bytes:
    """
    Serialize rows to CSV bytes.

    Rows may have different keys; cells missing from a row are left empty.

    Args:
        rows: Flat rows mapping column name to scalar value.

    Returns:
        UTF-8 encoded CSV document with a header line.
    """
    headers = collect_headers(rows)
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=headers, restval="")
    writer.writeheader()
    if rows:
        writer.writerows(rows)

    logger.info("Generated CSV export: %d rows, %d columns", len(rows), len(headers))
    return buffer.getvalue().encode("utf-8")


def export_filename(extension: str = "csv") -> str:
    """Download name for an export, stamped with the current time in milliseconds."""
    return f"extracted_data_{int(time.time() * 1000)}.{extension}"
