"""
Routers package for FastAPI endpoints.

Organized by domain:
- batches: Batch extraction endpoint
- documents: Single-document extraction
- export: Spreadsheet export
- schemas: Schema validation and contract preview
- upload: PDF upload and text extraction
"""

from . import batches, documents, export, schemas, upload

__all__ = ["batches", "documents", "export", "schemas", "upload"]
