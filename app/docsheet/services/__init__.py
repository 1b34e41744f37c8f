"""
Services package for the document extraction application.

Contains:
- schema_service: Structural schema checks
- ai: Contract compilation, OpenAI extraction and record validation
- pipeline: Batch orchestration with per-document failure tracking
- flattening: Records to spreadsheet rows
- export_service: CSV serialization of rows
- pdf_service: PDF text extraction
"""

from .ai import AIService
from .pdf_service import PDFService

__all__ = ["PDFService", "AIService"]
