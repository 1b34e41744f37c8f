"""
Document-to-spreadsheet extraction backend.

A FastAPI service that applies a user-defined field schema to PDF text
using AI (OpenAI function calling), validates the reply against the
schema and flattens the records into spreadsheet rows.
"""

__version__ = "1.0.0"
