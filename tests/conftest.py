"""Pytest configuration and fixtures."""

import json
from typing import Generator

import fitz
import pytest
from fastapi.testclient import TestClient

from app.docsheet.main import app
from app.docsheet.models import FieldSchema, FieldType
from app.docsheet.services.ai import AIService


@pytest.fixture
def mock_ai_service(monkeypatch: pytest.MonkeyPatch) -> AIService:
    """Install a mock-mode AI service as the application singleton."""
    service = AIService(api_key="", use_mock=True)
    monkeypatch.setattr("app.docsheet.services.ai._ai_service", service)
    return service


@pytest.fixture
def client(mock_ai_service: AIService) -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI application."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def invoice_schema() -> list[FieldSchema]:
    """Invoice header plus line items."""
    return [
        FieldSchema(name="company", type=FieldType.STRING),
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


@pytest.fixture
def invoice_reply() -> dict:
    """A well-formed extraction reply for the invoice schema."""
    return {
        "company": "Acme",
        "total_sum": 30,
        "items": [{"item": "Widget", "unit_price": 10, "quantity": 3, "sum": 30}],
    }


@pytest.fixture
def sample_schema_json(invoice_schema: list[FieldSchema]) -> str:
    """The invoice schema as the JSON the editor sends."""
    return json.dumps([field.model_dump(mode="json") for field in invoice_schema])


@pytest.fixture
def sample_pdf_bytes() -> bytes:
    """A one-page PDF with a text layer."""
    doc = fitz.open()
    page = doc.new_page()
    page.insert_text((72, 72), "Invoice from Acme")
    page.insert_text((72, 100), "Widget 3 x 10 = 30")
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def blank_pdf_bytes() -> bytes:
    """A one-page PDF without any text."""
    doc = fitz.open()
    doc.new_page()
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def invalid_file_bytes() -> bytes:
    """Create invalid (non-PDF) file bytes for testing."""
    return b"This is not a PDF file"
