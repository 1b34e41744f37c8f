"""Tests for FastAPI endpoints."""

import csv
import io
import json

import pytest
from fastapi.testclient import TestClient


def _pdf(name: str, content: bytes) -> tuple[str, tuple[str, bytes, str]]:
    return ("files", (name, content, "application/pdf"))


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    def test_root_endpoint(self, client: TestClient):
        """Test root endpoint returns health status."""
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "version" in data

    def test_health_endpoint(self, client: TestClient):
        """Test /health endpoint returns health status."""
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"


class TestSchemaEndpoints:
    """Tests for the /schemas endpoints."""

    def test_default_schema(self, client: TestClient):
        """Test that the starter schema is an invoice with line items."""
        response = client.get("/schemas/default")
        assert response.status_code == 200
        fields = response.json()
        names = [field["name"] for field in fields]
        assert "company" in names
        items = next(field for field in fields if field["type"] == "array")
        assert [child["name"] for child in items["fields"]] == [
            "item",
            "unit_price",
            "quantity",
            "sum",
        ]

    def test_validate_valid_schema(self, client: TestClient, sample_schema_json: str):
        """Test that a good schema is accepted and its rows field reported."""
        response = client.post(
            "/schemas/validate", json={"schema": json.loads(sample_schema_json)}
        )
        assert response.status_code == 200
        assert response.json() == {"valid": True, "rows_field": "items"}

    def test_validate_schema_without_groups(self, client: TestClient):
        """Test that a scalar-only schema is valid but has no rows field."""
        response = client.post(
            "/schemas/validate", json={"schema": [{"name": "company", "type": "string"}]}
        )
        assert response.status_code == 200
        assert response.json()["rows_field"] is None

    def test_validate_duplicate_names(self, client: TestClient):
        """Test that duplicate sibling names are rejected with their path."""
        schema = [
            {
                "name": "items",
                "type": "array",
                "fields": [
                    {"name": "sku", "type": "string"},
                    {"name": "sku", "type": "number"},
                ],
            }
        ]
        response = client.post("/schemas/validate", json={"schema": schema})
        assert response.status_code == 400
        assert response.json()["path"] == "items.sku"

    def test_validate_empty_schema(self, client: TestClient):
        """Test that a schema without fields is rejected."""
        response = client.post("/schemas/validate", json={"schema": []})
        assert response.status_code == 400

    def test_validate_unknown_type(self, client: TestClient):
        """Test that unsupported field types fail request validation."""
        response = client.post(
            "/schemas/validate", json={"schema": [{"name": "due", "type": "date"}]}
        )
        assert response.status_code == 422

    def test_contract_preview(self, client: TestClient, sample_schema_json: str):
        """Test that the compiled contract and tool definition are returned."""
        response = client.post(
            "/schemas/contract", json={"schema": json.loads(sample_schema_json)}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["contract"]["required"] == ["company", "total_sum", "items"]
        assert data["function"]["function"]["parameters"] == data["contract"]


class TestExtractTextEndpoint:
    """Tests for POST /extract-text endpoint."""

    def test_extract_text(self, client: TestClient, sample_pdf_bytes: bytes):
        """Test that text is read from a PDF with a text layer."""
        response = client.post(
            "/extract-text",
            files={"file": ("invoice.pdf", sample_pdf_bytes, "application/pdf")},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["file_name"] == "invoice.pdf"
        assert "Acme" in data["text"]

    def test_rejects_non_pdf(self, client: TestClient):
        """Test that non-PDF files are rejected."""
        response = client.post(
            "/extract-text",
            files={"file": ("test.txt", b"not a pdf", "text/plain")},
        )
        assert response.status_code == 400
        assert "PDF" in response.json()["detail"]

    def test_rejects_empty_file(self, client: TestClient):
        """Test that empty files are rejected."""
        response = client.post(
            "/extract-text",
            files={"file": ("test.pdf", b"", "application/pdf")},
        )
        assert response.status_code == 400
        assert "Empty" in response.json()["detail"]

    def test_rejects_invalid_pdf(self, client: TestClient, invalid_file_bytes: bytes):
        """Test that invalid PDF content is rejected."""
        response = client.post(
            "/extract-text",
            files={"file": ("test.pdf", invalid_file_bytes, "application/pdf")},
        )
        assert response.status_code == 422

    def test_rejects_pdf_without_text(self, client: TestClient, blank_pdf_bytes: bytes):
        """Test that scanned or blank PDFs are reported as unreadable."""
        response = client.post(
            "/extract-text",
            files={"file": ("blank.pdf", blank_pdf_bytes, "application/pdf")},
        )
        assert response.status_code == 422
        assert "No extractable text" in response.json()["detail"]


class TestExtractDataEndpoint:
    """Tests for POST /extract-data endpoint."""

    def test_extract_data_mock(self, client: TestClient, sample_schema_json: str):
        """Test single-document extraction in mock mode."""
        response = client.post(
            "/extract-data",
            json={"text": "Invoice from Acme", "schema": json.loads(sample_schema_json)},
        )
        assert response.status_code == 200
        data = response.json()
        assert list(data) == ["company", "total_sum", "items"]
        assert data["company"] == "MOCK-COMPANY"
        assert data["items"][0]["unit_price"] == 1

    def test_invalid_schema(self, client: TestClient):
        """Test that schema errors are reported before extraction."""
        schema = [{"name": "items", "type": "array", "fields": []}]
        response = client.post("/extract-data", json={"text": "x", "schema": schema})
        assert response.status_code == 400
        assert response.json()["path"] == "items"

    def test_empty_text_rejected(self, client: TestClient, sample_schema_json: str):
        """Test that empty text fails request validation."""
        response = client.post(
            "/extract-data", json={"text": "", "schema": json.loads(sample_schema_json)}
        )
        assert response.status_code == 422

    def test_rejected_reply(
        self, client: TestClient, mock_ai_service, monkeypatch, sample_schema_json: str
    ):
        """Test that a reply not matching the schema gives 422 with its path."""
        monkeypatch.setattr(
            mock_ai_service, "_get_mock_reply", lambda contract: {"company": "Acme"}
        )
        response = client.post(
            "/extract-data",
            json={"text": "Invoice", "schema": json.loads(sample_schema_json)},
        )
        assert response.status_code == 422
        assert response.json()["path"] == "total_sum"


class TestExtractBatchEndpoint:
    """Tests for POST /extract-batch endpoint."""

    def test_batch_mock(
        self, client: TestClient, sample_pdf_bytes: bytes, sample_schema_json: str
    ):
        """Test that every readable PDF yields a record, in upload order."""
        response = client.post(
            "/extract-batch",
            files=[_pdf("one.pdf", sample_pdf_bytes), _pdf("two.pdf", sample_pdf_bytes)],
            data={"confirmed_schema": sample_schema_json},
        )
        assert response.status_code == 200
        data = response.json()
        assert [r["file_name"] for r in data["results"]] == ["one.pdf", "two.pdf"]
        assert data["failures"] == []
        assert data["total_documents"] == 2
        assert data["successful_documents"] == 2

    def test_batch_with_unreadable_file(
        self,
        client: TestClient,
        sample_pdf_bytes: bytes,
        invalid_file_bytes: bytes,
        sample_schema_json: str,
    ):
        """Test that one bad file is reported without stopping the others."""
        response = client.post(
            "/extract-batch",
            files=[
                _pdf("good.pdf", sample_pdf_bytes),
                _pdf("broken.pdf", invalid_file_bytes),
                _pdf("also_good.pdf", sample_pdf_bytes),
            ],
            data={"confirmed_schema": sample_schema_json},
        )
        assert response.status_code == 200
        data = response.json()
        assert [r["file_name"] for r in data["results"]] == ["good.pdf", "also_good.pdf"]
        (failure,) = data["failures"]
        assert failure["file_name"] == "broken.pdf"
        assert failure["stage"] == "text"
        assert data["successful_documents"] == 2

    def test_batch_rejects_non_pdf(self, client: TestClient, sample_schema_json: str):
        """Test that non-PDF uploads are rejected."""
        response = client.post(
            "/extract-batch",
            files=[("files", ("notes.txt", b"hello", "text/plain"))],
            data={"confirmed_schema": sample_schema_json},
        )
        assert response.status_code == 400

    def test_batch_rejects_invalid_json(self, client: TestClient, sample_pdf_bytes: bytes):
        """Test that a malformed schema form field is rejected."""
        response = client.post(
            "/extract-batch",
            files=[_pdf("one.pdf", sample_pdf_bytes)],
            data={"confirmed_schema": "{not json"},
        )
        assert response.status_code == 400
        assert "Invalid JSON" in response.json()["detail"]

    def test_batch_rejects_invalid_schema(self, client: TestClient, sample_pdf_bytes: bytes):
        """Test that structural schema errors stop the batch."""
        schema = json.dumps(
            [{"name": "company", "type": "string"}, {"name": "company", "type": "string"}]
        )
        response = client.post(
            "/extract-batch",
            files=[_pdf("one.pdf", sample_pdf_bytes)],
            data={"confirmed_schema": schema},
        )
        assert response.status_code == 400
        assert response.json()["path"] == "company"

    def test_batch_requires_files(self, client: TestClient, sample_schema_json: str):
        """Test that a batch without files fails request validation."""
        response = client.post("/extract-batch", data={"confirmed_schema": sample_schema_json})
        assert response.status_code == 422


class TestGenerateExportEndpoint:
    """Tests for POST /generate-export endpoint."""

    @pytest.fixture
    def export_payload(self, sample_schema_json: str) -> dict:
        return {
            "schema": json.loads(sample_schema_json),
            "data": [
                {
                    "file_name": "a.pdf",
                    "data": {
                        "company": "Acme",
                        "total_sum": 35,
                        "items": [
                            {"item": "Widget", "unit_price": 10, "quantity": 3, "sum": 30},
                            {"item": "Gadget", "unit_price": 5, "quantity": 1, "sum": 5},
                        ],
                    },
                },
                {
                    "file_name": "b.pdf",
                    "data": {"company": "Globex", "total_sum": 0, "items": []},
                },
            ],
        }

    def test_generate_export(self, client: TestClient, export_payload: dict):
        """Test that each item becomes one CSV row carrying its header fields."""
        response = client.post("/generate-export", json=export_payload)
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "attachment" in response.headers["content-disposition"]
        assert "extracted_data_" in response.headers["content-disposition"]

        rows = list(csv.DictReader(io.StringIO(response.text)))
        assert [(row["File Name"], row["item"]) for row in rows] == [
            ("a.pdf", "Widget"),
            ("a.pdf", "Gadget"),
        ]
        assert all(row["company"] == "Acme" for row in rows)

    def test_export_rejects_invalid_record(self, client: TestClient, export_payload: dict):
        """Test that edited records are validated again."""
        export_payload["data"][0]["data"]["total_sum"] = "thirty-five"
        response = client.post("/generate-export", json=export_payload)
        assert response.status_code == 422
        assert "a.pdf" in response.json()["detail"]

    def test_export_large_integer(self, client: TestClient, export_payload: dict):
        """Test that integers beyond float range are exported as written."""
        export_payload["data"][0]["data"]["total_sum"] = 10**400
        response = client.post("/generate-export", json=export_payload)
        assert response.status_code == 200
        rows = list(csv.DictReader(io.StringIO(response.text)))
        assert rows[0]["total_sum"] == str(10**400)

    def test_export_needs_rows_field_for_several_groups(self, client: TestClient):
        """Test that ambiguous schemas need an explicit rows field."""
        schema = [
            {"name": "items", "type": "array", "fields": [{"name": "item", "type": "string"}]},
            {"name": "taxes", "type": "array", "fields": [{"name": "rate", "type": "number"}]},
        ]
        data = [{"file_name": "a.pdf", "data": {"items": [{"item": "x"}], "taxes": [{"rate": 20}]}}]

        response = client.post("/generate-export", json={"schema": schema, "data": data})
        assert response.status_code == 422

        response = client.post(
            "/generate-export", json={"schema": schema, "data": data, "rows_field": "taxes"}
        )
        assert response.status_code == 200
        rows = list(csv.DictReader(io.StringIO(response.text)))
        assert rows == [{"File Name": "a.pdf", "rate": "20"}]


    def test_export_rejects_field_named_like_label_column(self, client: TestClient):
        """Test that a field cannot take over the File Name column."""
        schema = [
            {"name": "File Name", "type": "string"},
            {"name": "items", "type": "array", "fields": [{"name": "x", "type": "number"}]},
        ]
        data = [{"file_name": "upload.pdf", "data": {"File Name": "invoice-42", "items": [{"x": 1}]}}]

        response = client.post("/generate-export", json={"schema": schema, "data": data})
        assert response.status_code == 422
        assert "label column" in response.json()["detail"]


class TestCORS:
    """Tests for CORS configuration."""

    def test_cors_headers_present(self, client: TestClient):
        """Test that CORS headers are present for allowed origins."""
        response = client.options(
            "/health",
            headers={
                "Origin": "http://localhost:5173",
                "Access-Control-Request-Method": "GET",
            },
        )
        assert response.headers.get("access-control-allow-origin") == "http://localhost:5173"
