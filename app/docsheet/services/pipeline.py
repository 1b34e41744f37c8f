"""
Batch extraction pipeline.

Runs a shared schema over a batch of documents: text, then the extraction
call, then record validation, for each document. Documents are processed
concurrently up to a limit. Every document succeeds or fails on its own
and the report keeps the input order.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from ..models import FieldSchema
from ..records import ExtractionRecord
from .ai.contract import compile_contract
from .ai.exceptions import AIServiceError, RecordValidationError
from .ai.validation import RecordValidator, build_record_validator
from .pdf_service import TextExtractionError
from .schema_service import validate_schema

logger = logging.getLogger(__name__)

Extractor = Callable[[dict[str, Any], str], Awaitable[dict[str, Any]]]
TextSource = Callable[[bytes], str]

STAGE_TEXT = "text"
STAGE_EXTRACTION = "extraction"
STAGE_VALIDATION = "validation"
STAGE_INTERNAL = "internal"


@dataclass(frozen=True)
class SourceDocument:
    """A document to process: its label plus either text or raw PDF bytes."""

    label: str
    text: str | None = None
    content: bytes | None = None


@dataclass(frozen=True)
class DocumentResult:
    """A successfully extracted document."""

    label: str
    record: ExtractionRecord


@dataclass(frozen=True)
class DocumentFailure:
    """A document that failed at some stage of the pipeline."""

    label: str
    stage: str
    error: str
    path: str | None = None


@dataclass
class BatchReport:
    """Partial-success outcome of a batch, in input order."""

    results: list[DocumentResult] = field(default_factory=list)
    failures: list[DocumentFailure] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    @property
    def total_documents(self) -> int:
        return len(self.results) + len(self.failures) + len(self.skipped)


async def process_document(
    document: SourceDocument,
    contract: dict[str, Any],
    validator: RecordValidator,
    extractor: Extractor,
    text_source: TextSource | None = None,
) -> DocumentResult | DocumentFailure:
    """
    Run one document through text, extraction and validation.

    Never raises for document-level problems; they come back as a
    DocumentFailure naming the stage that failed.
    """
    label = document.label
    try:
        text = document.text
        if text is None:
            if text_source is None or document.content is None:
                raise TextExtractionError("No text or content provided")
            text = await asyncio.to_thread(text_source, document.content)
    except TextExtractionError as e:
        logger.warning("Text extraction failed for %s: %s", label, e)
        return DocumentFailure(label, STAGE_TEXT, str(e))

    try:
        reply = await extractor(contract, text)
    except AIServiceError as e:
        logger.warning("Extraction failed for %s: %s", label, e)
        return DocumentFailure(label, STAGE_EXTRACTION, str(e))

    try:
        record = validator(reply)
    except RecordValidationError as e:
        logger.warning("Rejected extraction for %s: %s", label, e)
        return DocumentFailure(label, STAGE_VALIDATION, str(e), e.path)

    logger.info("Processed document %s", label)
    return DocumentResult(label, record)


async def run_batch(
    documents: Sequence[SourceDocument],
    fields: Sequence[FieldSchema],
    *,
    extractor: Extractor,
    text_source: TextSource | None = None,
    max_concurrency: int = 5,
    cancel_event: asyncio.Event | None = None,
) -> BatchReport:
    """
    Extract records from a batch of documents with one shared schema.

    The schema is validated and compiled once; schema errors are raised
    before any document is touched. Per-document failures are collected in
    the report and never abort the other documents.

    Args:
        documents: Documents in batch order.
        fields: Top-level schema fields.
        extractor: Async callable ``(contract, text) -> raw reply`` that
            raises AIServiceError on failure.
        text_source: Callable turning document bytes into text, used for
            documents given without text.
        max_concurrency: Maximum number of documents in flight.
        cancel_event: When set, documents not yet started are skipped.

    Returns:
        BatchReport with results, failures and skipped labels in input order.

    Raises:
        SchemaError: The schema is structurally invalid.
    """
    validate_schema(fields)
    contract = compile_contract(fields)
    validator = build_record_validator(fields)
    semaphore = asyncio.Semaphore(max(1, max_concurrency))

    logger.info(
        "Starting batch: %d documents, max %d concurrent",
        len(documents),
        max_concurrency,
    )

    async def run_one(document: SourceDocument) -> DocumentResult | DocumentFailure | None:
        async with semaphore:
            if cancel_event is not None and cancel_event.is_set():
                return None
            try:
                return await process_document(
                    document, contract, validator, extractor, text_source
                )
            except Exception as e:
                logger.exception("Error processing document %s", document.label)
                return DocumentFailure(document.label, STAGE_INTERNAL, str(e))

    # gather keeps input order regardless of completion order
    outcomes = await asyncio.gather(*(run_one(document) for document in documents))

    report = BatchReport()
    for document, outcome in zip(documents, outcomes):
        if outcome is None:
            report.skipped.append(document.label)
        elif isinstance(outcome, DocumentResult):
            report.results.append(outcome)
        else:
            report.failures.append(outcome)

    logger.info(
        "Batch completed: %d successful, %d failed, %d skipped",
        len(report.results),
        len(report.failures),
        len(report.skipped),
    )
    return report
