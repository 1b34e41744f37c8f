"""
AI service package for schema-driven data extraction.

This package provides modular AI functionality split into:
- contract: Compilation of field schemas into extraction contracts
- extraction: The OpenAI function-call request
- validation: Strict validation of replies into ExtractionRecords

The AIService class holds the client and model configuration and
delegates to these modules.
"""

import logging
from collections.abc import Sequence
from typing import Any

from ...config import get_settings
from ...models import FieldSchema
from ...records import ExtractionRecord
from .contract import build_function_definition, compile_contract
from .exceptions import (
    AIServiceError,
    MissingFieldError,
    RecordValidationError,
    TypeMismatchError,
)
from .extraction import extract_raw as _extract_raw
from .extraction import extract_record as _extract_record
from .validation import build_record_validator, validate_record

logger = logging.getLogger(__name__)

__all__ = [
    "AIService",
    "AIServiceError",
    "RecordValidationError",
    "MissingFieldError",
    "TypeMismatchError",
    "build_function_definition",
    "build_record_validator",
    "compile_contract",
    "get_ai_service",
    "validate_record",
]


class AIService:
    """
    Service for AI-powered structured extraction.

    Uses OpenAI chat completions with a forced function call whose
    parameters are the compiled contract of the user's schema.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        use_mock: bool = False,
    ):
        """
        Initialize the AI service.

        Args:
            api_key: OpenAI API key. If None, reads from config/environment.
            model: OpenAI model to use. If None, reads from config.
            use_mock: If True, return mock data instead of calling OpenAI.
        """
        settings = get_settings()
        if api_key is None:
            api_key = settings.openai_api_key

        self.api_key = api_key
        self.model = model or settings.openai_model
        self.use_mock = use_mock or not self.api_key
        self._client = None

        if self.use_mock:
            logger.warning(
                "AI Service running in MOCK MODE. Set OPENAI_API_KEY in .env for real extraction."
            )

    @property
    def client(self):
        """Lazy-load the OpenAI client."""
        if self._client is None:
            if not self.api_key:
                raise AIServiceError(
                    "OpenAI API key not provided. Set OPENAI_API_KEY environment variable."
                )
            from openai import AsyncOpenAI

            self._client = AsyncOpenAI(api_key=self.api_key)
        return self._client

    async def extract_raw(self, contract: dict[str, Any], text: str) -> dict[str, Any]:
        """
        Run one extraction call and return the untrusted reply.

        Matches the extractor callable expected by the batch pipeline.
        """
        if self.use_mock:
            logger.info("Extracting data (MOCK MODE)")
            return self._get_mock_reply(contract)
        return await _extract_raw(text, contract, client=self.client, model=self.model)

    async def extract_record(
        self, fields: Sequence[FieldSchema], text: str
    ) -> ExtractionRecord:
        """
        Extract and validate one record from document text.

        Args:
            fields: Validated schema forest.
            text: Plain document text.

        Returns:
            The validated ExtractionRecord.
        """
        return await _extract_record(
            text,
            fields,
            client=None if self.use_mock else self.client,
            model=self.model,
            use_mock=self.use_mock,
            get_mock_reply=self._get_mock_reply if self.use_mock else None,
        )

    def _get_mock_reply(self, contract: dict[str, Any]) -> dict[str, Any]:
        """Return a deterministic reply shaped after the contract, for development."""

        def mock_value(name: str, prop: dict[str, Any]) -> Any:
            if prop.get("type") == "number":
                return 1
            if prop.get("type") == "array":
                item = prop.get("items", {})
                # Nested groups compile without properties; an empty list is always valid
                if not item.get("properties"):
                    return []
                return [
                    {
                        child: mock_value(child, child_prop)
                        for child, child_prop in item.get("properties", {}).items()
                    }
                ]
            return f"MOCK-{name.upper()}"

        return {
            name: mock_value(name, prop)
            for name, prop in contract.get("properties", {}).items()
        }


# =============================================================================
# Singleton Factory
# =============================================================================

_ai_service: AIService | None = None


def get_ai_service() -> AIService:
    """Get or create the AI service singleton."""
    global _ai_service
    if _ai_service is None:
        _ai_service = AIService()
    return _ai_service
