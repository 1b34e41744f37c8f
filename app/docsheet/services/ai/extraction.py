"""
Structured data extraction from document text.

Sends the document text to OpenAI with the compiled contract as the
parameters of a forced function call, and decodes the call arguments.
The decoded reply is untrusted until it passes the record validator.
"""

import json
import logging
from collections.abc import Callable, Sequence
from typing import Any

from ...models import FieldSchema
from ...records import ExtractionRecord
from .contract import EXTRACTION_FUNCTION_NAME, build_function_definition, compile_contract
from .exceptions import AIServiceError
from .validation import build_record_validator

logger = logging.getLogger(__name__)


# =============================================================================
# Extraction System Prompt
# =============================================================================

EXTRACTION_SYSTEM_PROMPT = """You are an expert at extracting structured data from business documents such as invoices.
Extract the requested information accurately.

## Extraction Rules:

1. **Strict Adherence**: Only extract the fields defined by the function parameters. Do not add extra fields.
2. **Types**: Return numbers as JSON numbers (no currency symbols or thousands separators) and text as strings.
3. **Repeated Items**: For array fields, return one object per row of the table or list. Capture ALL rows, not just the first one.
4. **No Guessing**: If a list has no rows, return an empty array. DO NOT HALLUCINATE."""


def _tool_choice() -> dict[str, Any]:
    return {"type": "function", "function": {"name": EXTRACTION_FUNCTION_NAME}}


async def extract_raw(
    text: str,
    contract: dict[str, Any],
    client: Any,  # AsyncOpenAI client
    model: str = "gpt-4.1",
) -> dict[str, Any]:
    """
    Ask the extraction service for a reply shaped by ``contract``.

    Args:
        text: Plain document text.
        contract: Compiled contract (see ``compile_contract``).
        client: AsyncOpenAI client instance.
        model: Model name to use.

    Returns:
        The decoded function-call arguments.

    Raises:
        AIServiceError: Transport failure, missing tool call or invalid JSON.
    """
    logger.info(
        "Requesting extraction (%d chars, fields=%s, model=%s)",
        len(text),
        contract.get("required", []),
        model,
    )

    try:
        response = await client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": EXTRACTION_SYSTEM_PROMPT},
                {"role": "user", "content": text},
            ],
            tools=[build_function_definition(contract)],
            tool_choice=_tool_choice(),
        )
    except Exception as e:
        logger.exception("Data extraction request failed")
        raise AIServiceError(f"Data extraction failed: {e}") from e

    if not response.choices:
        raise AIServiceError("Empty response from OpenAI")

    tool_calls = response.choices[0].message.tool_calls
    if not tool_calls:
        raise AIServiceError("No data extracted: response contains no function call")

    arguments = tool_calls[0].function.arguments
    if not arguments:
        raise AIServiceError("No data extracted: function call has no arguments")

    try:
        reply = json.loads(arguments)
    except json.JSONDecodeError as e:
        logger.error("Failed to parse extraction arguments: %s", arguments[:500])
        raise AIServiceError(f"Invalid JSON in extraction response: {e}") from e

    if not isinstance(reply, dict):
        raise AIServiceError("Invalid extraction response: arguments are not a JSON object")

    return reply


async def extract_record(
    text: str,
    fields: Sequence[FieldSchema],
    client: Any,
    model: str = "gpt-4.1",
    use_mock: bool = False,
    get_mock_reply: Callable[[dict[str, Any]], dict[str, Any]] | None = None,
) -> ExtractionRecord:
    """
    Extract and validate a single record from document text.

    The schema must already have passed ``validate_schema``.

    Raises:
        AIServiceError: The service call failed.
        RecordValidationError: The reply does not match the schema.
    """
    contract = compile_contract(fields)
    if use_mock and get_mock_reply:
        logger.info("Extracting data (MOCK MODE)")
        reply = get_mock_reply(contract)
    else:
        reply = await extract_raw(text, contract, client, model)

    return build_record_validator(fields)(reply)
