"""
Response Parser - Two-step handling of oracle output.

Raw text is first parsed as JSON and then validated against a schema.
Both failure modes raise ``OracleResponseError`` so callers route them to
the same fallback path as a failed oracle call.
"""

import json
import logging
import re
from typing import Any, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ..core.error_classifier import OracleResponseError

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)

_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL | re.IGNORECASE)


def parse_json_response(text: Optional[str]) -> Any:
    """
    Parse oracle text as JSON.

    Markdown code fences are stripped and trailing commas repaired before
    giving up.

    Raises:
        OracleResponseError: If the text is empty or not valid JSON
    """
    if text is None or not text.strip():
        raise OracleResponseError("Oracle returned an empty response")

    content = text.strip()
    fence_match = _FENCE_PATTERN.match(content)
    if fence_match:
        content = fence_match.group(1)

    try:
        return json.loads(content)
    except json.JSONDecodeError as e:
        recovered = _attempt_json_recovery(content)
        if recovered is not None:
            logger.debug("Recovered malformed JSON from oracle response")
            return recovered
        raise OracleResponseError(
            f"Oracle returned invalid JSON ({len(text)} chars): {e}", raw_text=text
        ) from e


def _attempt_json_recovery(content: str) -> Any:
    """Attempt to recover from common JSON formatting issues."""
    repaired = re.sub(r",(\s*[}\]])", r"\1", content)
    try:
        return json.loads(repaired)
    except json.JSONDecodeError:
        return None


def validate_response(schema: Type[SchemaT], data: Any) -> SchemaT:
    """
    Validate parsed JSON against ``schema``.

    Raises:
        OracleResponseError: If the data does not match the schema
    """
    try:
        return schema.model_validate(data)
    except ValidationError as e:
        raise OracleResponseError(f"{schema.__name__} validation failed: {e}") from e


def validate_items(schema: Type[SchemaT], data: Any) -> List[SchemaT]:
    """
    Validate each element of a JSON array independently.

    Non-array input yields an empty list; invalid elements are dropped.
    """
    if not isinstance(data, list):
        return []

    valid: List[SchemaT] = []
    for item in data:
        try:
            valid.append(schema.model_validate(item))
        except ValidationError as e:
            logger.debug(f"Dropping invalid {schema.__name__} element: {e.error_count()} errors")
    return valid


def describe_validation_error(error: ValidationError) -> str:
    """Summarize a validation error as ``path: message`` pairs."""
    return "; ".join(
        f"{'.'.join(str(part) for part in issue['loc'])}: {issue['msg']}"
        for issue in error.errors()
    )
