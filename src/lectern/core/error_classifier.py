"""
Error taxonomy and classification for pipeline failures.

Systemic failures surface to the caller with an error code; everything the
classifier sees has already escaped every stage-level fallback.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

import httpx

logger = logging.getLogger(__name__)


class LecternError(Exception):
    """Base exception for pipeline errors."""

    pass


class OracleError(LecternError):
    """The text-generation oracle call failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class OracleResponseError(LecternError):
    """The oracle returned text that is not valid JSON or fails the schema."""

    def __init__(self, message: str, raw_text: str = ""):
        super().__init__(message)
        self.raw_text = raw_text


class EmbeddingError(LecternError):
    """The embedding service failed."""

    pass


class ExtractionError(LecternError):
    """A document cannot be parsed at all."""

    pass


class ConfigurationError(LecternError):
    """Invalid or unreadable configuration."""

    pass


class ErrorSeverity(Enum):
    """Error severity levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Error categories surfaced to the caller."""

    QUOTA_EXCEEDED = "quota_exceeded"
    AUTHENTICATION = "authentication"
    VALIDATION = "validation"
    NETWORK = "network"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"


@dataclass
class ErrorClassification:
    """Result of classifying a failure."""

    category: ErrorCategory
    severity: ErrorSeverity
    code: str
    user_message: str


@dataclass
class ErrorPattern:
    """Pattern for matching and classifying errors."""

    error_types: Tuple[type, ...]
    keywords: List[str]
    category: ErrorCategory
    severity: ErrorSeverity
    code: str
    user_message: str

    def matches(self, error: Exception) -> bool:
        """Check if error matches this pattern."""
        if self.error_types and isinstance(error, self.error_types):
            return True

        error_message = str(error).lower()
        return any(keyword in error_message for keyword in self.keywords)


class ErrorClassifier:
    """
    Maps exceptions that escaped the pipeline onto an error code and a
    user-facing message.

    Patterns are checked in order; the first match wins.
    """

    def __init__(self) -> None:
        self.error_patterns = self._create_error_patterns()

    def _create_error_patterns(self) -> List[ErrorPattern]:
        return [
            ErrorPattern(
                error_types=(),
                keywords=["quota", "resource_exhausted", "resource exhausted", "429"],
                category=ErrorCategory.QUOTA_EXCEEDED,
                severity=ErrorSeverity.HIGH,
                code="LLM_QUOTA_EXCEEDED",
                user_message="The AI service quota is exhausted. Please try again later.",
            ),
            ErrorPattern(
                error_types=(),
                keywords=["api key", "api_key", "unauthorized", "permission denied", "401", "403"],
                category=ErrorCategory.AUTHENTICATION,
                severity=ErrorSeverity.CRITICAL,
                code="EXTRACTION_ERROR",
                user_message="The AI service rejected the credentials.",
            ),
            ErrorPattern(
                error_types=(OracleResponseError, ValueError),
                keywords=[],
                category=ErrorCategory.VALIDATION,
                severity=ErrorSeverity.MEDIUM,
                code="EXTRACTION_ERROR",
                user_message="The document could not be parsed into knowledge points.",
            ),
            ErrorPattern(
                error_types=(asyncio.TimeoutError, httpx.TimeoutException),
                keywords=["timeout", "timed out", "deadline"],
                category=ErrorCategory.TIMEOUT,
                severity=ErrorSeverity.MEDIUM,
                code="EXTRACTION_ERROR",
                user_message="The AI service timed out while parsing the document.",
            ),
            ErrorPattern(
                error_types=(httpx.NetworkError, ConnectionError),
                keywords=["connection", "network", "unreachable"],
                category=ErrorCategory.NETWORK,
                severity=ErrorSeverity.MEDIUM,
                code="EXTRACTION_ERROR",
                user_message="The AI service could not be reached.",
            ),
        ]

    def classify(self, error: Exception) -> ErrorClassification:
        """
        Classify an exception.

        Args:
            error: Exception raised by a pipeline stage

        Returns:
            ErrorClassification with category, severity, code and message
        """
        for pattern in self.error_patterns:
            if pattern.matches(error):
                logger.debug(
                    f"Classified {type(error).__name__} as {pattern.category.value}"
                )
                return ErrorClassification(
                    category=pattern.category,
                    severity=pattern.severity,
                    code=pattern.code,
                    user_message=pattern.user_message,
                )

        return ErrorClassification(
            category=ErrorCategory.UNKNOWN,
            severity=ErrorSeverity.HIGH,
            code="EXTRACTION_ERROR",
            user_message=str(error) or type(error).__name__,
        )
