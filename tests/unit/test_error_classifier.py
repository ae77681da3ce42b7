"""
Tests for error classification.
"""

import asyncio

import httpx

from lectern.core.error_classifier import (
    ErrorCategory,
    ErrorClassifier,
    ExtractionError,
    OracleError,
    OracleResponseError,
)


class TestErrorClassifier:
    """Test mapping of exceptions to error codes"""

    def setup_method(self):
        self.classifier = ErrorClassifier()

    def test_quota_errors(self):
        classification = self.classifier.classify(
            OracleError("Gemini generation failed: 429 RESOURCE_EXHAUSTED")
        )
        assert classification.category == ErrorCategory.QUOTA_EXCEEDED
        assert classification.code == "LLM_QUOTA_EXCEEDED"

    def test_authentication_errors(self):
        classification = self.classifier.classify(OracleError("API key not valid"))
        assert classification.category == ErrorCategory.AUTHENTICATION
        assert classification.code == "EXTRACTION_ERROR"

    def test_validation_errors(self):
        classification = self.classifier.classify(OracleResponseError("bad json"))
        assert classification.category == ErrorCategory.VALIDATION

    def test_timeout_errors(self):
        assert self.classifier.classify(asyncio.TimeoutError()).category == ErrorCategory.TIMEOUT
        assert (
            self.classifier.classify(httpx.ReadTimeout("read timed out")).category
            == ErrorCategory.TIMEOUT
        )

    def test_network_errors(self):
        classification = self.classifier.classify(httpx.ConnectError("refused"))
        assert classification.category == ErrorCategory.NETWORK

    def test_unknown_errors_keep_message(self):
        classification = self.classifier.classify(
            ExtractionError("Document contains no extractable text")
        )
        assert classification.category == ErrorCategory.UNKNOWN
        assert classification.code == "EXTRACTION_ERROR"
        assert classification.user_message == "Document contains no extractable text"
