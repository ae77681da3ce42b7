"""
Core services for the lectern pipeline.
"""

from .config_manager import ConfigManager, safe_float, safe_int
from .error_classifier import (
    ConfigurationError,
    EmbeddingError,
    ErrorCategory,
    ErrorClassification,
    ErrorClassifier,
    ExtractionError,
    LecternError,
    OracleError,
    OracleResponseError,
)
from .progress_reporter import ProgressReporter
from .stage_logger import get_stage_logger

__all__ = [
    # Configuration management
    "ConfigManager",
    "safe_int",
    "safe_float",
    # Errors
    "LecternError",
    "OracleError",
    "OracleResponseError",
    "EmbeddingError",
    "ExtractionError",
    "ConfigurationError",
    "ErrorCategory",
    "ErrorClassification",
    "ErrorClassifier",
    # Progress and logging
    "ProgressReporter",
    "get_stage_logger",
]
