"""
External service integrations.
"""

from .gemini_client import GeminiEmbeddingService, GeminiOracle, create_genai_client

__all__ = ["GeminiOracle", "GeminiEmbeddingService", "create_genai_client"]
