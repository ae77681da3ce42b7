"""
Gemini Client - Text-generation oracle and embedding service on google-genai.

Both services retry server errors, 429 responses and transport failures
with exponential backoff before surfacing a typed error. Callers are expected to treat every response as
untrusted and validate it.
"""

import logging
from typing import Any, List, Optional

import httpx
from google import genai
from google.genai import errors, types
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential

from ..core.error_classifier import EmbeddingError, OracleError
from ..models.config_models import OracleConfig
from ..models.service_models import IEmbeddingService, ITextOracle, OracleResponse

logger = logging.getLogger(__name__)


def is_transient_error(error: BaseException) -> bool:
    """Server errors, rate limiting and transport failures are worth retrying."""
    if isinstance(error, errors.ServerError):
        return True
    if isinstance(error, errors.APIError):
        return error.code == 429
    return isinstance(error, httpx.TransportError)


def create_genai_client(config: OracleConfig) -> genai.Client:
    """Create a google-genai client; the SDK falls back to env credentials."""
    if config.api_key:
        return genai.Client(api_key=config.api_key)
    return genai.Client()


class GeminiOracle(ITextOracle):
    """Text-generation oracle backed by a Gemini model."""

    def __init__(
        self,
        config: Optional[OracleConfig] = None,
        client: Optional[Any] = None,
    ):
        """
        Initialize the oracle.

        Args:
            config: Model name and retry policy
            client: Pre-built ``genai.Client``; created from ``config`` if omitted
        """
        self.config = config or OracleConfig()
        self.client = client or create_genai_client(self.config)
        self.model = self.config.parse_model

    async def generate(
        self,
        prompt: str,
        json_mode: bool = True,
        temperature: float = 0.0
    ) -> OracleResponse:
        generation_config = types.GenerateContentConfig(
            temperature=temperature,
            response_mime_type="application/json" if json_mode else "text/plain",
        )

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.config.max_retries),
                wait=wait_exponential(multiplier=1, min=1, max=30),
                retry=retry_if_exception(is_transient_error),
                reraise=True,
            ):
                with attempt:
                    response = await self.client.aio.models.generate_content(
                        model=self.model,
                        contents=prompt,
                        config=generation_config,
                    )
        except Exception as e:
            logger.warning(f"Gemini generation failed: {e}")
            raise OracleError(f"Gemini generation failed: {e}") from e

        text = response.text or ""
        logger.debug(f"Gemini returned {len(text)} chars for {len(prompt)}-char prompt")
        return OracleResponse(text=text, model=self.model)


class GeminiEmbeddingService(IEmbeddingService):
    """Batch embedding service backed by a Gemini embedding model."""

    def __init__(
        self,
        config: Optional[OracleConfig] = None,
        dimension: int = 768,
        client: Optional[Any] = None,
        task_type: str = "SEMANTIC_SIMILARITY",
    ):
        self.config = config or OracleConfig()
        self.client = client or create_genai_client(self.config)
        self.model = self.config.embedding_model
        self.dimension = dimension
        self.task_type = task_type

    async def embed(self, texts: List[str]) -> List[List[float]]:
        if not texts:
            return []

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.config.max_retries),
                wait=wait_exponential(multiplier=1, min=1, max=30),
                retry=retry_if_exception(is_transient_error),
                reraise=True,
            ):
                with attempt:
                    result = await self.client.aio.models.embed_content(
                        model=self.model,
                        contents=texts,
                        config=types.EmbedContentConfig(
                            task_type=self.task_type,
                            output_dimensionality=self.dimension,
                        ),
                    )
        except Exception as e:
            raise EmbeddingError(f"Gemini embedding failed: {e}") from e

        if result.embeddings is None:
            raise EmbeddingError("No embeddings returned from Gemini API")

        embeddings = [list(embedding.values or []) for embedding in result.embeddings]
        if len(embeddings) != len(texts):
            raise EmbeddingError(
                f"Expected {len(texts)} embeddings, got {len(embeddings)}"
            )
        return embeddings
