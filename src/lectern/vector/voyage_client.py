"""
Voyage AI HTTP Client

Embedding service speaking Voyage AI's REST API, used as an alternative to
Gemini embeddings for chunk indexing and retrieval.
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..core.error_classifier import EmbeddingError
from ..models.service_models import IEmbeddingService

logger = logging.getLogger(__name__)


class VoyageRateLimitError(EmbeddingError):
    """Rate limit exceeded error."""
    pass


@dataclass
class VoyageClientConfig:
    """Configuration for Voyage AI client."""

    api_key: str
    model: str = "voyage-3"
    base_url: str = "https://api.voyageai.com/v1"
    timeout: float = 30.0
    input_type: str = "document"
    output_dimension: Optional[int] = None
    max_batch_size: int = 128


class VoyageEmbeddingService(IEmbeddingService):
    """
    Batch embedding service on the Voyage AI API.

    Requests larger than ``max_batch_size`` are split and issued sequentially;
    each request is retried on transport errors and 429 responses.
    """

    def __init__(
        self,
        config: VoyageClientConfig,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        if not config.api_key:
            raise EmbeddingError("Voyage AI API key is required")
        self.config = config
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(config.timeout),
            headers={
                "Authorization": f"Bearer {config.api_key}",
                "Content-Type": "application/json",
            },
        )

    async def embed(self, texts: List[str]) -> List[List[float]]:
        if not texts:
            return []

        embeddings: List[List[float]] = []
        for start in range(0, len(texts), self.config.max_batch_size):
            batch = texts[start:start + self.config.max_batch_size]
            try:
                embeddings.extend(await self._make_embedding_request(batch))
            except EmbeddingError:
                raise
            except httpx.HTTPError as e:
                raise EmbeddingError(f"Voyage request failed: {e}") from e
        return embeddings

    @retry(
        wait=wait_exponential(multiplier=1, min=1, max=60),
        stop=stop_after_attempt(3),
        retry=retry_if_exception_type((httpx.RequestError, VoyageRateLimitError)),
        reraise=True,
    )
    async def _make_embedding_request(self, texts: List[str]) -> List[List[float]]:
        """Make the actual embedding API request with retry logic."""
        payload: Dict[str, Any] = {
            "input": texts,
            "model": self.config.model,
            "input_type": self.config.input_type,
        }
        if self.config.output_dimension:
            payload["output_dimension"] = self.config.output_dimension

        response = await self._client.post(f"{self.config.base_url}/embeddings", json=payload)

        if response.status_code == 429:
            retry_after = float(response.headers.get("retry-after", 1))
            wait_time = retry_after + random.uniform(0, 1)
            logger.warning(f"Voyage rate limited, waiting {wait_time:.1f}s")
            await asyncio.sleep(wait_time)
            raise VoyageRateLimitError("Rate limit exceeded")

        if response.status_code == 401:
            raise EmbeddingError("Authentication failed - check API key")
        if response.status_code >= 400:
            raise EmbeddingError(f"HTTP error {response.status_code}: {response.text}")

        data = response.json()
        items = sorted(data.get("data", []), key=lambda item: item.get("index", 0))
        embeddings = [item["embedding"] for item in items]

        if len(embeddings) != len(texts):
            raise EmbeddingError(f"Expected {len(texts)} embeddings, got {len(embeddings)}")

        logger.debug(f"Generated {len(embeddings)} Voyage embeddings")
        return embeddings

    async def close(self) -> None:
        await self._client.aclose()
