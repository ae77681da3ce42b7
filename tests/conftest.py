"""
Shared fixtures: scripted oracle and embedding services.
"""

import json
from typing import Any, Callable, Dict, List, Optional

import pytest

from lectern.core.error_classifier import EmbeddingError, OracleError
from lectern.models.document_models import Page
from lectern.models.service_models import IEmbeddingService, ITextOracle, OracleResponse


class FakeOracle(ITextOracle):
    """
    Oracle returning scripted responses in call order.

    A response may be a string, any JSON-serializable value, or an
    exception instance to raise. ``handler`` takes precedence and maps a
    prompt to a response.
    """

    def __init__(
        self,
        responses: Optional[List[Any]] = None,
        handler: Optional[Callable[[str], Any]] = None,
    ):
        self.responses = list(responses or [])
        self.handler = handler
        self.prompts: List[str] = []

    @property
    def call_count(self) -> int:
        return len(self.prompts)

    async def generate(
        self, prompt: str, json_mode: bool = True, temperature: float = 0.0
    ) -> OracleResponse:
        self.prompts.append(prompt)
        if self.handler is not None:
            result = self.handler(prompt)
        elif self.responses:
            result = self.responses.pop(0)
        else:
            raise OracleError("No scripted response left")

        if isinstance(result, Exception):
            raise result
        if not isinstance(result, str):
            result = json.dumps(result)
        return OracleResponse(text=result, model="fake-model")


class FakeEmbedder(IEmbeddingService):
    """
    Embedding service with explicit vectors per text.

    Unknown texts get a one-hot vector of their own, so distinct texts are
    orthogonal unless configured otherwise.
    """

    def __init__(
        self,
        vectors: Optional[Dict[str, List[float]]] = None,
        error: Optional[Exception] = None,
        dimension: int = 64,
    ):
        self.vectors = dict(vectors or {})
        self.error = error
        self.dimension = dimension
        self.calls: List[List[str]] = []
        self._assigned: Dict[str, List[float]] = {}

    async def embed(self, texts: List[str]) -> List[List[float]]:
        self.calls.append(list(texts))
        if self.error is not None:
            raise self.error
        return [self.vector_for(text) for text in texts]

    def vector_for(self, text: str) -> List[float]:
        if text in self.vectors:
            return list(self.vectors[text])
        if text not in self._assigned:
            vector = [0.0] * self.dimension
            vector[len(self._assigned) % self.dimension] = 1.0
            self._assigned[text] = vector
        return list(self._assigned[text])


def build_pages(count: int, text: Optional[Callable[[int], str]] = None) -> List[Page]:
    text = text or (lambda number: f"Lecture content on page {number}.")
    return [Page(page_number=number, text=text(number)) for number in range(1, count + 1)]


@pytest.fixture
def make_oracle():
    return FakeOracle


@pytest.fixture
def make_embedder():
    return FakeEmbedder


@pytest.fixture
def make_pages():
    return build_pages


@pytest.fixture
def failing_embedder():
    return FakeEmbedder(error=EmbeddingError("embedding service unavailable"))
