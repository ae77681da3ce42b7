"""
Service Models - Contracts for the external collaborators of the pipeline.

The text-generation oracle, the embedding service and the chunk store are
injected into every stage that needs them; nothing in the package reaches
for a module-level client.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from .chunk_models import RetrievedChunk, StoredChunk


@dataclass
class OracleResponse:
    """Raw text returned by the text-generation oracle."""
    text: str
    model: Optional[str] = None


class ITextOracle(ABC):
    """Text-generation oracle with a JSON-constrained mode."""

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        json_mode: bool = True,
        temperature: float = 0.0
    ) -> OracleResponse:
        """Generate text for ``prompt``; may raise any exception."""


class IEmbeddingService(ABC):
    """Batch embedding service."""

    @abstractmethod
    async def embed(self, texts: List[str]) -> List[List[float]]:
        """Return one vector per input text, in input order."""


class IChunkStore(ABC):
    """Row store of embedded chunks able to run a rank-fused search."""

    @abstractmethod
    async def add_chunks(self, chunks: List[StoredChunk]) -> List[str]:
        """Persist chunks and return their ids."""

    @abstractmethod
    async def hybrid_search(
        self,
        query_text: str,
        query_embedding: List[float],
        match_threshold: float,
        match_count: int,
        rrf_k: int,
        filter: Optional[Dict[str, Any]] = None
    ) -> List[RetrievedChunk]:
        """Fuse vector similarity and keyword rank with reciprocal rank fusion."""


@dataclass
class PipelineProgress:
    """Progress snapshot reported at stage boundaries."""
    phase: str
    phase_progress: int
    total_progress: int
    detail: str
    total_pages: Optional[int] = None
    knowledge_point_count: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'phase': self.phase,
            'phaseProgress': self.phase_progress,
            'totalProgress': self.total_progress,
            'detail': self.detail,
        }
        if self.total_pages is not None:
            data['totalPages'] = self.total_pages
        if self.knowledge_point_count is not None:
            data['knowledgePointCount'] = self.knowledge_point_count
        return data


ProgressCallback = Callable[[PipelineProgress], None]
BatchProgressCallback = Callable[[int, int], None]
