"""
Chunk Models - Embeddable text units and retrieval hits.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class ChunkWithMetadata:
    """A chunk of page text; ``metadata['page']`` is the originating page."""
    content: str
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def page(self) -> Optional[int]:
        return self.metadata.get('page')

    def to_dict(self) -> Dict[str, Any]:
        return {'content': self.content, 'metadata': dict(self.metadata)}


@dataclass
class StoredChunk:
    """A chunk persisted together with its embedding."""
    chunk_id: str
    content: str
    embedding: List[float]
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class RetrievedChunk:
    """One row returned by a hybrid search."""
    chunk_id: str
    content: str
    similarity: float
    metadata: Dict[str, Any] = field(default_factory=dict)
    fused_score: float = 0.0


@dataclass
class RankedChunk:
    """A retrieved chunk scored for relevance by the oracle."""
    content: str
    metadata: Dict[str, Any]
    similarity: float
    relevance_score: float
