"""
In-memory chunk store with reciprocal-rank-fusion search.

Reference implementation of the row store the retriever queries: vector
candidates ranked by cosine similarity, keyword candidates ranked by TF-IDF
score, both restricted by a metadata containment filter and fused with
``1 / (rrf_k + rank)``.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import numpy as np
from sklearn.feature_extraction.text import TfidfVectorizer
from sklearn.metrics.pairwise import cosine_similarity

from ..models.chunk_models import RetrievedChunk, StoredChunk
from ..models.service_models import IChunkStore

logger = logging.getLogger(__name__)


def metadata_contains(metadata: Dict[str, Any], filter: Optional[Dict[str, Any]]) -> bool:
    """True if every key of ``filter`` is present in ``metadata`` with an equal value."""
    if not filter:
        return True
    return all(key in metadata and metadata[key] == value for key, value in filter.items())


class InMemoryChunkStore(IChunkStore):
    """Chunk store held in process memory."""

    def __init__(self) -> None:
        self._chunks: Dict[str, StoredChunk] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._chunks)

    async def add_chunks(self, chunks: List[StoredChunk]) -> List[str]:
        async with self._lock:
            for chunk in chunks:
                self._chunks[chunk.chunk_id] = chunk
        return [chunk.chunk_id for chunk in chunks]

    async def delete_by_filter(self, filter: Dict[str, Any]) -> int:
        """Remove chunks matching ``filter``; returns the number removed."""
        async with self._lock:
            doomed = [
                chunk_id for chunk_id, chunk in self._chunks.items()
                if metadata_contains(chunk.metadata, filter)
            ]
            for chunk_id in doomed:
                del self._chunks[chunk_id]
        return len(doomed)

    async def hybrid_search(
        self,
        query_text: str,
        query_embedding: List[float],
        match_threshold: float,
        match_count: int,
        rrf_k: int,
        filter: Optional[Dict[str, Any]] = None
    ) -> List[RetrievedChunk]:
        """
        Fuse vector and keyword rankings.

        Each list keeps at most ``2 * match_count`` candidates; vector
        candidates must exceed ``match_threshold``, keyword candidates must
        share at least one term with the query.
        """
        candidates = [
            chunk for chunk in self._chunks.values()
            if metadata_contains(chunk.metadata, filter)
        ]
        if not candidates or match_count <= 0:
            return []

        limit = match_count * 2
        similarities = self._vector_similarities(query_embedding, candidates)

        vector_ranked = [
            index for index in np.argsort(-similarities, kind="stable")
            if similarities[index] > match_threshold
        ][:limit]
        keyword_ranked = self._keyword_ranking(query_text, candidates)[:limit]

        fused: Dict[int, float] = {}
        for rank, index in enumerate(vector_ranked, start=1):
            fused[int(index)] = fused.get(int(index), 0.0) + 1.0 / (rrf_k + rank)
        for rank, index in enumerate(keyword_ranked, start=1):
            fused[int(index)] = fused.get(int(index), 0.0) + 1.0 / (rrf_k + rank)

        vector_hits = {int(index) for index in vector_ranked}
        ordered = sorted(fused.items(), key=lambda item: item[1], reverse=True)[:match_count]

        results = []
        for index, score in ordered:
            chunk = candidates[index]
            results.append(
                RetrievedChunk(
                    chunk_id=chunk.chunk_id,
                    content=chunk.content,
                    similarity=float(similarities[index]) if index in vector_hits else 0.0,
                    metadata=dict(chunk.metadata),
                    fused_score=score,
                )
            )

        logger.debug(
            f"Hybrid search: {len(vector_ranked)} vector, {len(keyword_ranked)} keyword, "
            f"{len(results)} fused results"
        )
        return results

    @staticmethod
    def _vector_similarities(
        query_embedding: List[float], candidates: List[StoredChunk]
    ) -> np.ndarray:
        matrix = np.asarray([chunk.embedding for chunk in candidates], dtype=float)
        query = np.asarray(query_embedding, dtype=float).reshape(1, -1)
        return cosine_similarity(query, matrix)[0]

    @staticmethod
    def _keyword_ranking(query_text: str, candidates: List[StoredChunk]) -> List[int]:
        vectorizer = TfidfVectorizer(stop_words="english")
        try:
            document_matrix = vectorizer.fit_transform([chunk.content for chunk in candidates])
        except ValueError:
            # empty vocabulary
            return []

        query_vector = vectorizer.transform([query_text])
        scores = (document_matrix @ query_vector.T).toarray().ravel()
        order = np.argsort(-scores, kind="stable")
        return [int(index) for index in order if scores[index] > 0]
