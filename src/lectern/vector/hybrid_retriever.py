"""
Hybrid Retriever - Query-time context assembly.

Embeds the query, runs the store's reciprocal-rank-fusion search and formats
the hits as ``"{content} (Page {page})"`` blocks. Retrieval errors degrade
to an empty context instead of reaching the caller.
"""

import logging
from typing import Any, Dict, List, Optional

from ..models.chunk_models import RetrievedChunk
from ..models.config_models import RetrievalConfig
from ..models.service_models import IChunkStore, IEmbeddingService

logger = logging.getLogger(__name__)

CONTEXT_SEPARATOR = "\n\n---\n\n"


def format_context(chunks: List[RetrievedChunk]) -> str:
    """Join chunk contents with page citations."""
    blocks = []
    for chunk in chunks:
        page = chunk.metadata.get("page") if isinstance(chunk.metadata, dict) else None
        source_info = f" (Page {page})" if page else ""
        blocks.append(f"{chunk.content}{source_info}")
    return CONTEXT_SEPARATOR.join(blocks)


class HybridRetriever:
    """Builds LLM context from stored chunks."""

    def __init__(
        self,
        embedder: IEmbeddingService,
        store: IChunkStore,
        config: Optional[RetrievalConfig] = None,
    ):
        self.embedder = embedder
        self.store = store
        self.config = config or RetrievalConfig()

    async def search(
        self,
        query: str,
        filter: Optional[Dict[str, Any]] = None,
        match_count: Optional[int] = None,
    ) -> List[RetrievedChunk]:
        """
        Run the fused search for ``query``.

        Raises:
            Exception: Whatever the embedding service or store raised
        """
        embeddings = await self.embedder.embed([query])
        if not embeddings:
            raise ValueError("Embedding service returned no vector for the query")

        return await self.store.hybrid_search(
            query_text=query,
            query_embedding=embeddings[0],
            match_threshold=self.config.match_threshold,
            match_count=match_count or self.config.match_count,
            rrf_k=self.config.rrf_k,
            filter=filter or {},
        )

    async def retrieve(
        self,
        query: str,
        filter: Optional[Dict[str, Any]] = None,
        match_count: Optional[int] = None,
    ) -> str:
        """
        Retrieve formatted context for ``query``.

        Args:
            query: User question
            filter: Metadata the chunks must contain, e.g. ``{"document_id": ...}``
            match_count: Top-K; the configured value when omitted

        Returns:
            Context string, or ``""`` on any retrieval error
        """
        try:
            chunks = await self.search(query, filter, match_count)
        except Exception as e:
            logger.error(f"Error retrieving context: {e}")
            return ""

        return format_context(chunks)
