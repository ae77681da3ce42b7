"""
Chunk Indexer - Embeds page chunks and writes them to a chunk store.

Chunks are embedded one request per chunk, in fixed-size groups whose
requests run concurrently; groups themselves run one after another.
"""

import asyncio
import logging
import uuid
from typing import Any, Dict, List, Optional

from ..core.error_classifier import EmbeddingError
from ..core.stage_logger import get_stage_logger
from ..models.chunk_models import ChunkWithMetadata, StoredChunk
from ..models.config_models import ChunkingConfig
from ..models.document_models import Page
from ..models.service_models import BatchProgressCallback, IChunkStore, IEmbeddingService
from .chunking_engine import ChunkingEngine

logger = logging.getLogger(__name__)


class ChunkIndexer:
    """Chunks pages, embeds the chunks and stores them."""

    def __init__(
        self,
        embedder: IEmbeddingService,
        store: IChunkStore,
        config: Optional[ChunkingConfig] = None,
    ):
        self.embedder = embedder
        self.store = store
        self.config = config or ChunkingConfig()
        self.engine = ChunkingEngine.from_config(self.config)

    async def index_pages(
        self,
        document_id: str,
        pages: List[Page],
        extra_metadata: Optional[Dict[str, Any]] = None,
        on_progress: Optional[BatchProgressCallback] = None,
    ) -> List[str]:
        """
        Chunk, embed and store the pages of a document.

        Args:
            document_id: Stored in every chunk's metadata as ``document_id``
            pages: Pages of the document
            extra_metadata: Additional metadata merged into every chunk
            on_progress: Called with ``(embedded_chunks, total_chunks)``

        Returns:
            Ids of the stored chunks

        Raises:
            EmbeddingError: If any embedding request fails
        """
        chunks = self.engine.chunk_pages(pages)
        return await self.index_chunks(document_id, chunks, extra_metadata, on_progress)

    async def index_chunks(
        self,
        document_id: str,
        chunks: List[ChunkWithMetadata],
        extra_metadata: Optional[Dict[str, Any]] = None,
        on_progress: Optional[BatchProgressCallback] = None,
    ) -> List[str]:
        log = get_stage_logger(__name__, "indexing", document_id)
        if not chunks:
            log.info("No chunks to index")
            return []

        embeddings = await self.embed_in_groups(chunks, on_progress)

        stored = [
            StoredChunk(
                chunk_id=str(uuid.uuid4()),
                content=chunk.content,
                embedding=embedding,
                metadata={**chunk.metadata, **(extra_metadata or {}), "document_id": document_id},
            )
            for chunk, embedding in zip(chunks, embeddings)
        ]
        ids = await self.store.add_chunks(stored)
        log.info(f"Indexed {len(ids)} chunks")
        return ids

    async def embed_in_groups(
        self,
        chunks: List[ChunkWithMetadata],
        on_progress: Optional[BatchProgressCallback] = None,
    ) -> List[List[float]]:
        group_size = self.config.embedding_group_size
        embeddings: List[List[float]] = []

        for start in range(0, len(chunks), group_size):
            group = chunks[start:start + group_size]
            results = await asyncio.gather(
                *(self.embedder.embed([chunk.content]) for chunk in group)
            )
            for vectors in results:
                if len(vectors) != 1:
                    raise EmbeddingError(f"Expected 1 embedding, got {len(vectors)}")
                embeddings.append(vectors[0])

            if on_progress:
                on_progress(len(embeddings), len(chunks))

        return embeddings
