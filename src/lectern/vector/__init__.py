"""
Chunk storage, hybrid retrieval and reranking.
"""

from .hybrid_retriever import CONTEXT_SEPARATOR, HybridRetriever, format_context
from .memory_store import InMemoryChunkStore, metadata_contains
from .reranking import rerank_with_llm
from .voyage_client import VoyageClientConfig, VoyageEmbeddingService

__all__ = [
    "HybridRetriever",
    "format_context",
    "CONTEXT_SEPARATOR",
    "InMemoryChunkStore",
    "metadata_contains",
    "rerank_with_llm",
    "VoyageEmbeddingService",
    "VoyageClientConfig",
]
