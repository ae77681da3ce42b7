"""
Chunking Engine - Page-aware recursive text splitting.

Splits each page on paragraph, sentence, word and finally character
boundaries, with overlap measured in characters. Every chunk carries the
number of the page it was cut from.
"""

import logging
from typing import List, Optional

from langchain_text_splitters import RecursiveCharacterTextSplitter

from ..models.chunk_models import ChunkWithMetadata
from ..models.config_models import ChunkingConfig
from ..models.document_models import Page

logger = logging.getLogger(__name__)

# paragraph, line, sentence, word, character
DEFAULT_SEPARATORS = ["\n\n", "\n", ". ", "。", "! ", "? ", "; ", " ", ""]


class ChunkingEngine:
    """Recursive character splitter that preserves page provenance."""

    def __init__(
        self,
        chunk_size: int = 1000,
        chunk_overlap: int = 200,
        separators: Optional[List[str]] = None,
    ):
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if not 0 <= chunk_overlap < chunk_size:
            raise ValueError("chunk_overlap must be in [0, chunk_size)")

        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self._splitter = RecursiveCharacterTextSplitter(
            chunk_size=chunk_size,
            chunk_overlap=chunk_overlap,
            separators=separators or DEFAULT_SEPARATORS,
        )

    @classmethod
    def from_config(cls, config: ChunkingConfig) -> "ChunkingEngine":
        return cls(chunk_size=config.chunk_size, chunk_overlap=config.chunk_overlap)

    def split_text(self, text: str) -> List[str]:
        return [piece for piece in self._splitter.split_text(text) if piece.strip()]

    def chunk_pages(self, pages: List[Page]) -> List[ChunkWithMetadata]:
        """
        Split pages into overlapping chunks in page order.

        Pages without usable text contribute nothing.
        """
        chunks: List[ChunkWithMetadata] = []
        for page in pages:
            if not page.text.strip():
                continue
            for piece in self.split_text(page.text):
                chunks.append(
                    ChunkWithMetadata(content=piece, metadata={"page": page.page_number})
                )

        logger.debug(f"Split {len(pages)} pages into {len(chunks)} chunks")
        return chunks


def chunk_pages(
    pages: List[Page], chunk_size: int = 1000, chunk_overlap: int = 200
) -> List[ChunkWithMetadata]:
    """Split ``pages`` into chunks tagged with their page number."""
    return ChunkingEngine(chunk_size, chunk_overlap).chunk_pages(pages)
