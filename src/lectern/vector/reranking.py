"""
LLM reranking of retrieved chunks.
"""

import logging
from typing import Dict, List

from pydantic import RootModel

from ..ingestion.response_parser import parse_json_response, validate_response
from ..ingestion.response_schemas import RerankItemSchema
from ..models.chunk_models import RankedChunk, RetrievedChunk
from ..models.service_models import ITextOracle

logger = logging.getLogger(__name__)

DEFAULT_RELEVANCE = 5.0

RERANK_PROMPT = """You are a relevance scoring system. Score how relevant each text chunk is to the user's query.

Query: "{query}"

Chunks:
{chunk_summaries}

For each chunk, provide a relevance score from 1 (not relevant) to 10 (highly relevant).

Return ONLY a JSON array like: [{{"index": 0, "score": 8}}, {{"index": 1, "score": 3}}, ...]
Every chunk index must appear exactly once. Return ONLY valid JSON, no markdown."""


class RerankResponse(RootModel[List[RerankItemSchema]]):
    pass


def _fallback_rank(chunks: List[RetrievedChunk], top_k: int) -> List[RankedChunk]:
    return [
        RankedChunk(
            content=chunk.content,
            metadata=chunk.metadata,
            similarity=chunk.similarity,
            relevance_score=chunk.similarity * 10,
        )
        for chunk in chunks[:top_k]
    ]


async def rerank_with_llm(
    query: str,
    chunks: List[RetrievedChunk],
    top_k: int,
    oracle: ITextOracle,
) -> List[RankedChunk]:
    """
    Rerank chunks by oracle-assigned relevance.

    No oracle call is made when there are at most ``top_k`` chunks. Chunks
    the oracle leaves unscored get a relevance of 5; ties are broken by
    vector similarity. Any failure keeps the original order.
    """
    if not chunks:
        return []
    if len(chunks) <= top_k:
        return _fallback_rank(chunks, top_k)

    chunk_summaries = "\n\n".join(
        f"[{index}] {chunk.content[:300]}" for index, chunk in enumerate(chunks)
    )
    prompt = RERANK_PROMPT.format(query=query, chunk_summaries=chunk_summaries)

    try:
        response = await oracle.generate(prompt, json_mode=True, temperature=0.0)
        parsed = validate_response(RerankResponse, parse_json_response(response.text))
    except Exception as e:
        logger.warning(f"Reranking failed, using original order: {e}")
        return _fallback_rank(chunks, top_k)

    scores: Dict[int, float] = {item.index: item.score for item in parsed.root}
    ranked = [
        RankedChunk(
            content=chunk.content,
            metadata=chunk.metadata,
            similarity=chunk.similarity,
            relevance_score=scores.get(index, DEFAULT_RELEVANCE),
        )
        for index, chunk in enumerate(chunks)
    ]
    ranked.sort(key=lambda chunk: (chunk.relevance_score, chunk.similarity), reverse=True)
    return ranked[:top_k]
