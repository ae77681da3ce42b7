"""
Tests for oracle reranking of retrieved chunks.
"""

import pytest

from lectern.core.error_classifier import OracleError
from lectern.models.chunk_models import RetrievedChunk
from lectern.vector.reranking import rerank_with_llm


@pytest.fixture
def chunks():
    return [
        RetrievedChunk(str(i), f"Chunk {i} content", similarity, {"page": i})
        for i, similarity in enumerate([0.9, 0.8, 0.7, 0.6])
    ]


class TestRerankWithLLM:
    """Test rerank_with_llm"""

    @pytest.mark.asyncio
    async def test_empty(self, make_oracle):
        assert await rerank_with_llm("q", [], 3, make_oracle()) == []

    @pytest.mark.asyncio
    async def test_few_chunks_skip_oracle(self, make_oracle, chunks):
        oracle = make_oracle()
        ranked = await rerank_with_llm("q", chunks[:2], 3, oracle)

        assert oracle.call_count == 0
        assert [r.content for r in ranked] == ["Chunk 0 content", "Chunk 1 content"]
        assert ranked[0].relevance_score == pytest.approx(9.0)

    @pytest.mark.asyncio
    async def test_oracle_scores_reorder(self, make_oracle, chunks):
        oracle = make_oracle([[
            {"index": 0, "score": 2},
            {"index": 1, "score": 9},
            {"index": 3, "score": 5},
        ]])
        ranked = await rerank_with_llm("q", chunks, 3, oracle)

        # index 2 is unscored and defaults to 5, tying with index 3
        assert [r.content for r in ranked] == [
            "Chunk 1 content", "Chunk 2 content", "Chunk 3 content",
        ]
        assert ranked[1].relevance_score == 5.0

    @pytest.mark.asyncio
    async def test_failure_keeps_order(self, make_oracle, chunks):
        ranked = await rerank_with_llm("q", chunks, 2, make_oracle([OracleError("down")]))
        assert [r.content for r in ranked] == ["Chunk 0 content", "Chunk 1 content"]
        assert ranked[1].relevance_score == pytest.approx(8.0)

    @pytest.mark.asyncio
    async def test_invalid_scores_keep_order(self, make_oracle, chunks):
        ranked = await rerank_with_llm("q", chunks, 2, make_oracle([[{"index": 0, "score": 42}]]))
        assert [r.content for r in ranked] == ["Chunk 0 content", "Chunk 1 content"]
