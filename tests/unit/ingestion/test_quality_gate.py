"""
Tests for the quality gate: relevance review and semantic deduplication.
"""

import pytest

from lectern.core.error_classifier import OracleError
from lectern.ingestion.quality_gate import QualityGate, quality_gate
from lectern.models.config_models import QualityConfig
from lectern.models.document_models import KnowledgePoint
from lectern.models.service_models import IEmbeddingService


@pytest.fixture
def points():
    return [
        KnowledgePoint(title="Entropy", definition="Measure of disorder", source_pages=[2]),
        KnowledgePoint(title="Disorder", definition="Entropy of a system", source_pages=[5]),
        KnowledgePoint(title="Office hours", definition="Tuesday 3pm", source_pages=[1]),
        KnowledgePoint(title="Enthalpy", definition="Heat content", source_pages=[8]),
    ]


def all_relevant(count):
    return [{"index": i, "isRelevant": True, "qualityScore": 8, "issues": []} for i in range(count)]


class TestReview:
    """Test the relevance review step"""

    @pytest.mark.asyncio
    async def test_drops_irrelevant_points(self, make_oracle, make_embedder, points):
        oracle = make_oracle([[
            {"index": 0, "isRelevant": True, "qualityScore": 9},
            {"index": 1, "isRelevant": True, "qualityScore": 3, "issues": ["vague"]},
            {"index": 2, "isRelevant": False, "qualityScore": 1, "issues": ["administrative"]},
        ]])
        kept = await QualityGate(oracle, make_embedder()).run(points)

        # index 3 had no verdict and is kept; low scores are informational
        assert [p.title for p in kept] == ["Entropy", "Disorder", "Enthalpy"]

    @pytest.mark.asyncio
    async def test_review_failure_keeps_everything(self, make_oracle, make_embedder, points):
        oracle = make_oracle([OracleError("quota exceeded")])
        embedder = make_embedder()
        kept = await QualityGate(oracle, embedder).run(points)

        assert len(kept) == 4
        assert embedder.calls == [[p.definition for p in points]]

    @pytest.mark.asyncio
    async def test_unparsable_review_keeps_everything(self, make_oracle, make_embedder, points):
        oracle = make_oracle(["I think they are all fine"])
        kept = await QualityGate(oracle, make_embedder()).run(points)
        assert len(kept) == 4

    @pytest.mark.asyncio
    async def test_review_prompt_truncates_definitions(self, make_oracle, make_embedder):
        long_point = KnowledgePoint(title="Long", definition="d" * 500, source_pages=[1])
        oracle = make_oracle([all_relevant(1)])
        gate = QualityGate(oracle, make_embedder(), QualityConfig(review_definition_length=200))

        await gate.run([long_point])

        assert "d" * 200 + "..." in oracle.prompts[0]
        assert "d" * 201 not in oracle.prompts[0]


class TestSemanticDeduplication:
    """Test the embedding-based merge step"""

    @pytest.mark.asyncio
    async def test_merges_similar_definitions(self, make_oracle, make_embedder, points):
        embedder = make_embedder({
            "Measure of disorder": [1.0, 0.0],
            "Entropy of a system": [0.99, 0.1],
            "Tuesday 3pm": [0.0, 1.0],
            "Heat content": [0.6, 0.8],
        })
        kept = await quality_gate(points, make_oracle([all_relevant(4)]), embedder)

        assert [p.title for p in kept] == ["Entropy", "Office hours", "Enthalpy"]
        assert kept[0].source_pages == [2, 5]
        assert len(embedder.calls) == 1

    @pytest.mark.asyncio
    async def test_threshold_is_configurable(self, make_oracle, make_embedder, points):
        embedder = make_embedder({
            "Measure of disorder": [1.0, 0.0],
            "Entropy of a system": [0.99, 0.1],
            "Tuesday 3pm": [0.0, 1.0],
            "Heat content": [0.6, 0.8],
        })
        gate = QualityGate(
            make_oracle([all_relevant(4)]), embedder, QualityConfig(semantic_dedup_threshold=0.999)
        )
        kept = await gate.run(points)
        assert len(kept) == 4

    @pytest.mark.asyncio
    async def test_embedding_failure_fails_open(self, make_oracle, failing_embedder, points):
        kept = await QualityGate(make_oracle([all_relevant(4)]), failing_embedder).run(points)
        assert kept == points

    @pytest.mark.asyncio
    async def test_mismatched_embedding_count_fails_open(self, make_oracle, points):
        class OneVectorEmbedder(IEmbeddingService):
            async def embed(self, texts):
                return [[1.0, 0.0]]

        kept = await QualityGate(make_oracle([all_relevant(4)]), OneVectorEmbedder()).run(points)
        assert len(kept) == 4

    @pytest.mark.asyncio
    async def test_single_point_not_embedded(self, make_oracle, make_embedder):
        embedder = make_embedder()
        point = KnowledgePoint(title="Entropy", definition="Disorder", source_pages=[1])
        kept = await QualityGate(make_oracle([all_relevant(1)]), embedder).run([point])

        assert kept == [point]
        assert embedder.calls == []

    @pytest.mark.asyncio
    async def test_empty_input(self, make_oracle, make_embedder):
        oracle = make_oracle()
        assert await QualityGate(oracle, make_embedder()).run([]) == []
        assert oracle.call_count == 0
