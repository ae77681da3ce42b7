"""
Quality Gate - Relevance review and semantic deduplication.

Two independent, fail-open steps run over the extracted knowledge points:

1. An oracle review marks each point relevant or not and scores it 0-10.
   Irrelevant points are dropped; the score is only logged. If the review
   call or its parsing fails, every point passes through.
2. Definitions are embedded in one batched call and any pair with cosine
   similarity at or above ``semantic_dedup_threshold`` is merged. If the
   embedding service fails, the list passes through unchanged.

Review runs first so fewer definitions need embedding.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np
from sklearn.metrics.pairwise import cosine_similarity

from ..core.error_classifier import EmbeddingError
from ..core.stage_logger import get_stage_logger
from ..models.config_models import QualityConfig
from ..models.document_models import KnowledgePoint
from ..models.service_models import IEmbeddingService, ITextOracle
from .knowledge_extractor import merge_points
from .response_parser import parse_json_response, validate_items
from .response_schemas import ReviewItemSchema

logger = logging.getLogger(__name__)


REVIEW_PROMPT = """You are an academic content quality reviewer. Evaluate these extracted knowledge points.

Scoring rubric:
- 10: Precise, complete definition with conditions, formulas/examples
- 7-9: Mostly accurate, may lack some detail
- 4-6: Vague or incomplete
- 0-3: Invalid (classroom info, table-of-contents entries, overly generic)

Mark isRelevant=false for:
- Classroom management info (deadlines, attendance)
- Table of contents entries or chapter headings
- Non-academic content

For each knowledge point, return:
- index: the number in brackets [N]
- isRelevant: boolean
- qualityScore: 0-10
- issues: array of specific issues (empty if none)

Return ONLY a JSON array. No markdown.

Knowledge points:
{points_summary}"""


@dataclass
class PointReview:
    """Oracle verdict on a single knowledge point."""
    is_relevant: bool
    quality_score: float
    issues: List[str] = field(default_factory=list)


class QualityGate:
    """Filters irrelevant knowledge points and merges semantic duplicates."""

    def __init__(
        self,
        oracle: ITextOracle,
        embedder: IEmbeddingService,
        config: Optional[QualityConfig] = None,
    ):
        self.oracle = oracle
        self.embedder = embedder
        self.config = config or QualityConfig()

    async def run(
        self, points: List[KnowledgePoint], document_id: Optional[str] = None
    ) -> List[KnowledgePoint]:
        """
        Apply both quality steps.

        Args:
            points: Knowledge points after title deduplication
            document_id: Identifier used to tag log records

        Returns:
            Relevant points with semantic duplicates merged; never raises
        """
        if not points:
            return []

        log = get_stage_logger(__name__, "quality_gate", document_id)

        try:
            reviewed = await self.review(points)
        except Exception as e:
            log.warning(f"Quality review failed, keeping all {len(points)} points: {e}")
            reviewed = list(points)

        try:
            merged = await self.merge_by_semantic_similarity(reviewed)
        except Exception as e:
            log.warning(f"Semantic deduplication failed, skipping: {e}")
            merged = reviewed

        log.info(
            f"Quality gate kept {len(merged)} of {len(points)} points "
            f"({len(points) - len(reviewed)} irrelevant, {len(reviewed) - len(merged)} merged)"
        )
        return merged

    async def review(self, points: List[KnowledgePoint]) -> List[KnowledgePoint]:
        """
        Drop points the oracle marks irrelevant.

        Points the oracle did not return a verdict for are kept.

        Raises:
            Exception: If the oracle call fails or returns unparsable text
        """
        reviews = await self.fetch_reviews(points)

        kept: List[KnowledgePoint] = []
        for index, point in enumerate(points):
            review = reviews.get(index)
            if review is None:
                kept.append(point)
                continue
            if not review.is_relevant:
                logger.debug(f"Dropping irrelevant point {point.title!r}: {review.issues}")
                continue
            if review.quality_score < self.config.quality_score_threshold:
                logger.debug(
                    f"Low quality score {review.quality_score} for {point.title!r}: {review.issues}"
                )
            kept.append(point)
        return kept

    async def fetch_reviews(self, points: List[KnowledgePoint]) -> Dict[int, PointReview]:
        response = await self.oracle.generate(
            self.build_review_prompt(points), json_mode=True, temperature=0.0
        )
        data = parse_json_response(response.text)
        if isinstance(data, dict):
            data = data.get("reviews", [])

        return {
            item.index: PointReview(
                is_relevant=item.is_relevant,
                quality_score=item.quality_score,
                issues=item.issues,
            )
            for item in validate_items(ReviewItemSchema, data)
            if 0 <= item.index < len(points)
        }

    def build_review_prompt(self, points: List[KnowledgePoint]) -> str:
        limit = self.config.review_definition_length
        summary = "\n\n".join(
            f'[{index}] "{point.title}": {point.definition[:limit]}'
            f'{"..." if len(point.definition) > limit else ""}'
            for index, point in enumerate(points)
        )
        return REVIEW_PROMPT.format(points_summary=summary)

    async def merge_by_semantic_similarity(
        self, points: List[KnowledgePoint]
    ) -> List[KnowledgePoint]:
        """
        Merge points whose definitions embed within the dedup threshold.

        Each point absorbs every later, not yet merged point similar to it.

        Raises:
            EmbeddingError: If the embedding service fails or returns a
                malformed result
        """
        if len(points) <= 1:
            return list(points)

        embeddings = await self.embedder.embed([point.definition for point in points])
        if len(embeddings) != len(points):
            raise EmbeddingError(f"Expected {len(points)} embeddings, got {len(embeddings)}")

        try:
            matrix = np.asarray(embeddings, dtype=float)
        except ValueError as e:
            raise EmbeddingError(f"Inconsistent embedding dimensions: {e}") from e
        if matrix.ndim != 2:
            raise EmbeddingError("Embeddings must form a 2-D matrix")

        similarity = cosine_similarity(matrix)
        threshold = self.config.semantic_dedup_threshold

        absorbed = set()
        result: List[KnowledgePoint] = []
        for i, point in enumerate(points):
            if i in absorbed:
                continue
            current = point
            for j in range(i + 1, len(points)):
                if j in absorbed:
                    continue
                if similarity[i, j] >= threshold:
                    logger.debug(
                        f"Merging {points[j].title!r} into {current.title!r} "
                        f"(similarity {similarity[i, j]:.3f})"
                    )
                    current = merge_points(current, points[j])
                    absorbed.add(j)
            result.append(current)
        return result


async def quality_gate(
    points: List[KnowledgePoint],
    oracle: ITextOracle,
    embedder: IEmbeddingService,
    config: Optional[QualityConfig] = None,
) -> List[KnowledgePoint]:
    """Convenience wrapper around ``QualityGate.run``."""
    return await QualityGate(oracle, embedder, config).run(points)
