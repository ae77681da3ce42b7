"""
Knowledge-Point Extractor - Citable knowledge points from lecture pages.

Documents up to ``single_pass_max_pages`` pages are extracted with one oracle
call. Longer documents are split into overlapping page batches that are
extracted strictly one after another, so at most one oracle call is in
flight and cancellation always falls between two batches.

Failure policy: an error in the first batch propagates, since it usually
means the document or the credentials are unusable. Errors in later batches
are logged and the batch is skipped. Results are merged by normalized title,
earlier batches forming the base record.
"""

import asyncio
import logging
from typing import Dict, List, Optional, Tuple

from ..core.stage_logger import get_stage_logger
from ..models.config_models import ExtractionConfig
from ..models.document_models import KnowledgePoint, Page
from ..models.service_models import BatchProgressCallback, ITextOracle
from .response_parser import parse_json_response, validate_items
from .response_schemas import KnowledgePointSchema

logger = logging.getLogger(__name__)


EXTRACTION_PROMPT = """You are an expert academic content analyzer. Extract the knowledge points a student must learn from the following lecture pages.

A knowledge point IS:
- A concept definition, with its conditions and scope
- A theorem, law or property, including the logic of its derivation
- An algorithm or method, with its steps
- A classification framework and its categories
- A worked example that illustrates a concept

A knowledge point is NOT:
- Administrative remarks (deadlines, attendance, "see you next week")
- Table-of-contents entries, chapter headings or agenda slides
- Generic filler without academic content
- A near-duplicate of a point already listed from another page; list it once and cite every page

For each knowledge point, return:
- title: A clear, concise, searchable title
- definition: A complete, self-contained explanation (formulas in LaTeX)
- keyFormulas: Relevant formulas (omit if none)
- keyConcepts: Related key terms (omit if none)
- examples: Concrete examples from the text (omit if none)
- sourcePages: Array of page numbers where the point appears

Return ONLY a valid JSON array of knowledge points. No markdown, no explanation.

Lecture content ({page_count} pages):
{pages_text}"""


def plan_batches(
    page_count: int, batch_pages: int, overlap: int
) -> List[Tuple[int, int]]:
    """
    Plan overlapping ``(start, end)`` slices over ``page_count`` pages.

    Consecutive batches step by ``batch_pages - overlap``. A trailing
    remainder of at most ``overlap`` pages is folded into the last batch
    rather than becoming a batch of its own.
    """
    if page_count <= 0:
        return []

    step = max(1, batch_pages - overlap)
    batches: List[Tuple[int, int]] = []
    start = 0
    while True:
        end = min(start + batch_pages, page_count)
        if page_count - end <= overlap:
            batches.append((start, page_count))
            break
        batches.append((start, end))
        start += step
    return batches


def merge_points(base: KnowledgePoint, other: KnowledgePoint) -> KnowledgePoint:
    """
    Merge two records describing the same knowledge point.

    ``base`` keeps its title; the longer definition wins (``base`` on a tie);
    page lists are unioned and sorted, auxiliary lists unioned in order.
    """
    definition = (
        other.definition if len(other.definition) > len(base.definition) else base.definition
    )
    return KnowledgePoint(
        title=base.title,
        definition=definition,
        key_formulas=_union_lists(base.key_formulas, other.key_formulas),
        key_concepts=_union_lists(base.key_concepts, other.key_concepts),
        examples=_union_lists(base.examples, other.examples),
        source_pages=sorted(set(base.source_pages) | set(other.source_pages)),
    )


def _union_lists(
    first: Optional[List[str]], second: Optional[List[str]]
) -> Optional[List[str]]:
    if first is None and second is None:
        return None
    merged: List[str] = []
    for value in (first or []) + (second or []):
        if value not in merged:
            merged.append(value)
    return merged


def deduplicate_by_title(points: List[KnowledgePoint]) -> List[KnowledgePoint]:
    """Collapse records whose titles match after trimming and case folding."""
    merged: Dict[str, KnowledgePoint] = {}
    for point in points:
        key = point.normalized_title
        if key in merged:
            merged[key] = merge_points(merged[key], point)
        else:
            merged[key] = KnowledgePoint(
                title=point.title,
                definition=point.definition,
                key_formulas=point.key_formulas,
                key_concepts=point.key_concepts,
                examples=point.examples,
                source_pages=sorted(set(point.source_pages)),
            )
    return list(merged.values())


class KnowledgeExtractor:
    """Extracts knowledge points from page batches with a text oracle."""

    def __init__(self, oracle: ITextOracle, config: Optional[ExtractionConfig] = None):
        self.oracle = oracle
        self.config = config or ExtractionConfig()

    async def extract(
        self,
        pages: List[Page],
        on_progress: Optional[BatchProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
        document_id: Optional[str] = None,
    ) -> List[KnowledgePoint]:
        """
        Extract deduplicated knowledge points from a document.

        Args:
            pages: Pages of the document in order
            on_progress: Called with ``(completed_batches, total_batches)``
            cancel_event: Checked before each batch; once set, extraction
                stops and returns what has accumulated
            document_id: Identifier used to tag log records

        Returns:
            Knowledge points merged by normalized title

        Raises:
            Exception: Whatever the first batch raised
        """
        log = get_stage_logger(__name__, "extraction", document_id)

        if len(pages) <= self.config.single_pass_max_pages:
            batches = [(0, len(pages))] if pages else []
        else:
            batches = plan_batches(
                len(pages),
                self.config.single_pass_batch_pages,
                self.config.single_pass_batch_overlap,
            )

        total_batches = len(batches)
        collected: List[KnowledgePoint] = []

        for batch_index, (start, end) in enumerate(batches):
            if cancel_event is not None and cancel_event.is_set():
                log.info(
                    f"Extraction cancelled before batch {batch_index + 1}/{total_batches}, "
                    f"keeping {len(collected)} points"
                )
                break

            batch = pages[start:end]
            try:
                batch_points = await self.extract_batch(batch)
            except Exception as e:
                if batch_index == 0:
                    log.error(f"First extraction batch failed: {e}")
                    raise
                log.warning(
                    f"Extraction batch {batch_index + 1}/{total_batches} "
                    f"(pages {batch[0].page_number}-{batch[-1].page_number}) failed, skipping: {e}"
                )
            else:
                collected.extend(batch_points)
                log.debug(
                    f"Batch {batch_index + 1}/{total_batches} yielded {len(batch_points)} points"
                )

            if on_progress:
                on_progress(batch_index + 1, total_batches)

        points = deduplicate_by_title(collected)
        log.info(f"Extracted {len(points)} knowledge points from {len(pages)} pages")
        return points

    async def extract_batch(self, pages: List[Page]) -> List[KnowledgePoint]:
        """Run one oracle call over ``pages``; invalid elements are dropped."""
        response = await self.oracle.generate(
            self.build_prompt(pages), json_mode=True, temperature=0.0
        )
        data = parse_json_response(response.text)
        if isinstance(data, dict):
            data = data.get("knowledgePoints", data.get("knowledge_points", []))

        return [
            KnowledgePoint(
                title=item.title.strip(),
                definition=item.definition,
                key_formulas=item.key_formulas,
                key_concepts=item.key_concepts,
                examples=item.examples,
                source_pages=item.source_pages,
            )
            for item in validate_items(KnowledgePointSchema, data)
        ]

    @staticmethod
    def build_prompt(pages: List[Page]) -> str:
        pages_text = "\n\n".join(f"[Page {page.page_number}]\n{page.text}" for page in pages)
        return EXTRACTION_PROMPT.format(page_count=len(pages), pages_text=pages_text)


async def extract_knowledge_points(
    pages: List[Page],
    oracle: ITextOracle,
    config: Optional[ExtractionConfig] = None,
    on_progress: Optional[BatchProgressCallback] = None,
    cancel_event: Optional[asyncio.Event] = None,
) -> List[KnowledgePoint]:
    """Convenience wrapper around ``KnowledgeExtractor.extract``."""
    return await KnowledgeExtractor(oracle, config).extract(pages, on_progress, cancel_event)
