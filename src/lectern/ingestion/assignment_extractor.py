"""
Assignment Extractor - Ordered question items from assignment and exam pages.

A single oracle call returns every question with a ``parentIndex`` pointing
at another item's position in the same list. Unusable responses become
warnings; when the response as a whole fails validation, the valid items
are salvaged one by one.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional

from pydantic import ValidationError

from ..core.error_classifier import OracleResponseError
from ..models.assignment_models import EnrichedAssignmentItem
from ..models.document_models import Page
from ..models.service_models import ITextOracle
from .response_parser import describe_validation_error, parse_json_response, validate_items
from .response_schemas import AssignmentExtractionSchema, AssignmentItemSchema

logger = logging.getLogger(__name__)


ASSIGNMENT_PROMPT = """You are an expert academic assignment/homework content analyzer.

Analyze the following document and extract ALL questions with their full structure.

For each ITEM (question), return:
- orderNum: Sequential number (1, 2, 3...)
- title: A short label for the question (e.g. "Question 3a")
- content: Full question text in Markdown (use KaTeX for math: $...$ inline, $$...$$ block)
- options: Array of option texts for multiple choice (empty array if not multiple choice)
- referenceAnswer: The reference answer if present in the document (empty string if none)
- explanation: Step-by-step solution explanation if present (empty string if none)
- points: Point value (0 if not specified)
- type: Question type (choice/fill_blank/short_answer/calculation/proof/essay)
- difficulty: Estimated difficulty (easy/medium/hard)
- parentIndex: 0-based position in this same list of the parent question, or null for top-level questions
- sourcePages: Array of page numbers where this question appears

Critical rules:
- Extract EVERY question; do not skip any. If the document states a total, return exactly that many items.
- ALL mathematical expressions MUST be in KaTeX format. Use $...$ for inline math and $$...$$ for display math.
- Each item's referenceAnswer must correspond to THAT specific question. If the document has a separate answer section, match answers to questions by their number.
- Independent sub-parts (a), (b), (c) become separate items whose parentIndex points at the parent question. Sub-parts sharing one context stay in ONE item.
- Do NOT include instructions or headers as questions.

Return ONLY a valid JSON object with an "items" array. No markdown, no explanation.

Document ({page_count} pages):
{pages_text}"""


@dataclass
class AssignmentExtractionResult:
    """Extracted items plus document-level warnings."""
    items: List[EnrichedAssignmentItem] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def to_enriched_item(item: AssignmentItemSchema) -> EnrichedAssignmentItem:
    return EnrichedAssignmentItem(
        order_num=item.order_num,
        content=item.content,
        title=item.title,
        options=list(item.options),
        reference_answer=item.reference_answer,
        explanation=item.explanation,
        points=item.points,
        type=item.type,
        difficulty=item.difficulty,
        parent_index=item.parent_index,
        source_pages=list(item.source_pages),
    )


class AssignmentExtractor:
    """Extracts assignment items with a single oracle call."""

    def __init__(self, oracle: ITextOracle):
        self.oracle = oracle

    async def extract(
        self, pages: List[Page], cancel_event: Optional[asyncio.Event] = None
    ) -> AssignmentExtractionResult:
        """
        Extract question items from assignment pages.

        Raises:
            Exception: Whatever the oracle call raised
        """
        if cancel_event is not None and cancel_event.is_set():
            return AssignmentExtractionResult()

        response = await self.oracle.generate(
            self.build_prompt(pages), json_mode=True, temperature=0.0
        )
        text = response.text or ""
        if not text.strip():
            return AssignmentExtractionResult(warnings=["Oracle returned empty response"])

        try:
            raw = parse_json_response(text)
        except OracleResponseError:
            return AssignmentExtractionResult(
                warnings=[f"Oracle returned invalid JSON ({len(text)} chars)"]
            )

        if isinstance(raw, list):
            raw = {"items": raw}

        try:
            parsed = AssignmentExtractionSchema.model_validate(raw)
        except ValidationError as e:
            return self.recover_items(raw, e)

        return AssignmentExtractionResult(items=[to_enriched_item(item) for item in parsed.items])

    def recover_items(self, raw: Any, error: ValidationError) -> AssignmentExtractionResult:
        """Salvage the individually valid items of an invalid response."""
        warnings = [f"Schema validation: {describe_validation_error(error)}"]

        raw_items = raw.get("items") if isinstance(raw, dict) else None
        if not isinstance(raw_items, list):
            raw_items = []

        valid = validate_items(AssignmentItemSchema, raw_items)
        if valid:
            warnings.append(f"Recovered {len(valid)}/{len(raw_items)} valid items")
            logger.warning(f"Recovered {len(valid)}/{len(raw_items)} assignment items")

        return AssignmentExtractionResult(
            items=[to_enriched_item(item) for item in valid], warnings=warnings
        )

    @staticmethod
    def build_prompt(pages: List[Page]) -> str:
        pages_text = "\n\n".join(f"[Page {page.page_number}]\n{page.text}" for page in pages)
        return ASSIGNMENT_PROMPT.format(page_count=len(pages), pages_text=pages_text)
