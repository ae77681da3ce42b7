"""
Assignment Parser - Extraction, validation and outline of an assignment.
"""

import asyncio
import logging
from typing import Dict, List, Optional

from ..core.progress_reporter import ASSIGNMENT_PHASE_WEIGHTS, ProgressReporter
from ..core.stage_logger import get_stage_logger
from ..models.assignment_models import (
    AssignmentOutline,
    AssignmentOutlineItem,
    AssignmentParseResult,
    EnrichedAssignmentItem,
)
from ..models.document_models import Page
from ..models.service_models import ITextOracle, ProgressCallback
from .assignment_extractor import AssignmentExtractor
from .assignment_validator import apply_item_warnings

logger = logging.getLogger(__name__)

OUTLINE_TITLE_LENGTH = 80


def _in_parent_cycle(items: List[EnrichedAssignmentItem], position: int) -> bool:
    seen = set()
    current = items[position].parent_index
    while current is not None and 0 <= current < len(items) and current not in seen:
        if current == position:
            return True
        seen.add(current)
        current = items[current].parent_index
    return False


def build_assignment_outline(
    assignment_id: str, items: List[EnrichedAssignmentItem]
) -> AssignmentOutline:
    """
    Assemble the outline tree of an assignment.

    ``parent_index`` is resolved against list positions, not order numbers.
    Items whose parent does not resolve, or whose parent chain leads back
    to themselves, become roots.
    """
    nodes: Dict[int, AssignmentOutlineItem] = {
        position: AssignmentOutlineItem(
            order_num=item.order_num,
            title=item.content[:OUTLINE_TITLE_LENGTH],
        )
        for position, item in enumerate(items)
    }

    roots: List[AssignmentOutlineItem] = []
    for position, item in enumerate(items):
        parent = item.parent_index
        if parent in nodes and not _in_parent_cycle(items, position):
            nodes[parent].children.append(nodes[position])
        else:
            roots.append(nodes[position])

    return AssignmentOutline(
        assignment_id=assignment_id,
        title=roots[0].title if roots else "Untitled Assignment",
        total_items=len(items),
        items=roots,
        summary=f"{len(roots)} top-level questions, {len(items)} total items.",
    )


async def parse_assignment(
    pages: List[Page],
    oracle: ITextOracle,
    assignment_id: str = "",
    on_progress: Optional[ProgressCallback] = None,
    cancel_event: Optional[asyncio.Event] = None,
) -> AssignmentParseResult:
    """
    Extract, validate and outline the questions of an assignment.

    Args:
        pages: Pages of the assignment in order
        oracle: Text-generation oracle
        assignment_id: Identifier stored on the outline
        on_progress: Progress callback
        cancel_event: Checked before the oracle call

    Returns:
        AssignmentParseResult with annotated items, outline and warnings

    Raises:
        Exception: Whatever the oracle call raised
    """
    log = get_stage_logger(__name__, "assignment", assignment_id or None)
    reporter = ProgressReporter(on_progress, ASSIGNMENT_PHASE_WEIGHTS)
    reporter.report("extraction", 0, f"Sending {len(pages)} pages to AI...", total_pages=len(pages))

    extraction = await AssignmentExtractor(oracle).extract(pages, cancel_event)
    items = extraction.items
    apply_item_warnings(items)

    for warning in extraction.warnings:
        log.warning(warning)

    if not items:
        reporter.report("extraction", 100, "No questions found")
    else:
        reporter.report("extraction", 100, f"Extracted {len(items)} questions")
        log.info(f"Extracted {len(items)} assignment items")

    return AssignmentParseResult(
        items=items,
        outline=build_assignment_outline(assignment_id, items),
        warnings=list(extraction.warnings),
    )
