"""
Structure Analyzer - Section layout of a lecture document.

Short documents get a single section without consulting the oracle. Longer
ones are summarized page by page and classified by the oracle; any failure
there falls back to fixed page windows, so analysis never raises.
"""

import logging
from typing import List, Optional

from ..core.stage_logger import get_stage_logger
from ..models.config_models import ExtractionConfig
from ..models.document_models import ContentType, DocumentStructure, Page, SectionInfo
from ..models.service_models import ITextOracle
from .response_parser import parse_json_response, validate_response
from .response_schemas import StructureSchema

logger = logging.getLogger(__name__)


STRUCTURE_PROMPT = """You are a document structure analysis expert. Analyze the following academic document and identify its structure.

For each section, provide:
- title: The section/chapter heading
- startPage: First page number
- endPage: Last page number
- contentType: One of "definitions", "theorems", "examples", "exercises", "overview", "mixed"
  - "overview" = table of contents, introduction, references, administrative info
  - "definitions" = concept definitions, explanations
  - "theorems" = proofs, derivations, formulas
  - "examples" = worked examples, case studies
  - "exercises" = practice problems, homework
  - "mixed" = combination of the above
- parentSection: Title of the enclosing section (omit for top-level sections)

Also identify:
- subject: The academic discipline (e.g., "Computer Science", "Economics")
- documentType: The type of document (e.g., "lecture slides", "textbook chapter", "course notes")

Rules:
- If no clear chapter headings exist, segment by topic changes
- Mark table of contents, cover pages, introductions and reference sections as "overview"
- Sections must cover all pages from 1 to {page_count} with no gaps

Return ONLY valid JSON with "subject", "documentType" and "sections". No markdown, no explanation.

Document pages ({page_count} total):
{page_summaries}"""


class StructureAnalyzer:
    """Classifies a document's pages into titled, typed sections."""

    def __init__(self, oracle: ITextOracle, config: Optional[ExtractionConfig] = None):
        self.oracle = oracle
        self.config = config or ExtractionConfig()

    async def analyze(
        self, pages: List[Page], document_id: Optional[str] = None
    ) -> DocumentStructure:
        """
        Analyze the section structure of a document.

        Args:
            pages: Pages of the document in order
            document_id: Identifier used to tag log records

        Returns:
            DocumentStructure covering every page; never raises
        """
        log = get_stage_logger(__name__, "structure", document_id)
        page_count = len(pages)

        if page_count <= self.config.short_document_threshold:
            log.debug(f"Short document ({page_count} pages), using a single section")
            return self.full_document_structure(page_count)

        prompt = self.build_prompt(pages)

        try:
            response = await self.oracle.generate(prompt, json_mode=True, temperature=0.0)
            parsed = validate_response(StructureSchema, parse_json_response(response.text))
        except Exception as e:
            log.warning(f"Structure analysis failed, using fallback segmentation: {e}")
            return self.fallback_structure(page_count)

        structure = DocumentStructure(
            subject=parsed.subject,
            document_type=parsed.document_type,
            sections=[
                SectionInfo(
                    title=section.title,
                    start_page=section.start_page,
                    end_page=section.end_page,
                    content_type=section.content_type,
                    parent_section=section.parent_section,
                )
                for section in parsed.sections
            ],
        )
        log.info(f"Identified {len(structure.sections)} sections in {page_count} pages")
        return structure

    def build_prompt(self, pages: List[Page]) -> str:
        summary_length = self.config.structure_page_summary_length
        page_summaries = "\n\n".join(
            f"[Page {page.page_number}]\n{page.text[:summary_length]}" for page in pages
        )
        return STRUCTURE_PROMPT.format(page_count=len(pages), page_summaries=page_summaries)

    @staticmethod
    def full_document_structure(page_count: int) -> DocumentStructure:
        return DocumentStructure(
            subject="Unknown",
            document_type="unknown",
            sections=[
                SectionInfo(
                    title="Full Document",
                    start_page=1,
                    end_page=page_count,
                    content_type=ContentType.MIXED,
                )
            ],
        )

    def fallback_structure(self, page_count: int) -> DocumentStructure:
        """Partition pages into fixed windows labelled ``Section N``."""
        segment_size = self.config.structure_segment_size
        sections = []
        for start in range(0, page_count, segment_size):
            sections.append(
                SectionInfo(
                    title=f"Section {len(sections) + 1}",
                    start_page=start + 1,
                    end_page=min(start + segment_size, page_count),
                    content_type=ContentType.MIXED,
                )
            )
        return DocumentStructure(subject="Unknown", document_type="unknown", sections=sections)


async def analyze_structure(
    pages: List[Page],
    oracle: ITextOracle,
    config: Optional[ExtractionConfig] = None,
    document_id: Optional[str] = None,
) -> DocumentStructure:
    """Convenience wrapper around ``StructureAnalyzer.analyze``."""
    return await StructureAnalyzer(oracle, config).analyze(pages, document_id)
