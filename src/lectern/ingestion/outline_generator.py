"""
Outline Generator - Document and course outlines from knowledge points.

Small point sets are grouped locally by page overlap with the document's
sections. Larger sets are grouped by the oracle, falling back to the local
builder on any failure, so outline generation never raises.
"""

import logging
from datetime import datetime
from typing import List, Optional

from ..core.stage_logger import get_stage_logger
from ..models.config_models import OutlineConfig
from ..models.document_models import (
    ContentType,
    CourseOutline,
    CourseTopic,
    DocumentOutline,
    DocumentStructure,
    KnowledgePoint,
    OutlineSection,
)
from ..models.service_models import ITextOracle
from .response_parser import parse_json_response, validate_response
from .response_schemas import CourseOutlineSchema, DocumentOutlineSchema

logger = logging.getLogger(__name__)

UNASSIGNED_SECTION_TITLE = "Additional Topics"

OUTLINE_PROMPT = """You are an academic document outline generator. Create a structured outline for this document.

Subject: {subject}
Document type: {document_type}

Document sections:
{structure_summary}

Knowledge points extracted ({point_count} total):
{points_summary}

Generate an outline with:
- title: A descriptive title for the document
- summary: A 1-2 sentence summary of the document content
- sections: Group knowledge points into logical sections, each with:
  - title: Section heading
  - knowledgePoints: Array of knowledge point titles belonging to this section
  - briefDescription: One sentence describing the section

Rules:
- Every knowledge point title must appear in exactly one section, spelled exactly as given
- Section titles should reflect the academic content
- Order sections logically (introduction, core concepts, advanced topics, exercises)

Return ONLY valid JSON. No markdown, no explanation."""

COURSE_OUTLINE_PROMPT = """You are an academic course outline generator. Analyze these document outlines and create a unified course outline.

Documents in this course ({document_count} total):
{outlines_summary}

Generate a JSON object with a "topics" array; each topic has:
- topic: Main topic name
- subtopics: Array of subtopic names within this topic
- relatedDocuments: Array of document IDs that cover this topic
- knowledgePointCount: Estimated number of knowledge points for this topic

Rules:
- Group related content from different documents into unified topics
- Order topics from foundational to advanced
- Each document must appear in at least one topic's relatedDocuments
- Subtopics should be specific and descriptive

Return ONLY valid JSON. No markdown, no explanation."""


def build_local_outline(
    document_id: str, structure: DocumentStructure, points: List[KnowledgePoint]
) -> DocumentOutline:
    """
    Build an outline deterministically from the section structure.

    Non-overview sections are walked in order and each point is attached to
    the first section its source pages intersect. Points matching no section
    are collected in a trailing section, so every title appears exactly once.
    """
    content_sections = [
        section for section in structure.sections
        if section.content_type != ContentType.OVERVIEW
    ]

    assigned = set()
    sections: List[OutlineSection] = []
    for section in content_sections:
        titles = []
        for index, point in enumerate(points):
            if index in assigned:
                continue
            if any(section.covers(page) for page in point.source_pages):
                titles.append(point.title)
                assigned.add(index)
        sections.append(
            OutlineSection(
                title=section.title,
                knowledge_points=titles,
                brief_description=(
                    f"Covers {', '.join(titles)}." if titles
                    else f"{section.content_type.value} content."
                ),
            )
        )

    leftovers = [point.title for index, point in enumerate(points) if index not in assigned]
    if leftovers:
        sections.append(
            OutlineSection(
                title=UNASSIGNED_SECTION_TITLE,
                knowledge_points=leftovers,
                brief_description=f"Covers {', '.join(leftovers)}.",
            )
        )

    return DocumentOutline(
        document_id=document_id,
        title=content_sections[0].title if content_sections else "Untitled Document",
        subject=structure.subject,
        total_knowledge_points=len(points),
        sections=sections,
        summary=(
            f"Document covering {len(points)} knowledge points "
            f"across {len(sections)} sections."
        ),
    )


def build_fallback_course_outline(
    course_id: str, document_outlines: List[DocumentOutline]
) -> CourseOutline:
    """One topic per document, its section titles as subtopics."""
    return CourseOutline(
        course_id=course_id,
        topics=[
            CourseTopic(
                topic=outline.title,
                subtopics=[section.title for section in outline.sections],
                related_documents=[outline.document_id],
                knowledge_point_count=outline.total_knowledge_points,
            )
            for outline in document_outlines
        ],
        last_updated=datetime.now(),
    )


class OutlineGenerator:
    """Generates document and course outlines."""

    def __init__(self, oracle: ITextOracle, config: Optional[OutlineConfig] = None):
        self.oracle = oracle
        self.config = config or OutlineConfig()

    async def generate_outline(
        self,
        document_id: str,
        structure: DocumentStructure,
        points: List[KnowledgePoint],
    ) -> DocumentOutline:
        """
        Generate the outline of one document.

        Args:
            document_id: Identifier of the document
            structure: Section structure from the structure analyzer
            points: Knowledge points after the quality gate

        Returns:
            DocumentOutline; the local builder is used below the size
            threshold and whenever the oracle fails
        """
        log = get_stage_logger(__name__, "outline", document_id)

        if len(points) <= self.config.local_outline_threshold:
            log.debug(f"Building local outline for {len(points)} points")
            return build_local_outline(document_id, structure, points)

        try:
            response = await self.oracle.generate(
                self.build_prompt(structure, points), json_mode=True, temperature=0.0
            )
            parsed = validate_response(DocumentOutlineSchema, parse_json_response(response.text))
        except Exception as e:
            log.warning(f"Outline generation failed, using local builder: {e}")
            return build_local_outline(document_id, structure, points)

        return DocumentOutline(
            document_id=document_id,
            title=parsed.title,
            subject=structure.subject,
            total_knowledge_points=len(points),
            sections=[
                OutlineSection(
                    title=section.title,
                    knowledge_points=list(section.knowledge_points),
                    brief_description=section.brief_description,
                )
                for section in parsed.sections
            ],
            summary=parsed.summary,
        )

    @staticmethod
    def build_prompt(structure: DocumentStructure, points: List[KnowledgePoint]) -> str:
        structure_summary = "\n".join(
            f'- "{section.title}" (pages {section.start_page}-{section.end_page}, '
            f"{section.content_type.value})"
            for section in structure.sections
        )
        points_summary = "\n".join(
            f'- "{point.title}": {point.definition[:150]}' for point in points
        )
        return OUTLINE_PROMPT.format(
            subject=structure.subject,
            document_type=structure.document_type,
            structure_summary=structure_summary,
            point_count=len(points),
            points_summary=points_summary,
        )

    async def generate_course_outline(
        self, course_id: str, document_outlines: List[DocumentOutline]
    ) -> CourseOutline:
        """Merge document outlines into cross-document course topics."""
        if not document_outlines:
            return CourseOutline(course_id=course_id, topics=[], last_updated=datetime.now())

        outlines_summary = "\n\n".join(
            f'Document "{outline.title}" ({outline.document_id}): {outline.summary}\n'
            "Sections: "
            + "; ".join(
                f"{section.title} [{', '.join(section.knowledge_points)}]"
                for section in outline.sections
            )
            for outline in document_outlines
        )
        prompt = COURSE_OUTLINE_PROMPT.format(
            document_count=len(document_outlines), outlines_summary=outlines_summary
        )

        try:
            response = await self.oracle.generate(prompt, json_mode=True, temperature=0.0)
            parsed = validate_response(CourseOutlineSchema, parse_json_response(response.text))
        except Exception as e:
            logger.warning(f"Course outline generation failed for {course_id}, using fallback: {e}")
            return build_fallback_course_outline(course_id, document_outlines)

        return CourseOutline(
            course_id=course_id,
            topics=[
                CourseTopic(
                    topic=topic.topic,
                    subtopics=list(topic.subtopics),
                    related_documents=list(topic.related_documents),
                    knowledge_point_count=topic.knowledge_point_count,
                )
                for topic in parsed.topics
            ],
            last_updated=datetime.now(),
        )


async def generate_outline(
    document_id: str,
    structure: DocumentStructure,
    points: List[KnowledgePoint],
    oracle: ITextOracle,
    config: Optional[OutlineConfig] = None,
) -> DocumentOutline:
    """Convenience wrapper around ``OutlineGenerator.generate_outline``."""
    return await OutlineGenerator(oracle, config).generate_outline(document_id, structure, points)
