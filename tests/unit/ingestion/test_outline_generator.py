"""
Tests for document and course outline generation.
"""

import pytest

from lectern.core.error_classifier import OracleError
from lectern.ingestion.outline_generator import (
    OutlineGenerator,
    build_local_outline,
    generate_outline,
)
from lectern.models.document_models import (
    ContentType,
    DocumentOutline,
    DocumentStructure,
    KnowledgePoint,
    OutlineSection,
    SectionInfo,
)


@pytest.fixture
def structure():
    return DocumentStructure(
        subject="Thermodynamics",
        document_type="lecture slides",
        sections=[
            SectionInfo("Contents", 1, 1, ContentType.OVERVIEW),
            SectionInfo("First Law", 2, 5, ContentType.DEFINITIONS),
            SectionInfo("Second Law", 6, 9, ContentType.THEOREMS),
            SectionInfo("Exercises", 10, 12, ContentType.EXERCISES),
        ],
    )


def point(title, pages):
    return KnowledgePoint(title=title, definition=f"About {title}", source_pages=pages)


class TestLocalOutline:
    """Test the deterministic outline builder"""

    def test_every_point_appears_exactly_once(self, structure):
        points = [
            point("Internal energy", [2]),
            point("Entropy", [5, 6]),
            point("Carnot cycle", [8]),
            point("Syllabus", [1]),
            point("Appendix table", [40]),
        ]
        outline = build_local_outline("doc-1", structure, points)

        titles = [t for section in outline.sections for t in section.knowledge_points]
        assert sorted(titles) == sorted(p.title for p in points)
        assert len(titles) == len(set(titles))

    def test_groups_by_first_matching_section(self, structure):
        points = [point("Internal energy", [2]), point("Entropy", [5, 6]), point("Carnot cycle", [8])]
        outline = build_local_outline("doc-1", structure, points)

        by_title = {s.title: s.knowledge_points for s in outline.sections}
        assert "Contents" not in by_title
        assert by_title["First Law"] == ["Internal energy", "Entropy"]
        assert by_title["Second Law"] == ["Carnot cycle"]
        assert by_title["Exercises"] == []

    def test_descriptions_and_summary(self, structure):
        outline = build_local_outline("doc-1", structure, [point("Carnot cycle", [8])])

        by_title = {s.title: s for s in outline.sections}
        assert by_title["Second Law"].brief_description == "Covers Carnot cycle."
        assert by_title["Exercises"].brief_description == "exercises content."
        assert outline.title == "First Law"
        assert outline.subject == "Thermodynamics"
        assert outline.total_knowledge_points == 1
        assert outline.summary == "Document covering 1 knowledge points across 3 sections."

    def test_unmatched_points_collected(self, structure):
        outline = build_local_outline("doc-1", structure, [point("Syllabus", [1])])
        assert outline.sections[-1].title == "Additional Topics"
        assert outline.sections[-1].knowledge_points == ["Syllabus"]

    def test_overview_only_document(self):
        structure = DocumentStructure(
            subject="Unknown", document_type="unknown",
            sections=[SectionInfo("Contents", 1, 2, ContentType.OVERVIEW)],
        )
        outline = build_local_outline("doc-1", structure, [])
        assert outline.title == "Untitled Document"
        assert outline.sections == []


class TestOutlineGenerator:
    """Test OutlineGenerator"""

    @pytest.mark.asyncio
    async def test_small_sets_skip_oracle(self, make_oracle, structure):
        oracle = make_oracle()
        outline = await generate_outline("doc-1", structure, [point("Entropy", [6])], oracle)

        assert oracle.call_count == 0
        assert outline.document_id == "doc-1"

    @pytest.mark.asyncio
    async def test_large_sets_use_oracle(self, make_oracle, structure):
        points = [point(f"Concept {i}", [2 + i % 10]) for i in range(12)]
        oracle = make_oracle([{
            "title": "Laws of Thermodynamics",
            "summary": "Energy and entropy.",
            "sections": [{
                "title": "Core",
                "knowledgePoints": [p.title for p in points],
                "briefDescription": "Everything.",
            }],
        }])
        outline = await OutlineGenerator(oracle).generate_outline("doc-1", structure, points)

        assert oracle.call_count == 1
        assert outline.title == "Laws of Thermodynamics"
        assert outline.subject == "Thermodynamics"
        assert outline.total_knowledge_points == 12
        assert outline.sections[0].knowledge_points == [p.title for p in points]

    @pytest.mark.asyncio
    async def test_oracle_failure_uses_local_builder(self, make_oracle, structure):
        points = [point(f"Concept {i}", [2 + i % 10]) for i in range(12)]
        oracle = make_oracle([OracleError("timeout")])
        outline = await OutlineGenerator(oracle).generate_outline("doc-1", structure, points)

        titles = [t for section in outline.sections for t in section.knowledge_points]
        assert sorted(titles) == sorted(p.title for p in points)


class TestCourseOutline:
    """Test course outline roll-up"""

    @pytest.fixture
    def outlines(self):
        return [
            DocumentOutline("doc-1", "Thermo I", "Physics", 3,
                            [OutlineSection("First Law", ["Energy"], "x")], "Energy."),
            DocumentOutline("doc-2", "Thermo II", "Physics", 5,
                            [OutlineSection("Second Law", ["Entropy"], "y")], "Entropy."),
        ]

    @pytest.mark.asyncio
    async def test_empty_input(self, make_oracle):
        oracle = make_oracle()
        course = await OutlineGenerator(oracle).generate_course_outline("course-1", [])
        assert course.topics == []
        assert oracle.call_count == 0

    @pytest.mark.asyncio
    async def test_oracle_topics(self, make_oracle, outlines):
        oracle = make_oracle([{"topics": [{
            "topic": "Thermodynamics",
            "subtopics": ["First Law", "Second Law"],
            "relatedDocuments": ["doc-1", "doc-2"],
            "knowledgePointCount": 8,
        }]}])
        course = await OutlineGenerator(oracle).generate_course_outline("course-1", outlines)

        assert course.course_id == "course-1"
        assert course.topics[0].related_documents == ["doc-1", "doc-2"]
        assert course.to_dict()["topics"][0]["knowledgePointCount"] == 8

    @pytest.mark.asyncio
    async def test_fallback_one_topic_per_document(self, make_oracle, outlines):
        oracle = make_oracle(["not json"])
        course = await OutlineGenerator(oracle).generate_course_outline("course-1", outlines)

        assert [t.topic for t in course.topics] == ["Thermo I", "Thermo II"]
        assert course.topics[1].subtopics == ["Second Law"]
        assert course.topics[1].related_documents == ["doc-2"]
        assert course.topics[1].knowledge_point_count == 5
