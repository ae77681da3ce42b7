"""
Tests for document structure analysis.
"""

import pytest

from lectern.core.error_classifier import OracleError
from lectern.ingestion.structure_analyzer import StructureAnalyzer, analyze_structure
from lectern.models.config_models import ExtractionConfig
from lectern.models.document_models import ContentType


class TestStructureAnalyzer:
    """Test StructureAnalyzer"""

    @pytest.mark.asyncio
    async def test_short_document_skips_oracle(self, make_oracle, make_pages):
        oracle = make_oracle()
        structure = await analyze_structure(make_pages(3), oracle)

        assert oracle.call_count == 0
        assert len(structure.sections) == 1
        section = structure.sections[0]
        assert section.title == "Full Document"
        assert (section.start_page, section.end_page) == (1, 3)
        assert section.content_type == ContentType.MIXED
        assert structure.subject == "Unknown"

    @pytest.mark.asyncio
    async def test_oracle_sections(self, make_oracle, make_pages):
        oracle = make_oracle([{
            "subject": "Thermodynamics",
            "documentType": "lecture slides",
            "sections": [
                {"title": "Contents", "startPage": 1, "endPage": 1, "contentType": "overview"},
                {"title": "Laws", "startPage": 2, "endPage": 8, "contentType": "theorems"},
                {
                    "title": "Worked examples", "startPage": 9, "endPage": 12,
                    "contentType": "examples", "parentSection": "Laws",
                },
            ],
        }])
        structure = await StructureAnalyzer(oracle).analyze(make_pages(12), "doc-1")

        assert structure.subject == "Thermodynamics"
        assert [s.title for s in structure.sections] == ["Contents", "Laws", "Worked examples"]
        assert structure.sections[2].parent_section == "Laws"
        assert oracle.call_count == 1

    @pytest.mark.asyncio
    async def test_prompt_truncates_pages(self, make_oracle, make_pages):
        oracle = make_oracle([OracleError("down")])
        config = ExtractionConfig(structure_page_summary_length=50)
        pages = make_pages(6, lambda n: f"P{n}" + "x" * 200)

        await StructureAnalyzer(oracle, config).analyze(pages)

        prompt = oracle.prompts[0]
        assert "[Page 1]\nP1" in prompt
        assert "P1" + "x" * 48 in prompt
        assert "x" * 49 not in prompt
        assert "6 total" in prompt

    @pytest.mark.asyncio
    async def test_fallback_on_oracle_failure(self, make_oracle, make_pages):
        oracle = make_oracle([OracleError("quota exceeded")])
        structure = await StructureAnalyzer(oracle).analyze(make_pages(25))

        assert [s.title for s in structure.sections] == ["Section 1", "Section 2", "Section 3"]
        assert [(s.start_page, s.end_page) for s in structure.sections] == [
            (1, 10), (11, 20), (21, 25),
        ]

    @pytest.mark.asyncio
    async def test_fallback_on_invalid_response(self, make_oracle, make_pages):
        oracle = make_oracle([{"subject": "Physics", "documentType": "slides", "sections": []}])
        structure = await StructureAnalyzer(oracle).analyze(make_pages(8))

        assert len(structure.sections) == 1
        assert structure.sections[0].title == "Section 1"
        assert structure.sections[0].end_page == 8
