"""
Tests for assignment extraction, outline assembly and exam question parsing.
"""

import asyncio

import pytest

from lectern.core.error_classifier import OracleError
from lectern.ingestion.assignment_extractor import AssignmentExtractor
from lectern.ingestion.assignment_parser import build_assignment_outline, parse_assignment
from lectern.ingestion.question_parser import parse_questions
from lectern.models.assignment_models import EnrichedAssignmentItem


def raw_item(order_num, content, parent_index=None, **extra):
    data = {
        "orderNum": order_num,
        "content": content,
        "referenceAnswer": "See solutions.",
        "parentIndex": parent_index,
    }
    data.update(extra)
    return data


class TestAssignmentExtractor:
    """Test AssignmentExtractor"""

    @pytest.mark.asyncio
    async def test_items_from_object(self, make_oracle, make_pages):
        oracle = make_oracle([{"items": [
            raw_item(1, "Compute the derivative of $x^3$.", points=10, difficulty="easy"),
            raw_item(2, "Explain the chain rule with an example.", options=None),
        ]}])
        result = await AssignmentExtractor(oracle).extract(make_pages(2))

        assert [i.order_num for i in result.items] == [1, 2]
        assert result.items[0].points == 10
        assert result.items[0].difficulty == "easy"
        assert result.items[1].options == []
        assert result.warnings == []

    @pytest.mark.asyncio
    async def test_bare_list_is_accepted(self, make_oracle, make_pages):
        oracle = make_oracle([[raw_item(1, "Compute the derivative of $x^3$.")]])
        result = await AssignmentExtractor(oracle).extract(make_pages(1))
        assert len(result.items) == 1

    @pytest.mark.asyncio
    async def test_empty_response(self, make_oracle, make_pages):
        result = await AssignmentExtractor(make_oracle(["  "])).extract(make_pages(1))
        assert result.items == []
        assert result.warnings == ["Oracle returned empty response"]

    @pytest.mark.asyncio
    async def test_invalid_json(self, make_oracle, make_pages):
        result = await AssignmentExtractor(make_oracle(["{broken"])).extract(make_pages(1))
        assert result.items == []
        assert result.warnings == ["Oracle returned invalid JSON (7 chars)"]

    @pytest.mark.asyncio
    async def test_recovers_valid_items(self, make_oracle, make_pages):
        oracle = make_oracle([{"items": [
            raw_item(1, "Compute the derivative of $x^3$."),
            {"orderNum": "two", "content": ""},
            raw_item(3, "Integrate $\\sin x$ over one period."),
        ]}])
        result = await AssignmentExtractor(oracle).extract(make_pages(1))

        assert [i.order_num for i in result.items] == [1, 3]
        assert result.warnings[0].startswith("Schema validation: ")
        assert result.warnings[1] == "Recovered 2/3 valid items"

    @pytest.mark.asyncio
    async def test_infinite_page_number_is_discarded(self, make_oracle, make_pages):
        oracle = make_oracle([
            '{"items": [{"orderNum": 1, "content": "Compute the derivative of x^3.",'
            ' "referenceAnswer": "3x^2", "sourcePages": [1e400, 2]}]}'
        ])
        result = await AssignmentExtractor(oracle).extract(make_pages(2))

        assert [i.order_num for i in result.items] == [1]
        assert result.items[0].source_pages == [2]
        assert result.warnings == []

    @pytest.mark.asyncio
    async def test_cancelled_before_call(self, make_oracle, make_pages):
        cancel_event = asyncio.Event()
        cancel_event.set()
        oracle = make_oracle()
        result = await AssignmentExtractor(oracle).extract(make_pages(1), cancel_event)

        assert result.items == []
        assert oracle.call_count == 0

    @pytest.mark.asyncio
    async def test_oracle_failure_propagates(self, make_oracle, make_pages):
        with pytest.raises(OracleError):
            await AssignmentExtractor(make_oracle([OracleError("down")])).extract(make_pages(1))


class TestAssignmentOutline:
    """Test outline tree assembly"""

    def test_parent_index_resolves_positions(self):
        items = [
            EnrichedAssignmentItem(order_num=1, content="Consider the function f(x) = x^2."),
            EnrichedAssignmentItem(order_num=2, content="Find f'(x).", parent_index=0),
            EnrichedAssignmentItem(order_num=3, content="Find f''(x).", parent_index=0),
            EnrichedAssignmentItem(order_num=4, content="Self referencing item", parent_index=3),
            EnrichedAssignmentItem(order_num=5, content="Dangling parent", parent_index=42),
        ]
        outline = build_assignment_outline("hw-1", items)

        assert [node.order_num for node in outline.items] == [1, 4, 5]
        assert [child.order_num for child in outline.items[0].children] == [2, 3]
        assert outline.total_items == 5
        assert outline.title == "Consider the function f(x) = x^2."
        assert outline.summary == "3 top-level questions, 5 total items."

    def test_parent_cycle_becomes_roots(self):
        items = [
            EnrichedAssignmentItem(order_num=1, content="Question one", parent_index=1),
            EnrichedAssignmentItem(order_num=2, content="Question two", parent_index=0),
            EnrichedAssignmentItem(order_num=3, content="Part of question one", parent_index=0),
        ]
        outline = build_assignment_outline("hw-1", items)

        assert [node.order_num for node in outline.items] == [1, 2]
        assert [child.order_num for child in outline.items[0].children] == [3]
        assert outline.items[1].children == []
        assert outline.summary == "2 top-level questions, 3 total items."

    def test_longer_cycle_keeps_every_item(self):
        items = [
            EnrichedAssignmentItem(order_num=n + 1, content=f"Item {n + 1}", parent_index=(n + 1) % 3)
            for n in range(3)
        ]
        outline = build_assignment_outline("hw-1", items)

        assert [node.order_num for node in outline.items] == [1, 2, 3]

    def test_titles_truncated(self):
        items = [EnrichedAssignmentItem(order_num=1, content="x" * 200)]
        outline = build_assignment_outline("hw-1", items)
        assert outline.items[0].title == "x" * 80

    def test_empty(self):
        outline = build_assignment_outline("hw-1", [])
        assert outline.title == "Untitled Assignment"
        assert outline.items == []


class TestParseAssignment:
    """Test the assignment path end to end"""

    @pytest.mark.asyncio
    async def test_items_annotated_and_progress_reported(self, make_oracle, make_pages):
        oracle = make_oracle([{"items": [
            raw_item(1, "Compute the derivative of $x^3$ at x = 2."),
            raw_item(3, "Integrate $\\sin x over one full period."),
        ]}])
        progress = []
        result = await parse_assignment(make_pages(2), oracle, "hw-1", on_progress=progress.append)

        assert result.items[0].warnings == []
        assert "Question number gap: expected 2, got 3" in result.items[1].warnings
        assert "Possible broken KaTeX formula (unmatched $)" in result.items[1].warnings
        assert result.outline.assignment_id == "hw-1"
        assert [p.total_progress for p in progress] == [0, 100]
        assert progress[-1].detail == "Extracted 2 questions"

    @pytest.mark.asyncio
    async def test_no_items(self, make_oracle, make_pages):
        progress = []
        result = await parse_assignment(
            make_pages(1), make_oracle(["[]"]), "hw-1", on_progress=progress.append
        )
        assert result.items == []
        assert result.warnings
        assert progress[-1].detail == "No questions found"


class TestParseQuestions:
    """Test flat exam question parsing"""

    @pytest.mark.asyncio
    async def test_answers_dropped_without_answer_key(self, make_oracle, make_pages):
        oracle = make_oracle([[
            {"questionNumber": 1, "content": "State Ohm's law.", "sourcePage": 1,
             "referenceAnswer": "V = IR", "score": 5},
            {"questionNumber": "2a", "content": "", "sourcePage": 1},
        ]])
        questions = await parse_questions(make_pages(1), oracle)

        assert len(questions) == 1
        assert questions[0].question_number == "1"
        assert questions[0].reference_answer is None
        assert "Omit this field" in oracle.prompts[0]

    @pytest.mark.asyncio
    async def test_answers_kept_with_answer_key(self, make_oracle, make_pages):
        oracle = make_oracle([{"questions": [
            {"questionNumber": "Q1", "content": "State Ohm's law.", "sourcePage": 2,
             "referenceAnswer": "V = IR"},
        ]}])
        questions = await parse_questions(make_pages(2), oracle, has_answers=True)

        assert questions[0].reference_answer == "V = IR"
        assert questions[0].source_page == 2
