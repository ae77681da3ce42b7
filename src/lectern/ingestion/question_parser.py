"""
Exam question parser.

Flat question extraction for exam papers, where answers may or may not be
part of the document. Each returned element is validated on its own and
invalid ones are dropped.
"""

import logging
from typing import List

from ..models.assignment_models import ParsedQuestion
from ..models.document_models import Page
from ..models.service_models import ITextOracle
from .response_parser import parse_json_response, validate_items
from .response_schemas import ParsedQuestionSchema

logger = logging.getLogger(__name__)


QUESTION_PROMPT = """You are an expert academic content analyzer. Analyze the following exam/assignment document and extract each individual question.

For each question, extract:
- questionNumber: The question number/label as shown (e.g. "1", "1a", "Q1")
- content: The full question text including any sub-parts
- options: Array of answer options if it's a multiple choice question (omit if not multiple choice)
{answer_instruction}
- score: Points/marks allocated if shown (omit if not shown)
- sourcePage: The page number where the question appears

Return ONLY a valid JSON array of questions. No markdown, no explanation.

Document content:
{pages_text}"""

WITH_ANSWERS = "- referenceAnswer: The reference answer or solution provided (extract from the document)"
WITHOUT_ANSWERS = "- referenceAnswer: Omit this field (no answers provided in document)"


async def parse_questions(
    pages: List[Page], oracle: ITextOracle, has_answers: bool = False
) -> List[ParsedQuestion]:
    """
    Extract exam questions from pages.

    Args:
        pages: Pages of the exam paper
        oracle: Text-generation oracle
        has_answers: Whether the document contains reference answers

    Returns:
        Valid questions in document order

    Raises:
        OracleResponseError: If the response is not JSON
        Exception: Whatever the oracle call raised
    """
    pages_text = "\n\n".join(f"[Page {page.page_number}]\n{page.text}" for page in pages)
    prompt = QUESTION_PROMPT.format(
        answer_instruction=WITH_ANSWERS if has_answers else WITHOUT_ANSWERS,
        pages_text=pages_text,
    )

    response = await oracle.generate(prompt, json_mode=True, temperature=0.0)
    data = parse_json_response(response.text)
    if isinstance(data, dict):
        data = data.get("questions", [])

    questions = [
        ParsedQuestion(
            question_number=item.question_number,
            content=item.content,
            source_page=item.source_page,
            options=list(item.options),
            reference_answer=item.reference_answer if has_answers else None,
            score=item.score,
        )
        for item in validate_items(ParsedQuestionSchema, data)
    ]
    logger.info(f"Parsed {len(questions)} questions from {len(pages)} pages")
    return questions
