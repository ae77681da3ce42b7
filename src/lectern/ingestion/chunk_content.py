"""
Text built for embedding knowledge points, exam questions and assignment items.
"""

from typing import Optional

from ..models.assignment_models import EnrichedAssignmentItem, ParsedQuestion
from ..models.document_models import KnowledgePoint


def build_knowledge_point_content(point: KnowledgePoint) -> str:
    """Format: ``## Title``, the definition, then formulas/concepts/examples."""
    parts = [f"## {point.title}", point.definition]
    if point.key_formulas:
        parts.append("Formulas: " + "; ".join(point.key_formulas))
    if point.key_concepts:
        parts.append("Key concepts: " + ", ".join(point.key_concepts))
    if point.examples:
        parts.append("Examples: " + "; ".join(point.examples))
    return "\n".join(parts)


def build_question_content(question: ParsedQuestion) -> str:
    parts = [f"Q{question.question_number}: {question.content}"]
    if question.options:
        parts.append(f"Options: {' | '.join(question.options)}")
    if question.reference_answer:
        parts.append(f"Answer: {question.reference_answer}")
    return "\n".join(parts)


def build_assignment_item_content(
    item: EnrichedAssignmentItem, parent_content: Optional[str] = None
) -> str:
    """
    Question, lettered options, reference answer and explanation of an item.

    ``parent_content`` is prepended as context for sub-questions.
    """
    parts = []
    if parent_content:
        parts.append(f"Context: {parent_content}")
    parts.append(f"## Q{item.order_num}: {item.content}")

    if item.options:
        lettered = "\n".join(
            f"{chr(ord('A') + index)}. {option}" for index, option in enumerate(item.options)
        )
        parts.append(f"\nOptions:\n{lettered}")

    if item.reference_answer:
        parts.append(f"\nReference Answer: {item.reference_answer}")

    if item.explanation:
        parts.append(f"\nExplanation: {item.explanation}")

    return "\n".join(parts)
