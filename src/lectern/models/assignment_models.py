"""
Assignment and exam records.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class EnrichedAssignmentItem:
    """
    One extracted assignment/exam question.

    ``parent_index`` points at another item's position in the same
    extraction batch. It only drives the transient outline tree and is
    never persisted as a foreign key.
    """
    order_num: int
    content: str
    title: str = ""
    options: List[str] = field(default_factory=list)
    reference_answer: str = ""
    explanation: str = ""
    points: int = 0
    type: str = ""
    difficulty: str = "medium"
    parent_index: Optional[int] = None
    source_pages: List[int] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'title': self.title,
            'orderNum': self.order_num,
            'content': self.content,
            'options': list(self.options),
            'referenceAnswer': self.reference_answer,
            'explanation': self.explanation,
            'points': self.points,
            'type': self.type,
            'difficulty': self.difficulty,
            'parentIndex': self.parent_index,
            'sourcePages': list(self.source_pages),
        }
        if self.warnings:
            data['warnings'] = list(self.warnings)
        return data


@dataclass
class AssignmentOutlineItem:
    """Tree node of an assignment outline."""
    order_num: int
    title: str
    children: List["AssignmentOutlineItem"] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'orderNum': self.order_num,
            'title': self.title,
            'children': [child.to_dict() for child in self.children],
        }


@dataclass
class AssignmentOutline:
    """Outline tree of an assignment, roots in extraction order."""
    assignment_id: str
    title: str
    total_items: int
    items: List[AssignmentOutlineItem] = field(default_factory=list)
    summary: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            'assignmentId': self.assignment_id,
            'title': self.title,
            'totalItems': self.total_items,
            'items': [item.to_dict() for item in self.items],
            'summary': self.summary,
        }


@dataclass
class AssignmentParseResult:
    """Items, outline and document-level warnings of an assignment parse."""
    items: List[EnrichedAssignmentItem]
    outline: AssignmentOutline
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'items': [item.to_dict() for item in self.items],
            'outline': self.outline.to_dict(),
            'warnings': list(self.warnings),
        }


@dataclass
class ParsedQuestion:
    """A flat exam question as labelled in the source document."""
    question_number: str
    content: str
    source_page: int
    options: List[str] = field(default_factory=list)
    reference_answer: Optional[str] = None
    score: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'questionNumber': self.question_number,
            'content': self.content,
            'sourcePage': self.source_page,
        }
        if self.options:
            data['options'] = list(self.options)
        if self.reference_answer:
            data['referenceAnswer'] = self.reference_answer
        if self.score is not None:
            data['score'] = self.score
        return data
