"""
Document Models - Records produced by the lecture understanding pipeline.

Plain dataclasses for pages, document structure, knowledge points and
outlines. Every record is created fresh per pipeline run and handed to the
persistence collaborator through ``to_dict``, which emits the camelCase wire
format shared with the text-generation oracle.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class ContentType(Enum):
    """Content classification for a document section."""
    DEFINITIONS = "definitions"
    THEOREMS = "theorems"
    EXAMPLES = "examples"
    EXERCISES = "exercises"
    OVERVIEW = "overview"
    MIXED = "mixed"


@dataclass(frozen=True)
class Page:
    """A single page of already-extracted plain text."""
    page_number: int
    text: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Page":
        """Build a page from ``{"page": n, "text": ...}`` or ``{"pageNumber": n, ...}``."""
        number = data.get("page", data.get("pageNumber", data.get("page_number")))
        if number is None:
            raise ValueError(f"Page entry has no page number: {sorted(data)}")
        return cls(page_number=int(number), text=str(data.get("text") or ""))


@dataclass
class SectionInfo:
    """A titled page range of a document."""
    title: str
    start_page: int
    end_page: int
    content_type: ContentType = ContentType.MIXED
    parent_section: Optional[str] = None

    def covers(self, page_number: int) -> bool:
        return self.start_page <= page_number <= self.end_page

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'title': self.title,
            'startPage': self.start_page,
            'endPage': self.end_page,
            'contentType': self.content_type.value,
        }
        if self.parent_section:
            data['parentSection'] = self.parent_section
        return data


@dataclass
class DocumentStructure:
    """Subject, document type and section layout of a document."""
    subject: str
    document_type: str
    sections: List[SectionInfo] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'subject': self.subject,
            'documentType': self.document_type,
            'sections': [section.to_dict() for section in self.sections],
        }


@dataclass
class KnowledgePoint:
    """
    A discrete, citable unit of academic content.

    ``source_pages`` only ever grows as duplicate records are merged and is
    kept sorted ascending.
    """
    title: str
    definition: str
    key_formulas: Optional[List[str]] = None
    key_concepts: Optional[List[str]] = None
    examples: Optional[List[str]] = None
    source_pages: List[int] = field(default_factory=list)

    @property
    def normalized_title(self) -> str:
        return self.title.strip().casefold()

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'title': self.title,
            'definition': self.definition,
            'sourcePages': list(self.source_pages),
        }
        if self.key_formulas:
            data['keyFormulas'] = list(self.key_formulas)
        if self.key_concepts:
            data['keyConcepts'] = list(self.key_concepts)
        if self.examples:
            data['examples'] = list(self.examples)
        return data


@dataclass
class OutlineSection:
    """One outline section listing knowledge-point titles."""
    title: str
    knowledge_points: List[str] = field(default_factory=list)
    brief_description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            'title': self.title,
            'knowledgePoints': list(self.knowledge_points),
            'briefDescription': self.brief_description,
        }


@dataclass
class DocumentOutline:
    """Hierarchical outline of a single document."""
    document_id: str
    title: str
    subject: str
    total_knowledge_points: int
    sections: List[OutlineSection] = field(default_factory=list)
    summary: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            'documentId': self.document_id,
            'title': self.title,
            'subject': self.subject,
            'totalKnowledgePoints': self.total_knowledge_points,
            'sections': [section.to_dict() for section in self.sections],
            'summary': self.summary,
        }


@dataclass
class CourseTopic:
    """A cross-document topic in a course outline."""
    topic: str
    subtopics: List[str] = field(default_factory=list)
    related_documents: List[str] = field(default_factory=list)
    knowledge_point_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'topic': self.topic,
            'subtopics': list(self.subtopics),
            'relatedDocuments': list(self.related_documents),
            'knowledgePointCount': self.knowledge_point_count,
        }


@dataclass
class CourseOutline:
    """Roll-up of several document outlines."""
    course_id: str
    topics: List[CourseTopic] = field(default_factory=list)
    last_updated: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'courseId': self.course_id,
            'topics': [topic.to_dict() for topic in self.topics],
            'lastUpdated': self.last_updated.isoformat(),
        }
