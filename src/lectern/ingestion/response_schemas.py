"""
Response Schemas - Expected shapes of oracle JSON output.

Every oracle response is parsed and then validated against one of these
models; anything that does not fit is treated exactly like a failed call.
Field aliases follow the camelCase keys the prompts ask for.
"""

import math
import re
from typing import Any, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from ..models.document_models import ContentType


class OracleSchema(BaseModel):
    """Base for oracle response schemas."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


def _none_to_list(value: Any) -> Any:
    return [] if value is None else value


def coerce_source_pages(value: Any) -> List[int]:
    """
    Coerce the many shapes a page reference comes back in to a page list.

    Accepts a number, a list, a ``"3-5"`` range or a ``"1, 2"`` list string.
    Non-positive, non-finite and non-numeric entries are discarded.
    """
    if isinstance(value, bool) or value is None:
        return []
    if isinstance(value, int):
        return [value] if value > 0 else []
    if isinstance(value, float):
        return [int(value)] if math.isfinite(value) and value > 0 else []
    if isinstance(value, (list, tuple)):
        pages = []
        for entry in value:
            try:
                number = float(entry)
            except (TypeError, ValueError, OverflowError):
                continue
            if math.isfinite(number) and number > 0 and number == int(number):
                pages.append(int(number))
        return pages
    if isinstance(value, str):
        trimmed = value.strip()
        range_match = re.match(r"^(\d+)\s*[-–]\s*(\d+)$", trimmed)
        if range_match:
            start, end = int(range_match.group(1)), int(range_match.group(2))
            if 0 < start <= end and end - start < 200:
                return list(range(start, end + 1))
        return [int(token) for token in re.split(r"[,\s]+", trimmed) if token.isdigit() and int(token) > 0]
    return []


class KnowledgePointSchema(OracleSchema):
    title: str = Field(min_length=1)
    definition: str = Field(min_length=1)
    key_formulas: Optional[List[str]] = Field(default=None, alias="keyFormulas")
    key_concepts: Optional[List[str]] = Field(default=None, alias="keyConcepts")
    examples: Optional[List[str]] = None
    source_pages: List[int] = Field(default_factory=list, alias="sourcePages")

    @field_validator("title", "definition")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v

    @field_validator("source_pages", mode="before")
    @classmethod
    def coerce_pages(cls, v: Any) -> List[int]:
        return coerce_source_pages(v)


class SectionSchema(OracleSchema):
    title: str = Field(min_length=1)
    start_page: int = Field(gt=0, alias="startPage")
    end_page: int = Field(gt=0, alias="endPage")
    content_type: ContentType = Field(alias="contentType")
    parent_section: Optional[str] = Field(default=None, alias="parentSection")


class StructureSchema(OracleSchema):
    subject: str = Field(min_length=1)
    document_type: str = Field(min_length=1, alias="documentType")
    sections: List[SectionSchema] = Field(min_length=1)


class ReviewItemSchema(OracleSchema):
    index: int
    is_relevant: bool = Field(alias="isRelevant")
    quality_score: float = Field(ge=0, le=10, alias="qualityScore")
    issues: List[str] = Field(default_factory=list)

    @field_validator("issues", mode="before")
    @classmethod
    def issues_list(cls, v: Any) -> Any:
        return _none_to_list(v)


class OutlineSectionSchema(OracleSchema):
    title: str = Field(min_length=1)
    knowledge_points: List[str] = Field(alias="knowledgePoints")
    brief_description: str = Field(min_length=1, alias="briefDescription")


class DocumentOutlineSchema(OracleSchema):
    title: str = Field(min_length=1)
    summary: str = Field(min_length=1)
    sections: List[OutlineSectionSchema] = Field(min_length=1)


class CourseTopicSchema(OracleSchema):
    topic: str = Field(min_length=1)
    subtopics: List[str] = Field(default_factory=list)
    related_documents: List[str] = Field(default_factory=list, alias="relatedDocuments")
    knowledge_point_count: int = Field(default=0, ge=0, alias="knowledgePointCount")


class CourseOutlineSchema(OracleSchema):
    topics: List[CourseTopicSchema] = Field(min_length=1)


class AssignmentItemSchema(OracleSchema):
    order_num: int = Field(alias="orderNum")
    content: str = Field(min_length=1)
    title: str = ""
    options: List[str] = Field(default_factory=list)
    reference_answer: str = Field(default="", alias="referenceAnswer")
    explanation: str = ""
    points: int = Field(default=0, ge=0, validation_alias=AliasChoices("points", "score"))
    type: str = ""
    difficulty: Literal["easy", "medium", "hard"] = "medium"
    parent_index: Optional[int] = Field(default=None, alias="parentIndex")
    source_pages: List[int] = Field(default_factory=list, alias="sourcePages")

    @field_validator("options", mode="before")
    @classmethod
    def options_list(cls, v: Any) -> Any:
        return _none_to_list(v)

    @field_validator("title", "reference_answer", "explanation", "type", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("difficulty", mode="before")
    @classmethod
    def default_difficulty(cls, v: Any) -> Any:
        return "medium" if v is None else v

    @field_validator("points", mode="before")
    @classmethod
    def whole_points(cls, v: Any) -> Any:
        if v is None:
            return 0
        if isinstance(v, float) and math.isfinite(v):
            return int(round(v))
        return v

    @field_validator("source_pages", mode="before")
    @classmethod
    def coerce_pages(cls, v: Any) -> List[int]:
        return coerce_source_pages(v)


class AssignmentExtractionSchema(OracleSchema):
    items: List[AssignmentItemSchema] = Field(min_length=1)


class ParsedQuestionSchema(OracleSchema):
    question_number: str = Field(min_length=1, alias="questionNumber")
    content: str = Field(min_length=1)
    source_page: int = Field(gt=0, alias="sourcePage")
    options: List[str] = Field(default_factory=list)
    reference_answer: Optional[str] = Field(default=None, alias="referenceAnswer")
    score: Optional[float] = Field(default=None, ge=0)

    @field_validator("question_number", mode="before")
    @classmethod
    def number_as_text(cls, v: Any) -> Any:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(int(v)) if float(v).is_integer() else str(v)
        return v

    @field_validator("options", mode="before")
    @classmethod
    def options_list(cls, v: Any) -> Any:
        return _none_to_list(v)


class RerankItemSchema(OracleSchema):
    index: int = Field(ge=0)
    score: float = Field(ge=0, le=10)
