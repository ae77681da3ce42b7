"""
Document understanding and knowledge extraction.

Stages of the lecture path (structure analysis, knowledge-point extraction,
quality gate, outline generation), the assignment path, and the chunking
layer that feeds hybrid retrieval.
"""

from .assignment_extractor import AssignmentExtractionResult, AssignmentExtractor
from .assignment_parser import build_assignment_outline, parse_assignment
from .assignment_validator import apply_item_warnings, validate_assignment_items
from .chunk_content import (
    build_assignment_item_content,
    build_knowledge_point_content,
    build_question_content,
)
from .chunk_indexer import ChunkIndexer
from .chunking_engine import ChunkingEngine, chunk_pages
from .knowledge_extractor import (
    KnowledgeExtractor,
    deduplicate_by_title,
    extract_knowledge_points,
    plan_batches,
)
from .outline_generator import (
    OutlineGenerator,
    build_fallback_course_outline,
    build_local_outline,
    generate_outline,
)
from .pipeline import (
    AssignmentPipeline,
    AssignmentProcessingResult,
    LecturePipeline,
    ProcessingResult,
)
from .quality_gate import QualityGate, quality_gate
from .question_parser import parse_questions
from .structure_analyzer import StructureAnalyzer, analyze_structure

__all__ = [
    # Lecture path
    "StructureAnalyzer",
    "analyze_structure",
    "KnowledgeExtractor",
    "extract_knowledge_points",
    "deduplicate_by_title",
    "plan_batches",
    "QualityGate",
    "quality_gate",
    "OutlineGenerator",
    "generate_outline",
    "build_local_outline",
    "build_fallback_course_outline",
    # Assignment path
    "AssignmentExtractor",
    "AssignmentExtractionResult",
    "parse_assignment",
    "build_assignment_outline",
    "validate_assignment_items",
    "apply_item_warnings",
    "parse_questions",
    # Chunking
    "ChunkingEngine",
    "chunk_pages",
    "ChunkIndexer",
    "build_knowledge_point_content",
    "build_question_content",
    "build_assignment_item_content",
    # Orchestration
    "LecturePipeline",
    "AssignmentPipeline",
    "ProcessingResult",
    "AssignmentProcessingResult",
]
