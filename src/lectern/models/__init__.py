"""
Data models for the lectern pipeline.
"""

from .assignment_models import (
    AssignmentOutline,
    AssignmentOutlineItem,
    AssignmentParseResult,
    EnrichedAssignmentItem,
    ParsedQuestion,
)
from .chunk_models import ChunkWithMetadata, RankedChunk, RetrievedChunk, StoredChunk
from .config_models import LecternConfig
from .document_models import (
    ContentType,
    CourseOutline,
    CourseTopic,
    DocumentOutline,
    DocumentStructure,
    KnowledgePoint,
    OutlineSection,
    Page,
    SectionInfo,
)
from .service_models import (
    IChunkStore,
    IEmbeddingService,
    ITextOracle,
    OracleResponse,
    PipelineProgress,
)

__all__ = [
    # Documents
    "Page",
    "ContentType",
    "SectionInfo",
    "DocumentStructure",
    "KnowledgePoint",
    "OutlineSection",
    "DocumentOutline",
    "CourseTopic",
    "CourseOutline",
    # Assignments
    "EnrichedAssignmentItem",
    "AssignmentOutlineItem",
    "AssignmentOutline",
    "AssignmentParseResult",
    "ParsedQuestion",
    # Chunks
    "ChunkWithMetadata",
    "StoredChunk",
    "RetrievedChunk",
    "RankedChunk",
    # Services
    "ITextOracle",
    "IEmbeddingService",
    "IChunkStore",
    "OracleResponse",
    "PipelineProgress",
    # Configuration
    "LecternConfig",
]
