"""
Pipeline configuration models with validation.
"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator


class ChunkingConfig(BaseModel):
    """Recursive text splitting parameters."""

    chunk_size: int = Field(default=1000, ge=50, description="Chunk size in characters")
    chunk_overlap: int = Field(default=200, ge=0, description="Overlap in characters")
    embedding_group_size: int = Field(
        default=5, ge=1, le=50, description="Chunks embedded per concurrent group"
    )


class RetrievalConfig(BaseModel):
    """Hybrid search parameters."""

    embedding_dimension: int = Field(default=768, ge=1, description="Embedding vector size")
    match_threshold: float = Field(default=0.5, ge=0.0, le=1.0, description="Minimum cosine similarity")
    match_count: int = Field(default=5, ge=1, description="Top-K results")
    rrf_k: int = Field(default=60, ge=1, description="Reciprocal rank fusion constant")


class ExtractionConfig(BaseModel):
    """Structure analysis and knowledge-point extraction sizes."""

    short_document_threshold: int = Field(default=5, ge=0)
    structure_page_summary_length: int = Field(default=500, ge=50)
    structure_segment_size: int = Field(default=10, ge=1)
    single_pass_max_pages: int = Field(default=50, ge=1)
    single_pass_batch_pages: int = Field(default=30, ge=2)
    single_pass_batch_overlap: int = Field(default=3, ge=0)


class QualityConfig(BaseModel):
    """Quality gate thresholds."""

    quality_score_threshold: int = Field(default=5, ge=0, le=10)
    semantic_dedup_threshold: float = Field(default=0.9, ge=0.0, le=1.0)
    review_definition_length: int = Field(default=200, ge=20)


class OutlineConfig(BaseModel):
    """Outline generation thresholds."""

    local_outline_threshold: int = Field(default=10, ge=0)


class OracleConfig(BaseModel):
    """Gemini model selection and retry policy."""

    api_key: Optional[str] = Field(default=None, description="Gemini API key")
    parse_model: str = Field(default="gemini-2.5-flash", description="Model for parsing prompts")
    embedding_model: str = Field(default="gemini-embedding-001", description="Embedding model")
    voyage_api_key: Optional[str] = Field(default=None, description="Voyage AI API key")
    max_retries: int = Field(default=3, ge=1, le=10)
    timeout_seconds: float = Field(default=120.0, ge=1.0)


class LecternConfig(BaseModel):
    """Complete pipeline configuration."""

    chunking: ChunkingConfig = Field(default_factory=ChunkingConfig)
    retrieval: RetrievalConfig = Field(default_factory=RetrievalConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    quality: QualityConfig = Field(default_factory=QualityConfig)
    outline: OutlineConfig = Field(default_factory=OutlineConfig)
    oracle: OracleConfig = Field(default_factory=OracleConfig)
    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v.upper()
