"""
Lecture Pipeline - Document understanding orchestrator.

Runs structure analysis, knowledge-point extraction, the quality gate and
outline generation for one document, reporting weighted progress at every
stage boundary. Only systemic failures (a document without text, a failing
first extraction batch) end a run unsuccessfully; every other stage
degrades to a coarser result.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..core.error_classifier import ErrorClassifier, ExtractionError
from ..core.progress_reporter import ProgressReporter
from ..core.stage_logger import get_stage_logger
from ..models.assignment_models import AssignmentParseResult
from ..models.config_models import LecternConfig
from ..models.document_models import DocumentOutline, DocumentStructure, KnowledgePoint, Page
from ..models.service_models import IEmbeddingService, ITextOracle, ProgressCallback
from .assignment_parser import parse_assignment
from .knowledge_extractor import KnowledgeExtractor
from .outline_generator import OutlineGenerator
from .quality_gate import QualityGate
from .structure_analyzer import StructureAnalyzer

logger = logging.getLogger(__name__)


@dataclass
class ProcessingResult:
    """Result of processing a single lecture document."""
    document_id: str
    success: bool
    processing_time: float = 0.0

    structure: Optional[DocumentStructure] = None
    knowledge_points: List[KnowledgePoint] = field(default_factory=list)
    outline: Optional[DocumentOutline] = None
    raw_point_count: int = 0
    warnings: List[str] = field(default_factory=list)

    # Error information
    error_message: Optional[str] = None
    error_code: Optional[str] = None
    failed_stage: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert result to dictionary for serialization."""
        return {
            'documentId': self.document_id,
            'success': self.success,
            'processingTime': self.processing_time,
            'structure': self.structure.to_dict() if self.structure else None,
            'knowledgePoints': [point.to_dict() for point in self.knowledge_points],
            'outline': self.outline.to_dict() if self.outline else None,
            'rawPointCount': self.raw_point_count,
            'warnings': list(self.warnings),
            'errorMessage': self.error_message,
            'errorCode': self.error_code,
            'failedStage': self.failed_stage,
        }


@dataclass
class AssignmentProcessingResult:
    """Result of processing a single assignment document."""
    assignment_id: str
    success: bool
    processing_time: float = 0.0
    result: Optional[AssignmentParseResult] = None
    error_message: Optional[str] = None
    error_code: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'assignmentId': self.assignment_id,
            'success': self.success,
            'processingTime': self.processing_time,
            'result': self.result.to_dict() if self.result else None,
            'errorMessage': self.error_message,
            'errorCode': self.error_code,
        }


def has_extractable_text(pages: List[Page]) -> bool:
    return any(page.text.strip() for page in pages)


class LecturePipeline:
    """
    Orchestrates the lecture path for one document at a time.

    The pipeline holds no per-run state, so one instance can process
    several documents concurrently.
    """

    def __init__(
        self,
        oracle: ITextOracle,
        embedder: IEmbeddingService,
        config: Optional[LecternConfig] = None,
        error_classifier: Optional[ErrorClassifier] = None,
    ):
        """
        Initialize the pipeline.

        Args:
            oracle: Text-generation oracle shared by every stage
            embedder: Embedding service used by the quality gate
            config: Pipeline configuration; defaults when omitted
            error_classifier: Maps systemic failures to error codes
        """
        self.config = config or LecternConfig()
        self.structure_analyzer = StructureAnalyzer(oracle, self.config.extraction)
        self.extractor = KnowledgeExtractor(oracle, self.config.extraction)
        self.quality_gate = QualityGate(oracle, embedder, self.config.quality)
        self.outline_generator = OutlineGenerator(oracle, self.config.outline)
        self.error_classifier = error_classifier or ErrorClassifier()

    async def process(
        self,
        document_id: str,
        pages: List[Page],
        on_progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ProcessingResult:
        """
        Process one lecture document.

        Args:
            document_id: Identifier of the document
            pages: Extracted page texts in order
            on_progress: Receives a PipelineProgress at stage boundaries
            cancel_event: Stops extraction between batches when set

        Returns:
            ProcessingResult; ``success`` is False only for systemic failures
        """
        start_time = time.time()
        log = get_stage_logger(__name__, "pipeline", document_id)
        reporter = ProgressReporter(on_progress)
        result = ProcessingResult(document_id=document_id, success=False)
        stage = "validation"

        try:
            if not has_extractable_text(pages):
                raise ExtractionError("Document contains no extractable text")

            stage = "structure"
            reporter.report(stage, 0, "Analyzing document structure...", total_pages=len(pages))
            result.structure = await self.structure_analyzer.analyze(pages, document_id)
            reporter.report(
                stage, 100, f"Found {len(result.structure.sections)} sections",
                total_pages=len(pages),
            )

            stage = "extraction"
            reporter.report(stage, 0, f"Extracting knowledge points from {len(pages)} pages...")
            raw_points = await self.extractor.extract(
                pages,
                on_progress=lambda current, total: reporter.report_batch(
                    "extraction", current, total, total_pages=len(pages)
                ),
                cancel_event=cancel_event,
                document_id=document_id,
            )
            result.raw_point_count = len(raw_points)
            if cancel_event is not None and cancel_event.is_set():
                result.warnings.append("Extraction was cancelled; knowledge points are partial")
            reporter.report(
                stage, 100, f"Extracted {len(raw_points)} knowledge points",
                knowledge_point_count=len(raw_points),
            )

            stage = "quality_gate"
            reporter.report(stage, 0, "Reviewing knowledge point quality...")
            result.knowledge_points = await self.quality_gate.run(raw_points, document_id)
            reporter.report(
                stage, 100, f"Kept {len(result.knowledge_points)} knowledge points",
                knowledge_point_count=len(result.knowledge_points),
            )

            stage = "outline"
            reporter.report(stage, 0, "Generating outline...")
            result.outline = await self.outline_generator.generate_outline(
                document_id, result.structure, result.knowledge_points
            )
            reporter.report(
                stage, 100, "Outline ready",
                knowledge_point_count=len(result.knowledge_points),
            )

            result.success = True

        except Exception as e:
            classification = self.error_classifier.classify(e)
            result.error_message = str(e) or classification.user_message
            result.error_code = classification.code
            result.failed_stage = stage
            log.error(f"Processing failed at {stage} ({classification.category.value}): {e}")

        result.processing_time = time.time() - start_time
        if result.success:
            log.info(
                f"Processed {len(pages)} pages into {len(result.knowledge_points)} "
                f"knowledge points in {result.processing_time:.2f}s"
            )
        return result


class AssignmentPipeline:
    """Orchestrates the assignment path for one document at a time."""

    def __init__(
        self,
        oracle: ITextOracle,
        error_classifier: Optional[ErrorClassifier] = None,
    ):
        self.oracle = oracle
        self.error_classifier = error_classifier or ErrorClassifier()

    async def process(
        self,
        assignment_id: str,
        pages: List[Page],
        on_progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> AssignmentProcessingResult:
        start_time = time.time()
        log = get_stage_logger(__name__, "pipeline", assignment_id)
        outcome = AssignmentProcessingResult(assignment_id=assignment_id, success=False)

        try:
            if not has_extractable_text(pages):
                raise ExtractionError("Document contains no extractable text")
            outcome.result = await parse_assignment(
                pages, self.oracle, assignment_id, on_progress, cancel_event
            )
            outcome.success = True
        except Exception as e:
            classification = self.error_classifier.classify(e)
            outcome.error_message = str(e) or classification.user_message
            outcome.error_code = classification.code
            log.error(f"Assignment processing failed ({classification.category.value}): {e}")

        outcome.processing_time = time.time() - start_time
        return outcome
