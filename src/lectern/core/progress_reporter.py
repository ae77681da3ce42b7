"""
Weighted progress reporting for pipeline runs.
"""

import logging
from typing import Dict, Optional

from ..models.service_models import PipelineProgress, ProgressCallback

logger = logging.getLogger(__name__)


LECTURE_PHASE_WEIGHTS: Dict[str, int] = {
    "structure": 10,
    "extraction": 50,
    "quality_gate": 20,
    "outline": 20,
}

ASSIGNMENT_PHASE_WEIGHTS: Dict[str, int] = {
    "extraction": 100,
}


class ProgressReporter:
    """
    Rolls phase-level progress up into a single overall percentage.

    Phases complete in declaration order; ``total_progress`` is the sum of
    the weights of finished phases plus the weighted share of the current
    one. Callback failures are logged and never interrupt the pipeline.
    """

    def __init__(
        self,
        callback: Optional[ProgressCallback] = None,
        weights: Optional[Dict[str, int]] = None,
    ):
        self.callback = callback
        self.weights = dict(weights or LECTURE_PHASE_WEIGHTS)
        self._total_weight = sum(self.weights.values()) or 1
        self.last_progress: Optional[PipelineProgress] = None

    def total_for(self, phase: str, phase_progress: int) -> int:
        """Overall percentage for ``phase`` at ``phase_progress`` percent."""
        if phase not in self.weights:
            raise ValueError(f"Unknown phase: {phase}")

        completed = 0
        for name, weight in self.weights.items():
            if name == phase:
                break
            completed += weight

        phase_progress = max(0, min(100, phase_progress))
        current = self.weights[phase] * phase_progress / 100
        return round((completed + current) * 100 / self._total_weight)

    def report(
        self,
        phase: str,
        phase_progress: int,
        detail: str,
        total_pages: Optional[int] = None,
        knowledge_point_count: Optional[int] = None,
    ) -> PipelineProgress:
        progress = PipelineProgress(
            phase=phase,
            phase_progress=max(0, min(100, phase_progress)),
            total_progress=self.total_for(phase, phase_progress),
            detail=detail,
            total_pages=total_pages,
            knowledge_point_count=knowledge_point_count,
        )
        self.last_progress = progress

        if self.callback:
            try:
                self.callback(progress)
            except Exception as e:
                logger.warning(f"Progress callback failed: {e}")

        return progress

    def report_batch(
        self, phase: str, current: int, total: int, total_pages: Optional[int] = None
    ) -> PipelineProgress:
        """Report ``current`` of ``total`` batches finished within ``phase``."""
        phase_progress = round(current * 100 / total) if total else 100
        return self.report(
            phase,
            phase_progress,
            f"Processed batch {current}/{total}",
            total_pages=total_pages,
        )
