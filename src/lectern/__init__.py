"""
Lectern - Academic document knowledge extraction

Turns per-page text of lecture slides, assignments and exam papers into
deduplicated knowledge points, outlines and retrieval chunks, with an
oracle-tolerant pipeline that degrades to deterministic fallbacks.
"""

__version__ = "1.0.0"
__author__ = "Lectern Team"

# Import main components for easy access
from .core.config_manager import ConfigManager
from .ingestion.pipeline import AssignmentPipeline, LecturePipeline
from .models.config_models import LecternConfig
from .vector.hybrid_retriever import HybridRetriever

__all__ = [
    "ConfigManager",
    "LecternConfig",
    "LecturePipeline",
    "AssignmentPipeline",
    "HybridRetriever",
]
