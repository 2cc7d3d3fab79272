"""
Analysis engine package — single-file analysis lifecycle.

Models and state table, result normalizer, progress simulator and preview
handles. The controller lives in guardaio.analysis_engine.controller and is
imported from there (it depends on the dispatch layer, which depends on these models).
"""

from guardaio.analysis_engine.models import (
    AnalysisJob,
    AnalysisResult,
    FileMeta,
    LifecycleState,
    ResultStatus,
    SourceFile,
    TERMINAL_STATES,
    validate_sensitivity,
)
from guardaio.analysis_engine.normalizer import FALLBACK_FINDING, normalize
from guardaio.analysis_engine.preview import PreviewHandle, create_preview
from guardaio.analysis_engine.progress import (
    DEFAULT_STAGES,
    AnalysisStage,
    ProgressConfig,
    ProgressSimulator,
)

__all__ = [
    "AnalysisJob",
    "AnalysisResult",
    "FileMeta",
    "LifecycleState",
    "ResultStatus",
    "SourceFile",
    "TERMINAL_STATES",
    "validate_sensitivity",
    "FALLBACK_FINDING",
    "normalize",
    "PreviewHandle",
    "create_preview",
    "DEFAULT_STAGES",
    "AnalysisStage",
    "ProgressConfig",
    "ProgressSimulator",
]
