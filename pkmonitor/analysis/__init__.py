"""Remote analysis of recorded sessions."""

from __future__ import annotations

from .client import AnalysisClient, AnalysisError, GeminiAnalysisClient
from .prompt import RESPONSE_SCHEMA, build_prompt, sample_for_analysis
from .runner import (
    AnalysisBusyError,
    AnalysisOutcome,
    AnalysisRunner,
    AnalysisUnavailableError,
)

__all__ = [
    "RESPONSE_SCHEMA",
    "AnalysisBusyError",
    "AnalysisClient",
    "AnalysisError",
    "AnalysisOutcome",
    "AnalysisRunner",
    "AnalysisUnavailableError",
    "GeminiAnalysisClient",
    "build_prompt",
    "sample_for_analysis",
]
