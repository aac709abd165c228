"""Contradiction scoring, detection and resolution planning."""

from response_quality.analyzers.contradiction.contradiction_detector import (
    ContradictionDetector,
)
from response_quality.analyzers.contradiction.resolution import ResolutionPlanner
from response_quality.analyzers.contradiction.scorer import (
    ContradictionScorer,
    LexicalContradictionScorer,
    severity_for_score,
)

__all__ = [
    "ContradictionDetector",
    "ContradictionScorer",
    "LexicalContradictionScorer",
    "ResolutionPlanner",
    "severity_for_score",
]
