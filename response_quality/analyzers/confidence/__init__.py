"""Confidence scoring, uncertainty detection and coherence evaluation."""

from response_quality.analyzers.confidence.coherence import CoherenceEvaluator
from response_quality.analyzers.confidence.confidence_scorer import (
    ConfidenceScorer,
    confidence_level_for,
    recommendation_for,
)
from response_quality.analyzers.confidence.uncertainty import UncertaintyDetector

__all__ = [
    "CoherenceEvaluator",
    "ConfidenceScorer",
    "UncertaintyDetector",
    "confidence_level_for",
    "recommendation_for",
]
