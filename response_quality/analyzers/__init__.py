"""Quality analyzers: extraction, validation, fact checking, confidence, contradictions."""

from response_quality.analyzers.confidence import ConfidenceScorer
from response_quality.analyzers.contradiction import ContradictionDetector
from response_quality.analyzers.extraction import (
    AssertionExtractor,
    EntityExtractor,
    LexicalClaimExtractor,
)
from response_quality.analyzers.fact_checking import FactChecker
from response_quality.analyzers.validation import ResponseValidator

__all__ = [
    "AssertionExtractor",
    "ConfidenceScorer",
    "ContradictionDetector",
    "EntityExtractor",
    "FactChecker",
    "LexicalClaimExtractor",
    "ResponseValidator",
]
