"""Claim and entity extraction shared by all analyzers."""

from response_quality.analyzers.extraction.claim_extractor import (
    AssertionExtractor,
    ClaimExtractor,
    LexicalClaimExtractor,
    classify_fact_type,
    extract_keywords,
)
from response_quality.analyzers.extraction.entity_extractor import EntityExtractor

__all__ = [
    "AssertionExtractor",
    "ClaimExtractor",
    "EntityExtractor",
    "LexicalClaimExtractor",
    "classify_fact_type",
    "extract_keywords",
]
