"""Claim extraction strategies.

ClaimExtractor is the narrow interface the fact checker, confidence scorer and
contradiction detector depend on. Two lexical implementations ship here:

- LexicalClaimExtractor: keeps sentences that look like factual assertions
  (copula/possessive verb, digit or citation cue). Used for fact checking.
- AssertionExtractor: keeps every sentence except non-assertive openers
  ("I think...", "Maybe...", "What if...") and annotates factuality and
  sub-claims. Used for contradiction detection.

A model-backed extractor only needs an ``extract(content) -> list[Claim]``
method to be swapped in.

Usage:
    extractor = LexicalClaimExtractor()
    claims = extractor.extract("The Nile is 6650 km long. I like rivers!")
"""

import re
from typing import Optional, Protocol, runtime_checkable

from response_quality.analyzers.extraction.entity_extractor import EntityExtractor
from response_quality.analyzers.extraction.lexicon import (
    CITATION_PATTERN,
    DIGIT_PATTERN,
    HEDGE_PATTERN,
    clamp,
    split_sentences,
)
from response_quality.config.logging import get_logger
from response_quality.data_management.schemas import (
    Claim,
    Entity,
    Factuality,
    FactType,
)


@runtime_checkable
class ClaimExtractor(Protocol):
    """Turns response text into claims with ids unique within that text."""

    def extract(self, content: str) -> list[Claim]:
        ...


COPULA_PATTERN = re.compile(r"\b(is|are|was|were|has|have)\b", re.IGNORECASE)
CONFIDENCE_CUE_PATTERN = re.compile(r"\b(according to|research|study)\b", re.IGNORECASE)

# Ordered: first match wins.
FACT_TYPE_RULES: list[tuple[FactType, re.Pattern[str]]] = [
    (FactType.NUMERICAL, DIGIT_PATTERN),
    (
        FactType.STATISTICAL,
        re.compile(r"\b(percent|percentage|rate|probability|statistics)\b", re.IGNORECASE),
    ),
    (
        FactType.HISTORICAL,
        re.compile(r"\b(year|date|history|historical|ancient|medieval|modern)\b", re.IGNORECASE),
    ),
    (
        FactType.SCIENTIFIC,
        re.compile(r"\b(theory|law|principle|experiment|hypothesis|scientific)\b", re.IGNORECASE),
    ),
    (
        FactType.DEFINITION,
        re.compile(r"\b(defined as|definition|means|refers to)\b", re.IGNORECASE),
    ),
]


def classify_fact_type(sentence: str) -> FactType:
    """Assign a fact type by keyword precedence."""
    for fact_type, pattern in FACT_TYPE_RULES:
        if pattern.search(sentence):
            return fact_type
    return FactType.FACTUAL


def extract_keywords(sentence: str, limit: int = 10) -> list[str]:
    """Lowercase words longer than three characters, in order, first ``limit``."""
    words = [w for w in re.split(r"\W+", sentence.lower()) if len(w) > 3]
    return words[:limit]


class LexicalClaimExtractor:
    """
    Regex/keyword claim extractor for fact checking.

    A sentence qualifies when it contains a copula or possessive verb, a
    digit, or a citation cue. Confidence starts at ``base_confidence`` and
    moves with entities (+0.1), digits (+0.1), citation cues (+0.1) and
    hedges (-0.2), clamped to [0.1, 1.0].

    Attributes:
        base_confidence: Starting confidence for every claim.
        entity_extractor: Shared entity tagger.
    """

    CLAIM_ID_PREFIX = "claim_"

    def __init__(
        self,
        base_confidence: float = 0.6,
        entity_extractor: Optional[EntityExtractor] = None,
    ) -> None:
        self.base_confidence = base_confidence
        self.entity_extractor = entity_extractor or EntityExtractor()
        self._logger = get_logger("analyzers.extraction")

    def extract(self, content: str) -> list[Claim]:
        """Extract claims from response content."""
        sentences = split_sentences(content)
        claims: list[Claim] = []
        cursor = 0

        for index, sentence in enumerate(sentences):
            position = content.find(sentence, cursor)
            if position == -1:
                position = content.find(sentence)
            if position != -1:
                cursor = position + len(sentence)

            if not self.accepts(sentence):
                continue

            entities = self.entity_extractor.extract(sentence)
            claims.append(
                Claim(
                    id=f"{self.CLAIM_ID_PREFIX}{len(claims)}",
                    text=sentence,
                    type=classify_fact_type(sentence),
                    confidence=self.score_confidence(sentence, entities),
                    entities=entities,
                    keywords=extract_keywords(sentence),
                    context=self._neighbourhood(sentences, index),
                    span_start=max(position, 0),
                    span_end=max(position, 0) + len(sentence),
                    factuality=self.factuality(sentence),
                    sub_claims=self.sub_claims(sentence),
                )
            )

        self._logger.debug(
            f"Extracted {len(claims)} claims from {len(sentences)} sentences"
        )
        return claims

    def accepts(self, sentence: str) -> bool:
        return self.is_factual_claim(sentence)

    @staticmethod
    def is_factual_claim(sentence: str) -> bool:
        """True for copula/possessive verbs, digits or citation cues."""
        return bool(
            COPULA_PATTERN.search(sentence)
            or DIGIT_PATTERN.search(sentence)
            or CITATION_PATTERN.search(sentence)
        )

    def score_confidence(self, sentence: str, entities: list[Entity]) -> float:
        confidence = self.base_confidence
        if entities:
            confidence += 0.1
        if DIGIT_PATTERN.search(sentence):
            confidence += 0.1
        if CONFIDENCE_CUE_PATTERN.search(sentence):
            confidence += 0.1
        if HEDGE_PATTERN.search(sentence):
            confidence -= 0.2
        return clamp(confidence, 0.1, 1.0)

    def factuality(self, sentence: str) -> Factuality:
        return Factuality.FACTUAL

    def sub_claims(self, sentence: str) -> list[str]:
        return []

    @staticmethod
    def _neighbourhood(sentences: list[str], index: int) -> str:
        window = sentences[max(0, index - 1): index + 2]
        return ". ".join(window)


NON_ASSERTIVE_PATTERNS: list[re.Pattern[str]] = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"^(i|you|we|they)\s+(think|believe|feel|agree|disagree)\b",
        r"^(perhaps|maybe|possibly|probably)\b",
        r"^in my opinion\b",
        r"^what if\b",
        r"^imagine if\b",
        r"^suppose that\b",
        r"^it seems\b",
        r"^it appears\b",
    )
]

OPINION_MARKER_PATTERN = re.compile(r"\b(i think|i believe|in my opinion)\b", re.IGNORECASE)
OPINION_PATTERN = re.compile(r"\b(think|believe|feel|opinion|perspective)\b", re.IGNORECASE)
HYPOTHETICAL_PATTERN = re.compile(r"\b(if|what if|imagine|suppose|hypothetical)\b", re.IGNORECASE)
UNCERTAIN_PATTERN = re.compile(
    r"\b(maybe|perhaps|possibly|probably|might|could)\b", re.IGNORECASE
)
CONNECTIVE_SPLIT = re.compile(r"\b(?:and|but|or|however|therefore|thus)\b", re.IGNORECASE)


class AssertionExtractor(LexicalClaimExtractor):
    """
    Claim extractor for contradiction analysis.

    Keeps every sentence that is not obviously non-assertive, annotates
    factuality and splits sub-claims on connectives. Confidence starts at
    0.7 and additionally drops 0.3 for explicit opinion markers. Entity
    tagging skips places.
    """

    def __init__(
        self,
        base_confidence: float = 0.7,
        entity_extractor: Optional[EntityExtractor] = None,
    ) -> None:
        super().__init__(
            base_confidence=base_confidence,
            entity_extractor=entity_extractor or EntityExtractor(include_places=False),
        )

    def accepts(self, sentence: str) -> bool:
        return not self.is_non_assertive(sentence)

    @staticmethod
    def is_non_assertive(sentence: str) -> bool:
        stripped = sentence.strip()
        return any(p.search(stripped) for p in NON_ASSERTIVE_PATTERNS)

    def score_confidence(self, sentence: str, entities: list[Entity]) -> float:
        confidence = self.base_confidence
        if DIGIT_PATTERN.search(sentence):
            confidence += 0.1
        if CONFIDENCE_CUE_PATTERN.search(sentence):
            confidence += 0.1
        if HEDGE_PATTERN.search(sentence):
            confidence -= 0.2
        if OPINION_MARKER_PATTERN.search(sentence):
            confidence -= 0.3
        return clamp(confidence, 0.1, 1.0)

    def factuality(self, sentence: str) -> Factuality:
        if OPINION_PATTERN.search(sentence):
            return Factuality.OPINION
        if HYPOTHETICAL_PATTERN.search(sentence):
            return Factuality.HYPOTHETICAL
        if UNCERTAIN_PATTERN.search(sentence):
            return Factuality.UNCERTAIN
        return Factuality.FACTUAL

    def sub_claims(self, sentence: str) -> list[str]:
        parts = [part.strip() for part in CONNECTIVE_SPLIT.split(sentence)]
        return [part for part in parts if part]
