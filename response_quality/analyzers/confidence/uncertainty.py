"""Uncertainty factor detection.

Each rule is independent and contributes at most one factor:

| Factor               | Trigger                                        | Impact |
|----------------------|------------------------------------------------|--------|
| knowledge_gap        | no limitation-acknowledging language           | 0.3    |
| outdated_information | year tokens 1900-2014                          | 0.4    |
| ambiguous_claim      | more than 2 vague quantifier matches           | 0.3    |
| incomplete_context   | empty conversation history                     | 0.2    |
"""

import re

from loguru import logger

from response_quality.analyzers.extraction.lexicon import HEDGE_PATTERN, split_sentences
from response_quality.data_management.schemas import (
    Context,
    Response,
    UncertainArea,
    UncertaintyFactor,
    UncertaintyType,
)

LIMITATION_PATTERN = re.compile(
    r"(not sure|don't know|uncertain|limited information)", re.IGNORECASE
)
OUTDATED_YEAR_PATTERN = re.compile(r"\b(19\d{2}|200\d|201[0-4])\b")
VAGUE_PATTERNS = [
    re.compile(r"\b(some|many|often|sometimes|frequently)\b", re.IGNORECASE),
    re.compile(r"\b(various|different|several)\b", re.IGNORECASE),
    re.compile(r"\b(etc|and so on)\b", re.IGNORECASE),
]
AMBIGUITY_LIMIT = 2


def count_vague_terms(text: str) -> int:
    return sum(len(pattern.findall(text)) for pattern in VAGUE_PATTERNS)


class UncertaintyDetector:
    """Detects reasons to distrust a response."""

    def __init__(self) -> None:
        self._logger = logger.bind(component="UncertaintyDetector")

    def detect(self, response: Response, context: Context) -> list[UncertaintyFactor]:
        factors = [
            factor
            for factor in (
                self.knowledge_gap(response.content),
                self.outdated_information(response.content),
                self.ambiguous_claims(response.content),
                self.incomplete_context(context),
            )
            if factor is not None
        ]
        self._logger.debug(
            f"Detected {len(factors)} uncertainty factors for {response.id}",
            types=[f.type.value for f in factors],
        )
        return factors

    @staticmethod
    def knowledge_gap(content: str) -> UncertaintyFactor | None:
        if LIMITATION_PATTERN.search(content):
            return None
        return UncertaintyFactor(
            type=UncertaintyType.KNOWLEDGE_GAP,
            description="No explicit acknowledgment of knowledge limitations",
            impact=0.3,
            evidence=["Response appears overly confident without qualification"],
            mitigation=["Consider adding uncertainty qualifiers where appropriate"],
        )

    @staticmethod
    def outdated_information(content: str) -> UncertaintyFactor | None:
        years = OUTDATED_YEAR_PATTERN.findall(content)
        if not years:
            return None
        return UncertaintyFactor(
            type=UncertaintyType.OUTDATED_INFORMATION,
            description="Response contains potentially outdated information",
            impact=0.4,
            evidence=[f"Found dates: {', '.join(years)}"],
            mitigation=["Verify information is current and up-to-date"],
        )

    @staticmethod
    def ambiguous_claims(content: str) -> UncertaintyFactor | None:
        count = count_vague_terms(content)
        if count <= AMBIGUITY_LIMIT:
            return None
        return UncertaintyFactor(
            type=UncertaintyType.AMBIGUOUS_CLAIM,
            description="Response contains ambiguous or vague language",
            impact=0.3,
            evidence=[f"Found {count} potentially ambiguous terms"],
            mitigation=["Provide more specific and quantifiable information"],
        )

    @staticmethod
    def incomplete_context(context: Context) -> UncertaintyFactor | None:
        if context.conversation_history:
            return None
        return UncertaintyFactor(
            type=UncertaintyType.INCOMPLETE_CONTEXT,
            description="Limited conversation history available for context",
            impact=0.2,
            evidence=["No previous conversation context"],
            mitigation=["Consider asking for clarification or additional context"],
        )

    def uncertain_areas(self, content: str) -> list[UncertainArea]:
        """Sentences carrying hedges, old dates or vague quantifiers."""
        areas = []
        for sentence in split_sentences(content):
            if HEDGE_PATTERN.search(sentence):
                areas.append(
                    UncertainArea(
                        text=sentence,
                        reason="Hedged language",
                        uncertainty=0.6,
                        suggestion="State the claim definitively or cite a source",
                    )
                )
            elif OUTDATED_YEAR_PATTERN.search(sentence):
                areas.append(
                    UncertainArea(
                        text=sentence,
                        reason="Potentially outdated information",
                        uncertainty=0.5,
                        suggestion="Verify information is current and up-to-date",
                    )
                )
            elif count_vague_terms(sentence) > 0:
                areas.append(
                    UncertainArea(
                        text=sentence,
                        reason="Vague quantifiers",
                        uncertainty=0.4,
                        suggestion="Provide more specific and quantifiable information",
                    )
                )
        return areas
