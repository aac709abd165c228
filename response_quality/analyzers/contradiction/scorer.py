"""Pairwise contradiction scoring strategies.

ContradictionScorer is the narrow interface the detector depends on; the
lexical implementation adds fixed increments for opposing cue words and
caps the total at 1.0. Every increment is a symmetric predicate of the two
claims, so score(a, b) == score(b, a).

| Signal                                   | Increment      |
|------------------------------------------|----------------|
| Negation present in exactly one claim    | +0.4           |
| Opposing quantifier pair                 | +0.3 per pair  |
| Shared entity text, differing claims     | +0.2           |
| Opposing directional/ordering pair       | +0.2 per pair  |
"""

from typing import Protocol, runtime_checkable

from response_quality.analyzers.extraction.lexicon import word_tokens
from response_quality.data_management.schemas import Claim, Severity


@runtime_checkable
class ContradictionScorer(Protocol):
    """Scores how strongly two claims contradict each other, in [0, 1]."""

    def score(self, first: Claim, second: Claim) -> float:
        ...


def severity_for_score(score: float) -> Severity:
    """Map a contradiction score to its severity band."""
    if score >= 0.8:
        return Severity.CRITICAL
    if score >= 0.6:
        return Severity.HIGH
    if score >= 0.4:
        return Severity.MEDIUM
    return Severity.LOW


class LexicalContradictionScorer:
    """
    Additive cue-word contradiction heuristic.

    Usage:
        scorer = LexicalContradictionScorer()
        value = scorer.score(claim_a, claim_b)
    """

    NEGATION_WORDS = frozenset(
        {"not", "never", "no", "none", "nothing", "neither", "nor", "without"}
    )
    QUANTIFIER_PAIRS: list[tuple[frozenset[str], frozenset[str]]] = [
        (frozenset({"all", "every", "always", "completely"}), frozenset({"none", "no", "never", "nothing"})),
        (frozenset({"most", "many", "usually"}), frozenset({"few", "rarely", "seldom"})),
    ]
    DIRECTIONAL_PAIRS: list[tuple[frozenset[str], frozenset[str]]] = [
        (
            frozenset({"increase", "rise", "grow", "improve", "more"}),
            frozenset({"decrease", "fall", "decline", "reduce", "less"}),
        ),
        (frozenset({"before", "earlier", "prior"}), frozenset({"after", "later", "subsequent"})),
    ]

    NEGATION_WEIGHT = 0.4
    QUANTIFIER_WEIGHT = 0.3
    ENTITY_WEIGHT = 0.2
    DIRECTIONAL_WEIGHT = 0.2

    def score(self, first: Claim, second: Claim) -> float:
        tokens_a = set(word_tokens(first.text))
        tokens_b = set(word_tokens(second.text))
        total = 0.0

        if bool(tokens_a & self.NEGATION_WORDS) != bool(tokens_b & self.NEGATION_WORDS):
            total += self.NEGATION_WEIGHT

        for positive, negative in self.QUANTIFIER_PAIRS:
            if self._opposed(tokens_a, tokens_b, positive, negative):
                total += self.QUANTIFIER_WEIGHT

        if first.text.strip().lower() != second.text.strip().lower():
            if first.entity_texts & second.entity_texts:
                total += self.ENTITY_WEIGHT

        for positive, negative in self.DIRECTIONAL_PAIRS:
            if self._opposed(tokens_a, tokens_b, positive, negative):
                total += self.DIRECTIONAL_WEIGHT

        return round(min(1.0, total), 4)

    @staticmethod
    def _opposed(
        tokens_a: set[str],
        tokens_b: set[str],
        positive: frozenset[str],
        negative: frozenset[str],
    ) -> bool:
        return bool(
            (tokens_a & positive and tokens_b & negative)
            or (tokens_b & positive and tokens_a & negative)
        )
