"""Lexical coherence evaluation: logical, structural, consistency and flow."""

import re

from response_quality.analyzers.extraction.lexicon import split_sentences, word_tokens
from response_quality.data_management.schemas import CoherenceIssue, CoherenceScore

LOGICAL_CONNECTORS = frozenset({"therefore", "thus", "hence", "because", "since", "so"})
NEGATIVE_WORDS = frozenset({"not", "never", "no", "none"})
PARAGRAPH_BREAK = re.compile(r"\n\s*\n")
ISSUE_THRESHOLD = 0.6


def split_paragraphs(content: str) -> list[str]:
    return [p.strip() for p in PARAGRAPH_BREAK.split(content) if p.strip()]


class CoherenceEvaluator:
    """
    Scores how well a response hangs together.

    | Sub-score   | Base | Adjustment                                        |
    |-------------|------|---------------------------------------------------|
    | logical     | 0.7  | +0.1 with any logical connector                   |
    | structural  | 0.6  | +0.1 multiple paragraphs, +0.1 ':' or blank line |
    | consistency | 0.8  | -0.2 when negative and positive sentences mix     |
    | flow        | 0.7  | +0.1 when length variance exceeds half the mean   |
    """

    def evaluate(self, content: str) -> CoherenceScore:
        sentences = split_sentences(content)
        paragraphs = split_paragraphs(content)

        logical = self.logical(sentences)
        structural = self.structural(content, paragraphs)
        consistency = self.consistency(sentences)
        flow = self.flow(sentences)

        return CoherenceScore(
            overall=(logical + structural + consistency + flow) / 4,
            logical=logical,
            structural=structural,
            consistency=consistency,
            flow=flow,
            issues=self.issues(logical, structural, consistency),
            evidence=[
                f"Logical coherence: {logical * 100:.0f}%",
                f"Structural coherence: {structural * 100:.0f}%",
                f"Consistency: {consistency * 100:.0f}%",
                f"Flow: {flow * 100:.0f}%",
            ],
        )

    @staticmethod
    def logical(sentences: list[str]) -> float:
        score = 0.7
        if any(LOGICAL_CONNECTORS & set(word_tokens(s)) for s in sentences):
            score += 0.1
        return min(1.0, score)

    @staticmethod
    def structural(content: str, paragraphs: list[str]) -> float:
        score = 0.6
        if len(paragraphs) > 1:
            score += 0.1
        if ":" in content or "\n\n" in content:
            score += 0.1
        return min(1.0, score)

    @staticmethod
    def consistency(sentences: list[str]) -> float:
        negative = [s for s in sentences if NEGATIVE_WORDS & set(word_tokens(s))]
        score = 0.8
        if negative and len(negative) < len(sentences):
            score -= 0.2
        return max(0.3, score)

    @staticmethod
    def flow(sentences: list[str]) -> float:
        score = 0.7
        if sentences:
            lengths = [len(s) for s in sentences]
            mean = sum(lengths) / len(lengths)
            variance = sum((n - mean) ** 2 for n in lengths) / len(lengths)
            if variance > mean * 0.5:
                score += 0.1
        return min(1.0, score)

    @staticmethod
    def issues(logical: float, structural: float, consistency: float) -> list[CoherenceIssue]:
        issues = []
        if logical < ISSUE_THRESHOLD:
            issues.append(
                CoherenceIssue(
                    type="logical_gap",
                    description="Logical connections between ideas could be improved",
                )
            )
        if structural < ISSUE_THRESHOLD:
            issues.append(
                CoherenceIssue(
                    type="inconsistency",
                    description="Response structure could be clearer",
                )
            )
        if consistency < ISSUE_THRESHOLD:
            issues.append(
                CoherenceIssue(
                    type="contradiction",
                    description="Potential contradictions detected in the response",
                    severity="high",
                )
            )
        return issues
