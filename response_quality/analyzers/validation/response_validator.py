"""Surface-level content and safety validation.

Cheap checks that run before the expensive stages: content length bounds and
banned-term presence. Scoring:

| Check            | Effect on score | Issue severity |
|------------------|-----------------|----------------|
| Too short / long | -0.2            | medium         |
| Banned term      | -0.3 per term   | high           |

Score starts at 0.7 and is floored at 0.0; a response is valid when the
score stays above 0.5.
"""

import re
import time
from typing import Iterable, Optional

from loguru import logger

from response_quality.data_management.schemas import (
    IssueType,
    QualityIssue,
    QualityLevel,
    Response,
    Severity,
    ValidationSummary,
)


class ResponseValidator:
    """
    Fail-fast validator producing a base quality score and issue list.

    Usage:
        validator = ResponseValidator(banned_terms=["bomb"])
        summary = validator.validate(response)
        if not summary.is_valid:
            ...

    Example:
        >>> validator = ResponseValidator()
        >>> summary = validator.validate(Response(id="r", content="Too short"))
        >>> summary.validation_score
        0.5
    """

    BASE_SCORE = 0.7
    LENGTH_PENALTY = 0.2
    SAFETY_PENALTY = 0.3
    VALIDITY_THRESHOLD = 0.5

    DEFAULT_BANNED_TERMS = ("hack", "bomb", "weapon", "illegal")

    def __init__(
        self,
        min_content_length: int = 10,
        max_content_length: int = 20_000,
        banned_terms: Optional[Iterable[str]] = None,
    ):
        """
        Initialize validator.

        Args:
            min_content_length: Shortest acceptable content (stripped).
            max_content_length: Longest acceptable content.
            banned_terms: Terms treated as safety violations. Matched as
                case-insensitive word prefixes ("hack" also flags "hacking").
        """
        self.min_content_length = min_content_length
        self.max_content_length = max_content_length
        terms = list(banned_terms) if banned_terms is not None else list(self.DEFAULT_BANNED_TERMS)
        self.banned_terms = [t.lower() for t in terms if t.strip()]
        self._term_patterns = {
            term: re.compile(r"\b" + re.escape(term), re.IGNORECASE) for term in self.banned_terms
        }
        self._logger = logger.bind(component="ResponseValidator")

    def validate(self, response: Response) -> ValidationSummary:
        """
        Run length and safety checks.

        Args:
            response: Response under evaluation.

        Returns:
            ValidationSummary with score, tier and issues.
        """
        started = time.perf_counter()
        content = response.content
        issues: list[QualityIssue] = []
        score = self.BASE_SCORE

        length = len(content.strip())
        if length < self.min_content_length:
            issues.append(
                QualityIssue(
                    type=IssueType.VALIDATION,
                    severity=Severity.MEDIUM,
                    description="Response is too short",
                    suggestion="Provide more detailed information",
                )
            )
            score -= self.LENGTH_PENALTY
        elif length > self.max_content_length:
            issues.append(
                QualityIssue(
                    type=IssueType.VALIDATION,
                    severity=Severity.MEDIUM,
                    description="Response is too long",
                    suggestion="Condense the answer to the essential points",
                )
            )
            score -= self.LENGTH_PENALTY

        for term in self.find_banned_terms(content):
            issues.append(
                QualityIssue(
                    type=IssueType.VALIDATION,
                    severity=Severity.HIGH,
                    description=f"Potentially inappropriate content detected: '{term}'",
                    suggestion="Review content for educational appropriateness",
                )
            )
            score -= self.SAFETY_PENALTY

        score = max(0.0, round(score, 10))
        summary = ValidationSummary(
            is_valid=score > self.VALIDITY_THRESHOLD,
            validation_score=score,
            quality_level=self.quality_level(score),
            issues=issues,
            recommendations=(
                ["Improve content quality and appropriateness"] if issues else []
            ),
            processing_time_ms=(time.perf_counter() - started) * 1000,
        )

        self._logger.debug(
            f"Validated {response.id}: score={score:.2f} issues={len(issues)}",
            is_valid=summary.is_valid,
        )
        return summary

    def find_banned_terms(self, content: str) -> list[str]:
        """Banned terms present in content, in configured order."""
        return [term for term, pattern in self._term_patterns.items() if pattern.search(content)]

    @staticmethod
    def quality_level(score: float) -> QualityLevel:
        if score >= 0.7:
            return QualityLevel.HIGH
        if score >= 0.5:
            return QualityLevel.MEDIUM
        if score >= 0.3:
            return QualityLevel.LOW
        return QualityLevel.CRITICAL
