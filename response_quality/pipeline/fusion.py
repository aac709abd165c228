"""Score fusion: overall quality, risk, recommendations and issues.

Pure functions over the stage outputs of one evaluation. Stages that were
skipped or failed are passed as None and contribute nothing.

Risk score contributions (summed, then banded at 0.8/0.6/0.3):

| Stage          | Condition                                  | Risk |
|----------------|--------------------------------------------|------|
| validation     | quality tier critical / low / medium       | 0.4 / 0.3 / 0.1 |
| fact checking  | more unverified than verified claims       | 0.3  |
| fact checking  | any contradictory claim                    | 0.2  |
| confidence     | tier low / medium                          | 0.3 / 0.1 |
| confidence     | reject or request_human                    | 0.2  |
| contradictions | any critical / high / medium contradiction | 0.4 / 0.3 / 0.1 |
"""

from typing import Iterable, Optional

from response_quality.data_management.schemas import (
    ConfidenceLevel,
    ConfidenceScore,
    ContradictionAnalysisResult,
    FactCheckSummary,
    IssueType,
    QualityIssue,
    QualityLevel,
    Recommendation,
    RiskLevel,
    Severity,
    ValidationSummary,
)

VALIDATION_RISK = {
    QualityLevel.CRITICAL: 0.4,
    QualityLevel.LOW: 0.3,
    QualityLevel.MEDIUM: 0.1,
}
CONFIDENCE_RISK = {
    ConfidenceLevel.LOW: 0.3,
    ConfidenceLevel.MEDIUM: 0.1,
}
RISK_RECOMMENDATION = {
    RiskLevel.LOW: Recommendation.ACCEPT,
    RiskLevel.MEDIUM: Recommendation.REVIEW,
    RiskLevel.HIGH: Recommendation.REQUEST_HUMAN,
    RiskLevel.CRITICAL: Recommendation.REJECT,
}
MANY_UNVERIFIED = 5


def overall_quality(scores: Iterable[float]) -> float:
    """Running average ``q = (q + s) / 2`` seeded by the first score; 0 with none."""
    quality: Optional[float] = None
    for score in scores:
        quality = score if quality is None else (quality + score) / 2
    return max(0.0, min(1.0, quality or 0.0))


def stage_scores(
    validation: Optional[ValidationSummary],
    fact_check: Optional[FactCheckSummary],
    confidence: Optional[ConfidenceScore],
    contradictions: Optional[ContradictionAnalysisResult],
) -> list[float]:
    """Per-stage quality contributions in pipeline order."""
    scores = []
    if validation is not None:
        scores.append(validation.validation_score)
    if fact_check is not None:
        scores.append(fact_check.quality_score)
    if confidence is not None:
        scores.append(confidence.overall)
    if contradictions is not None:
        scores.append(1.0 - contradictions.overall_contradiction_score)
    return scores


def risk_score(
    validation: Optional[ValidationSummary],
    fact_check: Optional[FactCheckSummary],
    confidence: Optional[ConfidenceScore],
    contradictions: Optional[ContradictionAnalysisResult],
) -> float:
    risk = 0.0
    if validation is not None:
        risk += VALIDATION_RISK.get(validation.quality_level, 0.0)

    if fact_check is not None:
        if fact_check.unverified_claims > fact_check.verified_claims:
            risk += 0.3
        if fact_check.contradictory_claims > 0:
            risk += 0.2

    if confidence is not None:
        risk += CONFIDENCE_RISK.get(confidence.confidence_level, 0.0)
        if confidence.recommendation in (Recommendation.REJECT, Recommendation.REQUEST_HUMAN):
            risk += 0.2

    if contradictions is not None:
        severities = contradictions.severity_distribution
        if severities.get(Severity.CRITICAL, 0):
            risk += 0.4
        elif severities.get(Severity.HIGH, 0):
            risk += 0.3
        elif severities.get(Severity.MEDIUM, 0):
            risk += 0.1
    return risk


def risk_level_for(score: float) -> RiskLevel:
    if score >= 0.8:
        return RiskLevel.CRITICAL
    if score >= 0.6:
        return RiskLevel.HIGH
    if score >= 0.3:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def final_recommendation(
    confidence: Optional[ConfidenceScore], risk_level: RiskLevel
) -> Recommendation:
    """The confidence stage's verdict when it ran, otherwise derived from risk."""
    if confidence is not None:
        return confidence.recommendation
    return RISK_RECOMMENDATION[risk_level]


def _has_critical_validation_issue(validation: Optional[ValidationSummary]) -> bool:
    return validation is not None and any(
        issue.severity in (Severity.HIGH, Severity.CRITICAL) for issue in validation.issues
    )


def build_recommendations(
    validation: Optional[ValidationSummary],
    fact_check: Optional[FactCheckSummary],
    confidence: Optional[ConfidenceScore],
    contradictions: Optional[ContradictionAnalysisResult],
) -> list[str]:
    recommendations: list[str] = []
    if validation is not None:
        recommendations.extend(validation.recommendations)
    if _has_critical_validation_issue(validation):
        recommendations.append("Address critical validation issues immediately")

    if fact_check is not None:
        if fact_check.unverified_claims > 0:
            recommendations.append("Verify unverified claims with reliable sources")
        if fact_check.contradictory_claims > 0:
            recommendations.append("Resolve contradictory claims through verification")

    if confidence is not None:
        if confidence.recommendation == Recommendation.VERIFY:
            recommendations.append("Additional verification needed before accepting response")
        elif confidence.recommendation == Recommendation.REQUEST_HUMAN:
            recommendations.append("Human review required for this response")
        elif confidence.recommendation == Recommendation.REJECT:
            recommendations.append("Response quality is insufficient - consider regeneration")
        if confidence.uncertainty_factors:
            recommendations.append("Address uncertainty factors to improve response quality")

    if contradictions is not None:
        if contradictions.total_contradictions > 0:
            recommendations.append(
                "Resolve detected contradictions to improve response consistency"
            )
        if contradictions.critical_issues:
            recommendations.append("Address critical contradiction issues immediately")

    if not recommendations:
        recommendations.append("Response meets quality standards")
    return dedupe(recommendations)


def build_critical_issues(
    validation: Optional[ValidationSummary],
    fact_check: Optional[FactCheckSummary],
    confidence: Optional[ConfidenceScore],
    contradictions: Optional[ContradictionAnalysisResult],
) -> list[str]:
    critical: list[str] = []
    if validation is not None:
        critical.extend(
            f"Validation: {issue.description}"
            for issue in validation.issues
            if issue.severity in (Severity.HIGH, Severity.CRITICAL)
        )

    if fact_check is not None and fact_check.contradictory_claims > 0:
        critical.append(
            f"Fact checking: {fact_check.contradictory_claims} contradictory claims detected"
        )

    if confidence is not None:
        if confidence.recommendation == Recommendation.REJECT:
            critical.append("Confidence: Response quality too low - rejection recommended")
        critical.extend(
            f"Confidence: {factor.description}"
            for factor in confidence.uncertainty_factors
            if factor.is_critical
        )

    if contradictions is not None:
        count = contradictions.severity_distribution.get(Severity.CRITICAL, 0)
        if count:
            critical.append(f"Contradictions: {count} critical contradictions detected")
    return dedupe(critical)


def build_issues(
    validation: Optional[ValidationSummary],
    fact_check: Optional[FactCheckSummary],
    confidence: Optional[ConfidenceScore],
    contradictions: Optional[ContradictionAnalysisResult],
) -> list[QualityIssue]:
    issues: list[QualityIssue] = []
    if validation is not None:
        issues.extend(validation.issues)

    if fact_check is not None and fact_check.unverified_claims > 0:
        issues.append(
            QualityIssue(
                type=IssueType.FACT_CHECK,
                severity=(
                    Severity.HIGH
                    if fact_check.unverified_claims > MANY_UNVERIFIED
                    else Severity.MEDIUM
                ),
                description=f"{fact_check.unverified_claims} unverified claims detected",
                suggestion="Verify claims against reliable sources",
            )
        )

    if confidence is not None and confidence.confidence_level == ConfidenceLevel.LOW:
        issues.append(
            QualityIssue(
                type=IssueType.CONFIDENCE,
                severity=Severity.HIGH,
                description="Low confidence in response accuracy",
                suggestion="Review the response before showing it to the learner",
            )
        )

    if contradictions is not None and contradictions.total_contradictions > 0:
        issues.append(
            QualityIssue(
                type=IssueType.CONTRADICTION,
                severity=Severity.MEDIUM,
                description=f"{contradictions.total_contradictions} contradictions detected",
                suggestion="Resolve contradictory statements",
            )
        )
    return issues


def dedupe(items: Iterable[str]) -> list[str]:
    """Drop repeated strings, keeping first occurrences in order."""
    return list(dict.fromkeys(items))
