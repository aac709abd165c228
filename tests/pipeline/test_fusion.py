"""Tests for score fusion helpers."""

import pytest

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
    UncertaintyFactor,
    UncertaintyType,
    ValidationSummary,
)
from response_quality.pipeline import fusion


def make_confidence(
    overall: float = 0.7,
    recommendation: Recommendation = Recommendation.REVIEW,
    level: ConfidenceLevel = ConfidenceLevel.HIGH,
    factors: list[UncertaintyFactor] | None = None,
) -> ConfidenceScore:
    return ConfidenceScore(
        overall=overall,
        recommendation=recommendation,
        confidence_level=level,
        uncertainty_factors=factors or [],
    )


def unsafe_validation() -> ValidationSummary:
    return ValidationSummary(
        is_valid=False,
        validation_score=0.4,
        quality_level=QualityLevel.LOW,
        issues=[
            QualityIssue(
                type=IssueType.VALIDATION,
                severity=Severity.HIGH,
                description="Potentially inappropriate content detected: 'hack'",
            )
        ],
        recommendations=["Improve content quality and appropriateness"],
    )


class TestOverallQuality:
    """Running average fold."""

    def test_no_scores(self):
        assert fusion.overall_quality([]) == 0.0

    def test_single_score(self):
        assert fusion.overall_quality([0.6]) == pytest.approx(0.6)

    def test_order_matters(self):
        # ((0.8 + 0.4) / 2 + 1.0) / 2
        assert fusion.overall_quality([0.8, 0.4, 1.0]) == pytest.approx(0.8)
        # ((1.0 + 0.4) / 2 + 0.8) / 2
        assert fusion.overall_quality([1.0, 0.4, 0.8]) == pytest.approx(0.75)

    def test_stage_scores_invert_contradictions(self):
        scores = fusion.stage_scores(
            None,
            None,
            None,
            ContradictionAnalysisResult(overall_contradiction_score=0.25),
        )
        assert scores == [0.75]


class TestRisk:
    """Risk score contributions and banding."""

    @pytest.mark.parametrize(
        "score, expected",
        [
            (0.0, RiskLevel.LOW),
            (0.29, RiskLevel.LOW),
            (0.3, RiskLevel.MEDIUM),
            (0.6, RiskLevel.HIGH),
            (0.8, RiskLevel.CRITICAL),
            (1.5, RiskLevel.CRITICAL),
        ],
    )
    def test_bands(self, score, expected):
        assert fusion.risk_level_for(score) == expected

    def test_nothing_ran(self):
        assert fusion.risk_score(None, None, None, None) == 0.0

    def test_fact_check_contributions(self):
        summary = FactCheckSummary(
            total_claims=3, verified_claims=1, unverified_claims=2, contradictory_claims=1
        )
        assert fusion.risk_score(None, summary, None, None) == pytest.approx(0.5)

    def test_confidence_contributions(self):
        confidence = make_confidence(
            0.3, Recommendation.REQUEST_HUMAN, ConfidenceLevel.LOW
        )
        assert fusion.risk_score(None, None, confidence, None) == pytest.approx(0.5)

    def test_only_worst_contradiction_severity_counts(self):
        analysis = ContradictionAnalysisResult(
            total_contradictions=2,
            severity_distribution={
                Severity.LOW: 0,
                Severity.MEDIUM: 1,
                Severity.HIGH: 1,
                Severity.CRITICAL: 0,
            },
        )
        assert fusion.risk_score(None, None, None, analysis) == pytest.approx(0.3)

    def test_validation_contribution(self):
        assert fusion.risk_score(unsafe_validation(), None, None, None) == pytest.approx(0.3)


class TestFinalRecommendation:
    """Confidence verdict first, risk mapping as fallback."""

    def test_confidence_wins(self):
        confidence = make_confidence(recommendation=Recommendation.VERIFY)
        assert fusion.final_recommendation(confidence, RiskLevel.LOW) == Recommendation.VERIFY

    @pytest.mark.parametrize(
        "risk, expected",
        [
            (RiskLevel.LOW, Recommendation.ACCEPT),
            (RiskLevel.MEDIUM, Recommendation.REVIEW),
            (RiskLevel.HIGH, Recommendation.REQUEST_HUMAN),
            (RiskLevel.CRITICAL, Recommendation.REJECT),
        ],
    )
    def test_risk_fallback(self, risk, expected):
        assert fusion.final_recommendation(None, risk) == expected


class TestRecommendationsAndIssues:
    """Human-readable outputs."""

    def test_default_recommendation(self):
        assert fusion.build_recommendations(None, None, None, None) == [
            "Response meets quality standards"
        ]

    def test_validation_issues_escalate(self):
        validation = unsafe_validation()

        recommendations = fusion.build_recommendations(validation, None, None, None)
        critical = fusion.build_critical_issues(validation, None, None, None)

        assert recommendations == [
            "Improve content quality and appropriateness",
            "Address critical validation issues immediately",
        ]
        assert critical == ["Validation: Potentially inappropriate content detected: 'hack'"]

    def test_confidence_recommendations(self):
        factor = UncertaintyFactor(
            type=UncertaintyType.KNOWLEDGE_GAP, description="Confidence calculation failed", impact=1.0
        )
        confidence = make_confidence(
            0.0, Recommendation.REJECT, ConfidenceLevel.LOW, factors=[factor]
        )

        recommendations = fusion.build_recommendations(None, None, confidence, None)
        critical = fusion.build_critical_issues(None, None, confidence, None)

        assert recommendations == [
            "Response quality is insufficient - consider regeneration",
            "Address uncertainty factors to improve response quality",
        ]
        assert critical == [
            "Confidence: Response quality too low - rejection recommended",
            "Confidence: Confidence calculation failed",
        ]

    def test_recommendations_are_deduplicated(self):
        assert fusion.dedupe(["a", "b", "a"]) == ["a", "b"]

    @pytest.mark.parametrize("unverified, severity", [(6, Severity.HIGH), (2, Severity.MEDIUM)])
    def test_unverified_issue_severity(self, unverified, severity):
        summary = FactCheckSummary(total_claims=unverified, unverified_claims=unverified)

        issues = fusion.build_issues(None, summary, None, None)

        assert len(issues) == 1
        assert issues[0].severity == severity
        assert issues[0].description == f"{unverified} unverified claims detected"

    def test_low_confidence_and_contradiction_issues(self):
        confidence = make_confidence(0.3, Recommendation.REQUEST_HUMAN, ConfidenceLevel.LOW)
        analysis = ContradictionAnalysisResult(total_contradictions=1)

        issues = fusion.build_issues(None, None, confidence, analysis)

        assert [i.type for i in issues] == [IssueType.CONFIDENCE, IssueType.CONTRADICTION]
