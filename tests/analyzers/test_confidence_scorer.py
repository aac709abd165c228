"""Tests for ConfidenceScorer, UncertaintyDetector and CoherenceEvaluator."""

import pytest

from response_quality.analyzers.confidence import (
    CoherenceEvaluator,
    ConfidenceScorer,
    UncertaintyDetector,
    confidence_level_for,
    recommendation_for,
)
from response_quality.data_management.schemas import (
    ConfidenceLevel,
    ConfidenceOptions,
    ConfidenceType,
    Context,
    ConversationTurn,
    ExternalSource,
    FactCheckSummary,
    KnowledgeItem,
    Recommendation,
    Response,
    UncertaintyType,
    UserProfile,
)


@pytest.fixture
def scorer():
    return ConfidenceScorer(current_year=2026)


@pytest.fixture
def rich_context():
    return Context(
        knowledge_base=[KnowledgeItem(content="Water boils at 100 degrees Celsius")],
        conversation_history=[ConversationTurn(content="At what temperature does water boil?")],
        external_sources=[ExternalSource(content="Boiling point data", reliability_score=0.9)],
        user_profile=UserProfile(academic_level="high_school"),
    )


class TestRecommendationRules:
    """Pure step functions over overall confidence."""

    def test_high_confidence_accepts(self):
        assert recommendation_for(0.85, 0) == Recommendation.ACCEPT
        assert confidence_level_for(0.85) == ConfidenceLevel.VERY_HIGH

    def test_critical_factor_blocks_accept(self):
        assert recommendation_for(0.85, 1) == Recommendation.REVIEW
        assert recommendation_for(0.85, 2) == Recommendation.VERIFY

    @pytest.mark.parametrize(
        "overall,expected",
        [
            (0.65, Recommendation.REVIEW),
            (0.45, Recommendation.VERIFY),
            (0.25, Recommendation.REQUEST_HUMAN),
            (0.1, Recommendation.REJECT),
        ],
    )
    def test_recommendation_bands(self, overall, expected):
        assert recommendation_for(overall, 0) == expected

    @pytest.mark.parametrize(
        "overall,expected",
        [
            (0.7, ConfidenceLevel.HIGH),
            (0.55, ConfidenceLevel.MEDIUM),
            (0.3, ConfidenceLevel.LOW),
        ],
    )
    def test_confidence_level_bands(self, overall, expected):
        assert confidence_level_for(overall) == expected


class TestCalculateConfidence:
    """Weighted sub-scores and uncertainty penalties."""

    @pytest.mark.asyncio
    async def test_bare_response_needs_verification(self, scorer):
        response = Response(id="r1", content="Water boils at 100 degrees Celsius.")

        score = await scorer.calculate_confidence(response, Context())

        assert score.by_type[ConfidenceType.FACTUAL] == pytest.approx(0.7)
        assert score.by_type[ConfidenceType.CONTEXTUAL] == pytest.approx(0.5)
        assert score.by_type[ConfidenceType.METHODOLOGICAL] == pytest.approx(0.6)
        assert score.by_type[ConfidenceType.TEMPORAL] == pytest.approx(0.8)
        assert score.by_type[ConfidenceType.SOURCE_RELIABILITY] == pytest.approx(0.5)
        # 0.625 weighted - (0.3 + 0.2) * 0.1 penalty
        assert score.overall == pytest.approx(0.575)
        assert score.confidence_level == ConfidenceLevel.MEDIUM
        assert score.recommendation == Recommendation.VERIFY
        assert {f.type for f in score.uncertainty_factors} == {
            UncertaintyType.KNOWLEDGE_GAP,
            UncertaintyType.INCOMPLETE_CONTEXT,
        }

    @pytest.mark.asyncio
    async def test_follow_ups_ranked_when_not_accepted(self, scorer):
        response = Response(id="r1", content="Water boils at 100 degrees Celsius.")

        score = await scorer.calculate_confidence(response, Context())

        assert len(score.follow_up_questions) == 4
        assert score.follow_up_questions[0].id == "factcheck_1"
        assert (
            score.follow_up_questions[0].reason
            == "No explicit acknowledgment of knowledge limitations"
        )

    @pytest.mark.asyncio
    async def test_well_supported_response_accepts(self, scorer, rich_context):
        response = Response(
            id="r2",
            content=(
                "First, according to research, water boils at 100 degrees. "
                "I am not sure about altitude effects."
            ),
        )
        summary = FactCheckSummary(total_claims=2, verified_claims=2)

        score = await scorer.calculate_confidence(response, rich_context, summary)

        assert score.by_type[ConfidenceType.FACTUAL] == pytest.approx(1.0)
        assert score.by_type[ConfidenceType.CONTEXTUAL] == pytest.approx(0.8)
        assert score.by_type[ConfidenceType.METHODOLOGICAL] == pytest.approx(0.8)
        assert score.uncertainty_factors == []
        assert score.overall == pytest.approx(0.87)
        assert score.recommendation == Recommendation.ACCEPT
        assert score.confidence_level == ConfidenceLevel.VERY_HIGH
        assert score.follow_up_questions == []
        assert score.evidence.claim_verification.verified_claims == 2

    @pytest.mark.asyncio
    async def test_overall_within_bounds(self, scorer):
        content = (
            "Some say many things. Various different several people often sometimes "
            "frequently agree, etc. It happened in 1999."
        )
        score = await scorer.calculate_confidence(Response(id="r3", content=content), Context())

        assert 0.0 <= score.overall <= 1.0
        assert UncertaintyType.OUTDATED_INFORMATION in {f.type for f in score.uncertainty_factors}
        assert UncertaintyType.AMBIGUOUS_CLAIM in {f.type for f in score.uncertainty_factors}

    @pytest.mark.asyncio
    async def test_internal_error_yields_failed_score(self, scorer, monkeypatch):
        def explode(response, context):
            raise RuntimeError("detector down")

        monkeypatch.setattr(scorer.uncertainty_detector, "detect", explode)
        response = Response(id="r4", content="Water boils at 100 degrees.")

        score = await scorer.calculate_confidence(response, Context())

        assert score.overall == 0.0
        assert score.recommendation == Recommendation.REJECT
        assert score.confidence_level == ConfidenceLevel.LOW
        assert score.uncertainty_factors[0].impact == 1.0
        assert score.uncertainty_factors[0].evidence == ["System error: detector down"]
        assert score.score_id == "confidence_r4_failed"

    @pytest.mark.asyncio
    async def test_score_propagates_errors(self, scorer, monkeypatch):
        def explode(response, context):
            raise RuntimeError("detector down")

        monkeypatch.setattr(scorer.uncertainty_detector, "detect", explode)

        with pytest.raises(RuntimeError):
            await scorer.score(Response(id="r5", content="Water is wet."), Context())

    @pytest.mark.asyncio
    async def test_uncertainty_analysis_can_be_disabled(self, scorer):
        response = Response(id="r6", content="Water boils at 100 degrees Celsius.")

        score = await scorer.calculate_confidence(
            response, Context(), options=ConfidenceOptions(include_uncertainty_analysis=False)
        )

        assert score.uncertainty_factors == []
        assert score.overall == pytest.approx(0.625)


class TestSubScores:
    """Individual dimension heuristics."""

    def test_temporal_flags_recent_years(self, scorer):
        assert scorer.temporal("Prices rose sharply in 2023") == pytest.approx(0.6)
        assert scorer.temporal("The wall fell in 1989") == pytest.approx(0.8)
        assert scorer.temporal("No dates here") == pytest.approx(0.8)

    def test_factual_weights_disputed_at_half(self):
        summary = FactCheckSummary(total_claims=4, verified_claims=2, disputed_claims=2)
        assert ConfidenceScorer.factual(summary) == pytest.approx(0.75)
        assert ConfidenceScorer.factual(None) == pytest.approx(0.7)

    def test_methodological_hedging(self):
        assert ConfidenceScorer.methodological("It might be true") == pytest.approx(0.5)

    def test_assess_source_reliability(self):
        sources = [
            ExternalSource(source_type="journal", author="A. Smith", reliability_score=0.9),
            ExternalSource(source_type="web", author="B. Jones", reliability_score=0.6),
        ]

        assessment = ConfidenceScorer.assess_source_reliability(sources)

        assert assessment.total_sources == 2
        assert assessment.high_quality_sources == 1
        assert assessment.reliable_sources == 1
        assert assessment.average_reliability == pytest.approx(0.75)
        assert assessment.source_diversity == 1.0

    def test_assess_no_sources(self):
        assessment = ConfidenceScorer.assess_source_reliability([])
        assert assessment.total_sources == 0
        assert assessment.average_reliability == 0.0

    def test_by_claim_scores_each_claim(self, scorer):
        scores = scorer.confidence_by_claim(
            Response(id="r", content="Cats are mammals. Dogs are mammals."), Context()
        )
        assert set(scores) == {"claim_0", "claim_1"}
        assert all(0.1 <= value <= 1.0 for value in scores.values())


class TestUncertainAreas:
    """Sentence-level uncertainty spots."""

    @pytest.mark.asyncio
    async def test_identify_uncertain_areas_sorted(self, scorer):
        content = (
            "Some people agree. It was built in 1990. "
            "Water might boil sooner. The sky is blue."
        )

        areas = await scorer.identify_uncertain_areas(Response(id="r", content=content), Context())

        assert [a.reason for a in areas] == [
            "Hedged language",
            "Potentially outdated information",
            "Vague quantifiers",
        ]
        assert [a.uncertainty for a in areas] == [0.6, 0.5, 0.4]

    def test_detector_accepts_limitation_language(self):
        detector = UncertaintyDetector()
        assert detector.knowledge_gap("I'm not sure this is right") is None
        assert detector.knowledge_gap("This is right") is not None


class TestCoherence:
    """Lexical coherence sub-scores."""

    def test_mixed_polarity_lowers_consistency(self):
        score = CoherenceEvaluator().evaluate("Water is wet. It is not dry.")

        assert score.logical == pytest.approx(0.7)
        assert score.structural == pytest.approx(0.6)
        assert score.consistency == pytest.approx(0.6)
        assert score.flow == pytest.approx(0.7)
        assert score.overall == pytest.approx(0.65)
        assert score.evidence[0] == "Logical coherence: 70%"

    def test_connectors_and_paragraphs(self):
        score = CoherenceEvaluator().evaluate(
            "Water boils because it is hot.\n\nTherefore: steam rises."
        )
        assert score.logical == pytest.approx(0.8)
        assert score.structural == pytest.approx(0.8)

    @pytest.mark.asyncio
    async def test_evaluate_response_coherence(self, scorer):
        score = await scorer.evaluate_response_coherence(Response(id="r", content="Water is wet."))
        assert 0.0 <= score.overall <= 1.0
