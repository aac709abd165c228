"""Multi-dimensional confidence scoring.

Five sub-scores are combined with fixed weights, then penalized by detected
uncertainty factors:

| Dimension          | Weight | Source                                          |
|--------------------|--------|-------------------------------------------------|
| factual            | 0.30   | fact-check summary (0.7 without one)            |
| contextual         | 0.25   | profile / history / knowledge base presence     |
| methodological     | 0.20   | structure, evidentiary phrasing, hedging        |
| temporal           | 0.15   | recent-year tokens (time-sensitive content)     |
| source_reliability | 0.10   | mean external source reliability                |

overall = weighted sum - sum(impact * 0.1), clamped to [0, 1].

recommendation and confidence_level are pure functions of overall and the
number of critical (impact > 0.7) uncertainty factors.

Usage:
    scorer = ConfidenceScorer()
    score = await scorer.calculate_confidence(response, context, fact_summary)
    if score.recommendation == Recommendation.ACCEPT:
        ...
"""

import re
import time
import uuid
from datetime import datetime
from typing import Optional

from loguru import logger

from response_quality.analyzers.confidence.coherence import CoherenceEvaluator
from response_quality.analyzers.confidence.uncertainty import UncertaintyDetector
from response_quality.analyzers.extraction import ClaimExtractor, LexicalClaimExtractor
from response_quality.analyzers.extraction.lexicon import (
    DIGIT_PATTERN,
    HEDGE_PATTERN,
    clamp,
    jaccard_similarity,
)
from response_quality.data_management.schemas import (
    Claim,
    ClaimVerificationCounts,
    CoherenceScore,
    ConfidenceEvidence,
    ConfidenceLevel,
    ConfidenceOptions,
    ConfidenceScore,
    ConfidenceType,
    Context,
    ExternalSource,
    FactCheckSummary,
    FollowUpQuestion,
    Recommendation,
    Response,
    SourceQualityAssessment,
    UncertainArea,
    UncertaintyFactor,
    UncertaintyType,
)

WEIGHTS: dict[ConfidenceType, float] = {
    ConfidenceType.FACTUAL: 0.30,
    ConfidenceType.CONTEXTUAL: 0.25,
    ConfidenceType.METHODOLOGICAL: 0.20,
    ConfidenceType.TEMPORAL: 0.15,
    ConfidenceType.SOURCE_RELIABILITY: 0.10,
}
UNCERTAINTY_PENALTY = 0.1

STRUCTURE_PATTERN = re.compile(r"\b(step|first|second)\b", re.IGNORECASE)
EVIDENTIARY_PATTERN = re.compile(r"\b(according to|research shows)\b", re.IGNORECASE)
METHOD_HEDGE_PATTERN = re.compile(r"\b(might|could be|possibly)\b", re.IGNORECASE)
YEAR_TOKEN_PATTERN = re.compile(r"\b(19\d{2}|20\d{2})\b")

FOLLOW_UP_CATALOG: list[FollowUpQuestion] = [
    FollowUpQuestion(
        id="verification_1",
        question="Could you provide sources or references to support this information?",
        question_type="verification",
        priority="high",
        priority_value=0.8,
        estimated_value=0.4,
    ),
    FollowUpQuestion(
        id="expansion_1",
        question="Could you provide more details or examples to expand on this point?",
        question_type="expansion",
        priority="medium",
        priority_value=0.6,
        estimated_value=0.3,
    ),
    FollowUpQuestion(
        id="factcheck_1",
        question="Can you verify this factual information with reliable sources?",
        question_type="fact_check",
        priority="high",
        priority_value=0.8,
        estimated_value=0.5,
    ),
    FollowUpQuestion(
        id="context_1",
        question="How does this information relate to your specific situation or needs?",
        question_type="context",
        priority="medium",
        priority_value=0.6,
        estimated_value=0.3,
    ),
]


def recommendation_for(overall: float, critical_factors: int) -> Recommendation:
    """Step function from overall confidence and critical factor count."""
    if overall >= 0.8 and critical_factors == 0:
        return Recommendation.ACCEPT
    if overall >= 0.6 and critical_factors < 2:
        return Recommendation.REVIEW
    if overall >= 0.4:
        return Recommendation.VERIFY
    if overall >= 0.2:
        return Recommendation.REQUEST_HUMAN
    return Recommendation.REJECT


def confidence_level_for(overall: float) -> ConfidenceLevel:
    if overall >= 0.8:
        return ConfidenceLevel.VERY_HIGH
    if overall >= 0.65:
        return ConfidenceLevel.HIGH
    if overall >= 0.5:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW


class ConfidenceScorer:
    """
    Computes ConfidenceScore objects for responses.

    Attributes:
        claim_extractor: Strategy for per-claim scores.
        current_year: Upper bound of the "recent year" window (defaults to
            the current calendar year).
    """

    RECENT_YEAR_START = 2020

    def __init__(
        self,
        claim_extractor: Optional[ClaimExtractor] = None,
        uncertainty_detector: Optional[UncertaintyDetector] = None,
        coherence_evaluator: Optional[CoherenceEvaluator] = None,
        current_year: Optional[int] = None,
    ):
        self.claim_extractor = claim_extractor or LexicalClaimExtractor()
        self.uncertainty_detector = uncertainty_detector or UncertaintyDetector()
        self.coherence_evaluator = coherence_evaluator or CoherenceEvaluator()
        self.current_year = current_year
        self._logger = logger.bind(component="ConfidenceScorer")

    async def calculate_confidence(
        self,
        response: Response,
        context: Context,
        fact_check_summary: Optional[FactCheckSummary] = None,
        options: Optional[ConfidenceOptions] = None,
    ) -> ConfidenceScore:
        """
        Score confidence in a response.

        Args:
            response: Response under evaluation.
            context: Read-only context bundle.
            fact_check_summary: Output of the fact-checking stage, if it ran.
            options: Optional analysis switches.

        Returns:
            ConfidenceScore. Internal errors yield a failed score
            (overall 0, reject) instead of raising.
        """
        started = time.perf_counter()
        try:
            return await self.score(response, context, fact_check_summary, options)
        except Exception as e:
            self._logger.error(f"Confidence scoring failed for {response.id}: {e}")
            return self.failed_score(
                e,
                f"confidence_{response.id}_failed",
                (time.perf_counter() - started) * 1000,
            )

    async def score(
        self,
        response: Response,
        context: Context,
        fact_check_summary: Optional[FactCheckSummary] = None,
        options: Optional[ConfidenceOptions] = None,
    ) -> ConfidenceScore:
        """Like calculate_confidence, but errors propagate to the caller."""
        options = options or ConfidenceOptions()
        started = time.perf_counter()

        by_type = self.confidence_by_type(response, context, fact_check_summary, options)
        factors = (
            self.uncertainty_detector.detect(response, context)
            if options.include_uncertainty_analysis
            else []
        )
        overall = self.overall_confidence(by_type, factors)
        recommendation = recommendation_for(overall, sum(1 for f in factors if f.is_critical))

        score = ConfidenceScore(
            overall=overall,
            by_type=by_type,
            by_claim=self.confidence_by_claim(response, context),
            uncertainty_factors=factors,
            recommendation=recommendation,
            confidence_level=confidence_level_for(overall),
            evidence=self.build_evidence(context, fact_check_summary),
            score_id=f"confidence_{response.id}_{uuid.uuid4().hex[:8]}",
        )
        if options.include_follow_up and recommendation != Recommendation.ACCEPT:
            score.follow_up_questions = self.suggest_follow_up_questions(response, context, score)
        score.processing_time_ms = (time.perf_counter() - started) * 1000

        self._logger.info(
            f"Confidence for {response.id}: {score.overall:.3f} -> {score.recommendation.value}",
            level=score.confidence_level.value,
            factors=len(factors),
        )
        return score

    # ── Sub-scores ────────────────────────────────────────────────────────

    def confidence_by_type(
        self,
        response: Response,
        context: Context,
        fact_check_summary: Optional[FactCheckSummary],
        options: ConfidenceOptions,
    ) -> dict[ConfidenceType, float]:
        return {
            ConfidenceType.FACTUAL: self.factual(fact_check_summary),
            ConfidenceType.CONTEXTUAL: self.contextual(context),
            ConfidenceType.METHODOLOGICAL: self.methodological(response.content),
            ConfidenceType.TEMPORAL: (
                self.temporal(response.content) if options.consider_temporal_factors else 0.8
            ),
            ConfidenceType.SOURCE_RELIABILITY: (
                self.source_reliability(context.external_sources)
                if options.assess_source_reliability
                else 0.7
            ),
        }

    @staticmethod
    def factual(summary: Optional[FactCheckSummary]) -> float:
        if summary is None:
            return 0.7
        weighted = summary.verified_claims * 1.0 + summary.disputed_claims * 0.5
        return clamp(weighted / max(1, summary.total_claims))

    @staticmethod
    def contextual(context: Context) -> float:
        score = 0.5
        if context.user_profile is not None and context.user_profile.academic_level:
            score += 0.1
        if context.conversation_history:
            score += 0.1
        if context.knowledge_base:
            score += 0.1
        return min(1.0, score)

    @staticmethod
    def methodological(content: str) -> float:
        score = 0.6
        if STRUCTURE_PATTERN.search(content):
            score += 0.1
        if EVIDENTIARY_PATTERN.search(content):
            score += 0.1
        if METHOD_HEDGE_PATTERN.search(content):
            score -= 0.1
        return clamp(score, 0.3, 1.0)

    def temporal(self, content: str) -> float:
        """0.6 for time-sensitive content (recent years), 0.8 otherwise."""
        latest = self.current_year or datetime.now().year
        for match in YEAR_TOKEN_PATTERN.finditer(content):
            if self.RECENT_YEAR_START <= int(match.group(1)) <= latest:
                return 0.6
        return 0.8

    @staticmethod
    def source_reliability(sources: list[ExternalSource]) -> float:
        if not sources:
            return 0.5
        return sum(s.reliability for s in sources) / len(sources)

    @staticmethod
    def overall_confidence(
        by_type: dict[ConfidenceType, float], factors: list[UncertaintyFactor]
    ) -> float:
        weighted = sum(by_type[t] * w for t, w in WEIGHTS.items())
        penalty = sum(f.impact * UNCERTAINTY_PENALTY for f in factors)
        return clamp(weighted - penalty)

    # ── Per-claim scores ──────────────────────────────────────────────────

    def confidence_by_claim(self, response: Response, context: Context) -> dict[str, float]:
        scores = {}
        for claim in self.claim_extractor.extract(response.content):
            confidence = 0.5
            confidence = (confidence + self.claim_clarity(claim.text)) / 2
            confidence = (confidence + self.claim_evidence(claim, context)) / 2
            confidence = (confidence + self.source_reliability(context.external_sources)) / 2
            scores[claim.id] = clamp(confidence, 0.1, 1.0)
        return scores

    @staticmethod
    def claim_clarity(text: str) -> float:
        clarity = 0.5
        if HEDGE_PATTERN.search(text):
            clarity -= 0.2
        if DIGIT_PATTERN.search(text):
            clarity += 0.1
        if len(text) < 10:
            clarity -= 0.1
        if len(text) > 200:
            clarity -= 0.1
        return clamp(clarity, 0.1, 1.0)

    @staticmethod
    def claim_evidence(claim: Claim, context: Context) -> float:
        texts = [item.content for item in context.knowledge_base]
        texts.extend(source.content for source in context.external_sources)
        relevant = sum(1 for text in texts if jaccard_similarity(claim.text, text) > 0.3)
        return min(1.0, relevant * 0.2)

    # ── Evidence and assessments ──────────────────────────────────────────

    def build_evidence(
        self, context: Context, summary: Optional[FactCheckSummary]
    ) -> ConfidenceEvidence:
        evidence = ConfidenceEvidence(
            source_quality=self.assess_source_reliability(context.external_sources),
            contextual_factors=self.contextual_factors(context),
        )
        if summary is not None:
            evidence.claim_verification = ClaimVerificationCounts(
                total_claims=summary.total_claims,
                verified_claims=summary.verified_claims,
                disputed_claims=summary.disputed_claims,
                unverified_claims=summary.unverified_claims,
                inconclusive_claims=summary.inconclusive_claims,
            )
            for result in summary.results:
                evidence.supporting_evidence.extend(e.content for e in result.supporting_evidence)
                evidence.contradicting_evidence.extend(
                    e.content for e in result.contradicting_evidence
                )
        return evidence

    @staticmethod
    def contextual_factors(context: Context) -> list[str]:
        factors = []
        profile = context.user_profile
        if profile is not None and profile.academic_level:
            factors.append(f"Academic level: {profile.academic_level}")
        if profile is not None and profile.subjects:
            factors.append(f"Subjects: {', '.join(profile.subjects)}")
        if context.conversation_history:
            factors.append(f"Conversation history: {len(context.conversation_history)} turns")
        if context.knowledge_base:
            factors.append(f"Knowledge base: {len(context.knowledge_base)} items")
        return factors

    @staticmethod
    def assess_source_reliability(sources: list[ExternalSource]) -> SourceQualityAssessment:
        """Reliability profile of a set of external sources."""
        if not sources:
            return SourceQualityAssessment()

        reliabilities = [s.reliability for s in sources]
        types = {s.source_type for s in sources if s.source_type}
        authors = {s.author for s in sources if s.author}
        return SourceQualityAssessment(
            total_sources=len(sources),
            high_quality_sources=sum(1 for r in reliabilities if r >= 0.8),
            reliable_sources=sum(1 for r in reliabilities if r >= 0.7),
            verified_sources=sum(1 for s in sources if s.verification_status == "verified"),
            average_reliability=sum(reliabilities) / len(reliabilities),
            source_diversity=min(1.0, len(types) * 0.6 + (0.4 if len(authors) > 1 else 0.0)),
        )

    async def evaluate_response_coherence(self, response: Response) -> CoherenceScore:
        return self.coherence_evaluator.evaluate(response.content)

    def suggest_follow_up_questions(
        self,
        response: Response,
        context: Context,
        confidence_score: Optional[ConfidenceScore] = None,
        max_questions: int = 5,
    ) -> list[FollowUpQuestion]:
        """Catalog questions ranked by priority x estimated value."""
        reason = "Confidence could be improved"
        if confidence_score is not None and confidence_score.uncertainty_factors:
            reason = confidence_score.uncertainty_factors[0].description
        questions = [q.model_copy(update={"reason": reason}) for q in FOLLOW_UP_CATALOG]
        questions.sort(key=lambda q: q.rank, reverse=True)
        return questions[:max_questions]

    async def identify_uncertain_areas(
        self, response: Response, context: Context
    ) -> list[UncertainArea]:
        """Sentence-level uncertain spots, most uncertain first."""
        areas = self.uncertainty_detector.uncertain_areas(response.content)
        return sorted(areas, key=lambda a: a.uncertainty, reverse=True)

    @staticmethod
    def failed_score(
        error: BaseException | str, score_id: str = "", processing_time_ms: float = 0.0
    ) -> ConfidenceScore:
        return ConfidenceScore(
            overall=0.0,
            by_type={t: 0.0 for t in ConfidenceType},
            uncertainty_factors=[
                UncertaintyFactor(
                    type=UncertaintyType.KNOWLEDGE_GAP,
                    description="Confidence calculation failed",
                    impact=1.0,
                    evidence=[f"System error: {error}"],
                    mitigation=["Manual review required"],
                )
            ],
            recommendation=Recommendation.REJECT,
            confidence_level=ConfidenceLevel.LOW,
            processing_time_ms=processing_time_ms,
            score_id=score_id,
        )
