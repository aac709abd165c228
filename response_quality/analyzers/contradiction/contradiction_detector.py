"""Contradiction detection within a response and against its context.

Five independent detectors run over the claims of one response:

| Detector   | Compares                                 | Reported when          |
|------------|------------------------------------------|------------------------|
| self       | claim pairs (i < j) via the scorer       | score >= threshold     |
| cross      | claims vs knowledge base/history/sources | content score > 0.6    |
| temporal   | same-year claim pairs                    | connective score > 0.6 |
| logical    | antonym table (all/none, is/is not, ...) | always 0.8             |
| contextual | claims vs learner profile                | level or subject miss  |

Outputs are merged, sorted by score, filtered by the caller's threshold and
capped. The detector never mutates the context it reads.
"""

import re
import time
import uuid
from typing import Optional

from loguru import logger

from response_quality.analyzers.contradiction.resolution import ResolutionPlanner
from response_quality.analyzers.contradiction.scorer import (
    ContradictionScorer,
    LexicalContradictionScorer,
    severity_for_score,
)
from response_quality.analyzers.extraction.claim_extractor import (
    AssertionExtractor,
    ClaimExtractor,
)
from response_quality.analyzers.extraction.lexicon import (
    jaccard_similarity,
    negation_difference,
    word_tokens,
)
from response_quality.data_management.schemas import (
    Claim,
    Context,
    Contradiction,
    ContradictionAnalysisResult,
    ContradictionOptions,
    ContradictionResolution,
    ContradictionType,
    CrossContradictionAnalysis,
    Response,
    ResolutionStrategy,
    Severity,
    SourceDocument,
    TemporalConsistencyResult,
    TemporalEvent,
)

CONTENT_NEGATIONS = ("not", "never", "no", "none", "nothing")
TEMPORAL_CLAIM_PATTERN = re.compile(
    r"\b(year|month|day|century|decade|before|after|during|when|while|then|now)\b",
    re.IGNORECASE,
)
YEAR_PATTERN = re.compile(r"\b(19\d{2}|20\d{2})\b")
TEMPORAL_CONNECTIVES = ("before", "after", "during", "while", "then", "now")
COMPLEX_CONNECTIVES = ("therefore", "consequently", "nevertheless", "furthermore", "moreover")

SUBJECT_INDICATORS: dict[str, tuple[str, ...]] = {
    "math": ("equation", "formula", "calculation", "number"),
    "science": ("experiment", "hypothesis", "theory", "data"),
    "history": ("war", "revolution", "empire", "ancient"),
}


def _word(term: str) -> re.Pattern[str]:
    return re.compile(r"\b" + re.escape(term) + r"\b", re.IGNORECASE)


# (positive, negative) pairs; "is" must not be directly followed by "not".
LOGICAL_PATTERNS: list[tuple[re.Pattern[str], re.Pattern[str]]] = [
    (_word("all"), _word("none")),
    (_word("always"), _word("never")),
    (_word("every"), _word("no")),
    (_word("must"), _word("cannot")),
    (re.compile(r"\bis\b(?!\s+not\b)", re.IGNORECASE), _word("is not")),
]


class ContradictionDetector:
    """
    Finds self, cross, temporal, logical and contextual contradictions.

    The pairwise scorer and the claim extractor are injectable strategies.

    Usage:
        detector = ContradictionDetector()
        analysis = await detector.detect_contradictions(
            response, context, ContradictionOptions(threshold=0.4)
        )

    Example:
        >>> response = Response(
        ...     id="r1",
        ...     content="The experiment was conducted in 2020. The experiment was never conducted.",
        ... )
        >>> analysis = await ContradictionDetector().detect_contradictions(
        ...     response, Context(), ContradictionOptions(threshold=0.4)
        ... )
        >>> analysis.contradictions[0].type
        <ContradictionType.SELF: 'self_contradiction'>
    """

    MAX_REPORTED = 20
    CONTENT_REPORT_THRESHOLD = 0.6
    TEMPORAL_REPORT_THRESHOLD = 0.6
    LOGICAL_SCORE = 0.8
    SUBJECT_MISMATCH_SCORE = 0.5
    ELEMENTARY_COMPLEXITY_LIMIT = 0.7
    SOURCE_RELIABILITY_FLOOR = 0.5

    def __init__(
        self,
        scorer: Optional[ContradictionScorer] = None,
        claim_extractor: Optional[ClaimExtractor] = None,
        max_reported: int = MAX_REPORTED,
        planner: Optional[ResolutionPlanner] = None,
    ):
        """
        Initialize detector.

        Args:
            scorer: Pairwise scorer (default LexicalContradictionScorer).
            claim_extractor: Claim extractor (default AssertionExtractor).
            max_reported: Cap on contradictions per analysis.
            planner: Resolution planner.
        """
        self.scorer = scorer or LexicalContradictionScorer()
        self.claim_extractor = claim_extractor or AssertionExtractor()
        self.max_reported = max_reported
        self.planner = planner or ResolutionPlanner()
        self._logger = logger.bind(component="ContradictionDetector")

    async def detect_contradictions(
        self,
        response: Response,
        context: Context,
        options: Optional[ContradictionOptions] = None,
    ) -> ContradictionAnalysisResult:
        """
        Run all enabled detectors over one response.

        Args:
            response: Response under evaluation.
            context: Read-only context bundle.
            options: Threshold and detector switches.

        Returns:
            ContradictionAnalysisResult. Fewer than two claims yields an
            empty result rather than an error.
        """
        options = options or ContradictionOptions()
        started = time.perf_counter()
        analysis_id = f"analysis_{response.id}_{uuid.uuid4().hex[:8]}"

        claims = self.claim_extractor.extract(response.content)
        if len(claims) < 2:
            self._logger.debug(
                f"Skipping contradiction analysis for {response.id}: {len(claims)} claims"
            )
            return ContradictionAnalysisResult(
                resolution_recommendations=["Insufficient claims for contradiction analysis"],
                processing_time_ms=self._elapsed_ms(started),
                analysis_id=analysis_id,
            )

        found: list[Contradiction] = []
        found.extend(self.detect_self_contradictions(claims, options.threshold))
        found.extend(
            self.detect_cross_contradictions(
                claims, context, include_sources=options.include_cross_reference
            )
        )
        if options.include_temporal_analysis:
            found.extend(self.detect_temporal_contradictions(claims))
        if options.include_logical_analysis:
            found.extend(self.detect_logical_contradictions(claims))
        found.extend(self.detect_contextual_contradictions(claims, context))

        reported = [
            c for c in sorted(found, key=lambda c: c.contradiction_score, reverse=True)
            if c.contradiction_score >= options.threshold
        ][: self.max_reported]

        result = self._build_analysis(reported, analysis_id, self._elapsed_ms(started))
        self._logger.info(
            f"Found {result.total_contradictions} contradictions in {response.id}",
            candidates=len(found),
            claims=len(claims),
        )
        return result

    # ── Detectors ─────────────────────────────────────────────────────────

    def detect_self_contradictions(
        self, claims: list[Claim], threshold: float
    ) -> list[Contradiction]:
        """Score every claim pair (i < j) and keep those at or above threshold."""
        contradictions = []
        for i, first in enumerate(claims):
            for second in claims[i + 1:]:
                score = self.scorer.score(first, second)
                if score < threshold:
                    continue
                contradictions.append(
                    self._make(
                        f"self_{first.id}_{second.id}",
                        ContradictionType.SELF,
                        first,
                        second,
                        score,
                        f"Contradiction score: {score:.3f}",
                        self.planner.for_self(score),
                    )
                )
        return contradictions

    def detect_cross_contradictions(
        self,
        claims: list[Claim],
        context: Context,
        include_sources: bool = False,
    ) -> list[Contradiction]:
        """Compare claims with knowledge base, history and (optionally) sources."""
        contradictions = []
        for claim in claims:
            for index, item in enumerate(context.knowledge_base):
                score = self.content_contradiction(claim.text, item.content)
                if score > self.CONTENT_REPORT_THRESHOLD:
                    item_id = item.id or f"item_{index}"
                    contradictions.append(
                        self._make(
                            f"kb_{claim.id}_{item_id}",
                            ContradictionType.CROSS,
                            claim,
                            self._context_claim(
                                item_id,
                                item.content,
                                0.7 if item.confidence is None else item.confidence,
                            ),
                            score,
                            f"Contradiction with known information ({item.source})",
                            self.planner.for_knowledge_base(score),
                        )
                    )

            for index, turn in enumerate(context.conversation_history):
                score = self.content_contradiction(claim.text, turn.content)
                if score > self.CONTENT_REPORT_THRESHOLD:
                    contradictions.append(
                        self._make(
                            f"history_{claim.id}_{index}",
                            ContradictionType.CROSS,
                            claim,
                            self._context_claim(f"history_{index}", turn.content, 0.7),
                            score,
                            "Contradiction with earlier conversation",
                            self.planner.for_history(),
                        )
                    )

            if not include_sources:
                continue
            for index, source in enumerate(context.external_sources):
                if source.reliability <= self.SOURCE_RELIABILITY_FLOOR:
                    continue
                score = self.content_contradiction(claim.text, source.content)
                if score > self.CONTENT_REPORT_THRESHOLD:
                    source_id = source.id or f"source_{index}"
                    contradictions.append(
                        self._make(
                            f"source_{claim.id}_{source_id}",
                            ContradictionType.CROSS,
                            claim,
                            self._context_claim(source_id, source.content, source.reliability),
                            score,
                            f"Contradiction with external source {source.title or source_id}",
                            self.planner.for_source(),
                        )
                    )
        return contradictions

    def detect_temporal_contradictions(self, claims: list[Claim]) -> list[Contradiction]:
        """Same-year claim pairs sharing several temporal connectives."""
        temporal = [c for c in claims if TEMPORAL_CLAIM_PATTERN.search(c.text)]
        contradictions = []
        for i, first in enumerate(temporal):
            for second in temporal[i + 1:]:
                year_a, year_b = self._year(first.text), self._year(second.text)
                if year_a is None or year_b is None or year_a != year_b:
                    continue
                score = self.temporal_connective_score(first.text, second.text)
                if score > self.TEMPORAL_REPORT_THRESHOLD:
                    contradictions.append(
                        self._make(
                            f"temporal_{first.id}_{second.id}",
                            ContradictionType.TEMPORAL,
                            first,
                            second,
                            score,
                            f"Both claims refer to {year_a} with conflicting sequencing",
                            self.planner.for_temporal(),
                        )
                    )
        return contradictions

    def detect_logical_contradictions(self, claims: list[Claim]) -> list[Contradiction]:
        """Claim pairs matching the antonym table, at most one per pair."""
        contradictions = []
        for i, first in enumerate(claims):
            for second in claims[i + 1:]:
                for positive, negative in LOGICAL_PATTERNS:
                    forward = positive.search(first.text) and negative.search(second.text)
                    backward = negative.search(first.text) and positive.search(second.text)
                    if forward or backward:
                        contradictions.append(
                            self._make(
                                f"logical_{first.id}_{second.id}",
                                ContradictionType.LOGICAL,
                                first,
                                second,
                                self.LOGICAL_SCORE,
                                f"Opposed terms: '{positive.pattern}' vs '{negative.pattern}'",
                                self.planner.for_logical(),
                            )
                        )
                        break
        return contradictions

    def detect_contextual_contradictions(
        self, claims: list[Claim], context: Context
    ) -> list[Contradiction]:
        """Claims too complex for an elementary learner or off declared subjects."""
        profile = context.user_profile
        if profile is None:
            return []

        contradictions = []
        for claim in claims:
            if profile.academic_level:
                complexity = self.complexity(claim.text)
                if (
                    profile.academic_level.lower() == "elementary"
                    and complexity > self.ELEMENTARY_COMPLEXITY_LIMIT
                ):
                    contradictions.append(
                        self._profile_contradiction(
                            claim, "academic_level", profile.academic_level, complexity
                        )
                    )

            for subject in profile.subjects:
                indicators = SUBJECT_INDICATORS.get(subject.lower())
                if indicators is None:
                    continue
                lowered = claim.text.lower()
                if not any(indicator in lowered for indicator in indicators):
                    contradictions.append(
                        self._profile_contradiction(
                            claim, "subject", subject, self.SUBJECT_MISMATCH_SCORE
                        )
                    )
                    break
        return contradictions

    # ── Additional analyses ───────────────────────────────────────────────

    async def analyze_cross_contradictions(
        self, sources: list[SourceDocument]
    ) -> CrossContradictionAnalysis:
        """
        Compare claims across independent sources pairwise.

        Args:
            sources: Documents to compare (e.g. several generated answers).

        Returns:
            CrossContradictionAnalysis with an agreement score equal to the
            share of compared claim pairs that did not contradict.
        """
        extracted = {s.id: self.claim_extractor.extract(s.content) for s in sources}
        contradictions: list[Contradiction] = []
        compared = 0

        for i, first in enumerate(sources):
            for second in sources[i + 1:]:
                for claim_a in extracted[first.id]:
                    for claim_b in extracted[second.id]:
                        compared += 1
                        score = self.scorer.score(claim_a, claim_b)
                        if score > self.CONTENT_REPORT_THRESHOLD:
                            contradictions.append(
                                self._make(
                                    f"source_{first.id}_{second.id}_{claim_a.id}_{claim_b.id}",
                                    ContradictionType.CROSS,
                                    claim_a,
                                    claim_b,
                                    score,
                                    f"Contradiction between {first.id} and {second.id}",
                                    self.planner.for_source(),
                                )
                            )

        agreement = 1.0 - (len(contradictions) / compared) if compared else 1.0
        reliability = (
            sum(s.reliability for s in sources) / len(sources) if sources else 0.5
        )

        recommendations = []
        if contradictions:
            recommendations.append("Multiple sources show contradictions - verification needed")
        if agreement < 0.5:
            recommendations.append("Low consensus among sources - seek additional perspectives")
        if reliability < 0.6:
            recommendations.append("Source credibility is low - consider more reliable sources")

        return CrossContradictionAnalysis(
            contradictions=contradictions,
            compared_pairs=compared,
            agreement_score=agreement,
            average_reliability=reliability,
            recommendations=recommendations,
        )

    async def check_temporal_consistency(
        self, events: list[TemporalEvent]
    ) -> TemporalConsistencyResult:
        """
        Check that dated events respect their declared ordering.

        An event that declares it follows another must not carry an earlier
        year. Consistency score is ``1 - conflicts / events``.
        """
        by_id = {event.id: event for event in events}
        conflicts: list[str] = []

        for event in events:
            if event.year is None:
                continue
            for predecessor_id in event.after:
                predecessor = by_id.get(predecessor_id)
                if predecessor is None or predecessor.year is None:
                    continue
                if predecessor.year > event.year:
                    conflicts.append(
                        f"'{event.description}' ({event.year}) is placed after "
                        f"'{predecessor.description}' ({predecessor.year})"
                    )

        score = max(0.0, 1.0 - len(conflicts) / max(1, len(events)))
        return TemporalConsistencyResult(
            is_consistent=not conflicts,
            conflicts=conflicts,
            consistency_score=score,
        )

    async def generate_resolution_strategies(
        self, contradictions: list[Contradiction]
    ) -> list[ResolutionStrategy]:
        """Ordered resolution steps for a set of contradictions."""
        return self.planner.strategies(contradictions)

    # ── Scoring helpers ───────────────────────────────────────────────────

    @staticmethod
    def content_contradiction(claim_text: str, other_text: str) -> float:
        """Negation difference between near-duplicate texts, 0 otherwise."""
        if jaccard_similarity(claim_text, other_text) <= 0.6:
            return 0.0
        return negation_difference(claim_text, other_text, negations=CONTENT_NEGATIONS)

    @staticmethod
    def temporal_connective_score(first: str, second: str) -> float:
        tokens_a, tokens_b = set(word_tokens(first)), set(word_tokens(second))
        shared = sum(1 for w in TEMPORAL_CONNECTIVES if w in tokens_a and w in tokens_b)
        return min(1.0, round(shared * 0.2, 4))

    @staticmethod
    def complexity(text: str) -> float:
        """Word count / 50 plus 0.1 per distinct complex connective, capped at 1."""
        tokens = set(word_tokens(text))
        connectives = sum(1 for w in COMPLEX_CONNECTIVES if w in tokens)
        return min(1.0, len(text.split()) / 50 + connectives * 0.1)

    @staticmethod
    def _year(text: str) -> Optional[int]:
        match = YEAR_PATTERN.search(text)
        return int(match.group(1)) if match else None

    # ── Construction ──────────────────────────────────────────────────────

    @staticmethod
    def _context_claim(claim_id: str, text: str, confidence: float) -> Claim:
        return Claim(
            id=claim_id,
            text=text,
            confidence=confidence,
            context=text,
            span_end=len(text),
            sub_claims=[text],
        )

    def _profile_contradiction(
        self, claim: Claim, kind: str, value: str, score: float
    ) -> Contradiction:
        profile_text = f"User {kind}: {value}"
        return self._make(
            f"profile_{claim.id}_{kind}",
            ContradictionType.CONTEXTUAL,
            claim,
            self._context_claim("profile", profile_text, 0.9),
            score,
            f"Claim does not match {profile_text}",
            self.planner.for_contextual(),
        )

    @staticmethod
    def _make(
        contradiction_id: str,
        contradiction_type: ContradictionType,
        first: Claim,
        second: Claim,
        score: float,
        explanation: str,
        resolution: ContradictionResolution,
    ) -> Contradiction:
        score = min(1.0, max(0.0, score))
        return Contradiction(
            id=contradiction_id,
            type=contradiction_type,
            severity=severity_for_score(score),
            claim1=first,
            claim2=second,
            contradiction_score=score,
            explanation=explanation,
            resolution=resolution,
        )

    def _build_analysis(
        self,
        contradictions: list[Contradiction],
        analysis_id: str,
        elapsed_ms: float,
    ) -> ContradictionAnalysisResult:
        result = ContradictionAnalysisResult(
            total_contradictions=len(contradictions),
            contradictions=contradictions,
            processing_time_ms=elapsed_ms,
            analysis_id=analysis_id,
        )
        for c in contradictions:
            result.severity_distribution[c.severity] += 1
            result.type_distribution[c.type] += 1

        if contradictions:
            result.overall_contradiction_score = min(
                1.0, sum(c.contradiction_score for c in contradictions) / len(contradictions)
            )

        result.critical_issues = [
            f"{c.type.value}: {c.claim1.text[:100]}..."
            for c in contradictions
            if c.severity in (Severity.HIGH, Severity.CRITICAL)
        ]

        recommendations = []
        if not contradictions:
            recommendations.append("No contradictions detected")
        if result.severity_distribution[Severity.HIGH] or result.severity_distribution[Severity.CRITICAL]:
            recommendations.append("Address high-severity contradictions immediately")
        if result.type_distribution[ContradictionType.SELF]:
            recommendations.append("Review and resolve self-contradictions within the response")
        if result.type_distribution[ContradictionType.CROSS]:
            recommendations.append("Verify information against reliable sources")
        result.resolution_recommendations = recommendations
        return result

    @staticmethod
    def _elapsed_ms(started: float) -> float:
        return (time.perf_counter() - started) * 1000
