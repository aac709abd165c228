"""Claim verification against the caller-supplied context.

Evidence search is lexical: Jaccard similarity on lowercase whitespace token
sets between the claim and each context item.

| Condition                                  | Evidence      |
|--------------------------------------------|---------------|
| similarity > 0.8 and negation score > 0.5  | contradicting |
| similarity > 0.6 (otherwise)               | supporting    |

Status from weighted evidence sums (confidence x relevance):

| Rule                                                  | Status       |
|-------------------------------------------------------|--------------|
| no evidence at all                                    | unverified   |
| supporting >= 0.7 and contradicting < 0.3             | verified     |
| contradicting >= 0.5 or the sums are within 0.2       | disputed     |
| supporting >= 0.3                                     | inconclusive |
| otherwise                                             | unverified   |

Verification levels widen the search: basic reads the knowledge base,
standard adds external sources, comprehensive adds conversation history as
low-confidence evidence.

Usage:
    from response_quality.analyzers.fact_checking import FactChecker

    checker = FactChecker()
    summary = await checker.check_response(response, context, VerificationLevel.STANDARD)
"""

import asyncio
import hashlib
import time
from typing import Iterable, Optional

from response_quality.analyzers.contradiction.resolution import ResolutionPlanner
from response_quality.analyzers.contradiction.scorer import severity_for_score
from response_quality.analyzers.extraction import (
    ClaimExtractor,
    LexicalClaimExtractor,
    extract_keywords,
)
from response_quality.analyzers.extraction.lexicon import (
    clamp,
    jaccard_similarity,
    negation_difference,
)
from response_quality.data_management.schemas import (
    AlternativeSource,
    Claim,
    Context,
    Contradiction,
    ContradictionType,
    CrossReferenceResult,
    Evidence,
    EvidenceType,
    FactCheckResult,
    FactCheckSummary,
    FactType,
    Response,
    VerificationLevel,
    VerificationMethod,
    VerificationStatus,
)
from response_quality.utils.logging import get_structured_logger

SUPPORT_SIMILARITY = 0.6
CONTRADICTION_SIMILARITY = 0.8
CONTRADICTION_NEGATION = 0.5
DEFAULT_EVIDENCE_CONFIDENCE = 0.7
HISTORY_EVIDENCE_CONFIDENCE = 0.5
LOW_CONFIDENCE = 0.3


class FactChecker:
    """
    Verifies claims against knowledge base, external sources and history.

    Per-claim results are cached by a content hash of the claim text for the
    lifetime of the checker. Claims fan out concurrently under a semaphore and
    one failing claim degrades to an ``unverified`` result.

    Attributes:
        claim_extractor: Strategy used by check_response.
        max_claims: Claim ceiling per request.
        concurrency: Maximum concurrent verifications.
    """

    def __init__(
        self,
        claim_extractor: Optional[ClaimExtractor] = None,
        max_claims: int = 50,
        concurrency: int = 10,
        planner: Optional[ResolutionPlanner] = None,
    ) -> None:
        """Initialize FactChecker.

        Args:
            claim_extractor: Claim extraction strategy (default lexical).
            max_claims: Requests with more claims short-circuit to a failed summary.
            concurrency: Semaphore size for per-claim verification.
            planner: Resolution planner for contradictory claim pairs.
        """
        self.claim_extractor = claim_extractor or LexicalClaimExtractor()
        self.max_claims = max_claims
        self.concurrency = concurrency
        self.planner = planner or ResolutionPlanner()
        self._cache: dict[str, FactCheckResult] = {}
        self._logger = get_structured_logger("FactChecker")

    # ── Public API ────────────────────────────────────────────────────────

    async def check_response(
        self,
        response: Response,
        context: Context,
        verification_level: VerificationLevel = VerificationLevel.STANDARD,
    ) -> FactCheckSummary:
        """Extract claims from a response and verify them."""
        claims = self.claim_extractor.extract(response.content)
        self._logger.debug("claims_extracted", response_id=response.id, count=len(claims))
        return await self.check_facts(claims, context, verification_level)

    async def check_facts(
        self,
        claims: list[Claim],
        context: Context,
        verification_level: VerificationLevel = VerificationLevel.STANDARD,
        required_methods: Iterable[VerificationMethod] = (),
    ) -> FactCheckSummary:
        """Verify claims concurrently and summarize.

        Args:
            claims: Claims to verify.
            context: Read-only evidence bundle.
            verification_level: Search depth.
            required_methods: Verification methods the caller insists on;
                expert_review here marks every claim for expert review.

        Returns:
            FactCheckSummary. Zero claims is a vacuous pass; more than
            ``max_claims`` is a failed summary.
        """
        started = time.perf_counter()

        if not claims:
            return FactCheckSummary(
                processing_time_ms=self._elapsed_ms(started),
                recommendations=["All claims are well-supported by evidence"],
            )

        if len(claims) > self.max_claims:
            self._logger.warning(
                "claim_ceiling_exceeded", claims=len(claims), max_claims=self.max_claims
            )
            return self.failed_summary(
                f"Too many claims ({len(claims)} > {self.max_claims})",
                processing_time_ms=self._elapsed_ms(started),
            )

        required = set(required_methods)
        semaphore = asyncio.Semaphore(self.concurrency)

        async def verify_bounded(claim: Claim) -> FactCheckResult:
            async with semaphore:
                return await self.verify_claim(claim, context, verification_level, required)

        outcomes = await asyncio.gather(
            *(verify_bounded(claim) for claim in claims),
            return_exceptions=True,
        )

        results: list[FactCheckResult] = []
        for claim, outcome in zip(claims, outcomes):
            if isinstance(outcome, BaseException):
                self._logger.error(
                    "claim_verification_failed", claim_id=claim.id, error=str(outcome)
                )
                results.append(self._failed_result(claim, outcome))
            else:
                results.append(outcome)

        summary = self.build_summary(results, verification_level, self._elapsed_ms(started))
        self._logger.info(
            "fact_check_complete",
            total=summary.total_claims,
            verified=summary.verified_claims,
            disputed=summary.disputed_claims,
            unverified=summary.unverified_claims,
            quality_score=round(summary.quality_score, 3),
            level=verification_level.value,
        )
        return summary

    async def verify_claim(
        self,
        claim: Claim,
        context: Context,
        verification_level: VerificationLevel = VerificationLevel.STANDARD,
        required_methods: Iterable[VerificationMethod] = (),
    ) -> FactCheckResult:
        """Verify one claim, reusing a cached verdict for identical text."""
        key = self.cache_key(claim.text, verification_level)
        cached = self._cache.get(key)
        if cached is not None:
            return cached.model_copy(update={"claim": claim})

        supporting, contradicting = self.find_evidence(claim, context, verification_level)
        status = self.determine_status(supporting, contradicting)
        result = FactCheckResult(
            claim=claim,
            status=status,
            confidence=self.claim_confidence(claim, supporting, contradicting),
            supporting_evidence=supporting,
            contradicting_evidence=contradicting,
            verification_method=self.select_method(claim, set(required_methods)),
            notes=(
                f"Status: {status.value}; "
                f"Supporting evidence: {len(supporting)} sources; "
                f"Contradicting evidence: {len(contradicting)} sources"
            ),
        )
        self._cache[key] = result
        return result

    def find_evidence(
        self,
        claim: Claim,
        context: Context,
        verification_level: VerificationLevel = VerificationLevel.STANDARD,
    ) -> tuple[list[Evidence], list[Evidence]]:
        """Partition the context items relevant to a claim into supporting and contradicting."""
        candidates: list[tuple[str, str, float]] = [
            (
                item.id or item.source,
                item.content,
                item.confidence if item.confidence is not None else DEFAULT_EVIDENCE_CONFIDENCE,
            )
            for item in context.knowledge_base
        ]

        if verification_level != VerificationLevel.BASIC:
            candidates.extend(
                (
                    source.id or source.title or f"source_{index}",
                    source.content,
                    source.reliability_score
                    if source.reliability_score is not None
                    else DEFAULT_EVIDENCE_CONFIDENCE,
                )
                for index, source in enumerate(context.external_sources)
            )

        if verification_level == VerificationLevel.COMPREHENSIVE:
            candidates.extend(
                (f"history_{index}", turn.content, HISTORY_EVIDENCE_CONFIDENCE)
                for index, turn in enumerate(context.conversation_history)
            )

        supporting: list[Evidence] = []
        contradicting: list[Evidence] = []
        for label, content, confidence in candidates:
            if not content:
                continue
            similarity = jaccard_similarity(claim.text, content)
            if similarity > CONTRADICTION_SIMILARITY:
                negation = negation_difference(claim.text, content)
                if negation > CONTRADICTION_NEGATION:
                    contradicting.append(
                        Evidence(
                            source=label,
                            content=content,
                            evidence_type=EvidenceType.CONTRADICTING,
                            confidence=confidence,
                            relevance=negation,
                        )
                    )
                    continue
            if similarity > SUPPORT_SIMILARITY:
                supporting.append(
                    Evidence(
                        source=label,
                        content=content,
                        evidence_type=EvidenceType.SUPPORTING,
                        confidence=confidence,
                        relevance=similarity,
                    )
                )
        return supporting, contradicting

    @staticmethod
    def determine_status(
        supporting: list[Evidence], contradicting: list[Evidence]
    ) -> VerificationStatus:
        if not supporting and not contradicting:
            return VerificationStatus.UNVERIFIED

        support = sum(e.weight for e in supporting)
        contra = sum(e.weight for e in contradicting)

        if support >= 0.7 and contra < 0.3:
            return VerificationStatus.VERIFIED
        if contra >= 0.5 or abs(support - contra) < 0.2:
            return VerificationStatus.DISPUTED
        if support >= 0.3:
            return VerificationStatus.INCONCLUSIVE
        return VerificationStatus.UNVERIFIED

    @staticmethod
    def consensus(supporting_count: int, contradicting_count: int) -> float:
        """Share of supporting items among all evidence items, 0.5 with none."""
        total = supporting_count + contradicting_count
        return supporting_count / total if total else 0.5

    def claim_confidence(
        self,
        claim: Claim,
        supporting: list[Evidence],
        contradicting: list[Evidence],
    ) -> float:
        confidence = claim.confidence
        evidence = supporting + contradicting
        if evidence:
            confidence = (confidence + sum(e.confidence for e in evidence) / len(evidence)) / 2
        if contradicting:
            confidence *= 0.7
        confidence = (confidence + self.consensus(len(supporting), len(contradicting))) / 2
        return clamp(confidence, 0.1, 1.0)

    @staticmethod
    def select_method(
        claim: Claim, required_methods: set[VerificationMethod]
    ) -> VerificationMethod:
        if VerificationMethod.EXPERT_REVIEW in required_methods:
            return VerificationMethod.EXPERT_REVIEW
        if claim.type in (FactType.NUMERICAL, FactType.STATISTICAL):
            return VerificationMethod.CROSS_REFERENCE
        if claim.confidence > 0.8:
            return VerificationMethod.AUTOMATED
        return VerificationMethod.CONTENT

    def build_summary(
        self,
        results: list[FactCheckResult],
        verification_level: VerificationLevel,
        processing_time_ms: float = 0.0,
    ) -> FactCheckSummary:
        """Aggregate per-claim results into a request-level summary."""
        total = len(results)
        if total == 0:
            return FactCheckSummary(processing_time_ms=processing_time_ms)

        counts = {status: 0 for status in VerificationStatus}
        for result in results:
            counts[result.status] += 1

        verified = counts[VerificationStatus.VERIFIED]
        disputed = counts[VerificationStatus.DISPUTED]
        unverified = counts[VerificationStatus.UNVERIFIED]
        contradictory = sum(1 for r in results if r.has_conflict)
        low_confidence = sum(1 for r in results if r.confidence < LOW_CONFIDENCE)

        recommendations = []
        if unverified:
            recommendations.append(f"{unverified} claims require additional verification")
        if disputed:
            recommendations.append(f"{disputed} claims have conflicting evidence and need review")
        if contradictory:
            recommendations.append(f"{contradictory} claims contradict known information")
        if not recommendations:
            recommendations.append("All claims are well-supported by evidence")

        critical_issues = []
        if unverified > total * 0.5:
            critical_issues.append("More than 50% of claims are unverified")
        if disputed:
            critical_issues.append(f"{disputed} claims have conflicting evidence")
        if low_confidence:
            critical_issues.append(f"{low_confidence} claims have very low confidence scores")

        return FactCheckSummary(
            total_claims=total,
            verified_claims=verified,
            disputed_claims=disputed,
            unverified_claims=unverified,
            inconclusive_claims=counts[VerificationStatus.INCONCLUSIVE],
            contradictory_claims=contradictory,
            overall_confidence=clamp(sum(r.confidence for r in results) / total),
            quality_score=clamp((verified * 1.0 + disputed * 0.5) / total),
            verification_method=verification_level.value,
            processing_time_ms=processing_time_ms,
            recommendations=recommendations,
            critical_issues=critical_issues,
            results=results,
        )

    @staticmethod
    def failed_summary(error: str, processing_time_ms: float = 0.0) -> FactCheckSummary:
        """Summary used when fact checking cannot run at all."""
        return FactCheckSummary(
            overall_confidence=0.0,
            quality_score=0.0,
            verification_method="failed",
            processing_time_ms=processing_time_ms,
            recommendations=["Fact checking failed - manual verification required"],
            critical_issues=[f"System error: {error}"],
        )

    # ── Additional operations ─────────────────────────────────────────────

    async def cross_reference(
        self,
        facts: list[str],
        context: Context,
        min_sources: int = 2,
    ) -> list[CrossReferenceResult]:
        """Measure consensus of all context items about standalone facts."""
        results = []
        for index, fact in enumerate(facts):
            claim = self._fact_claim(fact, index)
            supporting, contradicting = self.find_evidence(
                claim, context, VerificationLevel.COMPREHENSIVE
            )
            results.append(
                CrossReferenceResult(
                    fact=fact,
                    supporting_sources=[e.source for e in supporting],
                    contradicting_sources=[e.source for e in contradicting],
                    consensus_score=self.consensus(len(supporting), len(contradicting)),
                    meets_min_sources=len(supporting) >= min_sources,
                )
            )
        self._logger.debug("cross_reference_complete", facts=len(facts), min_sources=min_sources)
        return results

    async def find_alternative_sources(
        self,
        fact: str,
        context: Context,
        limit: int = 5,
    ) -> list[AlternativeSource]:
        """Context items sharing key terms with a fact, most matches first."""
        terms = extract_keywords(fact, 5)
        if not terms:
            return []

        candidates: list[AlternativeSource] = []
        for index, item in enumerate(context.knowledge_base):
            matched = self._matched_terms(terms, item.content)
            if matched:
                candidates.append(
                    AlternativeSource(
                        source_id=item.id or f"kb_{index}",
                        content=item.content,
                        reliability=item.confidence if item.confidence is not None else 0.5,
                        matched_terms=matched,
                    )
                )
        for index, source in enumerate(context.external_sources):
            matched = self._matched_terms(terms, f"{source.title} {source.content}")
            if matched:
                candidates.append(
                    AlternativeSource(
                        source_id=source.id or f"source_{index}",
                        content=source.content,
                        reliability=source.reliability,
                        matched_terms=matched,
                    )
                )

        candidates.sort(key=lambda c: (len(c.matched_terms), c.reliability), reverse=True)
        return candidates[:limit]

    async def detect_contradictory_claims(self, claims: list[Claim]) -> list[Contradiction]:
        """Near-duplicate claim pairs that disagree on negation."""
        contradictions = []
        for i, first in enumerate(claims):
            for second in claims[i + 1:]:
                if jaccard_similarity(first.text, second.text) <= SUPPORT_SIMILARITY:
                    continue
                score = negation_difference(first.text, second.text)
                if score <= CONTRADICTION_NEGATION:
                    continue
                severity = severity_for_score(score)
                contradictions.append(
                    Contradiction(
                        id=f"factual_{first.id}_{second.id}",
                        type=ContradictionType.FACTUAL,
                        severity=severity,
                        claim1=first,
                        claim2=second,
                        contradiction_score=score,
                        explanation="Claims disagree on negation",
                        resolution=self.planner.for_factual(severity),
                    )
                )
        return contradictions

    def clear_cache(self) -> None:
        self._cache.clear()
        self._logger.debug("verification_cache_cleared")

    @property
    def cache_size(self) -> int:
        return len(self._cache)

    # ── Helpers ───────────────────────────────────────────────────────────

    @staticmethod
    def cache_key(text: str, verification_level: VerificationLevel) -> str:
        digest = hashlib.md5(text.encode("utf-8")).hexdigest()
        return f"verification_{verification_level.value}_{digest}"

    @staticmethod
    def _failed_result(claim: Claim, error: BaseException) -> FactCheckResult:
        return FactCheckResult(
            claim=claim,
            status=VerificationStatus.UNVERIFIED,
            confidence=0.0,
            notes=f"Verification failed: {error}",
        )

    @staticmethod
    def _fact_claim(fact: str, index: int) -> Claim:
        return Claim(id=f"fact_{index}", text=fact, keywords=extract_keywords(fact))

    @staticmethod
    def _matched_terms(terms: list[str], text: str) -> list[str]:
        lowered = text.lower()
        return [term for term in terms if term in lowered]

    @staticmethod
    def _elapsed_ms(started: float) -> float:
        return (time.perf_counter() - started) * 1000
