"""Tests for FactChecker evidence search, status rules and summaries."""

import pytest

from response_quality.analyzers.fact_checking import FactChecker
from response_quality.data_management.schemas import (
    Claim,
    Context,
    ContradictionType,
    ConversationTurn,
    ExternalSource,
    FactCheckResult,
    FactType,
    KnowledgeItem,
    Response,
    Severity,
    VerificationLevel,
    VerificationMethod,
    VerificationStatus,
)

BOILING_FACT = "The boiling point of pure water is one hundred degrees Celsius at sea level"
BOILING_DENIAL = "No, the boiling point of pure water is not one hundred degrees Celsius at sea level"


@pytest.fixture
def checker():
    return FactChecker()


@pytest.fixture
def boiling_context():
    return Context(
        knowledge_base=[KnowledgeItem(id="kb_water", content=BOILING_FACT, confidence=0.9)]
    )


def result_with_status(status: VerificationStatus, index: int) -> FactCheckResult:
    return FactCheckResult(
        claim=Claim(id=f"claim_{index}", text=f"Claim number {index} is true"),
        status=status,
        confidence=0.8,
    )


class TestCheckResponse:
    """End-to-end verification of response content."""

    @pytest.mark.asyncio
    async def test_zero_claims_is_vacuous_pass(self, checker):
        summary = await checker.check_response(
            Response(id="r1", content="Hello there!"), Context()
        )

        assert summary.total_claims == 0
        assert summary.quality_score == 1.0
        assert summary.overall_confidence == 1.0
        assert summary.verification_method == "none"
        assert summary.recommendations == ["All claims are well-supported by evidence"]

    @pytest.mark.asyncio
    async def test_matching_knowledge_verifies_claim(self, checker, boiling_context):
        summary = await checker.check_response(
            Response(id="r1", content=f"{BOILING_FACT}."), boiling_context
        )

        assert summary.total_claims == 1
        assert summary.verified_claims == 1
        assert summary.quality_score == 1.0
        result = summary.results[0]
        assert result.status == VerificationStatus.VERIFIED
        assert result.supporting_evidence[0].source == "kb_water"
        assert result.supporting_evidence[0].relevance == pytest.approx(1.0)

    @pytest.mark.asyncio
    async def test_negated_claim_is_disputed(self, checker, boiling_context):
        summary = await checker.check_response(
            Response(id="r1", content=f"{BOILING_DENIAL}."), boiling_context
        )

        result = summary.results[0]
        assert result.status == VerificationStatus.DISPUTED
        assert result.supporting_evidence == []
        assert len(result.contradicting_evidence) == 1
        assert result.contradicting_evidence[0].relevance == pytest.approx(0.6)
        assert summary.disputed_claims == 1
        assert summary.contradictory_claims == 1
        assert summary.quality_score == pytest.approx(0.5)
        assert "1 claims contradict known information" in summary.recommendations
        assert "1 claims have conflicting evidence" in summary.critical_issues

    @pytest.mark.asyncio
    async def test_claim_without_evidence_is_unverified(self, checker):
        summary = await checker.check_response(
            Response(id="r1", content="Saturn has 146 known moons."), Context()
        )

        assert summary.results[0].status == VerificationStatus.UNVERIFIED
        assert summary.unverified_claims == 1
        assert "More than 50% of claims are unverified" in summary.critical_issues

    @pytest.mark.asyncio
    async def test_claim_ceiling(self):
        checker = FactChecker(max_claims=2)
        content = "Cats are mammals. Dogs are mammals. Whales are mammals."

        summary = await checker.check_response(Response(id="r1", content=content), Context())

        assert summary.verification_method == "failed"
        assert summary.quality_score == 0.0
        assert summary.overall_confidence == 0.0
        assert summary.critical_issues == ["System error: Too many claims (3 > 2)"]
        assert summary.recommendations == ["Fact checking failed - manual verification required"]

    @pytest.mark.asyncio
    async def test_failing_claim_degrades_to_unverified(self, checker, boiling_context, monkeypatch):
        """One claim raising does not fail the others."""
        original = checker.find_evidence

        def flaky(claim, context, level=VerificationLevel.STANDARD):
            if claim.id == "claim_1":
                raise RuntimeError("boom")
            return original(claim, context, level)

        monkeypatch.setattr(checker, "find_evidence", flaky)
        content = f"{BOILING_FACT}. Dogs are mammals."

        summary = await checker.check_response(Response(id="r1", content=content), boiling_context)

        assert summary.total_claims == 2
        assert summary.results[0].status == VerificationStatus.VERIFIED
        failed = summary.results[1]
        assert failed.status == VerificationStatus.UNVERIFIED
        assert failed.confidence == 0.0
        assert failed.notes == "Verification failed: boom"


class TestVerificationLevels:
    """Which context items each level searches."""

    @pytest.mark.asyncio
    async def test_basic_ignores_external_sources(self, checker):
        context = Context(
            external_sources=[ExternalSource(id="src", content=BOILING_FACT, reliability_score=0.8)]
        )
        claim = Claim(id="c", text=BOILING_FACT)

        basic = await checker.verify_claim(claim, context, VerificationLevel.BASIC)
        standard = await checker.verify_claim(claim, context, VerificationLevel.STANDARD)

        assert basic.status == VerificationStatus.UNVERIFIED
        assert standard.status == VerificationStatus.VERIFIED
        assert standard.supporting_evidence[0].confidence == pytest.approx(0.8)

    @pytest.mark.asyncio
    async def test_history_only_at_comprehensive(self, checker):
        context = Context(conversation_history=[ConversationTurn(content=BOILING_FACT)])
        claim = Claim(id="c", text=BOILING_FACT)

        standard = await checker.verify_claim(claim, context, VerificationLevel.STANDARD)
        comprehensive = await checker.verify_claim(claim, context, VerificationLevel.COMPREHENSIVE)

        assert standard.status == VerificationStatus.UNVERIFIED
        # 0.5 confidence x 1.0 relevance is supportive but not conclusive
        assert comprehensive.status == VerificationStatus.INCONCLUSIVE
        assert comprehensive.supporting_evidence[0].source == "history_0"


class TestVerificationCache:
    """Content-hash cache of per-claim verdicts."""

    @pytest.mark.asyncio
    async def test_identical_text_reuses_verdict(self, checker, boiling_context):
        first = await checker.verify_claim(Claim(id="a", text=BOILING_FACT), boiling_context)
        second = await checker.verify_claim(Claim(id="b", text=BOILING_FACT), boiling_context)

        assert checker.cache_size == 1
        assert second.status == first.status
        assert second.claim.id == "b"

    @pytest.mark.asyncio
    async def test_cache_is_scoped_by_level(self, checker, boiling_context):
        claim = Claim(id="a", text=BOILING_FACT)
        await checker.verify_claim(claim, boiling_context, VerificationLevel.BASIC)
        await checker.verify_claim(claim, boiling_context, VerificationLevel.STANDARD)

        assert checker.cache_size == 2
        checker.clear_cache()
        assert checker.cache_size == 0


class TestSummaries:
    """Request-level aggregation."""

    def test_quality_score_weights_disputed_at_half(self, checker):
        results = (
            [result_with_status(VerificationStatus.VERIFIED, i) for i in range(8)]
            + [result_with_status(VerificationStatus.DISPUTED, 8)]
            + [result_with_status(VerificationStatus.UNVERIFIED, 9)]
        )

        summary = checker.build_summary(results, VerificationLevel.STANDARD)

        assert summary.total_claims == 10
        assert summary.quality_score == pytest.approx(0.85)
        assert summary.verification_method == "standard"
        assert summary.recommendations == [
            "1 claims require additional verification",
            "1 claims have conflicting evidence and need review",
        ]
        assert summary.critical_issues == ["1 claims have conflicting evidence"]

    def test_failed_summary(self):
        summary = FactChecker.failed_summary("database offline")
        assert summary.critical_issues == ["System error: database offline"]
        assert summary.verification_method == "failed"

    @pytest.mark.parametrize(
        "supporting,contradicting,expected",
        [(0, 0, 0.5), (3, 1, 0.75), (0, 2, 0.0)],
    )
    def test_consensus(self, supporting, contradicting, expected):
        assert FactChecker.consensus(supporting, contradicting) == pytest.approx(expected)

    def test_select_method(self):
        numeric = Claim(id="n", text="x", type=FactType.NUMERICAL)
        confident = Claim(id="c", text="x", confidence=0.9)
        plain = Claim(id="p", text="x")

        assert FactChecker.select_method(numeric, set()) == VerificationMethod.CROSS_REFERENCE
        assert FactChecker.select_method(confident, set()) == VerificationMethod.AUTOMATED
        assert FactChecker.select_method(plain, set()) == VerificationMethod.CONTENT
        assert (
            FactChecker.select_method(plain, {VerificationMethod.EXPERT_REVIEW})
            == VerificationMethod.EXPERT_REVIEW
        )


class TestAdditionalOperations:
    """Cross-referencing, alternative sources and claim-pair conflicts."""

    @pytest.mark.asyncio
    async def test_cross_reference(self, checker):
        context = Context(
            knowledge_base=[
                KnowledgeItem(id="kb1", content=BOILING_FACT),
                KnowledgeItem(id="kb2", content=BOILING_FACT),
            ]
        )

        results = await checker.cross_reference([BOILING_FACT], context, min_sources=2)

        assert results[0].supporting_sources == ["kb1", "kb2"]
        assert results[0].consensus_score == 1.0
        assert results[0].meets_min_sources is True

    @pytest.mark.asyncio
    async def test_find_alternative_sources_ranks_by_matches(self, checker):
        context = Context(
            knowledge_base=[KnowledgeItem(id="kb1", content="Photosynthesis happens in leaves")],
            external_sources=[
                ExternalSource(id="src1", title="Sunlight and photosynthesis", content="")
            ],
        )

        sources = await checker.find_alternative_sources("Photosynthesis converts sunlight", context)

        assert [s.source_id for s in sources] == ["src1", "kb1"]
        assert sources[0].matched_terms == ["photosynthesis", "sunlight"]

    @pytest.mark.asyncio
    async def test_detect_contradictory_claims(self, checker):
        claims = [Claim(id="a", text=BOILING_FACT), Claim(id="b", text=BOILING_DENIAL)]

        contradictions = await checker.detect_contradictory_claims(claims)

        assert len(contradictions) == 1
        found = contradictions[0]
        assert found.id == "factual_a_b"
        assert found.type == ContradictionType.FACTUAL
        assert found.severity == Severity.HIGH
