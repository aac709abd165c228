"""Fact checking schemas: evidence, per-claim results and request summaries."""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field

from response_quality.data_management.schemas.claim_schema import Claim


class VerificationStatus(str, Enum):
    """Outcome of verifying one claim against context evidence."""

    VERIFIED = "verified"
    DISPUTED = "disputed"
    INCONCLUSIVE = "inconclusive"
    UNVERIFIED = "unverified"


class VerificationMethod(str, Enum):
    """How a claim was (or should be) verified."""

    CONTENT = "content"
    SOURCE = "source"
    CROSS_REFERENCE = "cross_reference"
    EXPERT_REVIEW = "expert_review"
    AUTOMATED = "automated"


class VerificationLevel(str, Enum):
    """Depth of the evidence search."""

    BASIC = "basic"
    STANDARD = "standard"
    COMPREHENSIVE = "comprehensive"


class EvidenceType(str, Enum):
    SUPPORTING = "supporting"
    CONTRADICTING = "contradicting"


class Evidence(BaseModel):
    """A context item found to bear on a claim."""

    source: str = Field(..., description="Id or label of the context item")
    content: str = Field(..., description="Evidence text")
    evidence_type: EvidenceType
    confidence: float = Field(..., ge=0.0, le=1.0, description="Trust in the evidence item")
    relevance: float = Field(..., ge=0.0, le=1.0, description="Lexical similarity to the claim")

    @property
    def weight(self) -> float:
        return self.confidence * self.relevance


class FactCheckResult(BaseModel):
    """Verification verdict for one claim."""

    claim: Claim
    status: VerificationStatus
    confidence: float = Field(..., ge=0.0, le=1.0)
    supporting_evidence: list[Evidence] = Field(default_factory=list)
    contradicting_evidence: list[Evidence] = Field(default_factory=list)
    verification_method: VerificationMethod = VerificationMethod.CONTENT
    notes: str = ""
    checked_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def has_conflict(self) -> bool:
        return bool(self.contradicting_evidence)


class FactCheckSummary(BaseModel):
    """Request-level aggregation of per-claim results."""

    total_claims: int = Field(0, ge=0)
    verified_claims: int = Field(0, ge=0)
    disputed_claims: int = Field(0, ge=0)
    unverified_claims: int = Field(0, ge=0)
    inconclusive_claims: int = Field(0, ge=0)
    contradictory_claims: int = Field(0, ge=0)
    overall_confidence: float = Field(1.0, ge=0.0, le=1.0)
    quality_score: float = Field(1.0, ge=0.0, le=1.0)
    verification_method: str = Field("none", description="Verification level used, none or failed")
    processing_time_ms: float = Field(0.0, ge=0.0)
    recommendations: list[str] = Field(default_factory=list)
    critical_issues: list[str] = Field(default_factory=list)
    results: list[FactCheckResult] = Field(default_factory=list)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "total_claims": 10,
                    "verified_claims": 8,
                    "disputed_claims": 1,
                    "unverified_claims": 1,
                    "contradictory_claims": 1,
                    "overall_confidence": 0.71,
                    "quality_score": 0.85,
                    "verification_method": "standard",
                }
            ]
        }
    }


class CrossReferenceResult(BaseModel):
    """Consensus of context evidence about a standalone fact."""

    fact: str
    supporting_sources: list[str] = Field(default_factory=list)
    contradicting_sources: list[str] = Field(default_factory=list)
    consensus_score: float = Field(0.5, ge=0.0, le=1.0)
    meets_min_sources: bool = False


class AlternativeSource(BaseModel):
    """A context item that could be consulted to check a fact."""

    source_id: str
    content: str
    reliability: float = Field(0.5, ge=0.0, le=1.0)
    matched_terms: list[str] = Field(default_factory=list)
