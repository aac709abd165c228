"""Confidence scoring schemas.

ConfidenceScore.recommendation and confidence_level are always derived from
overall and the uncertainty factors by the scorer; callers never set them
independently.
"""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field


class ConfidenceType(str, Enum):
    """Dimensions combined into the overall confidence."""

    FACTUAL = "factual"
    CONTEXTUAL = "contextual"
    METHODOLOGICAL = "methodological"
    TEMPORAL = "temporal"
    SOURCE_RELIABILITY = "source_reliability"


class Recommendation(str, Enum):
    """Final verdict mapped to a UI action by the caller."""

    ACCEPT = "accept"
    REVIEW = "review"
    VERIFY = "verify"
    REJECT = "reject"
    REQUEST_HUMAN = "request_human"


class ConfidenceLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very_high"


class UncertaintyType(str, Enum):
    KNOWLEDGE_GAP = "knowledge_gap"
    OUTDATED_INFORMATION = "outdated_information"
    AMBIGUOUS_CLAIM = "ambiguous_claim"
    INCOMPLETE_CONTEXT = "incomplete_context"


class UncertaintyFactor(BaseModel):
    """A detected reason to distrust a response."""

    type: UncertaintyType
    description: str
    impact: float = Field(..., ge=0.0, le=1.0)
    evidence: list[str] = Field(default_factory=list)
    affected_claims: list[str] = Field(default_factory=list)
    mitigation: list[str] = Field(default_factory=list)

    @property
    def is_critical(self) -> bool:
        return self.impact > 0.7


class SourceQualityAssessment(BaseModel):
    """Reliability profile of the external sources in a context."""

    total_sources: int = 0
    high_quality_sources: int = 0
    reliable_sources: int = 0
    verified_sources: int = 0
    average_reliability: float = Field(0.0, ge=0.0, le=1.0)
    source_diversity: float = Field(0.0, ge=0.0, le=1.0)


class ClaimVerificationCounts(BaseModel):
    total_claims: int = 0
    verified_claims: int = 0
    disputed_claims: int = 0
    unverified_claims: int = 0
    inconclusive_claims: int = 0


class ConfidenceEvidence(BaseModel):
    """Evidence the confidence score was built from."""

    supporting_evidence: list[str] = Field(default_factory=list)
    contradicting_evidence: list[str] = Field(default_factory=list)
    source_quality: SourceQualityAssessment = Field(default_factory=SourceQualityAssessment)
    claim_verification: ClaimVerificationCounts = Field(default_factory=ClaimVerificationCounts)
    contextual_factors: list[str] = Field(default_factory=list)


class FollowUpQuestion(BaseModel):
    """A question the learner could ask to firm up an uncertain answer."""

    id: str
    question: str
    question_type: str
    priority: str = Field(..., description="low, medium or high")
    priority_value: float = Field(..., ge=0.0, le=1.0)
    estimated_value: float = Field(..., ge=0.0, le=1.0)
    reason: str = ""

    @property
    def rank(self) -> float:
        return self.priority_value * self.estimated_value


class CoherenceIssue(BaseModel):
    type: str = Field(..., description="logical_gap, inconsistency or contradiction")
    description: str
    severity: str = "medium"


class CoherenceScore(BaseModel):
    """Lexical coherence of a response."""

    overall: float = Field(..., ge=0.0, le=1.0)
    logical: float = Field(..., ge=0.0, le=1.0)
    structural: float = Field(..., ge=0.0, le=1.0)
    consistency: float = Field(..., ge=0.0, le=1.0)
    flow: float = Field(..., ge=0.0, le=1.0)
    issues: list[CoherenceIssue] = Field(default_factory=list)
    evidence: list[str] = Field(default_factory=list)


class UncertainArea(BaseModel):
    """A sentence flagged as a source of uncertainty."""

    text: str
    reason: str
    uncertainty: float = Field(..., ge=0.0, le=1.0)
    suggestion: str = ""


class ConfidenceOptions(BaseModel):
    """Switches for the optional parts of confidence scoring."""

    include_uncertainty_analysis: bool = True
    consider_temporal_factors: bool = False
    assess_source_reliability: bool = True
    include_follow_up: bool = True


class ConfidenceScore(BaseModel):
    """Multi-dimensional confidence in a response."""

    overall: float = Field(..., ge=0.0, le=1.0)
    by_type: dict[ConfidenceType, float] = Field(default_factory=dict)
    by_claim: dict[str, float] = Field(default_factory=dict)
    uncertainty_factors: list[UncertaintyFactor] = Field(default_factory=list)
    recommendation: Recommendation
    confidence_level: ConfidenceLevel
    evidence: ConfidenceEvidence = Field(default_factory=ConfidenceEvidence)
    follow_up_questions: list[FollowUpQuestion] = Field(default_factory=list)
    processing_time_ms: float = 0.0
    calculated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    score_id: str = ""

    @property
    def critical_factor_count(self) -> int:
        return sum(1 for f in self.uncertainty_factors if f.is_critical)
