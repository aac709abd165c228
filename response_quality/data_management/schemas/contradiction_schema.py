"""Contradiction detection schemas."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from response_quality.data_management.schemas.claim_schema import Claim


class Severity(str, Enum):
    """Shared four-band severity scale (issues, contradictions)."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ContradictionType(str, Enum):
    SELF = "self_contradiction"
    CROSS = "cross_contradiction"
    TEMPORAL = "temporal_contradiction"
    LOGICAL = "logical_contradiction"
    CONTEXTUAL = "contextual_contradiction"
    FACTUAL = "factual_contradiction"


class ResolutionAction(str, Enum):
    CLARIFICATION = "clarification"
    SOURCE_VERIFICATION = "source_verification"
    CONTEXT_ADDITION = "context_addition"
    RETRACTION = "retraction"
    ACKNOWLEDGEMENT = "acknowledgement"


class ContradictionResolution(BaseModel):
    """Suggested way to resolve a contradiction."""

    action: ResolutionAction
    priority: Severity
    confidence: float = Field(..., ge=0.0, le=1.0)
    requires_human: bool = False
    description: str = ""


class Contradiction(BaseModel):
    """A conflict between two claims, or a claim and its context."""

    id: str
    type: ContradictionType
    severity: Severity
    claim1: Claim
    claim2: Claim
    contradiction_score: float = Field(..., ge=0.0, le=1.0)
    explanation: str = ""
    resolution: ContradictionResolution


def _zero_severity() -> dict[Severity, int]:
    return {s: 0 for s in Severity}


def _zero_types() -> dict[ContradictionType, int]:
    return {t: 0 for t in ContradictionType}


class ContradictionAnalysisResult(BaseModel):
    """All contradictions found in one response plus distributions."""

    total_contradictions: int = 0
    contradictions: list[Contradiction] = Field(default_factory=list)
    severity_distribution: dict[Severity, int] = Field(default_factory=_zero_severity)
    type_distribution: dict[ContradictionType, int] = Field(default_factory=_zero_types)
    overall_contradiction_score: float = Field(0.0, ge=0.0, le=1.0)
    resolution_recommendations: list[str] = Field(default_factory=list)
    critical_issues: list[str] = Field(default_factory=list)
    processing_time_ms: float = 0.0
    analysis_id: str = ""


class ContradictionOptions(BaseModel):
    """Which detectors run and the reporting threshold."""

    threshold: float = Field(0.5, ge=0.0, le=1.0)
    include_temporal_analysis: bool = False
    include_logical_analysis: bool = True
    include_cross_reference: bool = False


class SourceDocument(BaseModel):
    """A text compared by analyze_cross_contradictions."""

    id: str
    content: str
    reliability: float = Field(0.5, ge=0.0, le=1.0)


class CrossContradictionAnalysis(BaseModel):
    """Contradictions between several independent sources."""

    contradictions: list[Contradiction] = Field(default_factory=list)
    compared_pairs: int = 0
    agreement_score: float = Field(1.0, ge=0.0, le=1.0)
    average_reliability: float = Field(0.5, ge=0.0, le=1.0)
    recommendations: list[str] = Field(default_factory=list)


class TemporalEvent(BaseModel):
    """An event with an optional year, for timeline consistency checks."""

    id: str
    description: str
    year: Optional[int] = None
    after: list[str] = Field(default_factory=list, description="Ids of events this one follows")


class TemporalConsistencyResult(BaseModel):
    is_consistent: bool
    conflicts: list[str] = Field(default_factory=list)
    consistency_score: float = Field(1.0, ge=0.0, le=1.0)


class ResolutionStrategy(BaseModel):
    """Ordered resolution steps for one contradiction."""

    contradiction_id: str
    action: ResolutionAction
    priority: Severity
    steps: list[str] = Field(default_factory=list)
    requires_human: bool = False
