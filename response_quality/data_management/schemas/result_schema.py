"""Pipeline-level schemas: options, validation summary, stages and the
aggregate result handed to callers, the audit sink and downstream consumers.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from response_quality.data_management.schemas.confidence_schema import (
    ConfidenceScore,
    Recommendation,
)
from response_quality.data_management.schemas.contradiction_schema import (
    ContradictionAnalysisResult,
    Severity,
)
from response_quality.data_management.schemas.fact_check_schema import (
    FactCheckSummary,
    VerificationLevel,
)


class ValidationLevel(str, Enum):
    """Configured depth of analysis."""

    BASIC = "basic"
    STANDARD = "standard"
    ENHANCED = "enhanced"


class QualityLevel(str, Enum):
    """Validator quality tier."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    CRITICAL = "critical"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class IssueType(str, Enum):
    VALIDATION = "validation"
    FACT_CHECK = "fact_check"
    CONFIDENCE = "confidence"
    CONTRADICTION = "contradiction"
    SYSTEM_ERROR = "system_error"


class QualityIssue(BaseModel):
    """A problem surfaced by a stage or by the pipeline itself."""

    type: IssueType
    severity: Severity
    description: str
    suggestion: str = ""


class ValidationSummary(BaseModel):
    """Output of the surface-level validator."""

    is_valid: bool
    validation_score: float = Field(..., ge=0.0, le=1.0)
    quality_level: QualityLevel
    issues: list[QualityIssue] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    processing_time_ms: float = 0.0


class StageName(str, Enum):
    VALIDATION = "validation"
    FACT_CHECK = "fact_check"
    CONFIDENCE_SCORING = "confidence_scoring"
    CONTRADICTION_DETECTION = "contradiction_detection"


class StageStatus(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


class ProcessingStage(BaseModel):
    """Execution record for one pipeline stage."""

    stage: StageName
    status: StageStatus
    duration_ms: float = 0.0
    error: Optional[str] = None


class PipelineOptions(BaseModel):
    """Per-request switches. Unset values fall back to PipelineConfig."""

    validation_level: Optional[ValidationLevel] = None
    include_fact_checking: bool = True
    include_confidence_scoring: bool = True
    include_contradiction_detection: bool = True
    fact_check_level: Optional[VerificationLevel] = None
    threshold: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    max_processing_time_ms: Optional[int] = Field(default=None, gt=0)


class ResultMetadata(BaseModel):
    request_id: str
    response_id: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    validation_level: ValidationLevel = ValidationLevel.STANDARD
    components_used: list[str] = Field(default_factory=list)


class AggregateResult(BaseModel):
    """Fused outcome of one pipeline invocation."""

    is_valid: bool
    validation_summary: Optional[ValidationSummary] = None
    fact_check_summary: Optional[FactCheckSummary] = None
    confidence_score: Optional[ConfidenceScore] = None
    contradiction_analysis: Optional[ContradictionAnalysisResult] = None
    overall_quality: float = Field(..., ge=0.0, le=1.0)
    risk_level: RiskLevel
    recommendation: Recommendation
    issues: list[QualityIssue] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    critical_issues: list[str] = Field(default_factory=list)
    processing_time_ms: float = 0.0
    processing_stages: list[ProcessingStage] = Field(default_factory=list)
    metadata: ResultMetadata

    def stage(self, name: StageName) -> Optional[ProcessingStage]:
        """Return the execution record for a stage, if it ran."""
        for record in self.processing_stages:
            if record.stage == name:
                return record
        return None


class AuditRecord(BaseModel):
    """Append-only audit entry mirrored from an AggregateResult."""

    record_id: str
    response_id: str
    request_id: str
    overall_quality: float = Field(..., ge=0.0, le=1.0)
    hallucination_probability: float = Field(..., ge=0.0, le=1.0)
    risk_level: RiskLevel
    recommendation: Recommendation
    scores: dict[str, float] = Field(default_factory=dict)
    issues: list[str] = Field(default_factory=list)
    alerts: list[str] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_result(cls, result: AggregateResult, record_id: str) -> "AuditRecord":
        """Build an audit record from a pipeline result.

        hallucination_probability is 1 - overall fact-check confidence when
        fact checking ran, otherwise 1 - overall_quality.
        """
        scores: dict[str, Any] = {"overall_quality": result.overall_quality}
        if result.validation_summary is not None:
            scores["validation"] = result.validation_summary.validation_score
        if result.fact_check_summary is not None:
            scores["fact_check_quality"] = result.fact_check_summary.quality_score
            scores["fact_check_confidence"] = result.fact_check_summary.overall_confidence
        if result.confidence_score is not None:
            scores["confidence"] = result.confidence_score.overall
        if result.contradiction_analysis is not None:
            scores["contradiction"] = result.contradiction_analysis.overall_contradiction_score

        if result.fact_check_summary is not None:
            hallucination = 1.0 - result.fact_check_summary.overall_confidence
        else:
            hallucination = 1.0 - result.overall_quality

        return cls(
            record_id=record_id,
            response_id=result.metadata.response_id,
            request_id=result.metadata.request_id,
            overall_quality=result.overall_quality,
            hallucination_probability=min(1.0, max(0.0, hallucination)),
            risk_level=result.risk_level,
            recommendation=result.recommendation,
            scores=scores,
            issues=[issue.description for issue in result.issues],
            alerts=list(result.critical_issues),
        )
