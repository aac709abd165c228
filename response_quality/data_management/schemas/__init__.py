"""Pydantic schemas for the response quality pipeline.

Inputs (Response, Context), extraction output (Claim, Entity), stage outputs
(ValidationSummary, FactCheckSummary, ConfidenceScore,
ContradictionAnalysisResult) and the fused AggregateResult with its
AuditRecord mirror.

Usage:
    from response_quality.data_management.schemas import Response, Context
    response = Response(id="resp-1", content="Water boils at 100 degrees.")
"""

from response_quality.data_management.schemas.response_schema import (
    Context,
    ConversationTurn,
    ExternalSource,
    KnowledgeItem,
    Response,
    UserProfile,
)

from response_quality.data_management.schemas.claim_schema import (
    Claim,
    Entity,
    EntityType,
    Factuality,
    FactType,
)

from response_quality.data_management.schemas.fact_check_schema import (
    AlternativeSource,
    CrossReferenceResult,
    Evidence,
    EvidenceType,
    FactCheckResult,
    FactCheckSummary,
    VerificationLevel,
    VerificationMethod,
    VerificationStatus,
)

from response_quality.data_management.schemas.confidence_schema import (
    ClaimVerificationCounts,
    CoherenceIssue,
    CoherenceScore,
    ConfidenceEvidence,
    ConfidenceLevel,
    ConfidenceOptions,
    ConfidenceScore,
    ConfidenceType,
    FollowUpQuestion,
    Recommendation,
    SourceQualityAssessment,
    UncertainArea,
    UncertaintyFactor,
    UncertaintyType,
)

from response_quality.data_management.schemas.contradiction_schema import (
    Contradiction,
    ContradictionAnalysisResult,
    ContradictionOptions,
    ContradictionResolution,
    ContradictionType,
    CrossContradictionAnalysis,
    ResolutionAction,
    ResolutionStrategy,
    Severity,
    SourceDocument,
    TemporalConsistencyResult,
    TemporalEvent,
)

from response_quality.data_management.schemas.result_schema import (
    AggregateResult,
    AuditRecord,
    IssueType,
    PipelineOptions,
    ProcessingStage,
    QualityIssue,
    QualityLevel,
    ResultMetadata,
    RiskLevel,
    StageName,
    StageStatus,
    ValidationLevel,
    ValidationSummary,
)

__all__ = [
    # Inputs
    "Response",
    "Context",
    "KnowledgeItem",
    "ConversationTurn",
    "ExternalSource",
    "UserProfile",
    # Extraction
    "Claim",
    "Entity",
    "EntityType",
    "Factuality",
    "FactType",
    # Fact checking
    "Evidence",
    "EvidenceType",
    "FactCheckResult",
    "FactCheckSummary",
    "VerificationLevel",
    "VerificationMethod",
    "VerificationStatus",
    "CrossReferenceResult",
    "AlternativeSource",
    # Confidence
    "ConfidenceScore",
    "ConfidenceType",
    "ConfidenceLevel",
    "ConfidenceOptions",
    "ConfidenceEvidence",
    "ClaimVerificationCounts",
    "Recommendation",
    "UncertaintyFactor",
    "UncertaintyType",
    "SourceQualityAssessment",
    "CoherenceScore",
    "CoherenceIssue",
    "FollowUpQuestion",
    "UncertainArea",
    # Contradictions
    "Contradiction",
    "ContradictionAnalysisResult",
    "ContradictionOptions",
    "ContradictionResolution",
    "ContradictionType",
    "CrossContradictionAnalysis",
    "ResolutionAction",
    "ResolutionStrategy",
    "Severity",
    "SourceDocument",
    "TemporalConsistencyResult",
    "TemporalEvent",
    # Pipeline
    "AggregateResult",
    "AuditRecord",
    "IssueType",
    "PipelineOptions",
    "ProcessingStage",
    "QualityIssue",
    "QualityLevel",
    "ResultMetadata",
    "RiskLevel",
    "StageName",
    "StageStatus",
    "ValidationLevel",
    "ValidationSummary",
]
