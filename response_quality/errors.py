"""Exception hierarchy for the response quality pipeline.

Stage code raises these; the pipeline catches them at the stage boundary and
turns them into failed ProcessingStage entries and QualityIssue records.
ResponseQualityPipeline.evaluate() itself never raises.
"""

from typing import Optional


class QualityPipelineError(Exception):
    """Base class for all pipeline errors.

    Attributes:
        stage: Pipeline stage the error belongs to, if any.
    """

    stage: Optional[str] = None

    def __init__(self, message: str, *, stage: Optional[str] = None) -> None:
        super().__init__(message)
        if stage is not None:
            self.stage = stage


class ValidationFailure(QualityPipelineError):
    """Content or safety validation could not be completed."""

    stage = "validation"


class FactCheckFailure(QualityPipelineError):
    """Claim verification failed."""

    stage = "fact_check"


class ConfidenceFailure(QualityPipelineError):
    """Confidence scoring failed."""

    stage = "confidence_scoring"


class ContradictionFailure(QualityPipelineError):
    """Contradiction detection failed."""

    stage = "contradiction_detection"


class SystemFailure(QualityPipelineError):
    """An unexpected exception escaped a stage or the deadline was exceeded."""


class AuditPersistenceError(QualityPipelineError):
    """An audit record could not be written to its sink."""


STAGE_FAILURES: dict[str, type[QualityPipelineError]] = {
    "validation": ValidationFailure,
    "fact_check": FactCheckFailure,
    "confidence_scoring": ConfidenceFailure,
    "contradiction_detection": ContradictionFailure,
}
