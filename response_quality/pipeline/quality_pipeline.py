"""Response quality pipeline: validation -> fact check -> confidence -> contradictions.

Stages run strictly in sequence because confidence scoring consumes the fact
check summary. Each stage is isolated: an exception or an overrun of the
request deadline becomes a failed ProcessingStage plus a QualityIssue, and
the run continues (a missed deadline skips the remaining stages). Only
strict mode stops early, when validation fails or marks the response
invalid.

Results are cached per ``(response_id, validation_level)`` for the cache TTL
unless a stage failed or ran out of time, and every computed result is
mirrored to the audit queue.

Usage:
    from response_quality.pipeline import ResponseQualityPipeline

    pipeline = ResponseQualityPipeline()
    await pipeline.start()
    result = await pipeline.evaluate(response, context)
    print(result.recommendation, result.overall_quality)
    await pipeline.stop()

    # Or as an async context manager:
    async with ResponseQualityPipeline() as pipeline:
        result = await pipeline.evaluate(response, context)
"""

import asyncio
import time
import uuid
from typing import Any, Awaitable, Callable, Optional, TypeVar

from pydantic import BaseModel, Field

from response_quality.analyzers.confidence import ConfidenceScorer
from response_quality.analyzers.contradiction import ContradictionDetector
from response_quality.analyzers.fact_checking import FactChecker
from response_quality.analyzers.validation import ResponseValidator
from response_quality.config.settings import Settings, settings as default_settings
from response_quality.data_management.audit_store import AuditSink, AuditStore
from response_quality.data_management.result_cache import ResultCache
from response_quality.data_management.schemas import (
    AggregateResult,
    AuditRecord,
    ConfidenceOptions,
    ConfidenceScore,
    Context,
    ContradictionAnalysisResult,
    ContradictionOptions,
    FactCheckSummary,
    IssueType,
    PipelineOptions,
    ProcessingStage,
    QualityIssue,
    QualityLevel,
    Recommendation,
    Response,
    ResultMetadata,
    RiskLevel,
    Severity,
    StageName,
    StageStatus,
    ValidationLevel,
    ValidationSummary,
    VerificationLevel,
)
from response_quality.errors import STAGE_FAILURES, QualityPipelineError, SystemFailure
from response_quality.pipeline import fusion
from response_quality.pipeline.audit_queue import AuditQueue
from response_quality.pipeline.metrics import PipelineMetrics
from response_quality.utils.logging import get_structured_logger

T = TypeVar("T")

STAGE_ISSUE_TYPES = {
    StageName.VALIDATION: IssueType.VALIDATION,
    StageName.FACT_CHECK: IssueType.FACT_CHECK,
    StageName.CONFIDENCE_SCORING: IssueType.CONFIDENCE,
    StageName.CONTRADICTION_DETECTION: IssueType.CONTRADICTION,
}
DEADLINE_EXCEEDED = "Deadline exceeded"


class PipelineConfig(BaseModel):
    """Runtime configuration of one pipeline instance."""

    validation_level: ValidationLevel = ValidationLevel.STANDARD
    fact_check_level: VerificationLevel = VerificationLevel.STANDARD
    enable_validation: bool = True
    enable_fact_checking: bool = True
    enable_confidence_scoring: bool = True
    enable_contradiction_detection: bool = True
    strict_mode: bool = False
    contradiction_threshold: float = Field(default=0.5, ge=0.0, le=1.0)
    max_processing_time_ms: int = Field(default=30_000, gt=0)
    cache_ttl_seconds: float = Field(default=600.0, gt=0)
    cache_cleanup_interval_seconds: float = Field(default=600.0, gt=0)
    max_claims_per_request: int = Field(default=50, gt=0)
    max_reported_contradictions: int = Field(default=20, gt=0)
    verification_concurrency: int = Field(default=10, gt=0)
    min_content_length: int = Field(default=10, ge=0)
    max_content_length: int = Field(default=20_000, gt=0)
    banned_terms: list[str] = Field(
        default_factory=lambda: list(ResponseValidator.DEFAULT_BANNED_TERMS)
    )
    audit_enabled: bool = True
    audit_sync_mode: bool = False
    audit_max_attempts: int = Field(default=3, gt=0)
    audit_queue_size: int = Field(default=1000, gt=0)
    audit_persistence_path: Optional[str] = None

    @classmethod
    def from_settings(cls, source: Optional[Settings] = None) -> "PipelineConfig":
        """Build a config from environment-backed settings."""
        s = source or default_settings
        return cls(
            strict_mode=s.strict_mode,
            contradiction_threshold=s.contradiction_threshold,
            max_processing_time_ms=s.max_processing_time_ms,
            cache_ttl_seconds=s.cache_ttl_seconds,
            cache_cleanup_interval_seconds=s.cache_cleanup_interval_seconds,
            max_claims_per_request=s.max_claims_per_request,
            max_reported_contradictions=s.max_reported_contradictions,
            verification_concurrency=s.verification_concurrency,
            min_content_length=s.min_content_length,
            max_content_length=s.max_content_length,
            banned_terms=list(s.banned_terms),
            audit_sync_mode=s.audit_sync_mode,
            audit_max_attempts=s.audit_max_attempts,
            audit_queue_size=s.audit_queue_size,
            audit_persistence_path=s.audit_persistence_path,
        )


class ResponseQualityPipeline:
    """
    Orchestrates the four quality stages and fuses their results.

    Collaborators are injectable; anything not supplied is built from the
    configuration. ``start()`` launches the cache sweeper and the audit
    worker, ``stop()`` cancels the sweeper and drains the audit queue.

    Attributes:
        config: Active PipelineConfig.
        validator: Surface-level validator.
        fact_checker: Claim verifier.
        confidence_scorer: Confidence scorer.
        contradiction_detector: Contradiction detector.
        cache: Result cache.
        audit_queue: Audit hand-off queue.
    """

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        validator: Optional[ResponseValidator] = None,
        fact_checker: Optional[FactChecker] = None,
        confidence_scorer: Optional[ConfidenceScorer] = None,
        contradiction_detector: Optional[ContradictionDetector] = None,
        cache: Optional[ResultCache[AggregateResult]] = None,
        audit_sink: Optional[AuditSink] = None,
        audit_queue: Optional[AuditQueue] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self.config = config or PipelineConfig.from_settings()
        cfg = self.config

        self.validator = validator or ResponseValidator(
            min_content_length=cfg.min_content_length,
            max_content_length=cfg.max_content_length,
            banned_terms=cfg.banned_terms,
        )
        self.fact_checker = fact_checker or FactChecker(
            max_claims=cfg.max_claims_per_request,
            concurrency=cfg.verification_concurrency,
        )
        self.confidence_scorer = confidence_scorer or ConfidenceScorer()
        self.contradiction_detector = contradiction_detector or ContradictionDetector(
            max_reported=cfg.max_reported_contradictions,
        )

        if cache is None:
            cache_kwargs: dict[str, Any] = {
                "ttl_seconds": cfg.cache_ttl_seconds,
                "cleanup_interval_seconds": cfg.cache_cleanup_interval_seconds,
            }
            if clock is not None:
                cache_kwargs["clock"] = clock
            cache = ResultCache(**cache_kwargs)
        self.cache = cache

        self.audit_sink = audit_sink or AuditStore(cfg.audit_persistence_path)
        self.audit_queue = audit_queue or AuditQueue(
            self.audit_sink,
            max_attempts=cfg.audit_max_attempts,
            queue_size=cfg.audit_queue_size,
            sync_mode=cfg.audit_sync_mode,
        )

        self.metrics = PipelineMetrics()
        self._started = False
        self._logger = get_structured_logger("ResponseQualityPipeline")

    # ── Lifecycle ─────────────────────────────────────────────────────────

    async def start(self) -> None:
        await self.cache.start()
        if self.config.audit_enabled:
            await self.audit_queue.start()
        self._started = True
        self._logger.info("pipeline_started", validation_level=self.config.validation_level.value)

    async def stop(self) -> None:
        await self.cache.stop()
        await self.audit_queue.stop()
        self._started = False
        self._logger.info("pipeline_stopped", total_requests=self.metrics.total_requests)

    async def __aenter__(self) -> "ResponseQualityPipeline":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.stop()

    # ── Evaluation ────────────────────────────────────────────────────────

    async def evaluate(
        self,
        response: Response,
        context: Optional[Context] = None,
        options: Optional[PipelineOptions] = None,
    ) -> AggregateResult:
        """
        Evaluate one response.

        Args:
            response: Response under evaluation.
            context: Read-only context bundle (empty when omitted).
            options: Per-request switches; unset values use the config.

        Returns:
            AggregateResult. Never raises: a catastrophic failure yields a
            rejecting result with overall_quality 0.
        """
        started = time.perf_counter()
        context = context or Context()
        options = options or PipelineOptions()
        level = options.validation_level or self.config.validation_level
        request_id = self._next_request_id()
        cache_key = (response.id, level)

        cached = self.cache.get(cache_key)
        if cached is not None:
            self.metrics.record_cache_hit()
            self._logger.debug("cache_hit", response_id=response.id, request_id=request_id)
            return cached.model_copy(deep=True)

        try:
            result = await self._run(response, context, options, level, request_id, started)
            if any(s.status == StageStatus.FAILED for s in result.processing_stages):
                self._logger.info("result_not_cached", request_id=request_id, reason="stage_failed")
            else:
                self.cache.set(cache_key, result.model_copy(deep=True))
        except Exception as e:
            self.metrics.record_error()
            self._logger.error(
                "evaluation_failed",
                request_id=request_id,
                response_id=response.id,
                error=str(e),
                exc_info=True,
            )
            result = self.failed_result(
                response,
                request_id,
                str(e),
                level,
                processing_time_ms=self._elapsed_ms(started),
            )

        self.metrics.record_request(result.is_valid, result.risk_level, result.processing_time_ms)
        await self._audit(result, request_id)

        self._logger.info(
            "evaluation_complete",
            request_id=request_id,
            response_id=response.id,
            overall_quality=round(result.overall_quality, 3),
            risk_level=result.risk_level.value,
            recommendation=result.recommendation.value,
            duration_ms=round(result.processing_time_ms, 1),
        )
        return result

    async def _run(
        self,
        response: Response,
        context: Context,
        options: PipelineOptions,
        level: ValidationLevel,
        request_id: str,
        started: float,
    ) -> AggregateResult:
        cfg = self.config
        fact_level = options.fact_check_level or cfg.fact_check_level
        threshold = (
            options.threshold if options.threshold is not None else cfg.contradiction_threshold
        )
        allowed_ms = options.max_processing_time_ms or cfg.max_processing_time_ms
        deadline = started + allowed_ms / 1000

        stages: list[ProcessingStage] = []
        issues: list[QualityIssue] = []
        timed_out = False

        async def run_stage(
            name: StageName,
            enabled: bool,
            operation: Callable[[], Awaitable[T]],
        ) -> Optional[T]:
            nonlocal timed_out
            if not enabled or timed_out:
                stages.append(
                    ProcessingStage(
                        stage=name,
                        status=StageStatus.SKIPPED,
                        error=DEADLINE_EXCEEDED if timed_out else None,
                    )
                )
                return None

            stage_started = time.perf_counter()
            failure: Optional[QualityPipelineError] = None
            try:
                remaining = deadline - stage_started
                if remaining <= 0:
                    raise asyncio.TimeoutError()
                value = await asyncio.wait_for(operation(), timeout=remaining)
            except asyncio.TimeoutError:
                timed_out = True
                failure = SystemFailure(DEADLINE_EXCEEDED, stage=name.value)
            except QualityPipelineError as e:
                failure = e
            except Exception as e:
                failure = STAGE_FAILURES[name.value](str(e))

            if failure is not None:
                self._stage_failed(name, failure, stage_started, stages, issues, request_id)
                return None

            duration = self._elapsed_ms(stage_started)
            stages.append(ProcessingStage(stage=name, status=StageStatus.COMPLETED, duration_ms=duration))
            self.metrics.record_stage(name, duration)
            return value

        async def validate() -> ValidationSummary:
            return self.validator.validate(response)

        validation = await run_stage(StageName.VALIDATION, cfg.enable_validation, validate)

        if cfg.strict_mode and cfg.enable_validation and (validation is None or not validation.is_valid):
            reason = (
                "Validation failed in strict mode"
                if validation is not None
                else f"Validation stage failed in strict mode: {stages[-1].error}"
            )
            self._logger.warning("strict_mode_rejection", request_id=request_id, reason=reason)
            return self.failed_result(
                response,
                request_id,
                reason,
                level,
                stages=stages,
                validation_summary=validation,
                processing_time_ms=self._elapsed_ms(started),
            )

        fact_check = await run_stage(
            StageName.FACT_CHECK,
            cfg.enable_fact_checking and options.include_fact_checking,
            lambda: self.fact_checker.check_response(response, context, fact_level),
        )

        confidence = await run_stage(
            StageName.CONFIDENCE_SCORING,
            cfg.enable_confidence_scoring and options.include_confidence_scoring,
            lambda: self.confidence_scorer.score(
                response,
                context,
                fact_check,
                ConfidenceOptions(
                    include_uncertainty_analysis=True,
                    consider_temporal_factors=level == ValidationLevel.ENHANCED,
                    assess_source_reliability=fact_level != VerificationLevel.BASIC,
                ),
            ),
        )

        contradictions = await run_stage(
            StageName.CONTRADICTION_DETECTION,
            cfg.enable_contradiction_detection and options.include_contradiction_detection,
            lambda: self.contradiction_detector.detect_contradictions(
                response,
                context,
                ContradictionOptions(
                    threshold=threshold,
                    include_temporal_analysis=level == ValidationLevel.ENHANCED,
                    include_logical_analysis=True,
                    include_cross_reference=fact_level == VerificationLevel.COMPREHENSIVE,
                ),
            ),
        )

        return self._fuse(
            response,
            request_id,
            level,
            started,
            stages,
            issues,
            validation,
            fact_check,
            confidence,
            contradictions,
        )

    def _fuse(
        self,
        response: Response,
        request_id: str,
        level: ValidationLevel,
        started: float,
        stages: list[ProcessingStage],
        stage_issues: list[QualityIssue],
        validation: Optional[ValidationSummary],
        fact_check: Optional[FactCheckSummary],
        confidence: Optional[ConfidenceScore],
        contradictions: Optional[ContradictionAnalysisResult],
    ) -> AggregateResult:
        parts = (validation, fact_check, confidence, contradictions)
        risk_level = fusion.risk_level_for(fusion.risk_score(*parts))
        recommendation = fusion.final_recommendation(confidence, risk_level)

        return AggregateResult(
            is_valid=(
                validation.is_valid
                if validation is not None
                else not self.config.enable_validation
            ),
            validation_summary=validation,
            fact_check_summary=fact_check,
            confidence_score=confidence,
            contradiction_analysis=contradictions,
            overall_quality=fusion.overall_quality(fusion.stage_scores(*parts)),
            risk_level=risk_level,
            recommendation=recommendation,
            issues=fusion.build_issues(*parts) + stage_issues,
            recommendations=fusion.build_recommendations(*parts),
            critical_issues=fusion.build_critical_issues(*parts),
            processing_time_ms=self._elapsed_ms(started),
            processing_stages=stages,
            metadata=ResultMetadata(
                request_id=request_id,
                response_id=response.id,
                validation_level=level,
                components_used=[
                    s.stage.value for s in stages if s.status == StageStatus.COMPLETED
                ],
            ),
        )

    def _stage_failed(
        self,
        name: StageName,
        failure: QualityPipelineError,
        stage_started: float,
        stages: list[ProcessingStage],
        issues: list[QualityIssue],
        request_id: str,
    ) -> None:
        duration = self._elapsed_ms(stage_started)
        error = str(failure)
        stages.append(
            ProcessingStage(stage=name, status=StageStatus.FAILED, duration_ms=duration, error=error)
        )
        issues.append(
            QualityIssue(
                type=STAGE_ISSUE_TYPES[name],
                severity=Severity.HIGH,
                description=f"{name.value} stage failed: {error}",
                suggestion="Manual review recommended",
            )
        )
        self.metrics.record_stage(name, duration)
        self.metrics.record_error()
        self._logger.error(
            "stage_failed",
            request_id=request_id,
            stage=name.value,
            error_type=type(failure).__name__,
            error=error,
        )

    def failed_result(
        self,
        response: Response,
        request_id: str,
        error: str,
        validation_level: ValidationLevel = ValidationLevel.STANDARD,
        stages: Optional[list[ProcessingStage]] = None,
        validation_summary: Optional[ValidationSummary] = None,
        processing_time_ms: float = 0.0,
    ) -> AggregateResult:
        """Rejecting result used for catastrophic failures and strict-mode stops."""
        return AggregateResult(
            is_valid=False,
            validation_summary=validation_summary,
            overall_quality=0.0,
            risk_level=RiskLevel.CRITICAL,
            recommendation=Recommendation.REJECT,
            issues=[
                QualityIssue(
                    type=IssueType.SYSTEM_ERROR,
                    severity=Severity.CRITICAL,
                    description=error,
                    suggestion="Manual review required",
                )
            ],
            recommendations=["Processing failed - manual review required"],
            critical_issues=[f"System failure: {error}"],
            processing_time_ms=processing_time_ms,
            processing_stages=stages or [],
            metadata=ResultMetadata(
                request_id=request_id,
                response_id=response.id,
                validation_level=validation_level,
            ),
        )

    # ── Single-stage operations ───────────────────────────────────────────

    async def validate_response_only(self, response: Response) -> ValidationSummary:
        try:
            return self.validator.validate(response)
        except Exception as e:
            self._logger.error("validation_only_failed", response_id=response.id, error=str(e))
            return ValidationSummary(
                is_valid=False,
                validation_score=0.0,
                quality_level=QualityLevel.CRITICAL,
                issues=[
                    QualityIssue(
                        type=IssueType.SYSTEM_ERROR,
                        severity=Severity.CRITICAL,
                        description=f"System error: {e}",
                    )
                ],
                recommendations=["Validation failed - manual review required"],
            )

    async def check_facts_only(
        self,
        response: Response,
        context: Context,
        level: VerificationLevel = VerificationLevel.STANDARD,
    ) -> FactCheckSummary:
        try:
            return await self.fact_checker.check_response(response, context, level)
        except Exception as e:
            self._logger.error("fact_check_only_failed", response_id=response.id, error=str(e))
            return FactChecker.failed_summary(str(e))

    async def calculate_confidence_only(
        self,
        response: Response,
        context: Context,
        fact_check_summary: Optional[FactCheckSummary] = None,
    ) -> ConfidenceScore:
        return await self.confidence_scorer.calculate_confidence(
            response,
            context,
            fact_check_summary,
            ConfidenceOptions(
                include_uncertainty_analysis=True,
                consider_temporal_factors=False,
                assess_source_reliability=True,
            ),
        )

    async def detect_contradictions_only(
        self,
        response: Response,
        context: Context,
        threshold: float = 0.5,
    ) -> ContradictionAnalysisResult:
        try:
            return await self.contradiction_detector.detect_contradictions(
                response,
                context,
                ContradictionOptions(
                    threshold=threshold,
                    include_temporal_analysis=False,
                    include_logical_analysis=True,
                    include_cross_reference=False,
                ),
            )
        except Exception as e:
            self._logger.error(
                "contradiction_only_failed", response_id=response.id, error=str(e)
            )
            return ContradictionAnalysisResult(
                resolution_recommendations=[
                    "Contradiction detection failed - manual review required"
                ],
                critical_issues=[f"System error: {e}"],
            )

    # ── Metrics and configuration ─────────────────────────────────────────

    def get_metrics(self) -> dict[str, Any]:
        snapshot = self.metrics.snapshot()
        snapshot["cache_size"] = len(self.cache)
        snapshot["verification_cache_size"] = self.fact_checker.cache_size
        snapshot["audit"] = self.audit_queue.stats()
        return snapshot

    def reset_metrics(self) -> None:
        self.metrics.reset()

    def get_configuration(self) -> dict[str, Any]:
        return self.config.model_dump(mode="json")

    def update_configuration(self, **changes: Any) -> PipelineConfig:
        """Apply configuration changes.

        Raises:
            ValueError: On unknown keys, or when ``audit_queue_size`` changes
                while the audit queue is running or holds records.
        """
        unknown = set(changes) - set(PipelineConfig.model_fields)
        if unknown:
            raise ValueError(f"Unknown configuration keys: {sorted(unknown)}")
        resize_queue = (
            "audit_queue_size" in changes
            and changes["audit_queue_size"] != self.config.audit_queue_size
        )
        if resize_queue and (self.audit_queue.running or self.audit_queue.pending):
            raise ValueError("audit_queue_size can only change while the audit queue is idle")

        self.config = PipelineConfig.model_validate({**self.config.model_dump(), **changes})
        cfg = self.config

        self.cache.ttl_seconds = cfg.cache_ttl_seconds
        self.cache.cleanup_interval_seconds = cfg.cache_cleanup_interval_seconds
        self.fact_checker.max_claims = cfg.max_claims_per_request
        self.fact_checker.concurrency = cfg.verification_concurrency
        self.contradiction_detector.max_reported = cfg.max_reported_contradictions
        if changes.keys() & {"min_content_length", "max_content_length", "banned_terms"}:
            self.validator = ResponseValidator(
                min_content_length=cfg.min_content_length,
                max_content_length=cfg.max_content_length,
                banned_terms=cfg.banned_terms,
            )
        if resize_queue:
            self.audit_queue = AuditQueue(
                self.audit_queue.sink,
                max_attempts=cfg.audit_max_attempts,
                queue_size=cfg.audit_queue_size,
                sync_mode=cfg.audit_sync_mode,
                backoff_min=self.audit_queue.backoff_min,
                backoff_max=self.audit_queue.backoff_max,
            )
        self.audit_queue.max_attempts = cfg.audit_max_attempts
        self.audit_queue.sync_mode = cfg.audit_sync_mode

        self._logger.info("configuration_updated", changes=sorted(changes))
        return cfg

    # ── Helpers ───────────────────────────────────────────────────────────

    async def _audit(self, result: AggregateResult, request_id: str) -> None:
        if not self.config.audit_enabled:
            return
        # audit may have been enabled or switched to queued mode after start()
        if self._started and not self.audit_queue.sync_mode and not self.audit_queue.running:
            await self.audit_queue.start()
        record = AuditRecord.from_result(result, record_id=f"audit_{request_id}")
        await self.audit_queue.submit(record)

    def _next_request_id(self) -> str:
        return f"quality_{int(time.time() * 1000)}_{uuid.uuid4().hex[:12]}"

    @staticmethod
    def _elapsed_ms(started: float) -> float:
        return (time.perf_counter() - started) * 1000
