"""In-process pipeline metrics."""

from collections import deque
from typing import Any

from response_quality.data_management.schemas import RiskLevel, StageName

STAGE_HISTORY = 100

# Risk level -> quality bucket reported in the distribution.
QUALITY_BUCKETS = {
    RiskLevel.LOW: "high",
    RiskLevel.MEDIUM: "medium",
    RiskLevel.HIGH: "low",
    RiskLevel.CRITICAL: "critical",
}


class PipelineMetrics:
    """Counters and recent stage durations for one pipeline instance."""

    def __init__(self) -> None:
        self.reset()

    def reset(self) -> None:
        self.total_requests = 0
        self.valid_responses = 0
        self.invalid_responses = 0
        self.average_processing_time_ms = 0.0
        self.error_count = 0
        self.cache_hits = 0
        self.stage_durations: dict[StageName, deque[float]] = {
            stage: deque(maxlen=STAGE_HISTORY) for stage in StageName
        }
        self.quality_distribution: dict[str, int] = {
            bucket: 0 for bucket in QUALITY_BUCKETS.values()
        }

    def record_request(
        self, is_valid: bool, risk_level: RiskLevel, processing_time_ms: float
    ) -> None:
        self.total_requests += 1
        if is_valid:
            self.valid_responses += 1
        else:
            self.invalid_responses += 1
        self.average_processing_time_ms += (
            processing_time_ms - self.average_processing_time_ms
        ) / self.total_requests
        self.quality_distribution[QUALITY_BUCKETS[risk_level]] += 1

    def record_stage(self, stage: StageName, duration_ms: float) -> None:
        self.stage_durations[stage].append(duration_ms)

    def record_error(self) -> None:
        self.error_count += 1

    def record_cache_hit(self) -> None:
        self.cache_hits += 1

    def snapshot(self) -> dict[str, Any]:
        return {
            "total_requests": self.total_requests,
            "valid_responses": self.valid_responses,
            "invalid_responses": self.invalid_responses,
            "average_processing_time_ms": self.average_processing_time_ms,
            "error_count": self.error_count,
            "cache_hits": self.cache_hits,
            "stage_durations": {
                stage.value: list(durations) for stage, durations in self.stage_durations.items()
            },
            "quality_distribution": dict(self.quality_distribution),
        }
