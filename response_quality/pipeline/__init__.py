"""Pipeline orchestration for response quality screening.

- ResponseQualityPipeline: runs the four stages and fuses their results
- AuditQueue: background hand-off of audit records to an AuditSink
"""

from response_quality.pipeline.audit_queue import AuditQueue
from response_quality.pipeline.quality_pipeline import PipelineConfig, ResponseQualityPipeline

__all__ = ["AuditQueue", "PipelineConfig", "ResponseQualityPipeline"]
