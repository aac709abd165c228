"""Surface-level content/safety validation."""

from response_quality.analyzers.validation.response_validator import ResponseValidator

__all__ = ["ResponseValidator"]
