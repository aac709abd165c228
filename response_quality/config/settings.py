"""Application settings using Pydantic BaseSettings for environment variable management."""

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Global application settings loaded from environment variables.

    Attributes:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Log output format (json for production, console for dev)
        cache_ttl_seconds: Lifetime of a cached pipeline result
        cache_cleanup_interval_seconds: Period of the background cache sweep
        max_claims_per_request: Claim ceiling before fact checking short-circuits
        max_reported_contradictions: Cap on contradictions in one analysis
        contradiction_threshold: Minimum score for a contradiction to be reported
        max_processing_time_ms: Per-request deadline for the whole pipeline
        strict_mode: Stop the pipeline when validation fails
        min_content_length: Shortest acceptable response content
        max_content_length: Longest acceptable response content
        banned_terms: Terms that trigger a safety violation
        verification_concurrency: Concurrent claim verifications
        audit_persistence_path: Optional JSON file for audit records
        audit_sync_mode: Await audit writes instead of queueing them
        audit_max_attempts: Attempts per audit record before it is dropped
        audit_queue_size: Capacity of the background audit queue
    """

    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )
    log_format: str = Field(
        default="json",
        description="Log output format: json or console"
    )
    cache_ttl_seconds: float = Field(
        default=600.0,
        description="Result cache entry lifetime in seconds"
    )
    cache_cleanup_interval_seconds: float = Field(
        default=600.0,
        description="Interval between result cache sweeps in seconds"
    )
    max_claims_per_request: int = Field(
        default=50,
        description="Maximum number of claims fact-checked in one request"
    )
    max_reported_contradictions: int = Field(
        default=20,
        description="Maximum contradictions reported per analysis"
    )
    contradiction_threshold: float = Field(
        default=0.5,
        description="Minimum contradiction score to report"
    )
    max_processing_time_ms: int = Field(
        default=30_000,
        description="Pipeline deadline per request in milliseconds"
    )
    strict_mode: bool = Field(
        default=False,
        description="Terminate early when validation fails"
    )
    min_content_length: int = Field(
        default=10,
        description="Minimum response length in characters"
    )
    max_content_length: int = Field(
        default=20_000,
        description="Maximum response length in characters"
    )
    banned_terms: list[str] = Field(
        default_factory=lambda: ["hack", "bomb", "weapon", "illegal"],
        description="Terms flagged as safety violations"
    )
    verification_concurrency: int = Field(
        default=10,
        description="Maximum concurrent claim verifications"
    )
    audit_persistence_path: str | None = Field(
        default=None,
        description="JSON file path for audit record persistence"
    )
    audit_sync_mode: bool = Field(
        default=False,
        description="Write audit records synchronously on the response path"
    )
    audit_max_attempts: int = Field(
        default=3,
        description="Attempts per audit record before giving up"
    )
    audit_queue_size: int = Field(
        default=1000,
        description="Maximum pending audit records"
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


# Singleton instance - import this throughout the application
settings = Settings()
