"""Data management package for the response quality pipeline.

Provides schemas and storage for:
- Pipeline results (ResultCache) - TTL cache keyed by response and level
- Audit records (AuditStore) - append-only record of every evaluation
"""

from response_quality.data_management.audit_store import AuditSink, AuditStore
from response_quality.data_management.result_cache import ResultCache

__all__ = [
    "AuditSink",
    "AuditStore",
    "ResultCache",
]
