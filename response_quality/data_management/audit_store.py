"""Append-only audit storage for pipeline results.

Follows the store pattern used across data_management:
- O(1) lookup by record_id, response-scoped listing
- asyncio.Lock guarded operations
- Optional JSON persistence

Any object with an async ``append(record)`` method satisfies AuditSink and
can replace AuditStore (e.g. a database-backed sink).

Usage:
    from response_quality.data_management.audit_store import AuditStore

    store = AuditStore(persistence_path="data/audit.json")
    await store.append(record)
    records = await store.get_records("resp-1")
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Optional, Protocol, runtime_checkable

from response_quality.data_management.schemas import AuditRecord
from response_quality.errors import AuditPersistenceError
from response_quality.utils.logging import get_structured_logger


@runtime_checkable
class AuditSink(Protocol):
    """Append-only consumer of audit records."""

    async def append(self, record: AuditRecord) -> None:
        ...


class AuditStore:
    """In-memory audit record store with optional JSON persistence.

    Data structure:
    {
        record_id: AuditRecord,
        ...
    }
    Insertion order is preserved.
    """

    def __init__(self, persistence_path: Optional[str] = None) -> None:
        """Initialize AuditStore.

        Args:
            persistence_path: Optional path to JSON file for persistence.
                            If None, storage is memory-only.
        """
        self._records: dict[str, AuditRecord] = {}
        self._lock = asyncio.Lock()
        self._persistence_path = Path(persistence_path) if persistence_path else None
        self._logger = get_structured_logger("AuditStore")

    async def append(self, record: AuditRecord) -> None:
        """Append a record.

        Raises:
            AuditPersistenceError: If the record id already exists or the
                persistence file cannot be written.
        """
        async with self._lock:
            if record.record_id in self._records:
                raise AuditPersistenceError(f"Duplicate audit record: {record.record_id}")

            self._records[record.record_id] = record
            self._logger.debug(
                "audit_record_appended",
                record_id=record.record_id,
                response_id=record.response_id,
                risk_level=record.risk_level.value,
            )

            if self._persistence_path:
                try:
                    self._save_to_file()
                except AuditPersistenceError:
                    del self._records[record.record_id]
                    raise

    async def get_record(self, record_id: str) -> Optional[AuditRecord]:
        async with self._lock:
            return self._records.get(record_id)

    async def get_records(self, response_id: str) -> list[AuditRecord]:
        """All records for one response, oldest first."""
        async with self._lock:
            return [r for r in self._records.values() if r.response_id == response_id]

    async def get_all_records(self) -> list[AuditRecord]:
        async with self._lock:
            return list(self._records.values())

    async def get_stats(self) -> dict[str, Any]:
        """Counts by risk level and recommendation plus mean quality."""
        async with self._lock:
            if not self._records:
                return {"total": 0}

            risk_counts: dict[str, int] = {}
            recommendation_counts: dict[str, int] = {}
            for record in self._records.values():
                risk_counts[record.risk_level.value] = risk_counts.get(record.risk_level.value, 0) + 1
                recommendation_counts[record.recommendation.value] = (
                    recommendation_counts.get(record.recommendation.value, 0) + 1
                )

            return {
                "total": len(self._records),
                "responses": len({r.response_id for r in self._records.values()}),
                "risk_counts": risk_counts,
                "recommendation_counts": recommendation_counts,
                "average_quality": sum(r.overall_quality for r in self._records.values())
                / len(self._records),
            }

    async def load_from_file(self) -> int:
        """Load records from the persistence file, replacing memory contents.

        Returns:
            Number of records loaded (0 when there is no file).
        """
        if not self._persistence_path or not self._persistence_path.exists():
            return 0

        async with self._lock:
            with open(self._persistence_path) as f:
                data = json.load(f)
            self._records = {
                record_id: AuditRecord.model_validate(payload)
                for record_id, payload in data.items()
            }
            self._logger.info("audit_records_loaded", count=len(self._records))
            return len(self._records)

    def _save_to_file(self) -> None:
        """Save to JSON file (synchronous)."""
        if not self._persistence_path:
            return
        try:
            self._persistence_path.parent.mkdir(parents=True, exist_ok=True)
            data = {
                record_id: record.model_dump(mode="json")
                for record_id, record in self._records.items()
            }
            with open(self._persistence_path, "w") as f:
                json.dump(data, f, indent=2, default=str)
        except OSError as e:
            self._logger.error("persistence_failed", error=str(e))
            raise AuditPersistenceError(f"Could not write {self._persistence_path}: {e}") from e
