"""Tests for AuditStore.

Tests cover:
1. Append and lookup
2. Duplicate record rejection
3. Response-scoped listing
4. Statistics
5. Persistence (save/load cycle) and write failures
"""

import json

import pytest

from response_quality.data_management.audit_store import AuditSink, AuditStore
from response_quality.data_management.schemas import AuditRecord, Recommendation, RiskLevel
from response_quality.errors import AuditPersistenceError


def make_record(
    record_id: str = "audit-1",
    response_id: str = "resp-1",
    quality: float = 0.8,
    risk: RiskLevel = RiskLevel.LOW,
    recommendation: Recommendation = Recommendation.ACCEPT,
) -> AuditRecord:
    return AuditRecord(
        record_id=record_id,
        response_id=response_id,
        request_id=f"quality_{record_id}",
        overall_quality=quality,
        hallucination_probability=1.0 - quality,
        risk_level=risk,
        recommendation=recommendation,
    )


class TestAuditStoreAppend:
    """Append-only semantics."""

    @pytest.fixture
    def store(self):
        return AuditStore()

    @pytest.mark.asyncio
    async def test_append_and_get(self, store):
        await store.append(make_record())

        record = await store.get_record("audit-1")

        assert record is not None
        assert record.response_id == "resp-1"

    @pytest.mark.asyncio
    async def test_missing_record(self, store):
        assert await store.get_record("nope") is None

    @pytest.mark.asyncio
    async def test_duplicate_record_rejected(self, store):
        await store.append(make_record())

        with pytest.raises(AuditPersistenceError):
            await store.append(make_record())

        assert len(await store.get_all_records()) == 1

    @pytest.mark.asyncio
    async def test_records_by_response(self, store):
        await store.append(make_record("a1", "resp-1"))
        await store.append(make_record("a2", "resp-2"))
        await store.append(make_record("a3", "resp-1"))

        records = await store.get_records("resp-1")

        assert [r.record_id for r in records] == ["a1", "a3"]

    def test_satisfies_sink_protocol(self, store):
        assert isinstance(store, AuditSink)


class TestAuditStoreStats:
    """Aggregate statistics."""

    @pytest.mark.asyncio
    async def test_empty_stats(self):
        assert await AuditStore().get_stats() == {"total": 0}

    @pytest.mark.asyncio
    async def test_stats(self):
        store = AuditStore()
        await store.append(make_record("a1", "resp-1", 0.8))
        await store.append(
            make_record("a2", "resp-2", 0.2, RiskLevel.CRITICAL, Recommendation.REJECT)
        )

        stats = await store.get_stats()

        assert stats["total"] == 2
        assert stats["responses"] == 2
        assert stats["risk_counts"] == {"low": 1, "critical": 1}
        assert stats["recommendation_counts"] == {"accept": 1, "reject": 1}
        assert stats["average_quality"] == pytest.approx(0.5)


class TestAuditStorePersistence:
    """JSON persistence."""

    @pytest.mark.asyncio
    async def test_save_and_load(self, tmp_path):
        path = tmp_path / "audit" / "records.json"
        store = AuditStore(persistence_path=str(path))
        await store.append(make_record("a1"))
        await store.append(make_record("a2"))

        data = json.loads(path.read_text())
        assert set(data) == {"a1", "a2"}

        reloaded = AuditStore(persistence_path=str(path))
        assert await reloaded.load_from_file() == 2
        record = await reloaded.get_record("a2")
        assert record.risk_level == RiskLevel.LOW

    @pytest.mark.asyncio
    async def test_load_without_file(self, tmp_path):
        store = AuditStore(persistence_path=str(tmp_path / "missing.json"))
        assert await store.load_from_file() == 0

    @pytest.mark.asyncio
    async def test_write_failure_raises_and_rolls_back(self, tmp_path):
        """A directory in place of the file makes every write fail."""
        store = AuditStore(persistence_path=str(tmp_path))

        with pytest.raises(AuditPersistenceError):
            await store.append(make_record())

        assert await store.get_all_records() == []
