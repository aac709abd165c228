"""Background audit persistence with bounded retry.

Records submitted by the pipeline go onto a bounded asyncio.Queue drained by
a single worker task. Each record is written with tenacity retries
(exponential backoff); a record that still fails is logged and dropped.
AuditPersistenceError is not retried: the sink has already rejected the
record (duplicate id or failed persistence with rollback). A full queue
drops the new record with a warning so the response path never waits on the
sink.

With ``sync_mode`` the write (including retries) is awaited inline instead.

Usage:
    queue = AuditQueue(AuditStore(), max_attempts=3)
    await queue.start()
    await queue.submit(record)
    await queue.stop()  # drains pending records
"""

import asyncio
from typing import Any, Optional

from tenacity import (
    AsyncRetrying,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from response_quality.data_management.audit_store import AuditSink
from response_quality.data_management.schemas import AuditRecord
from response_quality.errors import AuditPersistenceError
from response_quality.utils.logging import get_structured_logger


class AuditQueue:
    """Hands audit records to an AuditSink off the response path."""

    def __init__(
        self,
        sink: AuditSink,
        max_attempts: int = 3,
        queue_size: int = 1000,
        sync_mode: bool = False,
        backoff_min: float = 0.5,
        backoff_max: float = 5.0,
    ) -> None:
        """Initialize AuditQueue.

        Args:
            sink: Destination for records.
            max_attempts: Write attempts per record.
            queue_size: Pending record capacity.
            sync_mode: Await writes inline instead of queueing.
            backoff_min: Minimum wait between attempts in seconds.
            backoff_max: Maximum wait between attempts in seconds.
        """
        self.sink = sink
        self.max_attempts = max_attempts
        self.sync_mode = sync_mode
        self.backoff_min = backoff_min
        self.backoff_max = backoff_max
        self._queue: asyncio.Queue[AuditRecord] = asyncio.Queue(maxsize=queue_size)
        self._worker: Optional[asyncio.Task] = None
        self._written = 0
        self._failed = 0
        self._dropped = 0
        self._logger = get_structured_logger("AuditQueue")

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    async def start(self) -> None:
        if self.sync_mode:
            return
        if self.running:
            self._logger.warning("audit_worker_already_running")
            return
        self._worker = asyncio.create_task(self._drain())
        self._logger.info("audit_worker_started", max_attempts=self.max_attempts)

    async def stop(self) -> None:
        """Flush pending records and stop the worker."""
        if self.running:
            await self._queue.join()
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._logger.info("audit_worker_stopped", **self.stats())
        else:
            while not self._queue.empty():
                record = self._queue.get_nowait()
                await self.write(record)
                self._queue.task_done()
        self._worker = None

    async def submit(self, record: AuditRecord) -> bool:
        """Queue (or, in sync mode, write) a record.

        Returns:
            False if the record was dropped or, in sync mode, failed.
        """
        if self.sync_mode:
            return await self.write(record)
        try:
            self._queue.put_nowait(record)
        except asyncio.QueueFull:
            self._dropped += 1
            self._logger.warning(
                "audit_queue_full", record_id=record.record_id, dropped=self._dropped
            )
            return False
        return True

    async def write(self, record: AuditRecord) -> bool:
        """Write one record with bounded retries. Never raises."""
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_attempts),
                retry=retry_if_not_exception_type(AuditPersistenceError),
                wait=wait_exponential(multiplier=1, min=self.backoff_min, max=self.backoff_max),
                reraise=True,
            ):
                with attempt:
                    await self.sink.append(record)
        except Exception as e:
            self._failed += 1
            self._logger.error(
                "audit_write_failed",
                record_id=record.record_id,
                attempts=self.max_attempts,
                error=str(e),
            )
            return False
        self._written += 1
        return True

    def stats(self) -> dict[str, Any]:
        return {
            "written": self._written,
            "failed": self._failed,
            "dropped": self._dropped,
            "pending": self.pending,
        }

    async def _drain(self) -> None:
        while True:
            record = await self._queue.get()
            try:
                await self.write(record)
            finally:
                self._queue.task_done()
