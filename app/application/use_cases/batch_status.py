"""Batch status tracking — polling and best-effort cancellation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from app.application.ports.audit_port import AuditWriter
from app.application.ports.batch_status_repo import BatchStatusRepository
from app.application.ports.job_queue import JobQueue
from app.domain.entities.batch_status import BatchStatusRecord
from app.domain.errors import BatchNotFoundError
from app.domain.value_objects.enums import AuditAction, BatchStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchStatusView:
    batch_id: str
    job_id: str | None
    status: BatchStatus
    total_cases: int
    processed_cases: int
    successful_assignments: int
    failed_assignments: int
    progress: int
    errors: list[str]
    started_at: datetime | None
    completed_at: datetime | None
    job_progress: dict | None = None


class BatchStatusTracker:
    def __init__(
        self,
        batch_repo: BatchStatusRepository,
        job_queue: JobQueue,
        audit: AuditWriter,
    ):
        self._batches = batch_repo
        self._queue = job_queue
        self._audit = audit

    async def get_status(self, batch_id: str) -> BatchStatusView | None:
        record = await self._batches.get(batch_id)
        if record is None:
            return None

        job_progress = None
        if record.job_id:
            queued = await self._queue.get(record.job_id)
            job_progress = queued.progress if queued else None

        return _to_view(record, job_progress)

    async def cancel(self, batch_id: str, cancelled_by_id: str) -> bool:
        """Cancel a pending or processing batch.

        Cases already committed by finished sub-batches stay assigned; a job
        that a worker already claimed runs to completion.

        Returns:
            False if the batch is already in a terminal state.

        Raises:
            BatchNotFoundError: if the batch id is unknown.
        """
        record = await self._batches.get(batch_id)
        if record is None:
            raise BatchNotFoundError(batch_id)
        if not record.is_cancellable():
            logger.info("Batch %s not cancelled: status is %s", batch_id, record.status.value)
            return False

        removed = False
        if record.job_id:
            removed = await self._queue.cancel(record.job_id)

        if not await self._batches.close(
            batch_id, BatchStatus.CANCELLED, datetime.now(timezone.utc)
        ):
            logger.info("Batch %s reached a terminal state before cancellation", batch_id)
            return False

        try:
            await self._audit.record(
                AuditAction.BULK_ASSIGNMENT_CANCELLED,
                "CASE_BATCH",
                batch_id,
                cancelled_by_id,
                {"batch_id": batch_id, "job_id": record.job_id, "job_removed": removed},
            )
        except Exception:
            logger.exception("Audit event for cancelled batch %s could not be recorded", batch_id)

        logger.info(
            "Batch %s cancelled by %s (queued job removed: %s)", batch_id, cancelled_by_id, removed
        )
        return True


def _to_view(record: BatchStatusRecord, job_progress: dict | None) -> BatchStatusView:
    return BatchStatusView(
        batch_id=record.batch_id,
        job_id=record.job_id,
        status=record.status,
        total_cases=record.total_cases,
        processed_cases=record.processed_cases,
        successful_assignments=record.successful_assignments,
        failed_assignments=record.failed_assignments,
        progress=record.progress_percent(),
        errors=list(record.errors),
        started_at=record.started_at,
        completed_at=record.completed_at,
        job_progress=job_progress,
    )
