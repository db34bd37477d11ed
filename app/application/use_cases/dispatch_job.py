"""AssignmentJobDispatcher — routes a claimed job to its handler."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import assert_never

from app.application.ports.batch_status_repo import BatchStatusRepository
from app.application.use_cases.assign_case import AssignCaseUseCase
from app.application.use_cases.process_bulk import BulkAssignmentProcessor
from app.domain.entities.assignment_job import (
    BulkAssignmentJob,
    QueuedJob,
    ReassignmentJob,
    SingleAssignmentJob,
)
from app.domain.entities.assignment_result import AssignmentResult
from app.domain.errors import TransientAssignmentError
from app.domain.value_objects.enums import BatchStatus

logger = logging.getLogger(__name__)


def _single_outcome(result: AssignmentResult) -> dict:
    # Domain failures complete the job; infrastructure failures go back to the queue
    if not result.success and result.retryable:
        raise TransientAssignmentError(result.error or "Assignment failed")
    return result.to_dict()


class AssignmentJobDispatcher:
    def __init__(
        self,
        assign_case: AssignCaseUseCase,
        bulk_processor: BulkAssignmentProcessor,
        batch_repo: BatchStatusRepository,
    ):
        self._assign = assign_case
        self._bulk = bulk_processor
        self._batches = batch_repo

    async def dispatch(self, queued: QueuedJob) -> dict:
        """Run the handler for the job's variant and return its result document."""
        job = queued.job
        match job:
            case SingleAssignmentJob():
                result = await self._assign.execute(
                    job.case_id,
                    job.assigned_to_id,
                    job.assigned_by_id,
                    reason=job.reason,
                )
                return _single_outcome(result)
            case BulkAssignmentJob():
                summary = await self._bulk.execute(job, queued.id)
                return summary.to_dict()
            case ReassignmentJob():
                result = await self._assign.execute(
                    job.case_id,
                    job.to_agent_id,
                    job.assigned_by_id,
                    reason=job.reason,
                    expected_assignee_id=job.from_agent_id,
                )
                return _single_outcome(result)
            case _:
                assert_never(job)

    async def on_dead(self, queued: QueuedJob, error: str) -> None:
        """Surface a dead bulk job through its batch status record."""
        job = queued.job
        if not isinstance(job, BulkAssignmentJob):
            return
        record = await self._batches.get(job.batch_id)
        if record is None:
            return
        closed = await self._batches.close(
            job.batch_id,
            BatchStatus.FAILED,
            datetime.now(timezone.utc),
            errors=[*record.errors, error],
        )
        if closed:
            logger.error("Batch %s failed permanently: %s", job.batch_id, error)
