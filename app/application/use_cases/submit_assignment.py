"""JobSubmitter — turns caller requests into queued assignment jobs."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone

from app.application.ports.batch_status_repo import BatchStatusRepository
from app.application.ports.job_queue import JobQueue
from app.application.use_cases.validate_assignment import (
    AssignmentValidator,
    ValidationResult,
)
from app.domain.entities.assignment_job import (
    AssignmentJob,
    BulkAssignmentJob,
    ReassignmentJob,
    SingleAssignmentJob,
)
from app.domain.entities.batch_status import BatchStatusRecord
from app.domain.errors import AssignmentPrecheckError, AssignmentValidationError
from app.domain.policies.priority import REASSIGNMENT_PRIORITY, priority_value
from app.domain.value_objects.enums import AssignmentPriority, BatchStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubmissionReceipt:
    job_id: str
    batch_id: str | None = None


def _raise_if_rejected(result: ValidationResult) -> None:
    if not result.ok:
        raise AssignmentPrecheckError(result.failure, result.message or "Validation failed")


class JobSubmitter:
    """Validates, builds and enqueues exactly one job per request.

    Returns as soon as the queue accepted the job; never waits for completion.
    """

    def __init__(
        self,
        validator: AssignmentValidator,
        job_queue: JobQueue,
        batch_repo: BatchStatusRepository,
        max_batch_size: int,
        max_attempts: int,
        batch_id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ):
        self._validator = validator
        self._queue = job_queue
        self._batches = batch_repo
        self._max_batch_size = max_batch_size
        self._max_attempts = max_attempts
        self._new_batch_id = batch_id_factory

    async def submit_single(
        self,
        case_id: str,
        assigned_to_id: str,
        assigned_by_id: str,
        reason: str | None = None,
        priority: AssignmentPriority | None = None,
    ) -> SubmissionReceipt:
        _raise_if_rejected(await self._validator.validate(case_id, assigned_to_id))

        job = SingleAssignmentJob(
            case_id=case_id,
            assigned_to_id=assigned_to_id,
            assigned_by_id=assigned_by_id,
            reason=reason,
            priority=priority,
        )
        job_id = await self._enqueue(job, priority)
        logger.info(
            "Single assignment job %s queued: case=%s → agent=%s by %s",
            job_id, case_id, assigned_to_id, assigned_by_id,
        )
        return SubmissionReceipt(job_id=job_id)

    async def submit_bulk(
        self,
        case_ids: Sequence[str],
        assigned_to_id: str,
        assigned_by_id: str,
        reason: str | None = None,
        priority: AssignmentPriority | None = None,
    ) -> SubmissionReceipt:
        if not case_ids:
            raise AssignmentValidationError("No cases provided for assignment")
        if len(case_ids) > self._max_batch_size:
            raise AssignmentValidationError(
                f"Cannot assign more than {self._max_batch_size} cases in a single batch"
            )

        # Only the first case is checked here; the rest are validated per case
        # inside the worker's transaction.
        _raise_if_rejected(await self._validator.validate(case_ids[0], assigned_to_id))

        batch_id = self._new_batch_id()
        record = BatchStatusRecord(
            batch_id=batch_id,
            created_by_id=assigned_by_id,
            assigned_to_id=assigned_to_id,
            total_cases=len(case_ids),
            status=BatchStatus.PENDING,
        )
        await self._batches.create(record)

        job = BulkAssignmentJob(
            case_ids=tuple(case_ids),
            assigned_to_id=assigned_to_id,
            assigned_by_id=assigned_by_id,
            batch_id=batch_id,
            reason=reason,
            priority=priority,
        )
        job_id = await self._enqueue(job, priority)

        # A worker may already have claimed the job and marked the batch itself
        await self._batches.mark_processing(batch_id, job_id, datetime.now(timezone.utc))

        logger.info(
            "Bulk assignment job %s queued: batch=%s, %d cases → agent=%s by %s",
            job_id, batch_id, len(case_ids), assigned_to_id, assigned_by_id,
        )
        return SubmissionReceipt(job_id=job_id, batch_id=batch_id)

    async def submit_reassign(
        self,
        case_id: str,
        from_agent_id: str,
        to_agent_id: str,
        assigned_by_id: str,
        reason: str,
    ) -> SubmissionReceipt:
        if not reason or not reason.strip():
            raise AssignmentValidationError("Reassignment requires a reason")

        _raise_if_rejected(
            await self._validator.validate_reassignment(case_id, from_agent_id, to_agent_id)
        )

        job = ReassignmentJob(
            case_id=case_id,
            from_agent_id=from_agent_id,
            to_agent_id=to_agent_id,
            assigned_by_id=assigned_by_id,
            reason=reason,
        )
        job_id = await self._enqueue(job, REASSIGNMENT_PRIORITY)
        logger.info(
            "Reassignment job %s queued: case=%s %s → %s by %s",
            job_id, case_id, from_agent_id, to_agent_id, assigned_by_id,
        )
        return SubmissionReceipt(job_id=job_id)

    async def _enqueue(self, job: AssignmentJob, priority: AssignmentPriority | None) -> str:
        return await self._queue.enqueue(
            job, priority=priority_value(priority), max_attempts=self._max_attempts
        )
