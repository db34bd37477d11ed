"""BulkAssignmentProcessor — executes a bulk job in ordered sub-batches."""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone

from app.application.ports.agent_repo import AgentRepository
from app.application.ports.audit_port import AuditWriter
from app.application.ports.batch_status_repo import BatchStatusRepository
from app.application.ports.job_queue import JobQueue
from app.application.use_cases.assign_case import CASE_ENTITY, AssignCaseUseCase
from app.domain.entities.assignment_job import BulkAssignmentJob
from app.domain.entities.assignment_result import AssignmentResult
from app.domain.entities.batch_status import BatchStatusRecord
from app.domain.errors import PermanentJobError
from app.domain.policies.sizing import chunk, sub_batch_size
from app.domain.value_objects.enums import AuditAction, BatchStatus

logger = logging.getLogger(__name__)


@dataclass
class BulkAssignmentSummary:
    batch_id: str
    total_cases: int
    successful_assignments: int = 0
    failed_assignments: int = 0
    results: list[AssignmentResult] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def processed_cases(self) -> int:
        return self.successful_assignments + self.failed_assignments

    def record(self, result: AssignmentResult) -> None:
        self.results.append(result)
        if result.success:
            self.successful_assignments += 1
        else:
            self.failed_assignments += 1
            self.errors.append(f"Case {result.case_id}: {result.error}")

    def to_dict(self) -> dict:
        return {
            "batch_id": self.batch_id,
            "total_cases": self.total_cases,
            "successful_assignments": self.successful_assignments,
            "failed_assignments": self.failed_assignments,
            "errors": list(self.errors),
            "results": [r.to_dict() for r in self.results],
        }


class BulkAssignmentProcessor:
    """Runs every case of a bulk job through the per-case transaction.

    Sub-batches execute strictly in order; cases inside one sub-batch run
    concurrently. A failing case is counted, never fatal to the batch.
    """

    def __init__(
        self,
        assign_case: AssignCaseUseCase,
        agent_repo: AgentRepository,
        batch_repo: BatchStatusRepository,
        job_queue: JobQueue,
        audit: AuditWriter,
        sub_batch_delay_seconds: float = 0.1,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._assign = assign_case
        self._agents = agent_repo
        self._batches = batch_repo
        self._queue = job_queue
        self._audit = audit
        self._delay = sub_batch_delay_seconds
        self._sleep = sleep

    async def execute(self, job: BulkAssignmentJob, job_id: str) -> BulkAssignmentSummary:
        """Assign every case of the job, resuming after the last reported sub-batch.

        On a retried attempt the counts stored on the batch record are carried
        over, and cases whose assignment already committed for this batch are
        counted without being assigned again.
        """
        agent = await self._agents.get_by_id(job.assigned_to_id)
        if agent is None or not agent.is_assignable():
            raise PermanentJobError(f"Field agent {job.assigned_to_id} not found or inactive")

        case_ids = list(job.case_ids)
        total = len(case_ids)
        size = sub_batch_size(total)
        total_batches = math.ceil(total / size)
        summary = BulkAssignmentSummary(batch_id=job.batch_id, total_cases=total)

        record = await self._batches.get(job.batch_id)
        start = 0
        committed: set[str] = set()
        if record is None:
            logger.warning("Batch %s has no status record; progress is job-only", job.batch_id)
        else:
            await self._batches.mark_processing(job.batch_id, job_id, datetime.now(timezone.utc))
            committed = await self._batches.assigned_case_ids(job.batch_id)
            start = min(record.processed_cases, total)
            if start:
                summary.successful_assignments = record.successful_assignments
                summary.failed_assignments = record.failed_assignments
                summary.errors = list(record.errors)
                logger.info(
                    "Resuming batch %s after %d/%d processed cases", job.batch_id, start, total
                )

        logger.info(
            "Starting bulk assignment: batch=%s, cases=%d, sub_batch=%d, sub_batches=%d, agent=%s",
            job.batch_id, total, size, total_batches, job.assigned_to_id,
        )

        first_batch = start // size + 1
        for index, sub_batch in enumerate(chunk(case_ids[start:], size), start=first_batch):
            pending = [case_id for case_id in sub_batch if case_id not in committed]
            outcomes = await asyncio.gather(
                *(
                    self._assign.execute(
                        case_id,
                        job.assigned_to_id,
                        job.assigned_by_id,
                        reason=job.reason,
                        batch_id=job.batch_id,
                    )
                    for case_id in pending
                ),
                return_exceptions=True,
            )
            by_case = dict(zip(pending, outcomes))
            for case_id in sub_batch:
                if case_id not in by_case:
                    logger.info("Case %s already assigned in batch %s", case_id, job.batch_id)
                    summary.record(
                        AssignmentResult(success=True, case_id=case_id, new_assignee=agent.name)
                    )
                    continue
                outcome = by_case[case_id]
                if isinstance(outcome, BaseException):
                    outcome = AssignmentResult.failed(case_id, str(outcome) or type(outcome).__name__)
                summary.record(outcome)

            await self._report(job_id, summary, record, index, total_batches)
            logger.debug(
                "Batch %s: sub-batch %d/%d done (%d ok, %d failed)",
                job.batch_id, index, total_batches,
                summary.successful_assignments, summary.failed_assignments,
            )

            if index < total_batches and self._delay > 0:
                await self._sleep(self._delay)

        await self._finish(job, job_id, summary, record, agent.name, total_batches)
        return summary

    async def _report(
        self,
        job_id: str,
        summary: BulkAssignmentSummary,
        record: BatchStatusRecord | None,
        current_batch: int,
        total_batches: int,
        completed: bool = False,
    ) -> None:
        progress = {
            "processed": summary.processed_cases,
            "total": summary.total_cases,
            "current_batch": current_batch,
            "total_batches": total_batches,
            "successful_assignments": summary.successful_assignments,
            "failed_assignments": summary.failed_assignments,
        }
        if completed:
            progress["completed"] = True
        await self._queue.update_progress(job_id, progress)

        if record is not None and not completed:
            await self._batches.update_progress(
                summary.batch_id,
                summary.successful_assignments,
                summary.failed_assignments,
                summary.errors,
            )

    async def _finish(
        self,
        job: BulkAssignmentJob,
        job_id: str,
        summary: BulkAssignmentSummary,
        record: BatchStatusRecord | None,
        agent_name: str,
        total_batches: int,
    ) -> None:
        await self._report(job_id, summary, record, total_batches, total_batches, completed=True)

        if record is not None:
            closed = await self._batches.close(
                job.batch_id,
                BatchStatus.COMPLETED,
                datetime.now(timezone.utc),
                errors=summary.errors,
            )
            if not closed:
                logger.info("Batch %s was closed while running; final status kept", job.batch_id)

        try:
            await self._audit.record(
                AuditAction.BULK_CASE_ASSIGNMENT,
                CASE_ENTITY,
                job.batch_id,
                job.assigned_by_id,
                {
                    "batch_id": job.batch_id,
                    "assigned_to": agent_name,
                    "total_cases": summary.total_cases,
                    "successful_assignments": summary.successful_assignments,
                    "failed_assignments": summary.failed_assignments,
                    "reason": job.reason or "Bulk assignment",
                },
            )
        except Exception:
            logger.exception("Audit event for batch %s could not be recorded", job.batch_id)

        logger.info(
            "Bulk assignment completed: batch=%s, %d/%d successful, %d failed",
            job.batch_id, summary.successful_assignments,
            summary.total_cases, summary.failed_assignments,
        )
