"""Durable assignment job queue backed by a PostgreSQL table.

Claiming uses SELECT ... FOR UPDATE SKIP LOCKED so any number of workers, in
any number of processes, can pull from the same table without double delivery.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone

from sqlalchemy import case, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.adapters.persistence.models import AssignmentJobModel
from app.application.ports.job_queue import JobQueue
from app.domain.entities.assignment_job import AssignmentJob, QueuedJob, job_from_payload
from app.domain.policies.priority import backoff_delay
from app.domain.value_objects.enums import JobState

logger = logging.getLogger(__name__)

MAX_ERROR_LENGTH = 2000


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _to_domain(m: AssignmentJobModel) -> QueuedJob:
    return QueuedJob(
        id=m.id,
        job=job_from_payload(m.payload),
        priority=m.priority,
        state=JobState(m.state),
        attempts=m.attempts,
        max_attempts=m.max_attempts,
        progress=m.progress,
        result=m.result,
        last_error=m.last_error,
        enqueued_at=m.enqueued_at,
        finished_at=m.finished_at,
    )


class SqlJobQueue(JobQueue):
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        backoff_seconds: float = 2.0,
    ):
        self._session_factory = session_factory
        self._backoff = backoff_seconds

    async def enqueue(self, job: AssignmentJob, priority: int, max_attempts: int) -> str:
        job_id = str(uuid.uuid4())
        now = _now()
        async with self._session_factory() as s, s.begin():
            s.add(
                AssignmentJobModel(
                    id=job_id,
                    kind=job.kind.value,
                    payload=job.to_payload(),
                    priority=priority,
                    state=JobState.WAITING.value,
                    attempts=0,
                    max_attempts=max_attempts,
                    run_at=now,
                    enqueued_at=now,
                )
            )
        logger.debug("Enqueued %s job %s with priority %d", job.kind.value, job_id, priority)
        return job_id

    async def claim(self) -> QueuedJob | None:
        async with self._session_factory() as s, s.begin():
            result = await s.execute(
                select(AssignmentJobModel)
                .where(
                    AssignmentJobModel.state == JobState.WAITING.value,
                    AssignmentJobModel.run_at <= _now(),
                )
                .order_by(AssignmentJobModel.priority, AssignmentJobModel.enqueued_at)
                .limit(1)
                .with_for_update(skip_locked=True)
            )
            m = result.scalar_one_or_none()
            if m is None:
                return None
            m.state = JobState.ACTIVE.value
            m.attempts += 1
            m.locked_at = _now()
            await s.flush()
            return _to_domain(m)

    async def complete(self, job_id: str, result: dict) -> None:
        async with self._session_factory() as s, s.begin():
            await s.execute(
                update(AssignmentJobModel)
                .where(AssignmentJobModel.id == job_id)
                .values(
                    state=JobState.COMPLETED.value,
                    result=result,
                    locked_at=None,
                    finished_at=_now(),
                )
            )

    async def fail(self, job_id: str, error: str, retryable: bool = True) -> JobState:
        async with self._session_factory() as s, s.begin():
            m = await s.get(AssignmentJobModel, job_id, with_for_update=True)
            if m is None:
                raise LookupError(f"Job {job_id} not found")
            m.last_error = error[:MAX_ERROR_LENGTH]
            m.locked_at = None
            if retryable and m.attempts < m.max_attempts:
                delay = backoff_delay(m.attempts, self._backoff)
                m.state = JobState.WAITING.value
                m.run_at = _now() + timedelta(seconds=delay)
                logger.warning(
                    "Job %s attempt %d/%d failed, retrying in %.1fs",
                    job_id, m.attempts, m.max_attempts, delay,
                )
            else:
                m.state = JobState.DEAD.value
                m.finished_at = _now()
                logger.error("Job %s is dead after %d attempts: %s", job_id, m.attempts, error)
            return JobState(m.state)

    async def update_progress(self, job_id: str, progress: dict) -> None:
        # Progress doubles as a heartbeat so stalled-job recovery skips live jobs
        async with self._session_factory() as s, s.begin():
            await s.execute(
                update(AssignmentJobModel)
                .where(AssignmentJobModel.id == job_id)
                .values(
                    progress=progress,
                    locked_at=case(
                        (AssignmentJobModel.state == JobState.ACTIVE.value, _now()),
                        else_=AssignmentJobModel.locked_at,
                    ),
                )
            )

    async def get(self, job_id: str) -> QueuedJob | None:
        async with self._session_factory() as s:
            m = await s.get(AssignmentJobModel, job_id)
            return _to_domain(m) if m else None

    async def cancel(self, job_id: str) -> bool:
        async with self._session_factory() as s, s.begin():
            result = await s.execute(
                update(AssignmentJobModel)
                .where(
                    AssignmentJobModel.id == job_id,
                    AssignmentJobModel.state == JobState.WAITING.value,
                )
                .values(state=JobState.CANCELLED.value, finished_at=_now())
            )
            return result.rowcount > 0

    async def recover_stalled(self, older_than_seconds: float) -> int:
        cutoff = _now() - timedelta(seconds=older_than_seconds)
        async with self._session_factory() as s, s.begin():
            result = await s.execute(
                update(AssignmentJobModel)
                .where(
                    AssignmentJobModel.state == JobState.ACTIVE.value,
                    AssignmentJobModel.locked_at < cutoff,
                )
                .values(state=JobState.WAITING.value, locked_at=None, run_at=_now())
            )
            return result.rowcount

    async def stats(self) -> dict[str, int]:
        async with self._session_factory() as s:
            result = await s.execute(
                select(AssignmentJobModel.state, func.count(AssignmentJobModel.id))
                .group_by(AssignmentJobModel.state)
            )
            counts = {state.value: 0 for state in JobState}
            counts.update({state: count for state, count in result.all()})
            return counts
