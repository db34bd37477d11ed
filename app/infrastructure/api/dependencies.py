"""FastAPI dependency injection — wires adapters into use cases."""

from __future__ import annotations

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.audit.sql_audit_writer import SqlAuditWriter
from app.adapters.notifications.sql_notification_queue import SqlNotificationQueue
from app.adapters.persistence.database import SessionFactory, get_session
from app.adapters.persistence.repositories import (
    PooledAgentRepository,
    SqlAgentRepository,
    SqlAssignmentHistoryRepository,
    SqlBatchStatusRepository,
    SqlCaseRepository,
)
from app.adapters.persistence.unit_of_work import SqlUnitOfWork
from app.adapters.queue.sql_job_queue import SqlJobQueue
from app.application.use_cases.assign_case import AssignCaseUseCase
from app.application.use_cases.assignment_queries import AssignmentQueries
from app.application.use_cases.batch_status import BatchStatusTracker
from app.application.use_cases.dispatch_job import AssignmentJobDispatcher
from app.application.use_cases.process_bulk import BulkAssignmentProcessor
from app.application.use_cases.submit_assignment import JobSubmitter
from app.application.use_cases.validate_assignment import AssignmentValidator
from app.config import settings
from app.domain.policies.sizing import worker_pool_size
from app.infrastructure.worker.pool import WorkerPool

# Re-export session dependency
get_db_session = get_session

# Singleton adapters (each opens its own short-lived sessions)
_job_queue = SqlJobQueue(SessionFactory, backoff_seconds=settings.assignment_backoff_seconds)
_batch_repo = SqlBatchStatusRepository(SessionFactory)
_audit_writer = SqlAuditWriter(SessionFactory)
_notification_queue = SqlNotificationQueue(SessionFactory)


def get_job_queue() -> SqlJobQueue:
    return _job_queue


def get_job_submitter(session: AsyncSession = Depends(get_session)) -> JobSubmitter:
    validator = AssignmentValidator(
        case_repo=SqlCaseRepository(session),
        agent_repo=SqlAgentRepository(session),
    )
    return JobSubmitter(
        validator=validator,
        job_queue=_job_queue,
        batch_repo=_batch_repo,
        max_batch_size=settings.max_batch_size,
        max_attempts=settings.assignment_max_attempts,
    )


def get_batch_status_tracker() -> BatchStatusTracker:
    return BatchStatusTracker(batch_repo=_batch_repo, job_queue=_job_queue, audit=_audit_writer)


def get_assignment_queries(session: AsyncSession = Depends(get_session)) -> AssignmentQueries:
    return AssignmentQueries(
        case_repo=SqlCaseRepository(session),
        history_repo=SqlAssignmentHistoryRepository(session),
        job_queue=_job_queue,
    )


def build_worker_pool() -> WorkerPool:
    """Assemble the worker-side object graph; sized once from settings."""
    assign_case = AssignCaseUseCase(
        uow_factory=lambda: SqlUnitOfWork(SessionFactory),
        audit=_audit_writer,
        notifications=_notification_queue,
    )
    bulk = BulkAssignmentProcessor(
        assign_case=assign_case,
        agent_repo=PooledAgentRepository(SessionFactory),
        batch_repo=_batch_repo,
        job_queue=_job_queue,
        audit=_audit_writer,
        sub_batch_delay_seconds=settings.sub_batch_delay_ms / 1000,
    )
    dispatcher = AssignmentJobDispatcher(
        assign_case=assign_case, bulk_processor=bulk, batch_repo=_batch_repo
    )
    return WorkerPool(
        queue=_job_queue,
        dispatcher=dispatcher,
        size=worker_pool_size(settings.total_concurrent_users),
        poll_interval=settings.queue_poll_interval_seconds,
        stalled_after=settings.queue_stalled_after_seconds,
    )
