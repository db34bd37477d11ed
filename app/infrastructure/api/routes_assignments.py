"""Assignment endpoints — submit jobs, poll batches, read history and workload."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from app.application.use_cases.assignment_queries import AssignmentQueries
from app.application.use_cases.batch_status import BatchStatusTracker
from app.application.use_cases.submit_assignment import JobSubmitter
from app.domain.errors import (
    AssignmentPrecheckError,
    AssignmentValidationError,
    BatchNotFoundError,
)
from app.domain.value_objects.enums import AssignmentPriority, ValidationFailure
from app.infrastructure.api.dependencies import (
    get_assignment_queries,
    get_batch_status_tracker,
    get_job_submitter,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/assignments", tags=["assignments"])

# ── Request schemas ─────────────────────────────────────────────────


class SingleAssignmentRequest(BaseModel):
    case_id: str
    assigned_to_id: str
    assigned_by_id: str
    reason: str | None = None
    priority: AssignmentPriority | None = None


class BulkAssignmentRequest(BaseModel):
    case_ids: list[str]
    assigned_to_id: str
    assigned_by_id: str
    reason: str | None = None
    priority: AssignmentPriority | None = None


class ReassignmentRequest(BaseModel):
    case_id: str
    from_agent_id: str
    to_agent_id: str
    assigned_by_id: str
    reason: str = Field(default="")


class CancelBatchRequest(BaseModel):
    cancelled_by_id: str


# ── Helpers ─────────────────────────────────────────────────────────

_PRECHECK_STATUS = {
    ValidationFailure.CASE_NOT_FOUND: 404,
    ValidationFailure.AGENT_NOT_FOUND: 404,
    ValidationFailure.AGENT_INACTIVE: 409,
    ValidationFailure.ASSIGNMENT_MISMATCH: 409,
}


def _rejection(e: AssignmentValidationError | AssignmentPrecheckError) -> HTTPException:
    if isinstance(e, AssignmentPrecheckError):
        return HTTPException(
            status_code=_PRECHECK_STATUS[e.reason],
            detail={"reason": e.reason.value, "message": str(e)},
        )
    return HTTPException(status_code=400, detail=str(e))


# ── Submission ──────────────────────────────────────────────────────


@router.post("/single", status_code=202)
async def submit_single(
    body: SingleAssignmentRequest,
    submitter: JobSubmitter = Depends(get_job_submitter),
):
    """Queue assignment of one case to a field agent."""
    try:
        receipt = await submitter.submit_single(
            body.case_id, body.assigned_to_id, body.assigned_by_id, body.reason, body.priority
        )
    except (AssignmentValidationError, AssignmentPrecheckError) as e:
        raise _rejection(e)
    return {"status": "queued", "job_id": receipt.job_id}


@router.post("/bulk", status_code=202)
async def submit_bulk(
    body: BulkAssignmentRequest,
    submitter: JobSubmitter = Depends(get_job_submitter),
):
    """Queue assignment of many cases to one field agent."""
    try:
        receipt = await submitter.submit_bulk(
            body.case_ids, body.assigned_to_id, body.assigned_by_id, body.reason, body.priority
        )
    except (AssignmentValidationError, AssignmentPrecheckError) as e:
        raise _rejection(e)
    return {
        "status": "queued",
        "job_id": receipt.job_id,
        "batch_id": receipt.batch_id,
        "total_cases": len(body.case_ids),
    }


@router.post("/reassign", status_code=202)
async def submit_reassign(
    body: ReassignmentRequest,
    submitter: JobSubmitter = Depends(get_job_submitter),
):
    """Queue reassignment of a case from one field agent to another."""
    try:
        receipt = await submitter.submit_reassign(
            body.case_id, body.from_agent_id, body.to_agent_id, body.assigned_by_id, body.reason
        )
    except (AssignmentValidationError, AssignmentPrecheckError) as e:
        raise _rejection(e)
    return {"status": "queued", "job_id": receipt.job_id}


# ── Batch status ────────────────────────────────────────────────────


@router.get("/batches/{batch_id}")
async def get_batch_status(
    batch_id: str,
    tracker: BatchStatusTracker = Depends(get_batch_status_tracker),
):
    view = await tracker.get_status(batch_id)
    if view is None:
        raise HTTPException(status_code=404, detail="Batch not found")
    return {
        "batch_id": view.batch_id,
        "job_id": view.job_id,
        "status": view.status.value,
        "total_cases": view.total_cases,
        "processed_cases": view.processed_cases,
        "successful_assignments": view.successful_assignments,
        "failed_assignments": view.failed_assignments,
        "progress": view.progress,
        "errors": view.errors,
        "started_at": view.started_at,
        "completed_at": view.completed_at,
        "job_progress": view.job_progress,
    }


@router.post("/batches/{batch_id}/cancel")
async def cancel_batch(
    batch_id: str,
    body: CancelBatchRequest,
    tracker: BatchStatusTracker = Depends(get_batch_status_tracker),
):
    try:
        cancelled = await tracker.cancel(batch_id, body.cancelled_by_id)
    except BatchNotFoundError:
        raise HTTPException(status_code=404, detail="Batch not found")
    if not cancelled:
        raise HTTPException(status_code=409, detail="Batch can no longer be cancelled")
    return {"status": "ok", "batch_id": batch_id, "cancelled": True}


# ── Queries ─────────────────────────────────────────────────────────


@router.get("/jobs/{job_id}")
async def get_job(job_id: str, queries: AssignmentQueries = Depends(get_assignment_queries)):
    queued = await queries.get_job(job_id)
    if queued is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return {
        "job_id": queued.id,
        "type": queued.job.kind.value,
        "state": queued.state.value,
        "priority": queued.priority,
        "attempts": queued.attempts,
        "max_attempts": queued.max_attempts,
        "progress": queued.progress,
        "result": queued.result,
        "last_error": queued.last_error,
        "enqueued_at": queued.enqueued_at,
        "finished_at": queued.finished_at,
    }


@router.get("/queue/stats")
async def queue_stats(queries: AssignmentQueries = Depends(get_assignment_queries)):
    return {"queue": "case-assignment", "jobs": await queries.get_queue_stats()}


@router.get("/cases/{case_id}/history")
async def case_history(case_id: str, queries: AssignmentQueries = Depends(get_assignment_queries)):
    history = await queries.get_case_history(case_id)
    if history is None:
        raise HTTPException(status_code=404, detail="Case not found")
    return [
        {
            "id": h.id,
            "case_id": h.case_id,
            "previous_assignee_id": h.previous_assignee_id,
            "new_assignee_id": h.new_assignee_id,
            "assigned_by_id": h.assigned_by_id,
            "reason": h.reason,
            "batch_id": h.batch_id,
            "assigned_at": h.assigned_at,
        }
        for h in history
    ]


@router.get("/workload")
async def agent_workload(queries: AssignmentQueries = Depends(get_assignment_queries)):
    return [
        {
            "agent_id": w.agent_id,
            "agent_name": w.agent_name,
            "total_assigned_cases": w.total_assigned_cases,
            "by_status": w.by_status,
        }
        for w in await queries.get_agent_workload()
    ]
