"""AssignmentJob — closed union of the three job payload variants.

A job is exactly one of ``SingleAssignmentJob``, ``BulkAssignmentJob`` or
``ReassignmentJob``; the variant decides which handler runs. ``to_payload`` /
``job_from_payload`` convert to and from the JSON document stored in the queue.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Union

from app.domain.value_objects.enums import AssignmentPriority, JobKind, JobState


@dataclass(frozen=True)
class SingleAssignmentJob:
    case_id: str
    assigned_to_id: str
    assigned_by_id: str
    reason: str | None = None
    priority: AssignmentPriority | None = None

    kind = JobKind.SINGLE

    def to_payload(self) -> dict:
        return {
            "type": self.kind.value,
            "case_id": self.case_id,
            "assigned_to_id": self.assigned_to_id,
            "assigned_by_id": self.assigned_by_id,
            "reason": self.reason,
            "priority": self.priority.value if self.priority else None,
        }


@dataclass(frozen=True)
class BulkAssignmentJob:
    case_ids: tuple[str, ...]
    assigned_to_id: str
    assigned_by_id: str
    batch_id: str
    reason: str | None = None
    priority: AssignmentPriority | None = None

    kind = JobKind.BULK

    def to_payload(self) -> dict:
        return {
            "type": self.kind.value,
            "case_ids": list(self.case_ids),
            "assigned_to_id": self.assigned_to_id,
            "assigned_by_id": self.assigned_by_id,
            "batch_id": self.batch_id,
            "reason": self.reason,
            "priority": self.priority.value if self.priority else None,
        }


@dataclass(frozen=True)
class ReassignmentJob:
    case_id: str
    from_agent_id: str
    to_agent_id: str
    assigned_by_id: str
    reason: str

    kind = JobKind.REASSIGN

    def to_payload(self) -> dict:
        return {
            "type": self.kind.value,
            "case_id": self.case_id,
            "from_agent_id": self.from_agent_id,
            "to_agent_id": self.to_agent_id,
            "assigned_by_id": self.assigned_by_id,
            "reason": self.reason,
        }


AssignmentJob = Union[SingleAssignmentJob, BulkAssignmentJob, ReassignmentJob]


def _priority(raw: str | None) -> AssignmentPriority | None:
    return AssignmentPriority(raw) if raw else None


def job_from_payload(payload: dict) -> AssignmentJob:
    """Rebuild a job variant from its stored payload.

    Raises:
        ValueError: if the payload carries an unknown type tag.
    """
    kind = JobKind(payload["type"])
    if kind == JobKind.SINGLE:
        return SingleAssignmentJob(
            case_id=payload["case_id"],
            assigned_to_id=payload["assigned_to_id"],
            assigned_by_id=payload["assigned_by_id"],
            reason=payload.get("reason"),
            priority=_priority(payload.get("priority")),
        )
    if kind == JobKind.BULK:
        return BulkAssignmentJob(
            case_ids=tuple(payload["case_ids"]),
            assigned_to_id=payload["assigned_to_id"],
            assigned_by_id=payload["assigned_by_id"],
            batch_id=payload["batch_id"],
            reason=payload.get("reason"),
            priority=_priority(payload.get("priority")),
        )
    return ReassignmentJob(
        case_id=payload["case_id"],
        from_agent_id=payload["from_agent_id"],
        to_agent_id=payload["to_agent_id"],
        assigned_by_id=payload["assigned_by_id"],
        reason=payload["reason"],
    )


@dataclass
class QueuedJob:
    """A job as held by the durable queue."""

    id: str
    job: AssignmentJob
    priority: int
    state: JobState
    attempts: int = 0
    max_attempts: int = 1
    progress: dict | None = None
    result: dict | None = None
    last_error: str | None = None
    enqueued_at: datetime | None = None
    finished_at: datetime | None = None
