"""AssignCaseUseCase — the per-case assignment transaction.

The only code path that writes a case's assignee. Steps 1-6 run inside one
unit of work; audit and notification are emitted after commit so a downstream
hiccup never undoes a committed assignment.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from app.application.ports.audit_port import AuditWriter
from app.application.ports.notification_port import NotificationQueue
from app.application.ports.unit_of_work import UnitOfWorkFactory
from app.domain.entities.agent import Agent
from app.domain.entities.assignment_history import AssignmentHistoryRecord
from app.domain.entities.assignment_result import AssignmentResult
from app.domain.entities.case import Case
from app.domain.entities.notification_event import NotificationEvent
from app.domain.value_objects.enums import AuditAction, NotificationKind, ValidationFailure

logger = logging.getLogger(__name__)

CASE_ENTITY = "CASE"


class _Abort(Exception):
    """Domain-state failure inside the transaction; rolls back, not retried."""

    def __init__(self, failure: ValidationFailure, message: str):
        super().__init__(message)
        self.failure = failure


@dataclass(frozen=True)
class _Committed:
    case: Case
    agent: Agent
    previous_assignee_id: str | None
    previous_assignee_name: str | None


class AssignCaseUseCase:
    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        audit: AuditWriter,
        notifications: NotificationQueue,
    ):
        self._uow_factory = uow_factory
        self._audit = audit
        self._notifications = notifications

    async def execute(
        self,
        case_id: str,
        assigned_to_id: str,
        assigned_by_id: str,
        reason: str | None = None,
        batch_id: str | None = None,
        expected_assignee_id: str | None = None,
    ) -> AssignmentResult:
        """Assign one case, returning a result instead of raising.

        Args:
            expected_assignee_id: when set (reassignment), the case must still be
                held by this agent once the row lock is acquired.
        """
        try:
            committed = await self._transact(
                case_id, assigned_to_id, assigned_by_id, reason, batch_id, expected_assignee_id
            )
        except _Abort as e:
            logger.warning("Assignment of case %s to %s rejected: %s", case_id, assigned_to_id, e)
            return AssignmentResult.failed(case_id, str(e), failure=e.failure)
        except Exception as e:
            logger.exception("Assignment of case %s to %s failed", case_id, assigned_to_id)
            return AssignmentResult.failed(case_id, str(e) or type(e).__name__, retryable=True)

        await self._emit(committed, assigned_by_id, reason, batch_id)

        logger.info(
            "Case %s assigned: %s → %s (by %s)",
            case_id, committed.previous_assignee_id, assigned_to_id, assigned_by_id,
        )
        return AssignmentResult(
            success=True,
            case_id=case_id,
            previous_assignee=committed.previous_assignee_name,
            new_assignee=committed.agent.name,
        )

    async def _transact(
        self,
        case_id: str,
        assigned_to_id: str,
        assigned_by_id: str,
        reason: str | None,
        batch_id: str | None,
        expected_assignee_id: str | None,
    ) -> _Committed:
        async with self._uow_factory() as uow:
            case = await uow.cases.get_for_update(case_id)
            if case is None:
                raise _Abort(ValidationFailure.CASE_NOT_FOUND, f"Case {case_id} not found")

            if expected_assignee_id is not None and not case.is_assigned_to(expected_assignee_id):
                raise _Abort(
                    ValidationFailure.ASSIGNMENT_MISMATCH,
                    f"Case {case_id} is not assigned to user {expected_assignee_id}",
                )

            agent = await uow.agents.get_by_id(assigned_to_id)
            if agent is None or not agent.is_assignable():
                failure = (
                    ValidationFailure.AGENT_INACTIVE
                    if agent is not None and agent.has_assignable_role()
                    else ValidationFailure.AGENT_NOT_FOUND
                )
                raise _Abort(failure, f"Field agent {assigned_to_id} not found or inactive")

            previous_id = case.assigned_to
            previous_name = None
            if previous_id:
                previous = await uow.agents.get_by_id(previous_id)
                previous_name = previous.name if previous else None

            case.assign(assigned_to_id)
            await uow.cases.update_assignment(case)

            await uow.history.append(
                AssignmentHistoryRecord(
                    id=None,
                    case_id=case.id,
                    previous_assignee_id=previous_id,
                    new_assignee_id=assigned_to_id,
                    assigned_by_id=assigned_by_id,
                    reason=reason or "Case assignment",
                    assigned_at=datetime.now(timezone.utc),
                    batch_id=batch_id,
                )
            )
            await uow.commit()

        return _Committed(case, agent, previous_id, previous_name)

    async def _emit(
        self,
        committed: _Committed,
        assigned_by_id: str,
        reason: str | None,
        batch_id: str | None,
    ) -> None:
        case = committed.case
        is_reassignment = committed.previous_assignee_id is not None
        try:
            await self._audit.record(
                AuditAction.CASE_REASSIGNED if is_reassignment else AuditAction.CASE_ASSIGNED,
                CASE_ENTITY,
                case.id,
                assigned_by_id,
                {
                    "case_number": case.case_number,
                    "customer_name": case.customer_name,
                    "previous_assignee": committed.previous_assignee_name,
                    "new_assignee": committed.agent.name,
                    "reason": reason or "No reason provided",
                    "batch_id": batch_id,
                },
            )
        except Exception:
            logger.exception("Audit event for case %s could not be recorded", case.id)

        try:
            await self._notifications.enqueue(
                NotificationEvent(
                    user_id=committed.agent.id,
                    case_id=case.id,
                    case_number=case.case_number,
                    customer_name=case.customer_name,
                    kind=(
                        NotificationKind.REASSIGNMENT if is_reassignment
                        else NotificationKind.ASSIGNMENT
                    ),
                    assigned_by_id=assigned_by_id,
                    reason=reason,
                    batch_id=batch_id,
                )
            )
        except Exception:
            logger.exception("Notification for case %s could not be queued", case.id)
