"""AssignmentValidator — synchronous pre-enqueue check of a case and an agent."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from app.application.ports.agent_repo import AgentRepository
from app.application.ports.case_repo import CaseRepository
from app.domain.value_objects.enums import ValidationFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationResult:
    ok: bool
    failure: ValidationFailure | None = None
    message: str | None = None

    @classmethod
    def passed(cls) -> "ValidationResult":
        return cls(ok=True)

    @classmethod
    def rejected(cls, failure: ValidationFailure, message: str) -> "ValidationResult":
        return cls(ok=False, failure=failure, message=message)


class AssignmentValidator:
    """Checks that a case exists and the agent can receive it.

    Never raises for invalid state: the outcome is always a ValidationResult.
    """

    def __init__(self, case_repo: CaseRepository, agent_repo: AgentRepository):
        self._cases = case_repo
        self._agents = agent_repo

    async def validate(self, case_id: str, agent_id: str) -> ValidationResult:
        case = await self._cases.get_by_id(case_id)
        if case is None:
            return ValidationResult.rejected(
                ValidationFailure.CASE_NOT_FOUND, f"Case {case_id} not found"
            )
        return await self.validate_agent(agent_id)

    async def validate_agent(self, agent_id: str) -> ValidationResult:
        agent = await self._agents.get_by_id(agent_id)
        if agent is None or not agent.has_assignable_role():
            return ValidationResult.rejected(
                ValidationFailure.AGENT_NOT_FOUND, f"Field agent {agent_id} not found"
            )
        if not agent.is_active:
            return ValidationResult.rejected(
                ValidationFailure.AGENT_INACTIVE, f"Field agent {agent_id} is not active"
            )
        return ValidationResult.passed()

    async def validate_reassignment(
        self, case_id: str, from_agent_id: str, to_agent_id: str
    ) -> ValidationResult:
        case = await self._cases.get_by_id(case_id)
        if case is None:
            return ValidationResult.rejected(
                ValidationFailure.CASE_NOT_FOUND, f"Case {case_id} not found"
            )
        if not case.is_assigned_to(from_agent_id):
            logger.info(
                "Reassignment rejected: case %s held by %s, not %s",
                case_id, case.assigned_to, from_agent_id,
            )
            return ValidationResult.rejected(
                ValidationFailure.ASSIGNMENT_MISMATCH,
                f"Case {case_id} is not assigned to user {from_agent_id}",
            )
        return await self.validate_agent(to_agent_id)
