"""Port interface for case persistence."""

from abc import ABC, abstractmethod

from app.domain.entities.agent_workload import AgentWorkload
from app.domain.entities.case import Case


class CaseRepository(ABC):
    @abstractmethod
    async def get_by_id(self, case_id: str) -> Case | None:
        ...

    @abstractmethod
    async def get_for_update(self, case_id: str) -> Case | None:
        """Load the case and hold an exclusive row lock until the enclosing
        transaction commits or rolls back.

        Must use row-level locking (SELECT ... FOR UPDATE) for safety.
        """
        ...

    @abstractmethod
    async def update_assignment(self, case: Case) -> Case:
        """Persist assignee and status of a case loaded via get_for_update."""
        ...

    @abstractmethod
    async def get_workload(self) -> list[AgentWorkload]:
        ...
