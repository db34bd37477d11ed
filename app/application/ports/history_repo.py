"""Port interface for the append-only assignment history."""

from abc import ABC, abstractmethod

from app.domain.entities.assignment_history import AssignmentHistoryRecord


class AssignmentHistoryRepository(ABC):
    @abstractmethod
    async def append(self, record: AssignmentHistoryRecord) -> AssignmentHistoryRecord:
        ...

    @abstractmethod
    async def get_by_case(self, case_id: str) -> list[AssignmentHistoryRecord]:
        """Return history for one case, newest first."""
        ...
