"""Port interface for a transactional unit of work.

One unit of work equals one database transaction. Row locks taken through
``cases.get_for_update`` are held until ``commit`` or until the context exits.
Leaving the context without committing rolls everything back.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable

from app.application.ports.agent_repo import AgentRepository
from app.application.ports.case_repo import CaseRepository
from app.application.ports.history_repo import AssignmentHistoryRepository


class UnitOfWork(ABC):
    cases: CaseRepository
    agents: AgentRepository
    history: AssignmentHistoryRepository

    async def __aenter__(self) -> "UnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.rollback()

    @abstractmethod
    async def commit(self) -> None:
        ...

    @abstractmethod
    async def rollback(self) -> None:
        """Discard uncommitted changes. Safe to call after commit."""
        ...


UnitOfWorkFactory = Callable[[], UnitOfWork]
