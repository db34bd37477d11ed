"""SQLAlchemy unit of work — one AsyncSession, one transaction."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.adapters.persistence.repositories import (
    SqlAgentRepository,
    SqlAssignmentHistoryRepository,
    SqlCaseRepository,
)
from app.application.ports.unit_of_work import UnitOfWork


class SqlUnitOfWork(UnitOfWork):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory
        self._session: AsyncSession | None = None
        self._committed = False

    async def __aenter__(self) -> "SqlUnitOfWork":
        self._session = self._session_factory()
        self._committed = False
        self.cases = SqlCaseRepository(self._session)
        self.agents = SqlAgentRepository(self._session)
        self.history = SqlAssignmentHistoryRepository(self._session)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        try:
            # A committed transaction has nothing to undo
            if not self._committed:
                await self.rollback()
        finally:
            await self._session.close()
            self._session = None

    async def commit(self) -> None:
        await self._session.commit()
        self._committed = True

    async def rollback(self) -> None:
        await self._session.rollback()
