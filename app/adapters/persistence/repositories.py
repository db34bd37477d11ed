"""SQLAlchemy repository implementations."""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.adapters.persistence.models import (
    AgentModel,
    AssignmentHistoryModel,
    BatchStatusModel,
    CaseModel,
)
from app.application.ports.agent_repo import AgentRepository
from app.application.ports.batch_status_repo import BatchStatusRepository
from app.application.ports.case_repo import CaseRepository
from app.application.ports.history_repo import AssignmentHistoryRepository
from app.domain.entities.agent import Agent
from app.domain.entities.agent_workload import AgentWorkload
from app.domain.entities.assignment_history import AssignmentHistoryRecord
from app.domain.entities.batch_status import BatchStatusRecord
from app.domain.entities.case import Case
from app.domain.value_objects.enums import AgentRole, BatchStatus, CaseStatus

_OPEN_BATCH_STATES = [s.value for s in BatchStatus if not s.is_terminal()]

# ─── Mappers ─────────────────────────────────────────────────────────


def _case_to_domain(m: CaseModel) -> Case:
    return Case(
        id=m.id,
        case_number=m.case_number,
        status=CaseStatus(m.status),
        assigned_to=m.assigned_to,
        customer_name=m.customer_name,
        created_at=m.created_at,
        updated_at=m.updated_at,
    )


def _agent_to_domain(m: AgentModel) -> Agent:
    return Agent(
        id=m.id,
        name=m.name,
        role=AgentRole(m.role),
        is_active=m.is_active,
        email=m.email,
    )


def _history_to_domain(m: AssignmentHistoryModel) -> AssignmentHistoryRecord:
    return AssignmentHistoryRecord(
        id=m.id,
        case_id=m.case_id,
        previous_assignee_id=m.from_agent_id,
        new_assignee_id=m.to_agent_id,
        assigned_by_id=m.assigned_by_id,
        reason=m.reason,
        assigned_at=m.assigned_at,
        batch_id=m.batch_id,
    )


def _batch_to_domain(m: BatchStatusModel) -> BatchStatusRecord:
    return BatchStatusRecord(
        batch_id=m.batch_id,
        job_id=m.job_id,
        created_by_id=m.created_by_id,
        assigned_to_id=m.assigned_to_id,
        total_cases=m.total_cases,
        processed_cases=m.processed_cases,
        successful_assignments=m.successful_assignments,
        failed_assignments=m.failed_assignments,
        errors=list(m.errors or []),
        status=BatchStatus(m.status),
        started_at=m.started_at,
        completed_at=m.completed_at,
    )


# ─── Repositories ────────────────────────────────────────────────────


class SqlCaseRepository(CaseRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def get_by_id(self, case_id: str) -> Case | None:
        m = await self._s.get(CaseModel, case_id)
        return _case_to_domain(m) if m else None

    async def get_for_update(self, case_id: str) -> Case | None:
        result = await self._s.execute(
            select(CaseModel).where(CaseModel.id == case_id).with_for_update()
        )
        m = result.scalar_one_or_none()
        return _case_to_domain(m) if m else None

    async def update_assignment(self, case: Case) -> Case:
        await self._s.execute(
            update(CaseModel)
            .where(CaseModel.id == case.id)
            .values(assigned_to=case.assigned_to, status=case.status.value)
        )
        await self._s.flush()
        return case

    async def get_workload(self) -> list[AgentWorkload]:
        result = await self._s.execute(
            select(AgentModel.id, AgentModel.name, CaseModel.status, func.count(CaseModel.id))
            .outerjoin(CaseModel, CaseModel.assigned_to == AgentModel.id)
            .where(
                AgentModel.role == AgentRole.FIELD_AGENT.value,
                AgentModel.is_active.is_(True),
            )
            .group_by(AgentModel.id, AgentModel.name, CaseModel.status)
        )
        names: dict[str, str] = {}
        counts: dict[str, dict[str, int]] = defaultdict(dict)
        for agent_id, name, status, count in result.all():
            names[agent_id] = name
            if status is not None:
                counts[agent_id][status] = count
        return [
            AgentWorkload(
                agent_id=agent_id,
                agent_name=name,
                total_assigned_cases=sum(counts[agent_id].values()),
                by_status=dict(counts[agent_id]),
            )
            for agent_id, name in names.items()
        ]


class SqlAgentRepository(AgentRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def get_by_id(self, agent_id: str) -> Agent | None:
        m = await self._s.get(AgentModel, agent_id)
        return _agent_to_domain(m) if m else None


class PooledAgentRepository(AgentRepository):
    """Agent lookups outside a request: one short session per call."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def get_by_id(self, agent_id: str) -> Agent | None:
        async with self._session_factory() as s:
            return await SqlAgentRepository(s).get_by_id(agent_id)


class SqlAssignmentHistoryRepository(AssignmentHistoryRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def append(self, record: AssignmentHistoryRecord) -> AssignmentHistoryRecord:
        m = AssignmentHistoryModel(
            case_id=record.case_id,
            from_agent_id=record.previous_assignee_id,
            to_agent_id=record.new_assignee_id,
            assigned_by_id=record.assigned_by_id,
            reason=record.reason,
            batch_id=record.batch_id,
            assigned_at=record.assigned_at,
        )
        self._s.add(m)
        await self._s.flush()
        return _history_to_domain(m)

    async def get_by_case(self, case_id: str) -> list[AssignmentHistoryRecord]:
        result = await self._s.execute(
            select(AssignmentHistoryModel)
            .where(AssignmentHistoryModel.case_id == case_id)
            .order_by(AssignmentHistoryModel.assigned_at.desc(), AssignmentHistoryModel.id.desc())
        )
        return [_history_to_domain(m) for m in result.scalars()]


class SqlBatchStatusRepository(BatchStatusRepository):
    """Commits every write in its own short session so pollers see progress at once."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def create(self, record: BatchStatusRecord) -> BatchStatusRecord:
        async with self._session_factory() as s, s.begin():
            s.add(
                BatchStatusModel(
                    batch_id=record.batch_id,
                    job_id=record.job_id,
                    created_by_id=record.created_by_id,
                    assigned_to_id=record.assigned_to_id,
                    total_cases=record.total_cases,
                    processed_cases=record.processed_cases,
                    successful_assignments=record.successful_assignments,
                    failed_assignments=record.failed_assignments,
                    errors=list(record.errors),
                    status=record.status.value,
                    started_at=record.started_at,
                    completed_at=record.completed_at,
                )
            )
        return record

    async def get(self, batch_id: str) -> BatchStatusRecord | None:
        async with self._session_factory() as s:
            m = await s.get(BatchStatusModel, batch_id)
            return _batch_to_domain(m) if m else None

    async def mark_processing(self, batch_id: str, job_id: str, started_at: datetime) -> bool:
        async with self._session_factory() as s, s.begin():
            result = await s.execute(
                update(BatchStatusModel)
                .where(
                    BatchStatusModel.batch_id == batch_id,
                    BatchStatusModel.status.in_(_OPEN_BATCH_STATES),
                )
                .values(
                    job_id=job_id,
                    status=BatchStatus.PROCESSING.value,
                    started_at=func.coalesce(BatchStatusModel.started_at, started_at),
                )
            )
            return result.rowcount > 0

    async def update_progress(
        self, batch_id: str, successful: int, failed: int, errors: list[str]
    ) -> bool:
        async with self._session_factory() as s, s.begin():
            result = await s.execute(
                update(BatchStatusModel)
                .where(
                    BatchStatusModel.batch_id == batch_id,
                    BatchStatusModel.status.in_(_OPEN_BATCH_STATES),
                )
                .values(
                    processed_cases=func.least(
                        func.greatest(BatchStatusModel.processed_cases, successful + failed),
                        BatchStatusModel.total_cases,
                    ),
                    successful_assignments=func.greatest(
                        BatchStatusModel.successful_assignments, successful
                    ),
                    failed_assignments=func.greatest(BatchStatusModel.failed_assignments, failed),
                    errors=list(errors),
                )
            )
            return result.rowcount > 0

    async def close(
        self,
        batch_id: str,
        status: BatchStatus,
        completed_at: datetime,
        errors: list[str] | None = None,
    ) -> bool:
        values = {"status": status.value, "completed_at": completed_at}
        if errors is not None:
            values["errors"] = list(errors)
        async with self._session_factory() as s, s.begin():
            result = await s.execute(
                update(BatchStatusModel)
                .where(
                    BatchStatusModel.batch_id == batch_id,
                    BatchStatusModel.status.in_(_OPEN_BATCH_STATES),
                )
                .values(**values)
            )
            return result.rowcount > 0

    async def assigned_case_ids(self, batch_id: str) -> set[str]:
        async with self._session_factory() as s:
            result = await s.execute(
                select(AssignmentHistoryModel.case_id)
                .where(AssignmentHistoryModel.batch_id == batch_id)
                .distinct()
            )
            return set(result.scalars())
