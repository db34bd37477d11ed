"""Read-only assignment queries: case history, agent workload, queue overview."""

from __future__ import annotations

from app.application.ports.case_repo import CaseRepository
from app.application.ports.history_repo import AssignmentHistoryRepository
from app.application.ports.job_queue import JobQueue
from app.domain.entities.agent_workload import AgentWorkload
from app.domain.entities.assignment_history import AssignmentHistoryRecord
from app.domain.entities.assignment_job import QueuedJob


class AssignmentQueries:
    def __init__(
        self,
        case_repo: CaseRepository,
        history_repo: AssignmentHistoryRepository,
        job_queue: JobQueue,
    ):
        self._cases = case_repo
        self._history = history_repo
        self._queue = job_queue

    async def get_case_history(self, case_id: str) -> list[AssignmentHistoryRecord] | None:
        """Newest-first history of one case, or None if the case is unknown."""
        if await self._cases.get_by_id(case_id) is None:
            return None
        return await self._history.get_by_case(case_id)

    async def get_agent_workload(self) -> list[AgentWorkload]:
        workload = await self._cases.get_workload()
        return sorted(workload, key=lambda w: (-w.total_assigned_cases, w.agent_name))

    async def get_job(self, job_id: str) -> QueuedJob | None:
        return await self._queue.get(job_id)

    async def get_queue_stats(self) -> dict[str, int]:
        return await self._queue.stats()
