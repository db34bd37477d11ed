"""In-memory fakes of every application port, shared by the unit tests."""

from __future__ import annotations

import asyncio
import copy
import itertools
from collections import defaultdict
from dataclasses import replace

from app.application.ports.agent_repo import AgentRepository
from app.application.ports.audit_port import AuditWriter
from app.application.ports.batch_status_repo import BatchStatusRepository
from app.application.ports.case_repo import CaseRepository
from app.application.ports.history_repo import AssignmentHistoryRepository
from app.application.ports.job_queue import JobQueue
from app.application.ports.notification_port import NotificationQueue
from app.application.ports.unit_of_work import UnitOfWork
from app.domain.entities.agent import Agent
from app.domain.entities.agent_workload import AgentWorkload
from app.domain.entities.assignment_history import AssignmentHistoryRecord
from app.domain.entities.assignment_job import AssignmentJob, QueuedJob
from app.domain.entities.batch_status import BatchStatusRecord
from app.domain.entities.case import Case
from app.domain.policies.priority import backoff_delay
from app.domain.value_objects.enums import AgentRole, BatchStatus, CaseStatus, JobState

# ─── Store ───────────────────────────────────────────────────────────


class InMemoryStore:
    """Committed state shared by every unit of work, plus one lock per case row."""

    def __init__(self, cases: list[Case] = (), agents: list[Agent] = ()):
        self.cases: dict[str, Case] = {c.id: c for c in cases}
        self.agents: dict[str, Agent] = {a.id: a for a in agents}
        self.history: list[AssignmentHistoryRecord] = []
        self.locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        # case ids whose row read raises, simulating an unreachable database
        self.broken_cases: set[str] = set()
        self._history_ids = itertools.count(1)

    def next_history_id(self) -> int:
        return next(self._history_ids)


def make_agent(agent_id="agent-1", name="Agent One", active=True, role=AgentRole.FIELD_AGENT) -> Agent:
    return Agent(id=agent_id, name=name, role=role, is_active=active)


def make_case(case_id="case-1", number=1, status=CaseStatus.PENDING, assigned_to=None) -> Case:
    return Case(
        id=case_id, case_number=number, status=status,
        assigned_to=assigned_to, customer_name=f"Customer {number}",
    )


# ─── Repositories ────────────────────────────────────────────────────


class FakeCaseRepo(CaseRepository):
    def __init__(self, store: InMemoryStore):
        self._store = store

    async def get_by_id(self, case_id):
        case = self._store.cases.get(case_id)
        return copy.copy(case) if case else None

    async def get_for_update(self, case_id):
        return await self.get_by_id(case_id)

    async def update_assignment(self, case):
        self._store.cases[case.id] = copy.copy(case)
        return case

    async def get_workload(self):
        counts: dict[str, dict[str, int]] = defaultdict(dict)
        for case in self._store.cases.values():
            if case.assigned_to:
                by_status = counts[case.assigned_to]
                by_status[case.status.value] = by_status.get(case.status.value, 0) + 1
        return [
            AgentWorkload(
                agent_id=a.id,
                agent_name=a.name,
                total_assigned_cases=sum(counts[a.id].values()),
                by_status=dict(counts[a.id]),
            )
            for a in self._store.agents.values()
            if a.is_assignable()
        ]


class FakeAgentRepo(AgentRepository):
    def __init__(self, store: InMemoryStore):
        self._store = store

    async def get_by_id(self, agent_id):
        # Yield so concurrent transactions interleave while holding row locks
        await asyncio.sleep(0)
        return self._store.agents.get(agent_id)


class FakeHistoryRepo(AssignmentHistoryRepository):
    def __init__(self, store: InMemoryStore):
        self._store = store

    async def append(self, record):
        stored = replace(record, id=self._store.next_history_id())
        self._store.history.append(stored)
        return stored

    async def get_by_case(self, case_id):
        rows = [h for h in self._store.history if h.case_id == case_id]
        return sorted(rows, key=lambda h: (h.assigned_at, h.id), reverse=True)


# ─── Unit of work ────────────────────────────────────────────────────


class _StagedCases(CaseRepository):
    def __init__(self, uow: "FakeUnitOfWork"):
        self._uow = uow

    async def get_by_id(self, case_id):
        return await FakeCaseRepo(self._uow.store).get_by_id(case_id)

    async def get_for_update(self, case_id):
        store = self._uow.store
        if case_id in store.broken_cases:
            raise ConnectionError("database connection lost")
        lock = store.locks[case_id]
        await lock.acquire()
        self._uow.held.append(lock)
        case = store.cases.get(case_id)
        return copy.copy(case) if case else None

    async def update_assignment(self, case):
        self._uow.staged_cases[case.id] = copy.copy(case)
        return case

    async def get_workload(self):
        return await FakeCaseRepo(self._uow.store).get_workload()


class _StagedHistory(AssignmentHistoryRepository):
    def __init__(self, uow: "FakeUnitOfWork"):
        self._uow = uow

    async def append(self, record):
        self._uow.staged_history.append(record)
        return record

    async def get_by_case(self, case_id):
        return await FakeHistoryRepo(self._uow.store).get_by_case(case_id)


class FakeUnitOfWork(UnitOfWork):
    """Stages writes until commit and holds case locks until the context exits."""

    def __init__(self, store: InMemoryStore, fail_on_commit: bool = False):
        self.store = store
        self.fail_on_commit = fail_on_commit
        self.held: list[asyncio.Lock] = []
        self.staged_cases: dict[str, Case] = {}
        self.staged_history: list[AssignmentHistoryRecord] = []
        self.cases = _StagedCases(self)
        self.agents = FakeAgentRepo(store)
        self.history = _StagedHistory(self)
        self.committed = False

    async def __aexit__(self, exc_type, exc, tb):
        await self.rollback()
        for lock in self.held:
            lock.release()
        self.held = []

    async def commit(self):
        if self.fail_on_commit:
            raise ConnectionError("commit failed")
        self.store.cases.update(self.staged_cases)
        history = FakeHistoryRepo(self.store)
        for record in self.staged_history:
            await history.append(record)
        self.staged_cases = {}
        self.staged_history = []
        self.committed = True

    async def rollback(self):
        self.staged_cases = {}
        self.staged_history = []


class FakeBatchRepo(BatchStatusRepository):
    """Column-scoped batch writes; every successful write is snapshotted."""

    def __init__(self, store: InMemoryStore | None = None):
        self.records: dict[str, BatchStatusRecord] = {}
        self.snapshots: list[BatchStatusRecord] = []
        self._store = store

    async def create(self, record):
        self.records[record.batch_id] = copy.deepcopy(record)
        self.snapshots.append(copy.deepcopy(record))
        return record

    async def get(self, batch_id):
        record = self.records.get(batch_id)
        return copy.deepcopy(record) if record else None

    def _open(self, batch_id) -> BatchStatusRecord | None:
        stored = self.records.get(batch_id)
        if stored is None or stored.status.is_terminal():
            return None
        return stored

    def _written(self, stored: BatchStatusRecord) -> bool:
        self.snapshots.append(copy.deepcopy(stored))
        return True

    async def mark_processing(self, batch_id, job_id, started_at):
        stored = self._open(batch_id)
        if stored is None:
            return False
        stored.job_id = job_id
        stored.status = BatchStatus.PROCESSING
        stored.started_at = stored.started_at or started_at
        return self._written(stored)

    async def update_progress(self, batch_id, successful, failed, errors):
        stored = self._open(batch_id)
        if stored is None:
            return False
        stored.successful_assignments = max(stored.successful_assignments, successful)
        stored.failed_assignments = max(stored.failed_assignments, failed)
        stored.processed_cases = min(
            max(stored.processed_cases, successful + failed), stored.total_cases
        )
        stored.errors = list(errors)
        return self._written(stored)

    async def close(self, batch_id, status, completed_at, errors=None):
        stored = self._open(batch_id)
        if stored is None:
            return False
        stored.status = status
        stored.completed_at = completed_at
        if errors is not None:
            stored.errors = list(errors)
        return self._written(stored)

    async def assigned_case_ids(self, batch_id):
        if self._store is None:
            return set()
        return {h.case_id for h in self._store.history if h.batch_id == batch_id}


# ─── Queue & collaborators ───────────────────────────────────────────


class FakeJobQueue(JobQueue):
    """Priority queue without wall-clock delays; retry delays are recorded instead."""

    def __init__(self, backoff_seconds: float = 2.0):
        self.jobs: dict[str, QueuedJob] = {}
        self.progress_log: list[tuple[str, dict]] = []
        self.retry_delays: list[float] = []
        self._order: dict[str, int] = {}
        self._ids = itertools.count(1)
        self._backoff = backoff_seconds

    async def enqueue(self, job: AssignmentJob, priority, max_attempts):
        seq = next(self._ids)
        job_id = f"job-{seq}"
        self.jobs[job_id] = QueuedJob(
            id=job_id, job=job, priority=priority,
            state=JobState.WAITING, max_attempts=max_attempts,
        )
        self._order[job_id] = seq
        return job_id

    async def claim(self):
        waiting = [j for j in self.jobs.values() if j.state == JobState.WAITING]
        if not waiting:
            return None
        job = min(waiting, key=lambda j: (j.priority, self._order[j.id]))
        job.state = JobState.ACTIVE
        job.attempts += 1
        return job

    async def complete(self, job_id, result):
        job = self.jobs[job_id]
        job.state = JobState.COMPLETED
        job.result = result

    async def fail(self, job_id, error, retryable=True):
        job = self.jobs[job_id]
        job.last_error = error
        if retryable and job.attempts < job.max_attempts:
            self.retry_delays.append(backoff_delay(job.attempts, self._backoff))
            job.state = JobState.WAITING
        else:
            job.state = JobState.DEAD
        return job.state

    async def update_progress(self, job_id, progress):
        self.progress_log.append((job_id, dict(progress)))
        if job_id in self.jobs:
            self.jobs[job_id].progress = dict(progress)

    async def get(self, job_id):
        return self.jobs.get(job_id)

    async def cancel(self, job_id):
        job = self.jobs.get(job_id)
        if job is None or job.state != JobState.WAITING:
            return False
        job.state = JobState.CANCELLED
        return True

    async def recover_stalled(self, older_than_seconds):
        return 0

    async def stats(self):
        counts = {state.value: 0 for state in JobState}
        for job in self.jobs.values():
            counts[job.state.value] += 1
        return counts


class RecordingAuditWriter(AuditWriter):
    def __init__(self, fail: bool = False):
        self.events: list[tuple] = []
        self._fail = fail

    async def record(self, action, entity_type, entity_id, actor_id, details):
        if self._fail:
            raise ConnectionError("audit store unavailable")
        self.events.append((action, entity_type, entity_id, actor_id, details))


class RecordingNotificationQueue(NotificationQueue):
    def __init__(self, fail: bool = False):
        self.events = []
        self._fail = fail

    async def enqueue(self, event):
        if self._fail:
            raise ConnectionError("notification queue unavailable")
        self.events.append(event)


# ─── SQL session stand-in ────────────────────────────────────────────


class _Result:
    def __init__(self, rowcount: int):
        self.rowcount = rowcount


class _Transaction:
    def __init__(self, fail: bool):
        self._fail = fail

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        if self._fail:
            raise ConnectionError("commit failed")
        return False


class FakeSession:
    """Records what an adapter adds or executes; no SQL is run."""

    def __init__(self, factory: "FakeSessionFactory"):
        self._factory = factory
        self.committed = False
        self.rolled_back = False
        self.closed = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    def begin(self):
        return _Transaction(self._factory.fail_commit)

    def add(self, row):
        self._factory.rows.append(row)

    async def execute(self, statement):
        self._factory.statements.append(statement)
        return _Result(rowcount=1)

    async def commit(self):
        if self._factory.fail_commit:
            raise ConnectionError("commit failed")
        self.committed = True

    async def rollback(self):
        if self._factory.fail_rollback:
            raise ConnectionError("connection dropped")
        self.rolled_back = True

    async def close(self):
        self.closed = True


class FakeSessionFactory:
    def __init__(self, fail_commit: bool = False, fail_rollback: bool = False):
        self.fail_commit = fail_commit
        self.fail_rollback = fail_rollback
        self.rows: list = []
        self.statements: list = []
        self.sessions: list[FakeSession] = []

    def __call__(self) -> FakeSession:
        session = FakeSession(self)
        self.sessions.append(session)
        return session
