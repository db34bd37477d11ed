"""Tests for the read-only assignment queries."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from app.application.use_cases.assignment_queries import AssignmentQueries
from app.domain.entities.assignment_history import AssignmentHistoryRecord
from app.domain.entities.assignment_job import SingleAssignmentJob
from app.domain.value_objects.enums import CaseStatus
from fakes import FakeCaseRepo, FakeHistoryRepo, FakeJobQueue, make_case


def _queries(store, queue=None):
    return AssignmentQueries(FakeCaseRepo(store), FakeHistoryRepo(store), queue or FakeJobQueue())


def _history(case_id, to_agent, minutes_ago):
    return AssignmentHistoryRecord(
        id=None,
        case_id=case_id,
        previous_assignee_id=None,
        new_assignee_id=to_agent,
        assigned_by_id="admin",
        reason="Case assignment",
        assigned_at=datetime.now(timezone.utc) - timedelta(minutes=minutes_ago),
    )


@pytest.mark.asyncio
async def test_case_history_newest_first(store):
    history = FakeHistoryRepo(store)
    await history.append(_history("case-3", "agent-2", minutes_ago=30))
    await history.append(_history("case-3", "agent-1", minutes_ago=5))
    await history.append(_history("case-1", "agent-1", minutes_ago=1))

    rows = await _queries(store).get_case_history("case-3")

    assert [r.new_assignee_id for r in rows] == ["agent-1", "agent-2"]


@pytest.mark.asyncio
async def test_case_history_unknown_case(store):
    assert await _queries(store).get_case_history("missing") is None


@pytest.mark.asyncio
async def test_case_history_empty_for_unassigned_case(store):
    assert await _queries(store).get_case_history("case-1") == []


@pytest.mark.asyncio
async def test_workload_sorted_by_load(store):
    store.cases["case-4"] = make_case("case-4", 4, CaseStatus.ASSIGNED, assigned_to="agent-2")
    store.cases["case-5"] = make_case("case-5", 5, CaseStatus.ASSIGNED, assigned_to="agent-2")

    workload = await _queries(store).get_agent_workload()

    assert [w.agent_id for w in workload] == ["agent-2", "agent-1"]
    assert workload[0].total_assigned_cases == 2
    assert workload[0].by_status == {"ASSIGNED": 2}
    assert workload[1].by_status == {"IN_PROGRESS": 1}


@pytest.mark.asyncio
async def test_job_lookup_and_stats(store):
    queue = FakeJobQueue()
    job_id = await queue.enqueue(SingleAssignmentJob("case-1", "agent-1", "admin"), 3, 5)
    queries = _queries(store, queue)

    queued = await queries.get_job(job_id)
    stats = await queries.get_queue_stats()

    assert queued.job.case_id == "case-1"
    assert await queries.get_job("job-999") is None
    assert stats["waiting"] == 1
    assert stats["active"] == 0
