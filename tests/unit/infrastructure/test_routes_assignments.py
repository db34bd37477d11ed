"""HTTP tests for the assignment routes, with use cases wired to in-memory fakes."""

from __future__ import annotations

import httpx
import pytest
import pytest_asyncio

from app.application.use_cases.assignment_queries import AssignmentQueries
from app.application.use_cases.batch_status import BatchStatusTracker
from app.application.use_cases.submit_assignment import JobSubmitter
from app.application.use_cases.validate_assignment import AssignmentValidator
from app.domain.value_objects.enums import BatchStatus, JobState
from app.infrastructure.api.dependencies import (
    get_assignment_queries,
    get_batch_status_tracker,
    get_job_submitter,
)
from app.main import create_app
from fakes import (
    FakeAgentRepo,
    FakeBatchRepo,
    FakeCaseRepo,
    FakeHistoryRepo,
    FakeJobQueue,
    RecordingAuditWriter,
)


@pytest.fixture
def wired(store):
    queue = FakeJobQueue()
    batches = FakeBatchRepo()
    submitter = JobSubmitter(
        validator=AssignmentValidator(FakeCaseRepo(store), FakeAgentRepo(store)),
        job_queue=queue,
        batch_repo=batches,
        max_batch_size=500,
        max_attempts=5,
        batch_id_factory=lambda: "batch-1",
    )
    app = create_app()
    app.dependency_overrides[get_job_submitter] = lambda: submitter
    app.dependency_overrides[get_batch_status_tracker] = lambda: BatchStatusTracker(
        batches, queue, RecordingAuditWriter()
    )
    app.dependency_overrides[get_assignment_queries] = lambda: AssignmentQueries(
        FakeCaseRepo(store), FakeHistoryRepo(store), queue
    )
    return app, queue, batches


@pytest_asyncio.fixture
async def client(wired):
    app, _, _ = wired
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.mark.asyncio
async def test_single_assignment_is_queued(client, wired):
    _, queue, _ = wired
    resp = await client.post(
        "/api/assignments/single",
        json={"case_id": "case-1", "assigned_to_id": "agent-1", "assigned_by_id": "admin",
              "priority": "URGENT"},
    )

    assert resp.status_code == 202
    body = resp.json()
    assert body["status"] == "queued"
    assert queue.jobs[body["job_id"]].priority == 1


@pytest.mark.asyncio
async def test_single_assignment_unknown_case(client):
    resp = await client.post(
        "/api/assignments/single",
        json={"case_id": "nope", "assigned_to_id": "agent-1", "assigned_by_id": "admin"},
    )

    assert resp.status_code == 404
    assert resp.json()["detail"]["reason"] == "case_not_found"


@pytest.mark.asyncio
async def test_single_assignment_inactive_agent(client, store):
    store.agents["agent-2"].is_active = False
    resp = await client.post(
        "/api/assignments/single",
        json={"case_id": "case-1", "assigned_to_id": "agent-2", "assigned_by_id": "admin"},
    )

    assert resp.status_code == 409
    assert resp.json()["detail"]["reason"] == "agent_inactive"


@pytest.mark.asyncio
async def test_bulk_assignment_creates_batch(client, wired):
    _, _, batches = wired
    resp = await client.post(
        "/api/assignments/bulk",
        json={"case_ids": ["case-1", "case-2"], "assigned_to_id": "agent-1",
              "assigned_by_id": "admin"},
    )

    assert resp.status_code == 202
    body = resp.json()
    assert body["batch_id"] == "batch-1"
    assert body["total_cases"] == 2
    assert batches.records["batch-1"].status == BatchStatus.PROCESSING


@pytest.mark.asyncio
async def test_empty_bulk_is_bad_request(client):
    resp = await client.post(
        "/api/assignments/bulk",
        json={"case_ids": [], "assigned_to_id": "agent-1", "assigned_by_id": "admin"},
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_reassign_requires_current_assignee(client):
    resp = await client.post(
        "/api/assignments/reassign",
        json={"case_id": "case-1", "from_agent_id": "agent-1", "to_agent_id": "agent-2",
              "assigned_by_id": "admin", "reason": "rebalance"},
    )

    assert resp.status_code == 409
    assert resp.json()["detail"]["reason"] == "assignment_mismatch"


@pytest.mark.asyncio
async def test_reassign_is_queued_with_high_priority(client, wired):
    _, queue, _ = wired
    resp = await client.post(
        "/api/assignments/reassign",
        json={"case_id": "case-3", "from_agent_id": "agent-1", "to_agent_id": "agent-2",
              "assigned_by_id": "admin", "reason": "rebalance"},
    )

    assert resp.status_code == 202
    assert queue.jobs[resp.json()["job_id"]].priority == 2


@pytest.mark.asyncio
async def test_batch_status_and_cancel(client, wired):
    _, queue, _ = wired
    submitted = await client.post(
        "/api/assignments/bulk",
        json={"case_ids": ["case-1", "case-2"], "assigned_to_id": "agent-1",
              "assigned_by_id": "admin"},
    )
    job_id = submitted.json()["job_id"]

    status = await client.get("/api/assignments/batches/batch-1")
    assert status.status_code == 200
    assert status.json()["status"] == "PROCESSING"
    assert status.json()["progress"] == 0

    cancelled = await client.post(
        "/api/assignments/batches/batch-1/cancel", json={"cancelled_by_id": "supervisor"}
    )
    assert cancelled.status_code == 200
    assert queue.jobs[job_id].state == JobState.CANCELLED

    again = await client.post(
        "/api/assignments/batches/batch-1/cancel", json={"cancelled_by_id": "supervisor"}
    )
    assert again.status_code == 409


@pytest.mark.asyncio
async def test_unknown_batch_is_404(client):
    assert (await client.get("/api/assignments/batches/nope")).status_code == 404
    resp = await client.post(
        "/api/assignments/batches/nope/cancel", json={"cancelled_by_id": "supervisor"}
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_queue_stats_and_job_lookup(client):
    submitted = await client.post(
        "/api/assignments/single",
        json={"case_id": "case-1", "assigned_to_id": "agent-1", "assigned_by_id": "admin"},
    )
    job_id = submitted.json()["job_id"]

    job = await client.get(f"/api/assignments/jobs/{job_id}")
    stats = await client.get("/api/assignments/queue/stats")

    assert job.json()["type"] == "single"
    assert job.json()["state"] == "waiting"
    assert stats.json()["jobs"]["waiting"] == 1
    assert (await client.get("/api/assignments/jobs/job-404")).status_code == 404


@pytest.mark.asyncio
async def test_workload_and_history(client):
    workload = await client.get("/api/assignments/workload")
    history = await client.get("/api/assignments/cases/nope/history")

    assert workload.status_code == 200
    assert workload.json()[0]["agent_id"] == "agent-1"
    assert workload.json()[0]["total_assigned_cases"] == 1
    assert history.status_code == 404
