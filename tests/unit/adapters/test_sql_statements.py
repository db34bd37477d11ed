"""Shape of the guarded UPDATE statements issued by the queue and batch adapters."""

from datetime import datetime, timezone

import pytest
from sqlalchemy.dialects import postgresql

from app.adapters.persistence.repositories import SqlBatchStatusRepository
from app.adapters.queue.sql_job_queue import SqlJobQueue
from app.domain.value_objects.enums import BatchStatus
from fakes import FakeSessionFactory

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _compiled(statement):
    return statement.compile(dialect=postgresql.dialect())


@pytest.mark.asyncio
async def test_progress_update_refreshes_active_claim():
    factory = FakeSessionFactory()

    await SqlJobQueue(factory).update_progress("job-1", {"processed": 20})

    compiled = _compiled(factory.statements[0])
    sql = str(compiled)
    assert "locked_at" in sql
    assert "CASE WHEN" in sql
    assert "active" in compiled.params.values()


@pytest.mark.asyncio
async def test_batch_progress_never_lowers_counters():
    factory = FakeSessionFactory()

    written = await SqlBatchStatusRepository(factory).update_progress("batch-1", 20, 0, [])

    sql = str(_compiled(factory.statements[0])).lower()
    assert written is True
    assert "greatest(" in sql
    assert "least(" in sql
    assert "job_id" not in sql
    assert "started_at" not in sql


@pytest.mark.asyncio
async def test_batch_close_leaves_job_and_start_untouched():
    factory = FakeSessionFactory()

    await SqlBatchStatusRepository(factory).close("batch-1", BatchStatus.COMPLETED, NOW, ["e"])

    sql = str(_compiled(factory.statements[0])).lower()
    assert "completed_at" in sql
    assert "job_id" not in sql
    assert "started_at" not in sql
    assert "processed_cases" not in sql


@pytest.mark.asyncio
async def test_mark_processing_keeps_first_start_time():
    factory = FakeSessionFactory()

    await SqlBatchStatusRepository(factory).mark_processing("batch-1", "job-1", NOW)

    sql = str(_compiled(factory.statements[0])).lower()
    assert "coalesce(" in sql
    assert "job_id" in sql
