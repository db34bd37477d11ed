"""SqlUnitOfWork transaction boundaries, against a recording session."""

import pytest

from app.adapters.persistence.unit_of_work import SqlUnitOfWork
from fakes import FakeSessionFactory


@pytest.mark.asyncio
async def test_committed_work_is_not_rolled_back():
    factory = FakeSessionFactory(fail_rollback=True)

    async with SqlUnitOfWork(factory) as uow:
        await uow.commit()

    session = factory.sessions[0]
    assert session.committed
    assert not session.rolled_back
    assert session.closed


@pytest.mark.asyncio
async def test_uncommitted_work_is_rolled_back():
    factory = FakeSessionFactory()

    with pytest.raises(RuntimeError):
        async with SqlUnitOfWork(factory):
            raise RuntimeError("case lookup failed")

    session = factory.sessions[0]
    assert session.rolled_back
    assert session.closed


@pytest.mark.asyncio
async def test_each_unit_gets_a_fresh_session():
    factory = FakeSessionFactory()
    uow = SqlUnitOfWork(factory)

    async with uow:
        await uow.commit()
    async with uow:
        pass

    assert len(factory.sessions) == 2
    assert factory.sessions[1].rolled_back
