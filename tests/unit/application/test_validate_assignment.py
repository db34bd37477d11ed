"""Tests for AssignmentValidator."""

import pytest

from app.application.use_cases.validate_assignment import AssignmentValidator
from app.domain.value_objects.enums import AgentRole, ValidationFailure
from fakes import FakeAgentRepo, FakeCaseRepo, InMemoryStore, make_agent, make_case


def _validator(store: InMemoryStore) -> AssignmentValidator:
    return AssignmentValidator(FakeCaseRepo(store), FakeAgentRepo(store))


@pytest.mark.asyncio
async def test_valid_case_and_agent_pass():
    store = InMemoryStore([make_case()], [make_agent()])
    result = await _validator(store).validate("case-1", "agent-1")
    assert result.ok
    assert result.failure is None


@pytest.mark.asyncio
async def test_missing_case():
    store = InMemoryStore([], [make_agent()])
    result = await _validator(store).validate("case-1", "agent-1")
    assert not result.ok
    assert result.failure == ValidationFailure.CASE_NOT_FOUND


@pytest.mark.asyncio
async def test_missing_agent():
    store = InMemoryStore([make_case()], [])
    result = await _validator(store).validate("case-1", "agent-1")
    assert result.failure == ValidationFailure.AGENT_NOT_FOUND


@pytest.mark.asyncio
async def test_non_field_agent_is_not_found():
    store = InMemoryStore([make_case()], [make_agent(role=AgentRole.BACKEND_USER)])
    result = await _validator(store).validate("case-1", "agent-1")
    assert result.failure == ValidationFailure.AGENT_NOT_FOUND


@pytest.mark.asyncio
async def test_inactive_agent():
    store = InMemoryStore([make_case()], [make_agent(active=False)])
    result = await _validator(store).validate("case-1", "agent-1")
    assert result.failure == ValidationFailure.AGENT_INACTIVE
    assert "not active" in result.message


@pytest.mark.asyncio
async def test_reassignment_requires_current_holder():
    store = InMemoryStore(
        [make_case(assigned_to="agent-1")],
        [make_agent("agent-1"), make_agent("agent-2", "Agent Two"), make_agent("agent-3", "Agent Three")],
    )
    validator = _validator(store)

    ok = await validator.validate_reassignment("case-1", "agent-1", "agent-2")
    mismatch = await validator.validate_reassignment("case-1", "agent-3", "agent-2")

    assert ok.ok
    assert mismatch.failure == ValidationFailure.ASSIGNMENT_MISMATCH
