"""Pytest configuration and shared fixtures."""

import pytest

from app.domain.value_objects.enums import CaseStatus
from fakes import InMemoryStore, make_agent, make_case


@pytest.fixture
def store():
    """Three cases (one already held by agent-1) and two active field agents."""
    return InMemoryStore(
        [
            make_case("case-1", 1),
            make_case("case-2", 2),
            make_case("case-3", 3, status=CaseStatus.IN_PROGRESS, assigned_to="agent-1"),
        ],
        [make_agent("agent-1", "Agent One"), make_agent("agent-2", "Agent Two")],
    )
