"""AgentWorkload — read model of how many cases each agent currently holds."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class AgentWorkload:
    agent_id: str
    agent_name: str
    total_assigned_cases: int
    by_status: dict[str, int] = field(default_factory=dict)
