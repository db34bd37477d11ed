"""Port interface for agent lookups (read-only for the pipeline)."""

from abc import ABC, abstractmethod

from app.domain.entities.agent import Agent


class AgentRepository(ABC):
    @abstractmethod
    async def get_by_id(self, agent_id: str) -> Agent | None:
        ...
