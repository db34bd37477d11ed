"""Agent entity — a field-work performer who receives case assignments."""

from dataclasses import dataclass

from app.domain.value_objects.enums import AgentRole


@dataclass
class Agent:
    id: str
    name: str
    role: AgentRole
    is_active: bool = True
    email: str | None = None

    def has_assignable_role(self) -> bool:
        return self.role == AgentRole.FIELD_AGENT

    def is_assignable(self) -> bool:
        return self.is_active and self.has_assignable_role()
