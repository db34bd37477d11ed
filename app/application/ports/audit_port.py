"""Port interface for the audit-log writer."""

from abc import ABC, abstractmethod

from app.domain.value_objects.enums import AuditAction


class AuditWriter(ABC):
    @abstractmethod
    async def record(
        self,
        action: AuditAction,
        entity_type: str,
        entity_id: str,
        actor_id: str,
        details: dict,
    ) -> None:
        """Fire-and-forget: implementations log failures instead of raising."""
        ...
