"""Case entity — a unit of field verification work."""

from dataclasses import dataclass
from datetime import datetime

from app.domain.value_objects.enums import CaseStatus


@dataclass
class Case:
    id: str
    case_number: int
    status: CaseStatus
    assigned_to: str | None = None
    customer_name: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def is_assigned_to(self, agent_id: str) -> bool:
        return self.assigned_to == agent_id

    def assign(self, agent_id: str) -> None:
        """Point the case at a new assignee.

        Only the initial PENDING state advances to ASSIGNED; a case that is
        already in progress or completed keeps its status.
        """
        self.assigned_to = agent_id
        if self.status == CaseStatus.PENDING:
            self.status = CaseStatus.ASSIGNED
