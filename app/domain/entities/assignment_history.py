"""AssignmentHistoryRecord — immutable trail of one completed assignment change."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class AssignmentHistoryRecord:
    id: int | None
    case_id: str
    previous_assignee_id: str | None
    new_assignee_id: str
    assigned_by_id: str
    reason: str
    assigned_at: datetime
    batch_id: str | None = None
